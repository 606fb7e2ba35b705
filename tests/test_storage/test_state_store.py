from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from sniper_bot.core.types import EngineMode, EngineState, Position, Side, WatchlistEntry
from sniper_bot.data.storage import json_store
from sniper_bot.data.storage.json_store import JsonStateStore

NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def _store(tmp_path) -> JsonStateStore:
    return JsonStateStore(str(tmp_path / "state" / "engine_state.json"), str(tmp_path / "state" / "refined_watchlist.json"))


def test_missing_files_give_fresh_state(tmp_path):
    state = _store(tmp_path).load()
    assert state == EngineState()


def test_state_round_trip_with_position(tmp_path):
    store = _store(tmp_path)
    pos = Position("ABCUSDT", Side.SELL, 50.0, NOW, stop_loss=50.375, take_profit=49.5, quantity=6.0, break_even_hit=True, last_bar_time=NOW)
    state = EngineState(
        mode=EngineMode.IN_POSITION,
        position=pos,
        last_curation_run="2026-03-02",
        last_detection_run="2026-03-02T08",
        current_pnl=-1.5,
    )
    store.save_state(state)
    loaded = store.load_state()
    assert loaded.mode == EngineMode.IN_POSITION
    assert loaded.position == pos
    assert loaded.last_curation_run == "2026-03-02"
    assert loaded.last_detection_run == "2026-03-02T08"
    assert loaded.current_pnl == -1.5


def test_watchlist_is_a_separate_document(tmp_path):
    store = _store(tmp_path)
    entries = [WatchlistEntry("AAAUSDT", NOW + timedelta(days=5)), WatchlistEntry("BBBUSDT", NOW + timedelta(days=1))]
    store.save_watchlist(entries)
    assert not (tmp_path / "state" / "engine_state.json").exists()
    assert store.load_watchlist() == entries
    raw = json.loads((tmp_path / "state" / "refined_watchlist.json").read_text())
    assert [r["symbol"] for r in raw] == ["AAAUSDT", "BBBUSDT"]


def test_duplicate_watchlist_symbols_collapse(tmp_path):
    path = tmp_path / "state" / "refined_watchlist.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps([
        {"symbol": "AAAUSDT", "expiry": "2026-03-05T00:00:00Z"},
        {"symbol": "AAAUSDT", "expiry": "2026-03-07T00:00:00Z"},
    ]))
    loaded = _store(tmp_path).load_watchlist()
    assert loaded == [WatchlistEntry("AAAUSDT", datetime(2026, 3, 7, tzinfo=timezone.utc))]


def test_naive_timestamps_are_read_as_utc(tmp_path):
    path = tmp_path / "state" / "refined_watchlist.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps([{"symbol": "AAAUSDT", "expiry": "2026-03-05T00:00:00"}]))
    (entry,) = _store(tmp_path).load_watchlist()
    assert entry.expiry.tzinfo is not None
    assert entry.expiry == datetime(2026, 3, 5, tzinfo=timezone.utc)


def test_corrupt_documents_fail_closed(tmp_path):
    base = tmp_path / "state"
    base.mkdir()
    (base / "engine_state.json").write_text("{not json")
    (base / "refined_watchlist.json").write_text(json.dumps({"symbol": "AAAUSDT"}))
    state = _store(tmp_path).load()
    assert state.mode == EngineMode.SCANNING
    assert state.position is None
    assert state.watchlist == []


def test_inconsistent_mode_is_rejected(tmp_path):
    base = tmp_path / "state"
    base.mkdir()
    (base / "engine_state.json").write_text(json.dumps({"mode": "IN_POSITION", "position": None}))
    assert _store(tmp_path).load_state() == EngineState()


def test_save_replaces_atomically(tmp_path):
    store = _store(tmp_path)
    store.save_state(EngineState(last_detection_run="2026-03-02T04"))
    store.save_state(EngineState(last_detection_run="2026-03-02T08"))
    assert store.load_state().last_detection_run == "2026-03-02T08"
    leftovers = [p.name for p in (tmp_path / "state").iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []


def test_commit_writes_nothing_when_a_document_fails(tmp_path, monkeypatch):
    store = _store(tmp_path)
    before_wl = [WatchlistEntry("AAAUSDT", NOW + timedelta(days=1))]
    store.save_state(EngineState(last_detection_run="2026-03-02T04"))
    store.save_watchlist(before_wl)

    real_stage = json_store._stage_json

    def failing_stage(path, payload):
        if path.name == "refined_watchlist.json":
            raise OSError("disk full")
        return real_stage(path, payload)

    monkeypatch.setattr(json_store, "_stage_json", failing_stage)
    after = EngineState(last_detection_run="2026-03-02T08", watchlist=[WatchlistEntry("BBBUSDT", NOW + timedelta(days=5))])
    with pytest.raises(OSError):
        store.commit(after, watchlist_changed=True)

    assert store.load_state().last_detection_run == "2026-03-02T04"
    assert store.load_watchlist() == before_wl
    assert [p.name for p in (tmp_path / "state").iterdir() if p.name.endswith(".tmp")] == []


def test_commit_leaves_watchlist_alone_when_unchanged(tmp_path):
    store = _store(tmp_path)
    store.commit(EngineState(watchlist=[WatchlistEntry("AAAUSDT", NOW)]), watchlist_changed=False)
    assert store.load_state() == EngineState()
    assert not (tmp_path / "state" / "refined_watchlist.json").exists()
