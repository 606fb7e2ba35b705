from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator, model_validator

from sniper_bot.core.types import EngineMode, EngineState, Position, Side, WatchlistEntry
from sniper_bot.monitoring.logger import get_logger


def _as_utc(v: datetime) -> datetime:
    return v.replace(tzinfo=timezone.utc) if v.tzinfo is None else v.astimezone(timezone.utc)


class PositionDoc(BaseModel):
    symbol: str = Field(min_length=1)
    side: Side
    entry_price: float = Field(gt=0)
    entry_time: datetime
    stop_loss: float = Field(gt=0)
    take_profit: float = Field(gt=0)
    quantity: float = Field(gt=0)
    break_even_hit: bool = False
    last_bar_time: datetime | None = None

    @field_validator("entry_time", "last_bar_time")
    @classmethod
    def normalize_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v) if v is not None else None


class EngineStateDoc(BaseModel):
    mode: EngineMode = EngineMode.SCANNING
    position: PositionDoc | None = None
    last_curation_run: str | None = None
    last_detection_run: str | None = None
    current_pnl: float = 0.0

    @model_validator(mode="after")
    def position_matches_mode(self) -> EngineStateDoc:
        if (self.mode == EngineMode.SCANNING) != (self.position is None):
            raise ValueError(f"mode {self.mode.value} inconsistent with position={self.position is not None}")
        return self


class WatchlistEntryDoc(BaseModel):
    symbol: str = Field(min_length=1)
    expiry: datetime

    @field_validator("expiry")
    @classmethod
    def normalize_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


_WATCHLIST = TypeAdapter(list[WatchlistEntryDoc])


def _stage_json(path: Path, payload: Any) -> Path:
    """Write payload to a temp file beside `path` and return the temp path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True)
            f.flush()
            os.fsync(f.fileno())
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
    return Path(tmp)


def _write_json_atomic(path: Path, payload: Any) -> None:
    os.replace(_stage_json(path, payload), path)


class JsonStateStore:
    """
    Two independent JSON documents: engine state and watchlist.

    Loads validate and fail closed: a missing, unreadable or malformed
    document yields a fresh default instead of an exception.
    """

    def __init__(self, state_path: str, watchlist_path: str) -> None:
        self._state_path = Path(state_path)
        self._watchlist_path = Path(watchlist_path)
        self._log = get_logger("store")

    def load(self) -> EngineState:
        state = self.load_state()
        state.watchlist = self.load_watchlist()
        return state

    def load_state(self) -> EngineState:
        raw = self._read(self._state_path)
        if raw is None:
            return EngineState()
        try:
            doc = EngineStateDoc.model_validate(raw)
        except ValidationError as e:
            self._log.warning("discarding malformed engine state %s: %s", self._state_path, e)
            return EngineState()
        return EngineState(
            mode=doc.mode,
            position=Position(**doc.position.model_dump()) if doc.position else None,
            last_curation_run=doc.last_curation_run,
            last_detection_run=doc.last_detection_run,
            current_pnl=doc.current_pnl,
        )

    def load_watchlist(self) -> list[WatchlistEntry]:
        raw = self._read(self._watchlist_path)
        if raw is None:
            return []
        try:
            docs = _WATCHLIST.validate_python(raw)
        except ValidationError as e:
            self._log.warning("discarding malformed watchlist %s: %s", self._watchlist_path, e)
            return []
        by_symbol: dict[str, WatchlistEntry] = {}
        for d in docs:
            by_symbol[d.symbol] = WatchlistEntry(symbol=d.symbol, expiry=d.expiry)
        return list(by_symbol.values())

    def commit(self, state: EngineState, *, watchlist_changed: bool) -> None:
        """
        Persist state, and the watchlist when it changed, as one step.

        Every document is serialized and staged before any is renamed into
        place, so a failed write leaves both files as they were.
        """
        docs = [(self._state_path, self._state_payload(state))]
        if watchlist_changed:
            docs.append((self._watchlist_path, self._watchlist_payload(state.watchlist)))
        staged: list[tuple[Path, Path]] = []
        try:
            for path, payload in docs:
                staged.append((_stage_json(path, payload), path))
        except BaseException:
            for tmp, _ in staged:
                tmp.unlink(missing_ok=True)
            raise
        for tmp, path in staged:
            os.replace(tmp, path)

    def save_state(self, state: EngineState) -> None:
        _write_json_atomic(self._state_path, self._state_payload(state))

    def save_watchlist(self, entries: list[WatchlistEntry]) -> None:
        _write_json_atomic(self._watchlist_path, self._watchlist_payload(entries))

    @staticmethod
    def _state_payload(state: EngineState) -> Any:
        doc = EngineStateDoc(
            mode=state.mode,
            position=PositionDoc(**vars(state.position)) if state.position else None,
            last_curation_run=state.last_curation_run,
            last_detection_run=state.last_detection_run,
            current_pnl=state.current_pnl,
        )
        return doc.model_dump(mode="json")

    @staticmethod
    def _watchlist_payload(entries: list[WatchlistEntry]) -> Any:
        docs = [WatchlistEntryDoc(symbol=e.symbol, expiry=e.expiry) for e in entries]
        return _WATCHLIST.dump_python(docs, mode="json")

    def _read(self, path: Path) -> Any | None:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            self._log.warning("cannot read %s, starting fresh: %s", path, e)
            return None
