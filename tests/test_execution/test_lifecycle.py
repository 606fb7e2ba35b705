from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from sniper_bot.core.config import TradingConfig
from sniper_bot.core.errors import PositionConflictError
from sniper_bot.core.types import CloseReason, Direction, EngineMode, Position, Side, Signal
from sniper_bot.data.market_data_service import MarketDataService
from sniper_bot.execution.lifecycle import PositionLifecycleManager, evaluate_bar
from sniper_bot.execution.simulator import SimulatedBroker
from sniper_bot.monitoring.trade_store import TradeStore
from sniper_bot.strategies.exits.tp_sl import TpSlExit
from tests.fakes import T0, FakeExchange, candle

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
CFG = TradingConfig()


def _manager(ex: FakeExchange, journal: TradeStore | None = None, slippage_bps: float = 0.0) -> PositionLifecycleManager:
    return PositionLifecycleManager(CFG, MarketDataService(ex), SimulatedBroker(slippage_bps=slippage_bps), journal)


def _long(entry: float = 100.0) -> Position:
    tp, sl = TpSlExit.from_config(CFG).levels(entry, Side.BUY)
    return Position("ABCUSDT", Side.BUY, entry, NOW, stop_loss=sl, take_profit=tp, quantity=3.0)


def _short(entry: float = 100.0) -> Position:
    tp, sl = TpSlExit.from_config(CFG).levels(entry, Side.SELL)
    return Position("ABCUSDT", Side.SELL, entry, NOW, stop_loss=sl, take_profit=tp, quantity=3.0)


def _monitor(ex: FakeExchange, position: Position, mode: EngineMode = EngineMode.IN_POSITION, journal: TradeStore | None = None):
    return asyncio.run(_manager(ex, journal).monitor(mode, position, 0.0, NOW))


def test_roi_thresholds_scale_with_leverage():
    assert CFG.tp_pct == pytest.approx(0.01)
    assert CFG.sl_pct == pytest.approx(0.0075)
    assert CFG.break_even_pct == pytest.approx(0.005)
    assert CFG.notional_usdt == pytest.approx(300.0)


def test_open_long_sets_levels_from_fill():
    ex = FakeExchange()
    signal = Signal("ABCUSDT", Direction.LONG, 102.3)
    upd = asyncio.run(_manager(ex).open_position(EngineMode.SCANNING, None, signal, NOW))
    assert upd.mode == EngineMode.IN_POSITION
    pos = upd.position
    assert pos is not None
    assert pos.side == Side.BUY
    assert pos.entry_price == pytest.approx(102.3)
    assert pos.take_profit == pytest.approx(102.3 * (1 + CFG.tp_pct))
    assert pos.stop_loss == pytest.approx(102.3 * (1 - CFG.sl_pct))
    assert pos.quantity == pytest.approx(300.0 / 102.3)
    assert pos.break_even_hit is False
    assert pos.entry_time == NOW


def test_open_short_mirrors_levels_and_applies_slippage():
    ex = FakeExchange()
    signal = Signal("ABCUSDT", Direction.SHORT, 100.0)
    upd = asyncio.run(_manager(ex, slippage_bps=10).open_position(EngineMode.SCANNING, None, signal, NOW))
    pos = upd.position
    assert pos is not None and pos.side == Side.SELL
    assert pos.entry_price == pytest.approx(99.9)
    assert pos.take_profit == pytest.approx(99.9 * (1 - CFG.tp_pct))
    assert pos.stop_loss == pytest.approx(99.9 * (1 + CFG.sl_pct))


def test_open_while_holding_is_a_conflict():
    ex = FakeExchange()
    signal = Signal("XYZUSDT", Direction.LONG, 10.0)
    with pytest.raises(PositionConflictError):
        asyncio.run(_manager(ex).open_position(EngineMode.IN_POSITION, _long(), signal, NOW))


def test_unfillable_signal_stays_scanning():
    ex = FakeExchange()
    signal = Signal("ABCUSDT", Direction.LONG, 0.0)
    upd = asyncio.run(_manager(ex).open_position(EngineMode.SCANNING, None, signal, NOW))
    assert upd.mode == EngineMode.SCANNING
    assert upd.position is None


def test_take_profit_wins_when_bar_touches_both():
    pos = _long()
    bar = candle(100.0, high=101.5, low=99.0)
    out = evaluate_bar(pos, bar, TpSlExit.from_config(CFG))
    assert out.close_reason == CloseReason.TAKE_PROFIT
    assert out.exit_price == pytest.approx(101.0)


def test_long_take_profit_closes_and_journals(tmp_path):
    journal = TradeStore(str(tmp_path / "trades.sqlite3"))
    journal.init_schema()
    ex = FakeExchange()
    ex.set_candles("ABCUSDT", "1m", [candle(100.8, high=101.2, low=100.4)])

    upd = _monitor(ex, _long(), journal=journal)

    assert upd.mode == EngineMode.SCANNING
    assert upd.position is None
    assert upd.current_pnl == 0.0
    assert upd.closed is not None
    assert upd.closed.reason == CloseReason.TAKE_PROFIT
    assert upd.closed.realized_pnl == pytest.approx(3.0)
    rows = journal.list_recent()
    assert len(rows) == 1 and rows[0]["reason"] == "TAKE_PROFIT"
    assert journal.total_realized_pnl() == pytest.approx(3.0)
    journal.close()


def test_long_stop_loss():
    ex = FakeExchange()
    ex.set_candles("ABCUSDT", "1m", [candle(99.5, high=99.9, low=99.2)])
    upd = _monitor(ex, _long())
    assert upd.closed is not None
    assert upd.closed.reason == CloseReason.STOP_LOSS
    assert upd.closed.exit_price == pytest.approx(99.25)
    assert upd.closed.realized_pnl == pytest.approx(-2.25)


def test_break_even_moves_stop_then_exits_flat():
    ex = FakeExchange()
    ex.set_candles("ABCUSDT", "1m", [candle(100.6, high=100.7, low=100.1)])
    upd = _monitor(ex, _long())
    assert upd.mode == EngineMode.IN_POSITION
    pos = upd.position
    assert pos is not None
    assert pos.break_even_hit is True
    assert pos.stop_loss == pytest.approx(100.0)
    assert upd.current_pnl == pytest.approx(1.8)

    ex.set_candles("ABCUSDT", "1m", [candle(99.95, high=100.2, low=99.9)])
    upd = _monitor(ex, pos)
    assert upd.closed is not None
    assert upd.closed.reason == CloseReason.BREAK_EVEN_STOP
    assert upd.closed.realized_pnl == pytest.approx(0.0)


def test_break_even_uses_close_not_wick():
    ex = FakeExchange()
    ex.set_candles("ABCUSDT", "1m", [candle(100.2, high=100.9, low=100.0)])
    upd = _monitor(ex, _long())
    assert upd.position is not None
    assert upd.position.break_even_hit is False
    assert upd.position.stop_loss == pytest.approx(99.25)


def test_short_take_profit_and_stop():
    ex = FakeExchange()
    ex.set_candles("ABCUSDT", "1m", [candle(99.2, high=99.5, low=98.9)])
    upd = _monitor(ex, _short())
    assert upd.closed is not None and upd.closed.reason == CloseReason.TAKE_PROFIT
    assert upd.closed.realized_pnl == pytest.approx(3.0)

    ex.set_candles("ABCUSDT", "1m", [candle(100.5, high=100.8, low=100.3)])
    upd = _monitor(ex, _short())
    assert upd.closed is not None and upd.closed.reason == CloseReason.STOP_LOSS


def test_failed_fetch_holds_position():
    ex = FakeExchange()
    ex.failing.add(("ABCUSDT", "1m"))
    pos = _long()
    upd = asyncio.run(_manager(ex).monitor(EngineMode.IN_POSITION, pos, 1.25, NOW))
    assert upd.mode == EngineMode.IN_POSITION
    assert upd.position == pos
    assert upd.current_pnl == 1.25
    assert upd.closed is None


def test_pending_is_promoted_on_monitor():
    ex = FakeExchange()
    ex.set_candles("ABCUSDT", "1m", [candle(100.1)])
    upd = _monitor(ex, _long(), mode=EngineMode.PENDING)
    assert upd.mode == EngineMode.IN_POSITION
    assert upd.current_pnl == pytest.approx(0.3)


def test_monitor_without_position_resets():
    upd = asyncio.run(_manager(FakeExchange()).monitor(EngineMode.IN_POSITION, None, 5.0, NOW))
    assert upd.mode == EngineMode.SCANNING
    assert upd.position is None
    assert upd.current_pnl == 0.0


def test_touch_late_in_previous_bar_is_caught():
    ex = FakeExchange()
    prev, cur = T0, T0 + timedelta(minutes=1)
    ex.set_candles("ABCUSDT", "1m", [candle(100.4, high=101.2, low=100.0, ts=prev), candle(100.3, ts=cur)])
    pos = replace(_long(), last_bar_time=prev)
    upd = _monitor(ex, pos)
    assert upd.closed is not None
    assert upd.closed.reason == CloseReason.TAKE_PROFIT


def test_bars_before_last_seen_are_ignored():
    ex = FakeExchange()
    prev, cur = T0, T0 + timedelta(minutes=1)
    ex.set_candles("ABCUSDT", "1m", [candle(99.5, low=99.0, ts=prev), candle(100.1, ts=cur)])
    pos = replace(_long(), last_bar_time=cur)
    upd = _monitor(ex, pos)
    assert upd.closed is None
    assert upd.position is not None
    assert upd.position.last_bar_time == cur


def test_fresh_position_only_reads_newest_bar():
    ex = FakeExchange()
    ex.set_candles("ABCUSDT", "1m", [candle(99.5, low=99.0, ts=T0), candle(100.1, ts=T0 + timedelta(minutes=1))])
    upd = _monitor(ex, _long())
    assert upd.closed is None
    assert upd.position is not None
    assert upd.position.last_bar_time == T0 + timedelta(minutes=1)
