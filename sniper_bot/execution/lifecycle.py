from __future__ import annotations

import sqlite3
from dataclasses import dataclass, replace
from datetime import datetime

from sniper_bot.core.config import TradingConfig
from sniper_bot.core.errors import PositionConflictError
from sniper_bot.core.types import (
    Candle,
    ClosedTrade,
    CloseReason,
    EngineMode,
    Position,
    Side,
    Signal,
)
from sniper_bot.data.market_data_service import MarketDataService
from sniper_bot.execution.simulator import SimulatedBroker
from sniper_bot.monitoring.logger import get_logger
from sniper_bot.monitoring.trade_store import TradeStore
from sniper_bot.portfolio.pnl import position_pnl_usdt
from sniper_bot.strategies.exits.tp_sl import TpSlExit


@dataclass(frozen=True)
class LifecycleUpdate:
    """The position slice of engine state after a lifecycle step."""

    mode: EngineMode
    position: Position | None
    current_pnl: float
    closed: ClosedTrade | None = None


@dataclass(frozen=True)
class BarOutcome:
    position: Position
    close_reason: CloseReason | None = None
    exit_price: float | None = None


def evaluate_bar(position: Position, bar: Candle, exits: TpSlExit) -> BarOutcome:
    """
    Apply one bar to an open position.

    Order matters: take-profit first, then the stop (initial or break-even),
    then the break-even move. A bar touching both TP and SL closes at TP.
    """
    is_long = position.side == Side.BUY

    tp_hit = bar.high >= position.take_profit if is_long else bar.low <= position.take_profit
    if tp_hit:
        return BarOutcome(position, CloseReason.TAKE_PROFIT, position.take_profit)

    sl_hit = bar.low <= position.stop_loss if is_long else bar.high >= position.stop_loss
    if sl_hit:
        reason = CloseReason.BREAK_EVEN_STOP if position.break_even_hit else CloseReason.STOP_LOSS
        return BarOutcome(position, reason, position.stop_loss)

    if not position.break_even_hit and exits.break_even_reached(position.entry_price, position.side, bar.close):
        return BarOutcome(replace(position, stop_loss=position.entry_price, break_even_hit=True))

    return BarOutcome(position)


def unseen_bars(candles: list[Candle], last_bar_time: datetime | None) -> list[Candle]:
    """
    Bars still worth evaluating, oldest first.

    The bar opened at `last_bar_time` is included again: it may have kept
    trading after the previous tick saw it. With no history only the newest
    bar counts, so a fresh position never reacts to bars before its entry.
    """
    if not candles:
        return []
    if last_bar_time is None:
        return [candles[-1]]
    return [c for c in candles if c.timestamp >= last_bar_time]


class PositionLifecycleManager:
    """
    SCANNING -> PENDING -> IN_POSITION -> SCANNING.

    Works on the position slice only; the caller owns EngineState and applies
    the returned LifecycleUpdate.
    """

    def __init__(
        self,
        cfg: TradingConfig,
        market: MarketDataService,
        broker: SimulatedBroker,
        journal: TradeStore | None = None,
    ) -> None:
        self._cfg = cfg
        self._market = market
        self._broker = broker
        self._journal = journal
        self._exits = TpSlExit.from_config(cfg)
        self._log = get_logger("lifecycle")

    async def open_position(
        self,
        mode: EngineMode,
        position: Position | None,
        signal: Signal,
        now: datetime,
    ) -> LifecycleUpdate:
        if mode != EngineMode.SCANNING or position is not None:
            held = position.symbol if position else "-"
            raise PositionConflictError(
                f"cannot open {signal.symbol}: engine is {mode.value} holding {held}"
            )

        side = signal.direction.side
        quantity = self._cfg.notional_usdt / signal.reference_price if signal.reference_price > 0 else 0.0
        self._log.info("executing %s %s qty=%.6f ref=%.8f", side.value, signal.symbol, quantity, signal.reference_price)

        # PENDING until the fill comes back
        fill = await self._broker.submit_market(
            symbol=signal.symbol,
            side=side,
            reference_price=signal.reference_price,
            quantity=quantity,
            now=now,
        )
        if fill is None:
            self._log.warning("order for %s not filled; back to scanning", signal.symbol)
            return LifecycleUpdate(mode=EngineMode.SCANNING, position=None, current_pnl=0.0)

        take_profit, stop_loss = self._exits.levels(fill.price, side)
        opened = Position(
            symbol=signal.symbol,
            side=side,
            entry_price=fill.price,
            entry_time=fill.time,
            stop_loss=stop_loss,
            take_profit=take_profit,
            quantity=fill.quantity,
        )
        self._log.info(
            "position open %s %s entry=%.8f tp=%.8f sl=%.8f",
            side.value,
            opened.symbol,
            opened.entry_price,
            opened.take_profit,
            opened.stop_loss,
        )
        return LifecycleUpdate(mode=EngineMode.IN_POSITION, position=opened, current_pnl=0.0)

    async def monitor(
        self,
        mode: EngineMode,
        position: Position | None,
        current_pnl: float,
        now: datetime,
    ) -> LifecycleUpdate:
        if position is None:
            self._log.warning("mode %s without a position; resetting to scanning", mode.value)
            return LifecycleUpdate(mode=EngineMode.SCANNING, position=None, current_pnl=0.0)

        if mode == EngineMode.PENDING:
            # fills are simulated, so a pending order is already filled
            self._log.info("pending order on %s confirmed", position.symbol)
            mode = EngineMode.IN_POSITION

        bars = await self._market.get_candles(position.symbol, self._cfg.monitor_interval, self._cfg.monitor_lookback)
        if not bars.is_ok:
            self._log.warning("monitor %s: no market data (%s); holding", position.symbol, bars.status.value)
            return LifecycleUpdate(mode=mode, position=position, current_pnl=current_pnl)

        candles = bars.value or []
        outcome = BarOutcome(position)
        for bar in unseen_bars(candles, position.last_bar_time):
            outcome = evaluate_bar(outcome.position, bar, self._exits)
            if outcome.close_reason is not None:
                break

        if outcome.close_reason is not None and outcome.exit_price is not None:
            closed = ClosedTrade(
                symbol=position.symbol,
                side=position.side,
                entry_price=position.entry_price,
                exit_price=outcome.exit_price,
                quantity=position.quantity,
                reason=outcome.close_reason,
                realized_pnl=position_pnl_usdt(position, outcome.exit_price),
                entry_time=position.entry_time,
                exit_time=now,
            )
            self._log.info(
                "position closed %s by %s at %.8f pnl=%.4f USDT; resetting cycle",
                closed.symbol,
                closed.reason.value,
                closed.exit_price,
                closed.realized_pnl,
            )
            if self._journal is not None:
                try:
                    self._journal.record(closed)
                except sqlite3.Error:
                    self._log.exception("failed to journal closed trade %s", closed.symbol)
            return LifecycleUpdate(mode=EngineMode.SCANNING, position=None, current_pnl=0.0, closed=closed)

        latest = candles[-1]
        updated = replace(outcome.position, last_bar_time=latest.timestamp)
        if updated.break_even_hit and not position.break_even_hit:
            self._log.info("%s break-even reached; stop moved to %.8f", updated.symbol, updated.stop_loss)
        pnl = position_pnl_usdt(updated, latest.close)
        self._log.info("live pnl %s: %.4f USDT", updated.symbol, pnl)
        return LifecycleUpdate(mode=EngineMode.IN_POSITION, position=updated, current_pnl=pnl)
