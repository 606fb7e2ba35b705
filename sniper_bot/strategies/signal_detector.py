from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sniper_bot.analysis.accumulation import predict_trend
from sniper_bot.analysis.fair_value_gap import find_fair_value_gaps
from sniper_bot.core.config import SignalConfig
from sniper_bot.core.types import Candle, Direction, Signal, WatchlistEntry
from sniper_bot.data.market_data_service import MarketDataService
from sniper_bot.indicators.implementations.ema import ema
from sniper_bot.indicators.rules.crossover_rule import CrossoverRule
from sniper_bot.monitoring.logger import get_logger
from sniper_bot.universe.watchlist import prune_expired


def macro_trend(closes: Sequence[float], period: int, fallback_period: int | None = None) -> Direction | None:
    """
    Latest close against an EMA of the same window: above is LONG, below SHORT.

    When the window is shorter than `period`, the EMA over `fallback_period`
    is used instead. None on a tie or when neither EMA can be computed.
    """
    line = ema(closes, period)
    if not line and fallback_period:
        line = ema(closes, fallback_period)
    if not line:
        return None
    last = float(closes[-1])
    if last > line[-1]:
        return Direction.LONG
    if last < line[-1]:
        return Direction.SHORT
    return None


class SignalDetector:
    """
    Walks the watchlist in order and returns the first symbol that passes
    macro trend, EMA crossover and fair-value-gap confirmation.
    """

    def __init__(self, cfg: SignalConfig, market: MarketDataService) -> None:
        self._cfg = cfg
        self._market = market
        self._crossover = CrossoverRule()
        self._log = get_logger("signals")

    async def detect(self, watchlist: list[WatchlistEntry], now: datetime) -> Signal | None:
        live = prune_expired(watchlist, now)
        self._log.info("scalp check over %d pairs", len(live))
        for entry in live:
            signal = await self.evaluate(entry.symbol)
            if signal is not None:
                self._log.info(
                    "sniper hit: %s %s at %.8f momentum=%s",
                    signal.direction.value,
                    signal.symbol,
                    signal.reference_price,
                    signal.meta.get("momentum"),
                )
                return signal
        return None

    async def evaluate(self, symbol: str) -> Signal | None:
        cfg = self._cfg

        macro = await self._market.get_candles(symbol, cfg.macro_interval, cfg.macro_limit)
        if not macro.is_ok:
            return None
        direction = macro_trend(
            [c.close for c in macro.value or []],
            cfg.macro_ema_period,
            cfg.macro_fallback_ema_period,
        )
        if direction is None:
            self._log.debug("%s: no macro trend", symbol)
            return None

        fast = await self._market.get_candles(symbol, cfg.fast_interval, cfg.fast_limit)
        if not fast.is_ok:
            return None
        candles: list[Candle] = fast.value or []
        closes = [c.close for c in candles]
        cross = self._crossover.detect(ema(closes, cfg.ema_fast), ema(closes, cfg.ema_slow))
        if cross is None or cross != direction.bias:
            self._log.debug("%s: %s trend without matching crossover (%s)", symbol, direction.value, cross)
            return None

        gaps = find_fair_value_gaps(candles[-cfg.gap_window :])
        if not gaps or gaps[-1].type != cross:
            self._log.debug("%s: crossover %s not confirmed by a gap", symbol, cross.value)
            return None

        latest_gap = gaps[-1]
        return Signal(
            symbol=symbol,
            direction=direction,
            reference_price=candles[-1].close,
            meta={
                "crossover": cross.value,
                "gap": (latest_gap.low_bound, latest_gap.high_bound),
                "momentum": predict_trend(candles).value,
            },
        )
