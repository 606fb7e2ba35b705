from __future__ import annotations

from typing import Sequence

from sniper_bot.core.config import AccumulationConfig
from sniper_bot.core.types import AccumulationReport, Candle, Momentum


def range_percent(candles: Sequence[Candle]) -> float:
    """(max high - min low) / min low * 100 over the whole window."""
    if not candles:
        return 0.0
    max_high = max(c.high for c in candles)
    min_low = min(c.low for c in candles)
    if min_low <= 0:
        return float("inf")
    return (max_high - min_low) / min_low * 100.0


def analyze_accumulation(
    candles: Sequence[Candle],
    cfg: AccumulationConfig | None = None,
) -> AccumulationReport:
    """Tight range plus a volume-supported last bar reads as accumulation."""
    cfg = cfg or AccumulationConfig()
    if not candles:
        return AccumulationReport(is_stable=False, range_percent=0.0, volume_strength=0.0, is_accumulating=False)

    rng = range_percent(candles)
    mean_volume = sum(c.volume for c in candles) / len(candles)
    strength = candles[-1].volume / mean_volume if mean_volume > 0 else 0.0

    is_stable = rng < cfg.max_range_pct
    return AccumulationReport(
        is_stable=is_stable,
        range_percent=rng,
        volume_strength=strength,
        is_accumulating=is_stable and strength > cfg.min_volume_strength,
    )


def is_volume_spike(candles: Sequence[Candle], multiplier: float = 3.0) -> bool:
    """Last bar volume above `multiplier` x the mean of the preceding bars."""
    if len(candles) < 2:
        return False
    previous = candles[:-1]
    mean_volume = sum(c.volume for c in previous) / len(previous)
    return candles[-1].volume > mean_volume * multiplier


def predict_trend(candles: Sequence[Candle]) -> Momentum:
    if len(candles) < 2:
        return Momentum.NEUTRAL
    last, prev = candles[-1], candles[-2]
    if last.close > prev.close and last.volume > prev.volume:
        return Momentum.BULLISH_STRENGTH
    if last.close < prev.close and last.volume > prev.volume:
        return Momentum.BEARISH_STRENGTH
    return Momentum.NEUTRAL


def check_liquidity(quote_volume: float, min_volume: float = 10_000_000.0) -> bool:
    return float(quote_volume) > float(min_volume)
