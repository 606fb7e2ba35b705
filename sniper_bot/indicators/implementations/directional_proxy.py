from __future__ import annotations

from typing import Sequence

from sniper_bot.core.types import Candle


def directional_strength_proxy(candles: Sequence[Candle], period: int = 14) -> float:
    """
    Mean true range of the trailing `period` bars.

    This stands in for ADX in scan filters and is NOT an Average Directional
    Index: there is no +DI/-DI and no smoothing. Thresholds are tuned against
    this scale, so keep it as is. Returns 0.0 when fewer than 2 * period bars
    are available.
    """
    if period <= 0 or len(candles) < period * 2:
        return 0.0
    trs: list[float] = []
    for prev, cur in zip(candles[:-1], candles[1:]):
        trs.append(
            max(
                cur.high - cur.low,
                abs(cur.high - prev.close),
                abs(cur.low - prev.close),
            )
        )
    tail = trs[-period:]
    return sum(tail) / float(period)
