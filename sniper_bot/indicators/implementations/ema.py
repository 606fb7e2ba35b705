from __future__ import annotations

from typing import Sequence


def ema(prices: Sequence[float], period: int) -> list[float]:
    """
    Exponential moving average series.

    Seeded with the SMA of the first `period` prices, then blended with
    k = 2 / (period + 1). The first element corresponds to prices[period - 1],
    so the result has len(prices) - period + 1 values (empty if too short).
    """
    if period <= 0 or len(prices) < period:
        return []
    k = 2.0 / (period + 1.0)
    value = sum(float(p) for p in prices[:period]) / float(period)
    out = [value]
    for price in prices[period:]:
        value = (float(price) - value) * k + value
        out.append(value)
    return out
