from __future__ import annotations

from typing import Sequence

from sniper_bot.core.types import Bias, Candle, FairValueGap


def find_fair_value_gaps(candles: Sequence[Candle], min_length: int = 3) -> list[FairValueGap]:
    """
    Three-candle fair value gaps, oldest first. Candles must be ordered oldest -> newest.

    For each triple (i-2, i-1, i):
      BULLISH: low[i] > high[i-2], low[i] > high[i-1] and low[i-1] > high[i-2];
               the untraded band is [high[i-2], low[i]].
      BEARISH: high[i] < low[i-2], high[i] < low[i-1] and high[i-1] < low[i-2];
               the band is [high[i], low[i-2]].

    The newest gap is the last element.
    """
    gaps: list[FairValueGap] = []
    if len(candles) < max(3, min_length):
        return gaps

    for i in range(2, len(candles)):
        c0 = candles[i]
        c1 = candles[i - 1]
        c2 = candles[i - 2]
        if c0.low > c2.high and c0.low > c1.high and c1.low > c2.high:
            gaps.append(FairValueGap(type=Bias.BULLISH, low_bound=c2.high, high_bound=c0.low, index=i))
        elif c0.high < c2.low and c0.high < c1.low and c1.high < c2.low:
            gaps.append(FairValueGap(type=Bias.BEARISH, low_bound=c0.high, high_bound=c2.low, index=i))
    return gaps
