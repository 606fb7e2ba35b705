from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from sniper_bot.core.types import Bias


@dataclass(frozen=True)
class CrossoverRule:
    """
    Fast/slow line crossover on the last two aligned points.

    Bullish: prev_fast <= prev_slow and last_fast > last_slow. Bearish is the mirror.
    Series may differ in length (EMA warm-up); they are aligned at the newest value.
    """

    def detect(self, fast: Sequence[float], slow: Sequence[float]) -> Bias | None:
        if len(fast) < 2 or len(slow) < 2:
            return None
        prev_fast, last_fast = float(fast[-2]), float(fast[-1])
        prev_slow, last_slow = float(slow[-2]), float(slow[-1])
        if prev_fast <= prev_slow and last_fast > last_slow:
            return Bias.BULLISH
        if prev_fast >= prev_slow and last_fast < last_slow:
            return Bias.BEARISH
        return None
