from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class Bands:
    upper: float
    middle: float
    lower: float


def bollinger_bands(prices: Sequence[float], period: int = 20, std_dev: float = 2.0) -> Bands | None:
    if period <= 0 or len(prices) < period:
        return None
    window = [float(p) for p in prices[-period:]]
    mean = sum(window) / float(period)
    # population variance over the same window
    var = sum((x - mean) ** 2 for x in window) / float(period)
    sd = math.sqrt(var)
    return Bands(upper=mean + std_dev * sd, middle=mean, lower=mean - std_dev * sd)
