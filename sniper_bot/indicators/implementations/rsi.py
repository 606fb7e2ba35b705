from __future__ import annotations

from typing import Sequence


def rsi(prices: Sequence[float], period: int = 14) -> list[float]:
    if period <= 0 or len(prices) < period + 1:
        return []

    gains: list[float] = []
    losses: list[float] = []
    for prev, cur in zip(prices[:-1], prices[1:]):
        d = float(cur) - float(prev)
        gains.append(max(d, 0.0))
        losses.append(max(-d, 0.0))

    # Wilder's smoothing; a zero average loss is replaced by 1 so the ratio stays finite
    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    out = [_rsi_value(avg_gain, avg_loss)]
    for g, l in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + g) / period
        avg_loss = (avg_loss * (period - 1) + l) / period
        out.append(_rsi_value(avg_gain, avg_loss))
    return out


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    rs = avg_gain / (avg_loss or 1.0)
    return 100.0 - (100.0 / (1.0 + rs))
