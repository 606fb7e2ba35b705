from __future__ import annotations

from sniper_bot.core.types import Side


def apply_slippage(price: float, *, side: Side, slippage_bps: float) -> float:
    """BUY pays up, SELL receives down (conservative)."""
    bps = float(slippage_bps) / 10000.0
    if side == Side.BUY:
        return float(price) * (1.0 + bps)
    return float(price) * (1.0 - bps)
