from __future__ import annotations

from sniper_bot.core.types import Position, Side


def position_pnl_usdt(position: Position, price: float) -> float:
    if position.side == Side.BUY:
        return (float(price) - position.entry_price) * position.quantity
    return (position.entry_price - float(price)) * position.quantity
