from __future__ import annotations

from dataclasses import dataclass

from sniper_bot.core.config import TradingConfig
from sniper_bot.core.types import Side


@dataclass(frozen=True)
class TpSlExit:
    """Price-move fractions for take-profit, stop-loss and the break-even trigger."""

    take_profit_pct: float
    stop_loss_pct: float
    break_even_pct: float

    @classmethod
    def from_config(cls, cfg: TradingConfig) -> TpSlExit:
        return cls(
            take_profit_pct=cfg.tp_pct,
            stop_loss_pct=cfg.sl_pct,
            break_even_pct=cfg.break_even_pct,
        )

    def levels(self, entry_price: float, side: Side) -> tuple[float, float]:
        """Return (take_profit, stop_loss) for an entry."""
        if side == Side.BUY:
            return entry_price * (1.0 + self.take_profit_pct), entry_price * (1.0 - self.stop_loss_pct)
        return entry_price * (1.0 - self.take_profit_pct), entry_price * (1.0 + self.stop_loss_pct)

    def break_even_reached(self, entry_price: float, side: Side, price: float) -> bool:
        if entry_price <= 0:
            return False
        if side == Side.BUY:
            move = (price - entry_price) / entry_price
        else:
            move = (entry_price - price) / entry_price
        return move >= self.break_even_pct
