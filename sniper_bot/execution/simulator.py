from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sniper_bot.core.types import Fill, Side
from sniper_bot.execution.slippage import apply_slippage
from sniper_bot.monitoring.logger import get_logger


@dataclass
class SimulatedBroker:
    """Market orders fill immediately at the reference price plus slippage."""

    slippage_bps: float = 0.0
    _order_seq: int = 0

    async def submit_market(
        self,
        *,
        symbol: str,
        side: Side,
        reference_price: float,
        quantity: float,
        now: datetime,
    ) -> Fill | None:
        log = get_logger("broker")
        if reference_price <= 0 or quantity <= 0:
            log.warning("rejected %s %s: price=%s qty=%s", side.value, symbol, reference_price, quantity)
            return None
        self._order_seq += 1
        price = apply_slippage(reference_price, side=side, slippage_bps=self.slippage_bps)
        log.info("sim order #%d filled: %s %s qty=%.6f @ %.8f", self._order_seq, side.value, symbol, quantity, price)
        return Fill(symbol=symbol, side=side, price=price, quantity=float(quantity), time=now)
