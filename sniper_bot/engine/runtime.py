from __future__ import annotations

import asyncio
import contextlib
import signal

from sniper_bot.engine.coordinator import EngineCoordinator
from sniper_bot.exchange.base import ExchangeClient
from sniper_bot.monitoring.trade_store import TradeStore


class Runtime:
    def __init__(self, coordinator: EngineCoordinator, exchange: ExchangeClient, journal: TradeStore) -> None:
        self._coordinator = coordinator
        self._exchange = exchange
        self._journal = journal
        self._stop = asyncio.Event()

    def stop(self) -> None:
        self._stop.set()

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, self.stop)
        try:
            await self._coordinator.run(self._stop)
        finally:
            await self.close()

    async def run_once(self) -> bool:
        try:
            return await self._coordinator.tick()
        finally:
            await self.close()

    async def close(self) -> None:
        await self._exchange.close()
        self._journal.close()
