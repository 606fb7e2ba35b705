from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ExchangeClient(ABC):
    """Market-data and account endpoints the engine reads. Implementations raise on failure."""

    @abstractmethod
    async def fetch_24h_tickers(self) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_klines(self, symbol: str, interval: str, limit: int = 500) -> list[list[Any]]:
        """Return raw kline arrays for the given symbol/interval, oldest first."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_position_risk(self, symbol: str) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError
