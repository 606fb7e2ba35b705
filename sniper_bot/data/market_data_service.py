from __future__ import annotations

import httpx

from sniper_bot.core.errors import MalformedDataError
from sniper_bot.core.types import Candle, FetchResult, PositionRisk, Ticker
from sniper_bot.data.ingestion.klines import klines_to_candles, parse_position_risk, parse_tickers
from sniper_bot.exchange.base import ExchangeClient
from sniper_bot.monitoring.logger import get_logger

# Everything an exchange call may raise once retries are exhausted.
_FETCH_ERRORS = (httpx.HTTPError, RuntimeError, MalformedDataError, TimeoutError)


class MarketDataService:
    """
    Boundary between the exchange client and the engine.

    Client exceptions stop here: every call returns a FetchResult that tells
    OK, NO_DATA and ERROR apart, and payloads are parsed into typed records.
    """

    def __init__(self, exchange: ExchangeClient) -> None:
        self._exchange = exchange
        self._log = get_logger("market_data")

    async def get_candles(self, symbol: str, interval: str, limit: int) -> FetchResult[list[Candle]]:
        try:
            raw = await self._exchange.fetch_klines(symbol, interval, limit)
            candles = klines_to_candles(raw)
        except _FETCH_ERRORS as e:
            self._log.warning("klines %s %s x%d failed: %s", symbol, interval, limit, e)
            return FetchResult.failed(str(e))
        if not candles:
            return FetchResult.no_data()
        return FetchResult.ok(candles)

    async def get_24h_tickers(self) -> FetchResult[list[Ticker]]:
        try:
            rows = await self._exchange.fetch_24h_tickers()
        except _FETCH_ERRORS as e:
            self._log.warning("24h ticker snapshot failed: %s", e)
            return FetchResult.failed(str(e))
        tickers = parse_tickers(rows)
        if not tickers:
            return FetchResult.no_data()
        return FetchResult.ok(tickers)

    async def get_position_risk(self, symbol: str) -> FetchResult[PositionRisk]:
        try:
            rows = await self._exchange.fetch_position_risk(symbol)
            risk = parse_position_risk(symbol, rows)
        except _FETCH_ERRORS as e:
            self._log.warning("positionRisk %s failed: %s", symbol, e)
            return FetchResult.failed(str(e))
        if risk is None:
            return FetchResult.no_data()
        return FetchResult.ok(risk)
