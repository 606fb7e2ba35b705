from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import urlencode

import httpx

from sniper_bot.core.config import ExchangeConfig
from sniper_bot.core.errors import ExchangeError, MalformedDataError
from sniper_bot.exchange.adapters.auth import ApiKeys, sign_query
from sniper_bot.exchange.adapters.rate_limiter import SimpleRateLimiter
from sniper_bot.exchange.adapters.retry_policy import default_retry
from sniper_bot.exchange.base import ExchangeClient


def _normalize_items(d: dict[str, Any]) -> list[tuple[str, str]]:
    items: list[tuple[str, str]] = []
    for k, v in d.items():
        if v is None:
            continue
        if isinstance(v, bool):
            sv = "true" if v else "false"
        else:
            sv = str(v)
        items.append((str(k), sv))
    return items


def _json_body(r: httpx.Response, path: str) -> Any:
    # a 2xx from a maintenance page or proxy can carry HTML
    try:
        return r.json()
    except ValueError as e:
        raise MalformedDataError(f"{path} returned a non-JSON body (http={r.status_code})") from e


class BinanceFuturesUsdtmClient(ExchangeClient):
    def __init__(
        self,
        cfg: ExchangeConfig,
        keys: ApiKeys,
        limiter: SimpleRateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cfg = cfg
        self._keys = keys
        self._limiter = limiter or SimpleRateLimiter(cfg.max_requests_per_sec)
        self._http = httpx.AsyncClient(base_url=cfg.base_url, timeout=cfg.timeout_sec, transport=transport)
        self._time_offset_ms: int = 0
        self._last_time_sync_ms: int = 0
        self._log = logging.getLogger("binance")

    async def close(self) -> None:
        await self._http.aclose()

    @default_retry()
    async def _request(
        self,
        method: str,
        path: str,
        *,
        signed: bool = False,
        params: dict[str, Any] | None = None,
    ) -> Any:
        # tenacity retries only on transport/timeouts (see adapters/retry_policy.py)
        if signed and not self._keys.present:
            raise RuntimeError(f"{path} is a signed endpoint; BINANCE_API_KEY/BINANCE_API_SECRET are not set")
        await self._limiter.acquire()
        params = dict(params or {})
        headers = {"X-MBX-APIKEY": self._keys.api_key} if signed else {}

        for attempt in range(2):
            request_params: Any = _normalize_items(params)
            if signed:
                await self._maybe_sync_time()
                base = dict(params)
                base["timestamp"] = int(time.time() * 1000) + int(self._time_offset_ms)
                base["recvWindow"] = self._cfg.recv_window_ms
                # sign and send the exact same ordered querystring
                items = _normalize_items(base)
                items.append(("signature", sign_query(items, self._keys.api_secret)))
                request_params = urlencode(items)

            r = await self._http.request(method, path, params=request_params, headers=headers)
            if r.status_code < 400:
                return _json_body(r, path)

            # Binance typically returns JSON: {"code": ..., "msg": "..."}
            code = None
            msg = None
            try:
                err = r.json()
                code = err.get("code")
                msg = err.get("msg")
            except ValueError:
                msg = r.text

            # -1021: timestamp outside recvWindow
            if signed and code == -1021 and attempt == 0:
                await self._sync_time()
                continue

            raise ExchangeError(r.status_code, code, msg)

        raise RuntimeError("Binance API error: failed after retry loop")

    async def _maybe_sync_time(self) -> None:
        now = int(time.time() * 1000)
        if self._last_time_sync_ms == 0 or (now - self._last_time_sync_ms) > 10 * 60 * 1000:
            await self._sync_time()

    async def _sync_time(self) -> None:
        await self._limiter.acquire()
        r = await self._http.get("/fapi/v1/time")
        r.raise_for_status()
        try:
            server_time = int(_json_body(r, "/fapi/v1/time")["serverTime"])
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedDataError(f"unexpected server time payload: {e}") from e
        local_time = int(time.time() * 1000)
        self._time_offset_ms = server_time - local_time
        self._last_time_sync_ms = local_time

    async def fetch_24h_tickers(self) -> list[dict[str, Any]]:
        data = await self._request("GET", "/fapi/v1/ticker/24hr")
        if isinstance(data, list):
            return data
        return [data]

    async def fetch_klines(self, symbol: str, interval: str, limit: int = 500) -> list[list[Any]]:
        return await self._request(
            "GET",
            "/fapi/v1/klines",
            params={"symbol": symbol, "interval": interval, "limit": int(limit)},
        )

    async def fetch_position_risk(self, symbol: str) -> list[dict[str, Any]]:
        data = await self._request("GET", "/fapi/v2/positionRisk", signed=True, params={"symbol": symbol})
        if isinstance(data, list):
            return data
        return [data]
