from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

from sniper_bot.core.errors import MalformedDataError
from sniper_bot.core.types import Candle, PositionRisk, Ticker


def klines_to_candles(klines: list[list[Any]]) -> list[Candle]:
    """
    Binance kline format:
      [
        [
          1499040000000,      // Open time
          "0.01634790",       // Open
          "0.80000000",       // High
          "0.01575800",       // Low
          "0.01577100",       // Close
          "148976.11427815",  // Volume
          1499644799999,      // Close time
          ...
        ]
      ]
    Rows are kept in the order received (oldest first). Any row that does not
    parse into a sane candle rejects the whole batch.
    """
    if not isinstance(klines, list):
        raise MalformedDataError(f"klines payload is {type(klines).__name__}, expected list")
    out: list[Candle] = []
    for n, k in enumerate(klines):
        if not isinstance(k, (list, tuple)) or len(k) < 6:
            raise MalformedDataError(f"kline row {n} has unexpected shape: {k!r}")
        try:
            ts = datetime.fromtimestamp(int(k[0]) / 1000, tz=timezone.utc)
            o, h, l, c, v = (float(x) for x in k[1:6])
        except (TypeError, ValueError, OverflowError) as e:
            raise MalformedDataError(f"kline row {n} is not numeric: {e}") from e
        if not all(math.isfinite(x) for x in (o, h, l, c, v)):
            raise MalformedDataError(f"kline row {n} has non-finite values")
        if h < l or v < 0:
            raise MalformedDataError(f"kline row {n} is inconsistent: high={h} low={l} volume={v}")
        out.append(Candle(open=o, high=h, low=l, close=c, volume=v, timestamp=ts))
    return out


def parse_tickers(rows: list[dict[str, Any]]) -> list[Ticker]:
    """Tickers without a symbol or a numeric quoteVolume are dropped, order preserved."""
    out: list[Ticker] = []
    for t in rows:
        if not isinstance(t, dict):
            continue
        sym = t.get("symbol")
        if not sym:
            continue
        try:
            qv = float(t.get("quoteVolume"))
        except (TypeError, ValueError):
            continue
        out.append(Ticker(symbol=str(sym), quote_volume=qv))
    return out


def parse_position_risk(symbol: str, rows: list[dict[str, Any]]) -> PositionRisk | None:
    for p in rows:
        if not isinstance(p, dict) or p.get("symbol", symbol) != symbol:
            continue
        try:
            return PositionRisk(
                symbol=symbol,
                position_amount=float(p.get("positionAmt", 0.0)),
                unrealized_profit=float(p.get("unRealizedProfit", 0.0)),
            )
        except (TypeError, ValueError) as e:
            raise MalformedDataError(f"positionRisk row for {symbol} is not numeric: {e}") from e
    return None
