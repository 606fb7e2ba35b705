from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from sniper_bot.core.types import WatchlistEntry


def prune_expired(entries: Iterable[WatchlistEntry], now: datetime) -> list[WatchlistEntry]:
    return [e for e in entries if e.is_live(now)]


def upsert_symbols(
    entries: Iterable[WatchlistEntry],
    symbols: Iterable[str],
    *,
    now: datetime,
    ttl: timedelta,
) -> list[WatchlistEntry]:
    """
    Merge qualified symbols into the watchlist, one entry per symbol.

    Re-qualified symbols keep their position and get expiry = now + ttl;
    new symbols are appended in the order given. Expired entries are dropped.
    """
    expiry = now + ttl
    merged: dict[str, WatchlistEntry] = {}
    for e in entries:
        if e.is_live(now) and e.symbol not in merged:
            merged[e.symbol] = e
    for sym in symbols:
        merged[sym] = WatchlistEntry(symbol=sym, expiry=expiry)
    return list(merged.values())
