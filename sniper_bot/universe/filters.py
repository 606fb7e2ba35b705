from __future__ import annotations

from sniper_bot.analysis.accumulation import check_liquidity
from sniper_bot.core.types import Ticker


def select_scan_universe(
    tickers_24h: list[Ticker],
    *,
    quote_asset: str,
    min_quote_volume_24h: float,
    prefix: int,
) -> list[str]:
    """
    Eligible pairs in exchange order, cut to the first `prefix`.

    No re-ranking by volume: the prefix cut follows the order the ticker
    snapshot came in, which keeps each curation run's call count bounded.
    """
    out: list[str] = []
    seen: set[str] = set()
    for t in tickers_24h:
        if not t.symbol.endswith(quote_asset) or t.symbol in seen:
            continue
        if not check_liquidity(t.quote_volume, min_quote_volume_24h):
            continue
        seen.add(t.symbol)
        out.append(t.symbol)
        if len(out) >= prefix:
            break
    return out
