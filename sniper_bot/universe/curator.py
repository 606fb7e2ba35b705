from __future__ import annotations

from datetime import datetime, timedelta

from sniper_bot.analysis.accumulation import analyze_accumulation, is_volume_spike
from sniper_bot.core.config import AccumulationConfig, WatchlistConfig
from sniper_bot.core.types import WatchlistEntry
from sniper_bot.data.market_data_service import MarketDataService
from sniper_bot.monitoring.logger import get_logger
from sniper_bot.universe.filters import select_scan_universe
from sniper_bot.universe.watchlist import prune_expired, upsert_symbols


class WatchlistCurator:
    """
    Daily candidate scan: intraday volume spike, then a 24h stability check.

    Survivors are upserted into the watchlist with a fresh TTL; expired entries
    are dropped on every run whether or not the scan itself succeeds.
    """

    def __init__(
        self,
        cfg: WatchlistConfig,
        market: MarketDataService,
        accumulation: AccumulationConfig | None = None,
    ) -> None:
        self._cfg = cfg
        self._market = market
        self._accumulation = accumulation or AccumulationConfig()
        self._log = get_logger("curator")

    async def refresh(self, watchlist: list[WatchlistEntry], now: datetime) -> list[WatchlistEntry]:
        kept = prune_expired(watchlist, now)
        if len(kept) != len(watchlist):
            self._log.info("evicted %d expired watchlist entries", len(watchlist) - len(kept))

        tickers = await self._market.get_24h_tickers()
        if not tickers.is_ok:
            self._log.warning("curation skipped: ticker snapshot %s", tickers.status.value)
            return kept

        universe = select_scan_universe(
            tickers.value or [],
            quote_asset=self._cfg.quote_asset,
            min_quote_volume_24h=self._cfg.min_quote_volume_24h,
            prefix=self._cfg.scan_prefix,
        )
        self._log.info("volume spike scan over %d pairs", len(universe))

        accepted: list[str] = []
        for symbol in universe:
            if await self._qualifies(symbol):
                accepted.append(symbol)

        merged = upsert_symbols(kept, accepted, now=now, ttl=timedelta(days=self._cfg.ttl_days))
        self._log.info("curation done: %d accepted, watchlist size %d", len(accepted), len(merged))
        return merged

    async def _qualifies(self, symbol: str) -> bool:
        spike = await self._market.get_candles(symbol, self._cfg.spike_interval, self._cfg.spike_limit)
        if not spike.is_ok:
            return False
        bars = spike.value or []
        if len(bars) < self._cfg.spike_limit:
            self._log.debug("%s: %d/%d spike bars, skipping", symbol, len(bars), self._cfg.spike_limit)
            return False
        if not is_volume_spike(bars, self._cfg.spike_multiplier):
            return False

        window = await self._market.get_candles(symbol, self._cfg.stability_interval, self._cfg.stability_limit)
        if not window.is_ok:
            return False
        hourly = window.value or []
        if len(hourly) < self._cfg.stability_limit:
            self._log.debug("%s: %d/%d stability bars, skipping", symbol, len(hourly), self._cfg.stability_limit)
            return False
        report = analyze_accumulation(hourly, self._accumulation)
        if report.range_percent >= self._cfg.max_range_pct:
            self._log.debug("%s spiked but ranged %.2f%%", symbol, report.range_percent)
            return False
        if self._cfg.require_accumulation and not report.is_accumulating:
            return False

        self._log.info(
            "watchlist hit %s range=%.2f%% vol_strength=%.2f accumulating=%s",
            symbol,
            report.range_percent,
            report.volume_strength,
            report.is_accumulating,
        )
        return True
