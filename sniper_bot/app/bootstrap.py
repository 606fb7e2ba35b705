from __future__ import annotations

from sniper_bot.core.config import AppConfig
from sniper_bot.data.market_data_service import MarketDataService
from sniper_bot.data.storage.json_store import JsonStateStore
from sniper_bot.engine.coordinator import EngineCoordinator
from sniper_bot.engine.runtime import Runtime
from sniper_bot.exchange.adapters.auth import load_keys_from_env
from sniper_bot.exchange.base import ExchangeClient
from sniper_bot.exchange.binance.futures_client import BinanceFuturesUsdtmClient
from sniper_bot.execution.lifecycle import PositionLifecycleManager
from sniper_bot.execution.simulator import SimulatedBroker
from sniper_bot.monitoring.trade_store import TradeStore
from sniper_bot.strategies.signal_detector import SignalDetector
from sniper_bot.universe.curator import WatchlistCurator


def build_runtime(cfg: AppConfig, exchange: ExchangeClient | None = None) -> Runtime:
    exchange = exchange or BinanceFuturesUsdtmClient(cfg.exchange, load_keys_from_env())
    market = MarketDataService(exchange)

    journal = TradeStore(cfg.storage.journal_path)
    journal.init_schema()
    store = JsonStateStore(cfg.storage.state_path, cfg.storage.watchlist_path)

    coordinator = EngineCoordinator(
        schedule=cfg.schedule,
        store=store,
        curator=WatchlistCurator(cfg.watchlist, market, cfg.accumulation),
        detector=SignalDetector(cfg.signals, market),
        lifecycle=PositionLifecycleManager(
            cfg.trading,
            market,
            SimulatedBroker(slippage_bps=cfg.trading.slippage_bps),
            journal=journal,
        ),
    )
    return Runtime(coordinator=coordinator, exchange=exchange, journal=journal)
