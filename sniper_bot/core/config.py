from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: str | None = None


class ExchangeConfig(BaseModel):
    base_url: str = "https://fapi.binance.com"
    recv_window_ms: int = 5000
    timeout_sec: float = 10.0
    max_requests_per_sec: int = 8


class WatchlistConfig(BaseModel):
    quote_asset: str = "USDT"
    min_quote_volume_24h: float = 5_000_000.0
    scan_prefix: int = Field(default=50, gt=0)  # bounds external calls per curation run
    spike_interval: str = "5m"
    spike_limit: int = Field(default=10, ge=2)
    spike_multiplier: float = 3.0
    stability_interval: str = "1h"
    stability_limit: int = Field(default=24, ge=2)
    max_range_pct: float = 6.0
    require_accumulation: bool = False
    ttl_days: float = Field(default=5.0, gt=0)


class AccumulationConfig(BaseModel):
    max_range_pct: float = 5.0
    min_volume_strength: float = 1.2


class SignalConfig(BaseModel):
    macro_interval: str = "4h"
    macro_limit: int = 100
    macro_ema_period: int = Field(default=50, gt=0)
    # slower-proxy period used when the macro window is too short for macro_ema_period
    macro_fallback_ema_period: int = Field(default=21, gt=0)
    fast_interval: str = "15m"
    fast_limit: int = 60
    ema_fast: int = Field(default=8, gt=0)
    ema_slow: int = Field(default=21, gt=0)
    gap_window: int = Field(default=20, ge=3)


class TradingConfig(BaseModel):
    """
    ROI thresholds are unsigned fractions of margin (0.20 == 20% ROI).
    The matching price move is ROI / leverage.
    """

    capital: float = 30.0
    margin: float = 15.0
    leverage: int = Field(default=20, gt=0)
    tp_roi: float = Field(default=0.20, gt=0)
    sl_roi: float = Field(default=0.15, gt=0)
    break_even_roi: float = Field(default=0.10, gt=0)
    monitor_interval: str = "1m"
    # bars fetched per monitor tick; covers a touch late in the previous bar
    monitor_lookback: int = Field(default=2, ge=1)
    slippage_bps: float = Field(default=0.0, ge=0)

    @property
    def tp_pct(self) -> float:
        return self.tp_roi / float(self.leverage)

    @property
    def sl_pct(self) -> float:
        return self.sl_roi / float(self.leverage)

    @property
    def break_even_pct(self) -> float:
        return self.break_even_roi / float(self.leverage)

    @property
    def notional_usdt(self) -> float:
        return self.margin * float(self.leverage)


class ScheduleConfig(BaseModel):
    tick_interval_sec: float = Field(default=15.0, gt=0)
    curation_hour_utc: int = Field(default=4, ge=0, le=23)
    scan_hours_utc: list[int] = Field(default_factory=lambda: [0, 4, 8, 12, 16, 20])

    @field_validator("scan_hours_utc")
    @classmethod
    def check_hours(cls, v: list[int]) -> list[int]:
        bad = [h for h in v if not 0 <= int(h) <= 23]
        if bad:
            raise ValueError(f"scan hours must be within 0..23, got {bad}")
        return sorted(set(int(h) for h in v))


class StorageConfig(BaseModel):
    state_path: str = "data/engine_state.json"
    watchlist_path: str = "data/refined_watchlist.json"
    journal_path: str = "data/trades.sqlite3"


class AppConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    exchange: ExchangeConfig = Field(default_factory=ExchangeConfig)
    watchlist: WatchlistConfig = Field(default_factory=WatchlistConfig)
    accumulation: AccumulationConfig = Field(default_factory=AccumulationConfig)
    signals: SignalConfig = Field(default_factory=SignalConfig)
    trading: TradingConfig = Field(default_factory=TradingConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)


def load_config(path: str) -> AppConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)
    data = yaml.safe_load(p.read_text()) or {}
    return AppConfig.model_validate(data)
