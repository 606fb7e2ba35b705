from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class Direction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"

    @property
    def side(self) -> Side:
        return Side.BUY if self is Direction.LONG else Side.SELL

    @property
    def bias(self) -> Bias:
        return Bias.BULLISH if self is Direction.LONG else Bias.BEARISH


class Bias(str, Enum):
    """Directional flavour shared by crossovers and fair value gaps."""

    BULLISH = "BULLISH"
    BEARISH = "BEARISH"


class Momentum(str, Enum):
    BULLISH_STRENGTH = "BULLISH_STRENGTH"
    BEARISH_STRENGTH = "BEARISH_STRENGTH"
    NEUTRAL = "NEUTRAL"


class EngineMode(str, Enum):
    SCANNING = "SCANNING"
    PENDING = "PENDING"
    IN_POSITION = "IN_POSITION"


class CloseReason(str, Enum):
    TAKE_PROFIT = "TAKE_PROFIT"
    STOP_LOSS = "STOP_LOSS"
    BREAK_EVEN_STOP = "BREAK_EVEN_STOP"


class FetchStatus(str, Enum):
    OK = "OK"
    NO_DATA = "NO_DATA"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Candle:
    open: float
    high: float
    low: float
    close: float
    volume: float
    timestamp: datetime


@dataclass(frozen=True)
class Ticker:
    symbol: str
    quote_volume: float


@dataclass(frozen=True)
class PositionRisk:
    symbol: str
    position_amount: float
    unrealized_profit: float


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """
    Outcome of an external call. Distinguishes "nothing came back" from
    "the call failed" so callers can skip, retry or escalate.
    """

    status: FetchStatus
    value: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, value: T) -> FetchResult[T]:
        return cls(status=FetchStatus.OK, value=value)

    @classmethod
    def no_data(cls) -> FetchResult[T]:
        return cls(status=FetchStatus.NO_DATA)

    @classmethod
    def failed(cls, error: str) -> FetchResult[T]:
        return cls(status=FetchStatus.ERROR, error=error)

    @property
    def is_ok(self) -> bool:
        return self.status == FetchStatus.OK


@dataclass(frozen=True)
class WatchlistEntry:
    symbol: str
    expiry: datetime

    def is_live(self, now: datetime) -> bool:
        return self.expiry > now


@dataclass(frozen=True)
class FairValueGap:
    type: Bias
    low_bound: float
    high_bound: float
    index: int


@dataclass(frozen=True)
class AccumulationReport:
    is_stable: bool
    range_percent: float
    volume_strength: float
    is_accumulating: bool


@dataclass(frozen=True)
class Signal:
    symbol: str
    direction: Direction
    reference_price: float
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Fill:
    symbol: str
    side: Side
    price: float
    quantity: float
    time: datetime


@dataclass
class Position:
    symbol: str
    side: Side
    entry_price: float
    entry_time: datetime
    stop_loss: float
    take_profit: float
    quantity: float
    break_even_hit: bool = False
    # open time of the newest monitor bar already evaluated
    last_bar_time: datetime | None = None


@dataclass(frozen=True)
class ClosedTrade:
    symbol: str
    side: Side
    entry_price: float
    exit_price: float
    quantity: float
    reason: CloseReason
    realized_pnl: float
    entry_time: datetime
    exit_time: datetime


@dataclass
class EngineState:
    mode: EngineMode = EngineMode.SCANNING
    position: Position | None = None
    last_curation_run: str | None = None
    last_detection_run: str | None = None
    watchlist: list[WatchlistEntry] = field(default_factory=list)
    current_pnl: float = 0.0
