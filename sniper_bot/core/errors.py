from __future__ import annotations


class EngineError(Exception):
    pass


class PositionConflictError(EngineError):
    """Raised when a new position is requested while one is pending or open."""


class MalformedDataError(ValueError):
    """External or persisted data that does not match the expected shape."""


class ExchangeError(RuntimeError):
    def __init__(self, status_code: int, code: int | None, msg: str | None) -> None:
        super().__init__(f"Binance API error: http={status_code} code={code} msg={msg}")
        self.status_code = status_code
        self.code = code
        self.msg = msg
