from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Any

from sniper_bot.core.types import ClosedTrade


class TradeStore:
    """Append-only journal of closed positions."""

    def __init__(self, path: str) -> None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        self._path = str(p)
        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def init_schema(self) -> None:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS trades (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  symbol TEXT NOT NULL,
                  side TEXT NOT NULL,
                  entry_price REAL NOT NULL,
                  exit_price REAL NOT NULL,
                  quantity REAL NOT NULL,
                  reason TEXT NOT NULL,
                  realized_pnl REAL NOT NULL,
                  entry_time TEXT NOT NULL,
                  exit_time TEXT NOT NULL
                )
                """
            )
            self._conn.commit()

    def record(self, trade: ClosedTrade) -> None:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(
                """
                INSERT INTO trades(symbol, side, entry_price, exit_price, quantity, reason,
                                   realized_pnl, entry_time, exit_time)
                VALUES(?,?,?,?,?,?,?,?,?)
                """,
                (
                    trade.symbol,
                    trade.side.value,
                    trade.entry_price,
                    trade.exit_price,
                    trade.quantity,
                    trade.reason.value,
                    trade.realized_pnl,
                    trade.entry_time.isoformat(),
                    trade.exit_time.isoformat(),
                ),
            )
            self._conn.commit()

    def list_recent(self, limit: int = 200) -> list[dict[str, Any]]:
        with self._lock:
            cur = self._conn.cursor()
            rows = cur.execute(
                "SELECT * FROM trades ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
            return [dict(r) for r in rows]

    def total_realized_pnl(self) -> float:
        with self._lock:
            cur = self._conn.cursor()
            row = cur.execute("SELECT COALESCE(SUM(realized_pnl), 0.0) AS pnl FROM trades").fetchone()
            return float(row["pnl"])
