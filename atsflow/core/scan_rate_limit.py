from __future__ import annotations

import os
import sqlite3
import threading
import time
from typing import Callable

from atsflow.core.config import settings


class ScanRateLimitExceeded(Exception):
    pass


class SqliteSlidingWindowLimiter:
    """Per-client sliding window shared by every worker that points at the same database file."""

    def __init__(self, db_path: str, clock: Callable[[], float] | None = None) -> None:
        self.db_path = db_path
        self._clock = clock or time.time
        self._conn: sqlite3.Connection | None = None
        self._conn_lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        with self._conn_lock:
            if self._conn is not None:
                return self._conn

            directory = os.path.dirname(self.db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            conn = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                timeout=5,
                isolation_level=None,
            )
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS scan_rate_limit_events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    client_key TEXT NOT NULL,
                    route_key TEXT NOT NULL,
                    created_at REAL NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_scan_rate_limit_lookup
                ON scan_rate_limit_events (client_key, route_key, created_at);
                """
            )
            self._conn = conn
            return conn

    def hit(self, client_key: str, route_key: str, limit: int, window_seconds: int = 60) -> None:
        """Record one request, raising :class:`ScanRateLimitExceeded` when the window is full."""
        now = self._clock()
        cutoff = now - window_seconds
        conn = self._get_connection()

        with self._conn_lock:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            try:
                cursor.execute("DELETE FROM scan_rate_limit_events WHERE created_at < ?", (cutoff,))
                cursor.execute(
                    """
                    SELECT COUNT(1)
                    FROM scan_rate_limit_events
                    WHERE client_key = ? AND route_key = ? AND created_at >= ?
                    """,
                    (client_key, route_key, cutoff),
                )
                count = int(cursor.fetchone()[0] or 0)
                if count >= limit:
                    raise ScanRateLimitExceeded(f"{client_key} exceeded {limit} requests on {route_key}")

                cursor.execute(
                    """
                    INSERT INTO scan_rate_limit_events (client_key, route_key, created_at)
                    VALUES (?, ?, ?)
                    """,
                    (client_key, route_key, now),
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def clear(self) -> None:
        conn = self._get_connection()
        with self._conn_lock:
            conn.execute("DELETE FROM scan_rate_limit_events")

    def close(self) -> None:
        with self._conn_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


_default_limiter: SqliteSlidingWindowLimiter | None = None
_default_lock = threading.Lock()


def get_scan_rate_limiter() -> SqliteSlidingWindowLimiter:
    global _default_limiter
    with _default_lock:
        if _default_limiter is None:
            _default_limiter = SqliteSlidingWindowLimiter(settings.scan_rate_limit_db_path)
        return _default_limiter


def enforce_scan_rate_limit(client_key: str, route_key: str, limit: int | None = None) -> None:
    get_scan_rate_limiter().hit(client_key, route_key, limit or settings.scan_rate_limit_per_minute)
