from __future__ import annotations

import os
import sqlite3
import threading
from collections import deque
from datetime import datetime
from typing import Protocol, Sequence, runtime_checkable

from atsflow.core.config import Settings
from atsflow.core.config.scoring import get_scoring_int
from atsflow.schemas.analysis import HistoryStatistics, ScanHistoryEntry

DEFAULT_MAX_ENTRIES = 20


def history_limit() -> int:
    return get_scoring_int("history.max_entries", DEFAULT_MAX_ENTRIES, min_value=1, max_value=10_000)


@runtime_checkable
class ScanHistorySink(Protocol):
    def append(self, entry: ScanHistoryEntry) -> None: ...

    def entries(self) -> list[ScanHistoryEntry]: ...


class InMemoryScanHistory:
    """Process-local history; the oldest entries fall off once the cap is reached."""

    def __init__(self, max_entries: int | None = None) -> None:
        self.max_entries = max_entries or history_limit()
        self._entries: deque[ScanHistoryEntry] = deque(maxlen=self.max_entries)
        self._lock = threading.Lock()

    def append(self, entry: ScanHistoryEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def entries(self) -> list[ScanHistoryEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class SqliteScanHistory:
    def __init__(self, db_path: str, max_entries: int | None = None) -> None:
        self.db_path = db_path
        self.max_entries = max_entries or history_limit()
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
                CREATE TABLE IF NOT EXISTS ats_scan_history (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    scan_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    score INTEGER NOT NULL,
                    grade TEXT NOT NULL,
                    passed INTEGER NOT NULL,
                    total INTEGER NOT NULL
                );
                """
            )
            self._conn = conn
            return conn

    def append(self, entry: ScanHistoryEntry) -> None:
        conn = self._get_connection()
        with self._conn_lock:
            conn.execute(
                """
                INSERT INTO ats_scan_history (scan_id, created_at, score, grade, passed, total)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (entry.id, entry.timestamp.isoformat(), entry.score, entry.grade, entry.passed, entry.total),
            )
            conn.execute(
                """
                DELETE FROM ats_scan_history
                WHERE seq NOT IN (
                    SELECT seq FROM ats_scan_history ORDER BY seq DESC LIMIT ?
                )
                """,
                (self.max_entries,),
            )
            conn.commit()

    def entries(self) -> list[ScanHistoryEntry]:
        conn = self._get_connection()
        with self._conn_lock:
            rows = conn.execute(
                """
                SELECT scan_id, created_at, score, grade, passed, total
                FROM ats_scan_history
                ORDER BY seq ASC
                """
            ).fetchall()
        return [
            ScanHistoryEntry(
                id=row[0],
                timestamp=datetime.fromisoformat(row[1]),
                score=row[2],
                grade=row[3],
                passed=row[4],
                total=row[5],
            )
            for row in rows
        ]

    def clear(self) -> None:
        conn = self._get_connection()
        with self._conn_lock:
            conn.execute("DELETE FROM ats_scan_history")
            conn.commit()

    def close(self) -> None:
        with self._conn_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


def history_statistics(entries: Sequence[ScanHistoryEntry]) -> HistoryStatistics:
    if not entries:
        return HistoryStatistics()

    scores = [entry.score for entry in entries]
    return HistoryStatistics(
        total_scans=len(scores),
        average_score=int(round(sum(scores) / len(scores))),
        highest_score=max(scores),
        lowest_score=min(scores),
        improvement=scores[-1] - scores[0] if len(scores) > 1 else 0,
        recent_scores=scores[-5:],
    )


def build_history_sink(config: Settings) -> ScanHistorySink:
    if config.scan_history_backend == "sqlite":
        return SqliteScanHistory(config.scan_history_db_path)
    return InMemoryScanHistory()
