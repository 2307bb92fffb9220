import dataclasses
import sys
import tempfile
import unittest
from datetime import timedelta
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from atsflow.core.config import settings  # noqa: E402
from atsflow.history import (  # noqa: E402
    InMemoryScanHistory,
    ScanHistorySink,
    SqliteScanHistory,
    build_history_sink,
    history_statistics,
)
from atsflow.schemas.analysis import ScanHistoryEntry  # noqa: E402
from tests.resume_fixtures import FIXED_NOW  # noqa: E402


def _entry(index, score):
    return ScanHistoryEntry(
        id=f"scan-{index}",
        timestamp=FIXED_NOW + timedelta(minutes=index),
        score=score,
        grade="B",
        passed=20,
        total=30,
    )


class InMemoryHistoryTests(unittest.TestCase):
    def test_oldest_entries_are_dropped_at_the_cap(self):
        history = InMemoryScanHistory(max_entries=3)
        for index, score in enumerate([50, 60, 70, 80]):
            history.append(_entry(index, score))
        self.assertEqual([entry.score for entry in history.entries()], [60, 70, 80])

        history.clear()
        self.assertEqual(history.entries(), [])

    def test_default_cap_comes_from_scoring_config(self):
        self.assertEqual(InMemoryScanHistory().max_entries, 20)
        self.assertIsInstance(InMemoryScanHistory(), ScanHistorySink)


class SqliteHistoryTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.db_path = str(Path(self._tmp.name) / "nested" / "history.db")
        self.history = SqliteScanHistory(self.db_path, max_entries=2)

    def tearDown(self):
        self.history.close()
        self._tmp.cleanup()

    def test_round_trip_and_cap(self):
        for index, score in enumerate([40, 55, 72]):
            self.history.append(_entry(index, score))

        entries = self.history.entries()
        self.assertEqual([entry.id for entry in entries], ["scan-1", "scan-2"])
        self.assertEqual(entries[-1].timestamp, FIXED_NOW + timedelta(minutes=2))
        self.assertEqual(entries[-1].total, 30)

    def test_entries_survive_reopening(self):
        self.history.append(_entry(0, 88))
        self.history.close()

        reopened = SqliteScanHistory(self.db_path, max_entries=2)
        try:
            self.assertEqual([entry.score for entry in reopened.entries()], [88])
            reopened.clear()
            self.assertEqual(reopened.entries(), [])
        finally:
            reopened.close()


class HistoryStatisticsTests(unittest.TestCase):
    def test_statistics(self):
        entries = [_entry(index, score) for index, score in enumerate([60, 70, 65, 90, 85, 95])]
        stats = history_statistics(entries)
        self.assertEqual(stats.total_scans, 6)
        self.assertEqual(stats.average_score, 78)
        self.assertEqual(stats.highest_score, 95)
        self.assertEqual(stats.lowest_score, 60)
        self.assertEqual(stats.improvement, 35)
        self.assertEqual(stats.recent_scores, [70, 65, 90, 85, 95])

    def test_empty_and_single_entry(self):
        self.assertEqual(history_statistics([]).total_scans, 0)
        self.assertEqual(history_statistics([_entry(0, 70)]).improvement, 0)


class HistorySinkFactoryTests(unittest.TestCase):
    def test_backend_selection(self):
        memory = build_history_sink(dataclasses.replace(settings, scan_history_backend="memory"))
        self.assertIsInstance(memory, InMemoryScanHistory)

        with tempfile.TemporaryDirectory() as tmp:
            config = dataclasses.replace(
                settings,
                scan_history_backend="sqlite",
                scan_history_db_path=str(Path(tmp) / "history.db"),
            )
            sink = build_history_sink(config)
            try:
                self.assertIsInstance(sink, SqliteScanHistory)
                sink.append(_entry(0, 77))
                self.assertEqual(len(sink.entries()), 1)
            finally:
                sink.close()


if __name__ == "__main__":
    unittest.main()
