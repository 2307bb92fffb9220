import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from atsflow.core.scan_rate_limit import ScanRateLimitExceeded, SqliteSlidingWindowLimiter  # noqa: E402


class _Clock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now


class SlidingWindowLimiterTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.clock = _Clock()
        self.limiter = SqliteSlidingWindowLimiter(str(Path(self._tmp.name) / "limits.db"), clock=self.clock)

    def tearDown(self):
        self.limiter.close()
        self._tmp.cleanup()

    def test_limit_is_enforced_within_window(self):
        for _ in range(3):
            self.limiter.hit("1.2.3.4", "/v1/ats/scan", limit=3)
        with self.assertRaises(ScanRateLimitExceeded):
            self.limiter.hit("1.2.3.4", "/v1/ats/scan", limit=3)

    def test_clients_and_routes_are_counted_separately(self):
        self.limiter.hit("1.2.3.4", "/v1/ats/scan", limit=1)
        self.limiter.hit("5.6.7.8", "/v1/ats/scan", limit=1)
        self.limiter.hit("1.2.3.4", "/v1/ats/compare", limit=1)
        with self.assertRaises(ScanRateLimitExceeded):
            self.limiter.hit("1.2.3.4", "/v1/ats/scan", limit=1)

    def test_window_slides(self):
        self.limiter.hit("1.2.3.4", "/v1/ats/scan", limit=1)
        self.clock.now += 61
        self.limiter.hit("1.2.3.4", "/v1/ats/scan", limit=1)

    def test_rejected_hits_are_not_recorded(self):
        self.limiter.hit("1.2.3.4", "/v1/ats/scan", limit=1)
        for _ in range(3):
            with self.assertRaises(ScanRateLimitExceeded):
                self.limiter.hit("1.2.3.4", "/v1/ats/scan", limit=1)
        self.clock.now += 61
        self.limiter.hit("1.2.3.4", "/v1/ats/scan", limit=1)

    def test_clear(self):
        self.limiter.hit("1.2.3.4", "/v1/ats/scan", limit=1)
        self.limiter.clear()
        self.limiter.hit("1.2.3.4", "/v1/ats/scan", limit=1)


if __name__ == "__main__":
    unittest.main()
