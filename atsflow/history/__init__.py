from .store import (
    InMemoryScanHistory,
    ScanHistorySink,
    SqliteScanHistory,
    build_history_sink,
    history_statistics,
)

__all__ = [
    "InMemoryScanHistory",
    "ScanHistorySink",
    "SqliteScanHistory",
    "build_history_sink",
    "history_statistics",
]
