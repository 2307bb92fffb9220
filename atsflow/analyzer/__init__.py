from .recommendations import RecommendationsEngine
from .scanner import ATSScanner, ScanInputError, build_scanner
from .scorer import ATSScorer

__all__ = [
    "ATSScanner",
    "ATSScorer",
    "RecommendationsEngine",
    "ScanInputError",
    "build_scanner",
]
