from __future__ import annotations

import logging
import re
from typing import Callable, ClassVar

from atsflow.schemas.analysis import CategorySummary, CheckCategory, CheckOutcome, CheckResult
from atsflow.schemas.resume import ResumeDocument, ScanOptions

logger = logging.getLogger(__name__)

CheckFunction = Callable[[ResumeDocument, ScanOptions], CheckOutcome]

_CAMEL_BOUNDARY_RE = re.compile(r"(?<!^)(?=[A-Z])")
_SEVERITY_BUCKETS = ("critical", "high", "medium", "low")


def method_name_for(check_name: str) -> str:
    return _CAMEL_BOUNDARY_RE.sub("_", check_name).lower()


def failed_check(message: str) -> CheckOutcome:
    """Outcome for a check that has no document data to evaluate."""
    return CheckOutcome(
        passed=False,
        score=0,
        severity="error",
        message=message,
        recommendation="Ensure resume data is properly formatted.",
        impact="critical",
        details={},
    )


class CheckModule:
    """Ordered set of independent checks sharing one category.

    Subclasses list their check names in ``checks`` and implement one method per name
    (``noTables`` -> ``no_tables``). Each method takes the document and options and
    returns a :class:`CheckOutcome`; ``run_all`` stamps the category and name on it.
    """

    category: ClassVar[CheckCategory]
    checks: ClassVar[tuple[str, ...]] = ()

    def resolve(self, check_name: str) -> CheckFunction:
        method = getattr(self, method_name_for(check_name), None)
        if method is None:
            raise AttributeError(f"{type(self).__name__} has no implementation for check '{check_name}'")
        return method

    def run_check(self, check_name: str, document: ResumeDocument, options: ScanOptions) -> CheckResult:
        try:
            outcome = self.resolve(check_name)(document, options)
            return CheckResult(category=self.category, check_name=check_name, **outcome.model_dump())
        except Exception as exc:
            logger.warning("ats_check_failed category=%s check=%s: %s", self.category, check_name, exc)
            return CheckResult(
                category=self.category,
                check_name=check_name,
                passed=False,
                score=0,
                severity="error",
                message="Check failed to execute",
                recommendation=None,
                impact="low",
                details={},
                error=str(exc) or type(exc).__name__,
            )

    def run_all(self, document: ResumeDocument, options: ScanOptions | None = None) -> list[CheckResult]:
        resolved_options = options or ScanOptions()
        return [self.run_check(check_name, document, resolved_options) for check_name in self.checks]

    def summarize(self, results: list[CheckResult]) -> CategorySummary:
        total = len(results)
        passed = sum(1 for result in results if result.passed)
        average = sum(result.score for result in results) / total if total else 0
        failed_by_severity = {
            bucket: [result for result in results if result.severity == bucket and not result.passed]
            for bucket in _SEVERITY_BUCKETS
        }
        return CategorySummary(
            category=self.category,
            total=total,
            passed=passed,
            failed=total - passed,
            average_score=int(round(average)),
            severity={bucket: len(items) for bucket, items in failed_by_severity.items()},
            issues={bucket: [result.message for result in items] for bucket, items in failed_by_severity.items()},
        )
