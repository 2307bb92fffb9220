from __future__ import annotations

import logging
import secrets
import sqlite3
import time
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError

from atsflow.core.config.scoring import get_scoring_value
from atsflow.history.store import ScanHistorySink, history_statistics
from atsflow.schemas.analysis import (
    AnalysisReport,
    CheckResult,
    ChecksSummary,
    ComparisonDifference,
    ComparisonResult,
    ComparisonSide,
    HistoryStatistics,
    PathToScore,
    QuickScanResult,
    ReportMetadata,
    ScanError,
    ScanHistoryEntry,
    ScannerInfo,
    ScoreTrend,
)
from atsflow.schemas.resume import ResumeDocument, ScanOptions

from .checks import CheckModule, ContentChecks, FormattingChecks, StructureChecks
from .export import export_report
from .recommendations import RecommendationsEngine
from .scorer import ATSScorer
from .text import extract_all_text, word_count

logger = logging.getLogger(__name__)

SCANNER_VERSION = "2.0.0"
DEFAULT_QUICK_SCAN_CHECKS = (
    "noTables",
    "noMultiColumn",
    "parseableContactInfo",
    "standardSectionHeaders",
    "dedicatedSkillsSection",
    "quantifiedAchievements",
    "noTyposOrGrammar",
    "supportedFileFormat",
)
DEFAULT_IMPACT_POINTS = {"critical": 5, "high": 4, "medium": 3, "low": 2}
SCANNER_FEATURES = (
    "30+ comprehensive ATS checks",
    "5-category weighted scoring",
    "Letter grade assignment (A-F)",
    "Prioritized recommendations",
    "Historical tracking",
    "Quick scan mode",
    "Resume comparison",
    "Multiple export formats",
)
# Coarser ladder used for quick scans, which have no category breakdown.
SIMPLE_GRADE_LADDER = ((97, "A+"), (93, "A"), (90, "A-"), (87, "B+"), (83, "B"), (80, "B-"), (70, "C"), (60, "D"))

DocumentInput = Optional[Union[ResumeDocument, Mapping[str, Any]]]
OptionsInput = Optional[Union[ScanOptions, Mapping[str, Any]]]


class ScanInputError(ValueError):
    """Raised when a scan has no usable resume document."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def simple_grade(score: int) -> str:
    for threshold, grade in SIMPLE_GRADE_LADDER:
        if score >= threshold:
            return grade
    return "F"


def coerce_document(document: DocumentInput) -> ResumeDocument:
    if document is None:
        raise ScanInputError("Resume data is required")
    if isinstance(document, ResumeDocument):
        return document
    if not isinstance(document, Mapping):
        raise ScanInputError("Resume data must be an object with a 'sections' list")
    try:
        return ResumeDocument.model_validate(dict(document))
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {"msg": str(exc), "loc": ()}
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ScanInputError(f"Invalid resume data at '{location}': {first['msg']}") from exc


def coerce_options(options: OptionsInput) -> ScanOptions:
    if options is None:
        return ScanOptions()
    if isinstance(options, ScanOptions):
        return options
    try:
        return ScanOptions.model_validate(dict(options))
    except ValidationError as exc:
        raise ScanInputError(f"Invalid scan options: {exc.errors()[0]['msg']}") from exc


class ATSScanner:
    """Runs every check module, then scores and prioritizes the combined results.

    Collaborators are injected so tests and alternative deployments can swap any of them;
    :func:`build_scanner` wires the defaults.
    """

    version = SCANNER_VERSION

    def __init__(
        self,
        formatting: CheckModule,
        structure: CheckModule,
        content: CheckModule,
        scorer: ATSScorer,
        recommender: RecommendationsEngine,
        history: ScanHistorySink | None = None,
        clock: Callable[[], datetime] | None = None,
        quick_scan_checks: tuple[str, ...] | None = None,
    ) -> None:
        self.check_modules: tuple[CheckModule, ...] = (formatting, structure, content)
        self.scorer = scorer
        self.recommender = recommender
        self.history = history
        self._clock = clock or _utc_now
        self.quick_scan_checks = quick_scan_checks or _configured_quick_scan_checks()

    @property
    def total_checks(self) -> int:
        return sum(len(module.checks) for module in self.check_modules)

    def run_checks(self, document: ResumeDocument, options: ScanOptions) -> list[CheckResult]:
        results: list[CheckResult] = []
        for module in self.check_modules:
            results.extend(module.run_all(document, options))
        return results

    def scan(self, document: DocumentInput, options: OptionsInput = None) -> AnalysisReport | ScanError:
        started = time.perf_counter()
        try:
            resume = coerce_document(document)
            scan_options = coerce_options(options)
        except ScanInputError as exc:
            logger.warning("ats_scan_rejected: %s", exc)
            return ScanError(message=str(exc), timestamp=self._clock(), execution_time=_elapsed_ms(started))

        results = self.run_checks(resume, scan_options)
        score = self.scorer.calculate_score(results, scan_options)
        recommendations = self.recommender.generate(results, score, scan_options)
        passed = sum(1 for result in results if result.passed)

        report = AnalysisReport(
            version=self.version,
            timestamp=self._clock(),
            execution_time=_elapsed_ms(started),
            score=score,
            checks=ChecksSummary(total=len(results), passed=passed, failed=len(results) - passed, results=results),
            summaries={
                module.category: module.summarize([r for r in results if r.category == module.category])
                for module in self.check_modules
            },
            recommendations=recommendations,
            metadata=ReportMetadata(
                word_count=word_count(extract_all_text(resume)),
                section_count=len(resume.sections),
                file_format=scan_options.file_format or "unknown",
                target_industry=scan_options.industry or "general",
            ),
        )
        self._record(report)
        logger.info(
            "ats_scan_completed score=%s grade=%s checks=%s duration_ms=%s",
            score.overall_score,
            score.grade,
            len(results),
            report.execution_time,
        )
        return report

    def scan_or_raise(self, document: DocumentInput, options: OptionsInput = None) -> AnalysisReport:
        result = self.scan(document, options)
        if isinstance(result, ScanError):
            raise ScanInputError(result.message)
        return result

    def quick_scan(self, document: DocumentInput, options: OptionsInput = None) -> QuickScanResult:
        # All checks still run; the report keeps only the critical subset.
        resume = coerce_document(document)
        results = [
            result
            for result in self.run_checks(resume, coerce_options(options))
            if result.check_name in self.quick_scan_checks
        ]
        passed = sum(1 for result in results if result.passed)
        score = int(round(passed / len(results) * 100)) if results else 0
        return QuickScanResult(
            score=score,
            grade=simple_grade(score),
            checks_run=len(results),
            passed=passed,
            failed=len(results) - passed,
            results=results,
            timestamp=self._clock(),
        )

    def compare_resumes(
        self, resume_a: DocumentInput, resume_b: DocumentInput, options: OptionsInput = None
    ) -> ComparisonResult:
        base = coerce_options(options)
        first = self.scan(resume_a, base.model_copy(update={"label": "Resume A"}))
        second = self.scan(resume_b, base.model_copy(update={"label": "Resume B"}))
        if isinstance(first, ScanError):
            raise ScanInputError(f"Resume A could not be scanned: {first.message}")
        if isinstance(second, ScanError):
            raise ScanInputError(f"Resume B could not be scanned: {second.message}")

        score_a, score_b = first.score.overall_score, second.score.overall_score
        return ComparisonResult(
            resume_a=ComparisonSide(score=score_a, grade=first.score.grade, passed=first.checks.passed),
            resume_b=ComparisonSide(score=score_b, grade=second.score.grade, passed=second.checks.passed),
            difference=ComparisonDifference(
                score=score_b - score_a,
                passed=second.checks.passed - first.checks.passed,
                better="Resume B" if score_b > score_a else "Resume A",
            ),
            details={"resume_a": first, "resume_b": second},
            timestamp=self._clock(),
        )

    def get_path_to_score(self, report: AnalysisReport, target_score: int) -> PathToScore:
        """Greedy estimate of which recommendations close the gap to ``target_score``."""
        if not 0 <= target_score <= 100:
            raise ScanInputError("target_score must be between 0 and 100")

        current = report.score.overall_score
        if current >= target_score:
            return PathToScore(
                achieved=True,
                current_score=current,
                target_score=target_score,
                message=f"You've already reached {target_score}! Current score: {current}",
            )

        points = _configured_impact_points()
        gap = target_score - current
        needed = []
        estimated_gain = 0
        for rec in report.recommendations.all_recommendations:
            if estimated_gain >= gap:
                break
            needed.append(rec)
            estimated_gain += points.get(rec.impact, 2)

        return PathToScore(
            achieved=False,
            current_score=current,
            target_score=target_score,
            gap=gap,
            recommendations_needed=len(needed),
            estimated_gain=estimated_gain,
            recommendations=needed,
            message=f"To reach {target_score}, focus on these {len(needed)} improvements",
        )

    @staticmethod
    def export_results(report: AnalysisReport, fmt: str = "json") -> str:
        return export_report(report, fmt)

    def history_entries(self) -> list[ScanHistoryEntry]:
        return self.history.entries() if self.history is not None else []

    def history_statistics(self) -> HistoryStatistics:
        return history_statistics(self.history_entries())

    def score_trend(self) -> ScoreTrend:
        return self.scorer.score_trend([entry.score for entry in self.history_entries()])

    def info(self) -> ScannerInfo:
        return ScannerInfo(
            version=self.version,
            total_checks=self.total_checks,
            categories=[module.category for module in self.check_modules],
            features=list(SCANNER_FEATURES),
        )

    def _record(self, report: AnalysisReport) -> None:
        if self.history is None:
            return
        entry = ScanHistoryEntry(
            id=secrets.token_urlsafe(9),
            timestamp=report.timestamp,
            score=report.score.overall_score,
            grade=report.score.grade,
            passed=report.checks.passed,
            total=report.checks.total,
        )
        try:
            self.history.append(entry)
        except sqlite3.Error as exc:
            logger.warning("ats_history_append_failed: %s", exc)


def _elapsed_ms(started: float) -> int:
    return max(0, int(round((time.perf_counter() - started) * 1000)))


def _configured_quick_scan_checks() -> tuple[str, ...]:
    raw = get_scoring_value("quick_scan.checks", list(DEFAULT_QUICK_SCAN_CHECKS))
    if not isinstance(raw, list) or not raw:
        return DEFAULT_QUICK_SCAN_CHECKS
    return tuple(str(name) for name in raw)


def _configured_impact_points() -> dict[str, int]:
    raw = get_scoring_value("path_to_score.impact_points", DEFAULT_IMPACT_POINTS)
    if not isinstance(raw, dict):
        return dict(DEFAULT_IMPACT_POINTS)
    points = dict(DEFAULT_IMPACT_POINTS)
    for impact, value in raw.items():
        try:
            points[str(impact)] = int(value)
        except (TypeError, ValueError):
            continue
    return points


def build_scanner(history: ScanHistorySink | None = None, clock: Callable[[], datetime] | None = None) -> ATSScanner:
    return ATSScanner(
        formatting=FormattingChecks(),
        structure=StructureChecks(),
        content=ContentChecks(),
        scorer=ATSScorer(clock=clock),
        recommender=RecommendationsEngine(clock=clock),
        history=history,
        clock=clock,
    )
