from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Mapping, Sequence

from atsflow.core.config.scoring import get_scoring_value
from atsflow.schemas.analysis import (
    BreakdownCategory,
    BreakdownIssue,
    CategoryChange,
    CategoryScore,
    CategoryStatus,
    CheckResult,
    Roadmap,
    RoadmapItem,
    ScoreBreakdown,
    ScoreComparison,
    ScoreHighlight,
    ScoreResult,
    ScoreTrend,
)
from atsflow.schemas.resume import ScanOptions

DEFAULT_CATEGORY_WEIGHTS: dict[str, int] = {
    "atsCompatibility": 25,
    "keywordMatch": 25,
    "contentQuality": 20,
    "formatting": 15,
    "completeness": 15,
}
CATEGORY_DESCRIPTIONS = {
    "atsCompatibility": "How easily ATS systems can parse your resume",
    "keywordMatch": "Relevance of keywords to target roles",
    "contentQuality": "Quality and effectiveness of content",
    "formatting": "Visual appeal and professional presentation",
    "completeness": "Thoroughness and completeness of information",
}
CATEGORY_DISPLAY_NAMES = {
    "atsCompatibility": "ATS Compatibility",
    "keywordMatch": "Keyword Optimization",
    "contentQuality": "Content Quality",
    "formatting": "Formatting & Style",
    "completeness": "Completeness",
}
CHECK_CATEGORY_MAP = {
    "noTables": "atsCompatibility",
    "noMultiColumn": "atsCompatibility",
    "noHeadersFooters": "atsCompatibility",
    "noImages": "atsCompatibility",
    "noTextBoxes": "atsCompatibility",
    "supportedFileFormat": "atsCompatibility",
    "parseableContactInfo": "atsCompatibility",
    "standardSectionHeaders": "atsCompatibility",
    "clearSectionBoundaries": "atsCompatibility",
    "noComplexTables": "atsCompatibility",
    "keywordDensity": "keywordMatch",
    "dedicatedSkillsSection": "keywordMatch",
    "industryKeywords": "keywordMatch",
    "acronymsSpelledOut": "keywordMatch",
    "clearJobTitles": "keywordMatch",
    "quantifiedAchievements": "contentQuality",
    "actionVerbBullets": "contentQuality",
    "noPersonalPronouns": "contentQuality",
    "noTyposOrGrammar": "contentQuality",
    "noExcessiveJargon": "contentQuality",
    "webSafeFonts": "formatting",
    "noUnicodeBullets": "formatting",
    "consistentDates": "formatting",
    "noBackgroundColors": "formatting",
    "consistentHeadingHierarchy": "formatting",
    "properSectionOrdering": "formatting",
    "chronologicalOrder": "completeness",
    "noOrphanedContent": "completeness",
    "appropriateLength": "completeness",
    "properNounCapitalization": "completeness",
}
# (grade, min, max, description); integer ranges covering 0..100 without gaps.
GRADE_SCALE: tuple[tuple[str, int, int, str], ...] = (
    ("A+", 97, 100, "Exceptional - Top 1%"),
    ("A", 93, 96, "Excellent - Highly competitive"),
    ("A-", 90, 92, "Very Good - Strong candidate"),
    ("B+", 87, 89, "Good - Above average"),
    ("B", 83, 86, "Good - Competitive"),
    ("B-", 80, 82, "Acceptable - Some improvements needed"),
    ("C+", 77, 79, "Fair - Several improvements needed"),
    ("C", 73, 76, "Fair - Significant work needed"),
    ("C-", 70, 72, "Below Average - Major revisions needed"),
    ("D", 60, 69, "Poor - Extensive revisions required"),
    ("F", 0, 59, "Fail - Complete rewrite recommended"),
)
PERCENTILE_STEPS = ((95, 99), (90, 95), (85, 90), (80, 80), (75, 70), (70, 60), (65, 50), (60, 40))
ROADMAP_LIMIT = 5


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def category_for_check(check_name: str) -> str:
    # Unmapped names fall back to atsCompatibility so every result lands in a category.
    return CHECK_CATEGORY_MAP.get(check_name, "atsCompatibility")


def assign_grade(score: int) -> tuple[str, str]:
    for grade, low, high, description in GRADE_SCALE:
        if low <= score <= high:
            return grade, description
    grade, _, _, description = GRADE_SCALE[-1]
    return grade, description


def estimate_percentile(score: int) -> int:
    for threshold, percentile in PERCENTILE_STEPS:
        if score >= threshold:
            return percentile
    return max(1, int(round(score / 2)))


def category_status(score: int) -> CategoryStatus:
    if score >= 90:
        return "excellent"
    if score >= 80:
        return "good"
    if score >= 70:
        return "fair"
    if score >= 60:
        return "poor"
    return "critical"


def load_category_weights(raw: Mapping[str, object] | None = None) -> dict[str, int]:
    """Resolve category weights, falling back to scoring.yaml and then to the built-in split."""
    source = raw if raw is not None else get_scoring_value("scoring.category_weights", DEFAULT_CATEGORY_WEIGHTS)
    if not isinstance(source, Mapping):
        raise RuntimeError("scoring.category_weights must be a mapping of category name to weight.")

    unknown = set(source) - set(DEFAULT_CATEGORY_WEIGHTS)
    if unknown:
        raise RuntimeError(f"Unknown scoring categories in weights: {', '.join(sorted(unknown))}")

    weights: dict[str, int] = {}
    for category, default in DEFAULT_CATEGORY_WEIGHTS.items():
        value = source.get(category, default)
        try:
            weights[category] = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise RuntimeError(f"Invalid weight for category '{category}': {value!r}") from exc
        if weights[category] < 0:
            raise RuntimeError(f"Weight for category '{category}' must not be negative.")

    total = sum(weights.values())
    if total != 100:
        raise RuntimeError(f"Category weights must sum to 100, got {total}.")
    return weights


class ATSScorer:
    """Folds check results into five weighted categories, a letter grade and a percentile."""

    def __init__(
        self,
        weights: Mapping[str, object] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.weights = load_category_weights(weights)
        self._clock = clock or _utc_now

    def calculate_score(self, check_results: Sequence[CheckResult], options: ScanOptions | None = None) -> ScoreResult:
        grouped = self._categorize(check_results)
        category_scores = self._category_scores(grouped)

        raw_score = sum(score.weighted_score for score in category_scores.values())
        raw_score = max(0.0, min(100.0, raw_score))
        overall = int(round(raw_score))
        grade, description = assign_grade(overall)
        strengths, weaknesses = self._highlights(category_scores)
        passed = sum(1 for result in check_results if result.passed)

        return ScoreResult(
            overall_score=overall,
            raw_score=raw_score,
            grade=grade,
            grade_description=description,
            percentile=estimate_percentile(overall),
            category_scores=category_scores,
            breakdown=self._breakdown(category_scores, check_results),
            strengths=strengths,
            weaknesses=weaknesses,
            total_checks=len(check_results),
            passed_checks=passed,
            failed_checks=len(check_results) - passed,
            timestamp=self._clock(),
        )

    def _categorize(self, check_results: Sequence[CheckResult]) -> dict[str, list[CheckResult]]:
        grouped: dict[str, list[CheckResult]] = {category: [] for category in self.weights}
        for result in check_results:
            grouped[category_for_check(result.check_name)].append(result)
        return grouped

    def _category_scores(self, grouped: dict[str, list[CheckResult]]) -> dict[str, CategoryScore]:
        scores: dict[str, CategoryScore] = {}
        for category, weight in self.weights.items():
            results = grouped.get(category, [])
            # Untested categories count as perfect.
            average = sum(result.score for result in results) / len(results) if results else 100.0
            passed = sum(1 for result in results if result.passed)
            scores[category] = CategoryScore(
                score=int(round(average)),
                weight=weight,
                weighted_score=average * weight / 100,
                checks_count=len(results),
                passed_count=passed,
                failed_count=len(results) - passed,
                description=CATEGORY_DESCRIPTIONS[category],
            )
        return scores

    @staticmethod
    def _breakdown(category_scores: dict[str, CategoryScore], check_results: Sequence[CheckResult]) -> ScoreBreakdown:
        breakdown = ScoreBreakdown(
            categories=[
                BreakdownCategory(
                    name=category,
                    display_name=CATEGORY_DISPLAY_NAMES.get(category, category),
                    score=data.score,
                    weight=data.weight,
                    weighted_score=int(round(data.weighted_score)),
                    checks_count=data.checks_count,
                    passed_count=data.passed_count,
                    failed_count=data.failed_count,
                    description=data.description,
                    status=category_status(data.score),
                )
                for category, data in category_scores.items()
            ]
        )
        buckets = {
            "critical": breakdown.critical_issues,
            "high": breakdown.high_priority_issues,
            "medium": breakdown.medium_priority_issues,
            "low": breakdown.low_priority_issues,
        }
        for result in check_results:
            if result.passed or result.severity not in buckets:
                continue
            buckets[result.severity].append(
                BreakdownIssue(
                    check=result.check_name,
                    category=result.category,
                    message=result.message,
                    recommendation=result.recommendation,
                    impact=result.impact,
                )
            )
        return breakdown

    @staticmethod
    def _highlights(category_scores: dict[str, CategoryScore]) -> tuple[list[ScoreHighlight], list[ScoreHighlight]]:
        strengths: list[ScoreHighlight] = []
        weaknesses: list[ScoreHighlight] = []
        for category, data in category_scores.items():
            display = CATEGORY_DISPLAY_NAMES.get(category, category)
            if data.score >= 90:
                strengths.append(
                    ScoreHighlight(
                        category=display,
                        score=data.score,
                        message=f"Excellent {display.lower()} ({data.score}/100)",
                    )
                )
            elif data.score < 70:
                weaknesses.append(
                    ScoreHighlight(
                        category=display,
                        score=data.score,
                        message=f"{display} needs improvement ({data.score}/100)",
                        failed_checks=data.failed_count,
                    )
                )
        strengths.sort(key=lambda item: item.score, reverse=True)
        weaknesses.sort(key=lambda item: item.score)
        return strengths, weaknesses

    @staticmethod
    def compare_scores(current: ScoreResult, previous: ScoreResult) -> ScoreComparison:
        change = current.overall_score - previous.overall_score
        percent = change / previous.overall_score * 100 if previous.overall_score else 0.0
        category_changes = {}
        for category, data in current.category_scores.items():
            before = previous.category_scores.get(category)
            previous_score = before.score if before is not None else 0
            category_changes[category] = CategoryChange(
                current=data.score,
                previous=previous_score,
                change=data.score - previous_score,
            )
        return ScoreComparison(
            overall_change=change,
            percent_change=f"{percent:.1f}%",
            improved=change > 0,
            grade_change={"from": previous.grade, "to": current.grade},
            category_changes=category_changes,
        )

    @staticmethod
    def score_trend(scores: Sequence[int]) -> ScoreTrend:
        """Trend over the last five scores, oldest first."""
        if len(scores) < 2:
            return ScoreTrend(trend="insufficient-data", message="Need at least 2 scores to show trend")

        recent = list(scores[-5:])
        deltas = [later - earlier for earlier, later in zip(recent, recent[1:])]
        average_change = sum(deltas) / len(deltas)
        if average_change > 2:
            trend = "improving"
        elif average_change < -2:
            trend = "declining"
        else:
            trend = "stable"
        return ScoreTrend(
            trend=trend,
            average_change=round(average_change, 1),
            current_score=scores[-1],
            highest_score=max(scores),
            lowest_score=min(scores),
            total_scans=len(scores),
            recent_scores=recent,
        )

    @staticmethod
    def roadmap(score_result: ScoreResult) -> Roadmap:
        breakdown = score_result.breakdown
        quick_wins = [
            RoadmapItem(priority="critical", action=issue.recommendation, impact="high", effort="low",
                        category=issue.category)
            for issue in breakdown.critical_issues
        ] + [
            RoadmapItem(priority="high", action=issue.recommendation, impact="high", effort="medium",
                        category=issue.category)
            for issue in breakdown.high_priority_issues
        ]
        short_term = [
            RoadmapItem(priority="medium", action=issue.recommendation, impact="medium", effort="medium",
                        category=issue.category)
            for issue in breakdown.medium_priority_issues
        ]
        long_term = [
            RoadmapItem(priority="low", action=issue.recommendation, impact="low", effort="low",
                        category=issue.category)
            for issue in breakdown.low_priority_issues
        ]
        return Roadmap(
            quick_wins=quick_wins[:ROADMAP_LIMIT],
            short_term=short_term[:ROADMAP_LIMIT],
            long_term=long_term[:ROADMAP_LIMIT],
        )
