from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

CheckCategory = Literal["formatting", "structure", "content"]
CheckSeverity = Literal["pass", "low", "medium", "high", "critical", "error"]
Impact = Literal["low", "medium", "high", "critical"]
Effort = Literal["low", "medium", "high", "extensive"]
ScoreCategoryName = Literal["atsCompatibility", "keywordMatch", "contentQuality", "formatting", "completeness"]
CategoryStatus = Literal["excellent", "good", "fair", "poor", "critical"]


class CheckOutcome(BaseModel):
    passed: bool
    score: int = Field(ge=0, le=100)
    severity: CheckSeverity
    message: str
    recommendation: str | None = None
    impact: Impact = "medium"
    details: dict[str, Any] = Field(default_factory=dict)


class CheckResult(CheckOutcome):
    category: CheckCategory
    check_name: str
    error: str | None = None


class CategorySummary(BaseModel):
    category: CheckCategory
    total: int = Field(ge=0)
    passed: int = Field(ge=0)
    failed: int = Field(ge=0)
    average_score: int = Field(ge=0, le=100)
    severity: dict[str, int] = Field(default_factory=dict)
    issues: dict[str, list[str]] = Field(default_factory=dict)


class CategoryScore(BaseModel):
    score: int = Field(ge=0, le=100)
    weight: int = Field(ge=0, le=100)
    weighted_score: float = Field(ge=0.0, le=100.0)
    checks_count: int = Field(default=0, ge=0)
    passed_count: int = Field(default=0, ge=0)
    failed_count: int = Field(default=0, ge=0)
    description: str = ""


class BreakdownCategory(BaseModel):
    name: str
    display_name: str
    score: int
    weight: int
    weighted_score: int
    checks_count: int
    passed_count: int
    failed_count: int
    description: str
    status: CategoryStatus


class BreakdownIssue(BaseModel):
    check: str
    category: CheckCategory
    message: str
    recommendation: str | None = None
    impact: Impact


class ScoreBreakdown(BaseModel):
    categories: list[BreakdownCategory] = Field(default_factory=list)
    critical_issues: list[BreakdownIssue] = Field(default_factory=list)
    high_priority_issues: list[BreakdownIssue] = Field(default_factory=list)
    medium_priority_issues: list[BreakdownIssue] = Field(default_factory=list)
    low_priority_issues: list[BreakdownIssue] = Field(default_factory=list)


class ScoreHighlight(BaseModel):
    category: str
    score: int
    message: str
    failed_checks: int | None = None


class ScoreResult(BaseModel):
    overall_score: int = Field(ge=0, le=100)
    raw_score: float = Field(ge=0.0, le=100.0)
    grade: str
    grade_description: str
    percentile: int = Field(ge=1, le=99)
    category_scores: dict[str, CategoryScore]
    breakdown: ScoreBreakdown
    strengths: list[ScoreHighlight] = Field(default_factory=list)
    weaknesses: list[ScoreHighlight] = Field(default_factory=list)
    total_checks: int = Field(ge=0)
    passed_checks: int = Field(ge=0)
    failed_checks: int = Field(ge=0)
    timestamp: datetime


class CategoryChange(BaseModel):
    current: int
    previous: int
    change: int


class ScoreComparison(BaseModel):
    overall_change: int
    percent_change: str
    improved: bool
    grade_change: dict[str, str]
    category_changes: dict[str, CategoryChange]


class ScoreTrend(BaseModel):
    trend: Literal["insufficient-data", "improving", "declining", "stable"]
    message: str | None = None
    average_change: float | None = None
    current_score: int | None = None
    highest_score: int | None = None
    lowest_score: int | None = None
    total_scans: int = 0
    recent_scores: list[int] = Field(default_factory=list)


class RoadmapItem(BaseModel):
    priority: Literal["critical", "high", "medium", "low"]
    action: str | None
    impact: Impact
    effort: Effort
    category: CheckCategory


class Roadmap(BaseModel):
    quick_wins: list[RoadmapItem] = Field(default_factory=list)
    short_term: list[RoadmapItem] = Field(default_factory=list)
    long_term: list[RoadmapItem] = Field(default_factory=list)


class Recommendation(BaseModel):
    id: str
    check_name: str
    category: CheckCategory
    issue: str
    recommendation: str
    impact: Impact
    severity: CheckSeverity
    effort: Effort
    details: dict[str, Any] = Field(default_factory=dict)
    score: int = Field(ge=0, le=100)
    examples: list[dict[str, str]] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    priority_score: int = Field(ge=0)
    priority_label: str
    rank: int | None = None
    reason: str | None = None


class TimeEstimate(BaseModel):
    minutes: int = Field(ge=0)
    hours: float = Field(ge=0.0)
    formatted: str


class RecommendationSummary(BaseModel):
    total_recommendations: int = Field(ge=0)
    critical_count: int = Field(ge=0)
    high_count: int = Field(ge=0)
    medium_count: int = Field(ge=0)
    low_count: int = Field(ge=0)
    estimated_time: TimeEstimate


class IndustryTip(BaseModel):
    tip: str
    reason: str
    example: str


class RecommendationSet(BaseModel):
    summary: RecommendationSummary
    quick_wins: list[Recommendation] = Field(default_factory=list)
    major_improvements: list[Recommendation] = Field(default_factory=list)
    all_recommendations: list[Recommendation] = Field(default_factory=list)
    categorized: dict[str, list[Recommendation]] = Field(default_factory=dict)
    industry_tips: list[IndustryTip] = Field(default_factory=list)
    generated_at: datetime


class RecommendationMatrix(BaseModel):
    high_impact_low_effort: list[Recommendation] = Field(default_factory=list)
    high_impact_high_effort: list[Recommendation] = Field(default_factory=list)
    low_impact_low_effort: list[Recommendation] = Field(default_factory=list)
    low_impact_high_effort: list[Recommendation] = Field(default_factory=list)


class ChecksSummary(BaseModel):
    total: int = Field(ge=0)
    passed: int = Field(ge=0)
    failed: int = Field(ge=0)
    results: list[CheckResult] = Field(default_factory=list)


class ReportMetadata(BaseModel):
    word_count: int = Field(ge=0)
    section_count: int = Field(ge=0)
    file_format: str = "unknown"
    target_industry: str = "general"


class AnalysisReport(BaseModel):
    version: str
    timestamp: datetime
    execution_time: int = Field(ge=0)
    score: ScoreResult
    checks: ChecksSummary
    summaries: dict[str, CategorySummary] = Field(default_factory=dict)
    recommendations: RecommendationSet
    metadata: ReportMetadata


class ScanError(BaseModel):
    error: Literal[True] = True
    message: str
    timestamp: datetime
    execution_time: int = Field(ge=0)


class QuickScanResult(BaseModel):
    type: Literal["quick-scan"] = "quick-scan"
    score: int = Field(ge=0, le=100)
    grade: str
    checks_run: int = Field(ge=0)
    passed: int = Field(ge=0)
    failed: int = Field(ge=0)
    results: list[CheckResult] = Field(default_factory=list)
    timestamp: datetime


class ComparisonSide(BaseModel):
    score: int
    grade: str
    passed: int


class ComparisonDifference(BaseModel):
    score: int
    passed: int
    better: Literal["Resume A", "Resume B"]


class ComparisonResult(BaseModel):
    resume_a: ComparisonSide
    resume_b: ComparisonSide
    difference: ComparisonDifference
    details: dict[str, AnalysisReport] = Field(default_factory=dict)
    timestamp: datetime


class PathToScore(BaseModel):
    achieved: bool
    current_score: int
    target_score: int
    gap: int = 0
    recommendations_needed: int = 0
    estimated_gain: int = 0
    recommendations: list[Recommendation] = Field(default_factory=list)
    message: str


class ScanHistoryEntry(BaseModel):
    id: str
    timestamp: datetime
    score: int = Field(ge=0, le=100)
    grade: str
    passed: int = Field(ge=0)
    total: int = Field(ge=0)


class HistoryStatistics(BaseModel):
    total_scans: int = 0
    average_score: int = 0
    highest_score: int = 0
    lowest_score: int = 0
    improvement: int = 0
    recent_scores: list[int] = Field(default_factory=list)


class ScannerInfo(BaseModel):
    version: str
    total_checks: int
    categories: list[str]
    features: list[str]
