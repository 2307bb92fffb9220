from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Callable, Sequence

from atsflow.core.config.scoring import get_scoring_int
from atsflow.schemas.analysis import (
    CheckResult,
    IndustryTip,
    Recommendation,
    RecommendationMatrix,
    RecommendationSet,
    RecommendationSummary,
    ScoreResult,
    TimeEstimate,
)
from atsflow.schemas.resume import ScanOptions

IMPACT_WEIGHTS = {"critical": 100, "high": 75, "medium": 50, "low": 25}
EFFORT_WEIGHTS = {"low": 25, "medium": 50, "high": 75, "extensive": 100}
EFFORT_MINUTES = {"low": 15, "medium": 45, "high": 90, "extensive": 180}
DEFAULT_EFFORT_MINUTES = 30
HIGH_IMPACT = {"critical", "high"}
LOW_EFFORT = {"low", "medium"}
DISPLAY_BUCKETS = ("atsCompatibility", "content", "formatting", "keywords", "structure")

CHECK_EFFORT = {
    "noPersonalPronouns": "low",
    "properNounCapitalization": "low",
    "noUnicodeBullets": "low",
    "consistentDates": "low",
    "noBackgroundColors": "low",
    "webSafeFonts": "low",
    "standardSectionHeaders": "medium",
    "chronologicalOrder": "medium",
    "properSectionOrdering": "medium",
    "clearJobTitles": "medium",
    "dedicatedSkillsSection": "medium",
    "noExcessiveJargon": "medium",
    "quantifiedAchievements": "high",
    "actionVerbBullets": "high",
    "keywordDensity": "high",
    "industryKeywords": "high",
    "parseableContactInfo": "high",
    "noTyposOrGrammar": "high",
    "noTables": "extensive",
    "noMultiColumn": "extensive",
    "appropriateLength": "extensive",
}

CHECK_EXAMPLES: dict[str, list[dict[str, str]]] = {
    "quantifiedAchievements": [
        {"before": "Managed sales team", "after": "Managed team of 8 sales reps, increasing quarterly revenue by 35%"},
        {
            "before": "Improved customer satisfaction",
            "after": "Improved customer satisfaction scores from 3.2 to 4.7/5.0 (47% increase)",
        },
    ],
    "actionVerbBullets": [
        {
            "before": "Responsible for project delivery",
            "after": "Delivered 12 projects on-time and under budget, averaging 95% client satisfaction",
        },
        {
            "before": "Was involved in system design",
            "after": "Designed scalable microservices architecture supporting 1M+ daily users",
        },
    ],
    "noPersonalPronouns": [
        {"before": "I led a team of developers", "after": "Led cross-functional team of 10 developers"},
        {"before": "My responsibilities included...", "after": "Key responsibilities included..."},
    ],
    "standardSectionHeaders": [
        {"before": "My Journey", "after": "Professional Experience"},
        {"before": "What I Bring to the Table", "after": "Core Competencies"},
    ],
    "keywordDensity": [
        {"before": "Good at programming", "after": "Proficient in JavaScript, Python, React, Node.js, and SQL"},
        {"before": "Marketing experience", "after": "Digital Marketing: SEO, SEM, Google Analytics, Content Strategy"},
    ],
}

CHECK_STEPS: dict[str, list[str]] = {
    "noTables": [
        "1. Identify all table-based layouts in your resume",
        "2. Convert each table to simple text sections",
        "3. Use headings and bullet points instead of cells",
        "4. Verify content flows naturally top-to-bottom",
    ],
    "quantifiedAchievements": [
        "1. Review each bullet point in your experience section",
        "2. Ask: What was the measurable result of this work?",
        "3. Add numbers, percentages, dollar amounts where applicable",
        "4. Use formulas: X% increase, $Y saved, Z people managed",
        "5. Verify all metrics are accurate and verifiable",
    ],
    "dedicatedSkillsSection": [
        '1. Create a new "Skills" or "Technical Skills" section',
        "2. List 8-15 relevant skills for your target role",
        "3. Organize by category (Technical, Tools, Languages, etc.)",
        "4. Use exact keyword matches from job descriptions",
        "5. Place section after Summary or after Experience",
    ],
    "actionVerbBullets": [
        "1. Review all bullet points in experience section",
        "2. Identify bullets that don't start with action verbs",
        '3. Replace weak starts ("Responsible for") with strong verbs',
        "4. Use past tense for previous roles, present for current",
        "5. Vary your verb choices for better readability",
    ],
    "standardSectionHeaders": [
        "1. List all current section headers",
        "2. Compare to standard ATS-friendly headers",
        "3. Replace creative headers with standard ones",
        "4. Common standards: Summary, Experience, Education, Skills",
        "5. Test: Would a recruiter instantly recognize this section?",
    ],
}
DEFAULT_STEPS = [
    "1. Review the specific issue identified",
    "2. Refer to the recommendation provided",
    "3. Make the suggested changes",
    "4. Verify the improvement",
]

INDUSTRY_TIPS: dict[str, list[dict[str, str]]] = {
    "software": [
        {
            "tip": "Include specific programming languages and frameworks",
            "reason": "Tech recruiters search for exact technology names",
            "example": 'Instead of "web development" use "React.js, Node.js, TypeScript"',
        },
        {
            "tip": "Quantify your code contributions",
            "reason": "Numbers show impact better than adjectives",
            "example": '"Reduced API response time by 40%" vs "Improved API performance"',
        },
        {
            "tip": "List both frontend and backend skills separately",
            "reason": "ATS searches for specific skill categories",
            "example": "Frontend: React, Vue | Backend: Node.js, Python, PostgreSQL",
        },
    ],
    "marketing": [
        {
            "tip": "Include metrics for every campaign",
            "reason": "Marketing is results-driven; numbers prove success",
            "example": '"Increased engagement by 45%" or "Generated $2M in revenue"',
        },
        {
            "tip": "List marketing tools and platforms",
            "reason": "Employers search for specific tool experience",
            "example": "Google Analytics, HubSpot, Salesforce, SEMrush",
        },
        {
            "tip": "Mention channel expertise",
            "reason": "Specialized channel experience is highly valued",
            "example": "SEO, SEM, Social Media, Email Marketing, Content Marketing",
        },
    ],
    "finance": [
        {
            "tip": "Include certifications prominently",
            "reason": "CPA, CFA, etc. are often required keywords",
            "example": 'List in dedicated section: "Certifications: CPA, CFA Level II"',
        },
        {
            "tip": "Quantify financial impacts",
            "reason": "Finance roles are measured by dollars and percentages",
            "example": '"Managed $50M portfolio" or "Reduced costs by 15%"',
        },
        {
            "tip": "Mention regulatory compliance",
            "reason": "Compliance knowledge is critical and searchable",
            "example": "SOX, GAAP, SEC reporting, Internal Controls",
        },
    ],
    "general": [
        {
            "tip": "Use industry-standard job titles",
            "reason": "Recruiters search for specific titles",
            "example": '"Project Manager" not "Project Ninja" or "PM Extraordinaire"',
        },
        {
            "tip": "Include soft skills with examples",
            "reason": "ATS searches for soft skills too",
            "example": '"Leadership: Managed cross-functional team of 12"',
        },
        {
            "tip": "Mirror job description language",
            "reason": "ATS matches your resume to the job posting",
            "example": 'If JD says "stakeholder management", use that exact phrase',
        },
    ],
}

QUICK_WIN_REASON = "High impact with minimal time investment"
HEAVY_LIFT_REASON = "Significant effort required but critical for ATS success"
BOOST_REASON = "Important improvement that will significantly boost your score"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def effort_for(check_name: str) -> str:
    return CHECK_EFFORT.get(check_name, "medium")


def priority_score(impact: str, effort: str) -> int:
    return int(round(IMPACT_WEIGHTS.get(impact, 50) / EFFORT_WEIGHTS.get(effort, 50) * 100))


def priority_label(score: float) -> str:
    if score >= 150:
        return "Urgent"
    if score >= 100:
        return "High Priority"
    if score >= 50:
        return "Medium Priority"
    return "Low Priority"


def display_bucket(category: str, check_name: str) -> str:
    if category in {"formatting", "structure"}:
        return category
    if category == "content":
        lowered = check_name.lower()
        if "keyword" in lowered or "skills" in lowered:
            return "keywords"
        return "content"
    return "atsCompatibility"


def format_minutes(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} minutes"
    hours, remainder = divmod(minutes, 60)
    if remainder == 0:
        return f"{hours} hour{'s' if hours > 1 else ''}"
    return f"{hours}h {remainder}m"


def estimate_time(recommendations: Sequence[Recommendation]) -> TimeEstimate:
    minutes = sum(EFFORT_MINUTES.get(rec.effort, DEFAULT_EFFORT_MINUTES) for rec in recommendations)
    return TimeEstimate(minutes=minutes, hours=round(minutes / 60, 1), formatted=format_minutes(minutes))


def industry_tips(industry: str | None) -> list[IndustryTip]:
    rows = INDUSTRY_TIPS.get(industry or "general", INDUSTRY_TIPS["general"])
    return [IndustryTip(**row) for row in rows]


class RecommendationsEngine:
    """Turns failed checks into prioritized, time-estimated action items."""

    def __init__(
        self,
        quick_wins_limit: int | None = None,
        major_improvements_limit: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.quick_wins_limit = (
            quick_wins_limit
            if quick_wins_limit is not None
            else get_scoring_int("recommendations.quick_wins_limit", 5, min_value=0, max_value=50)
        )
        self.major_improvements_limit = (
            major_improvements_limit
            if major_improvements_limit is not None
            else get_scoring_int("recommendations.major_improvements_limit", 8, min_value=0, max_value=50)
        )
        self._clock = clock or _utc_now

    def generate(
        self,
        check_results: Sequence[CheckResult],
        score_result: ScoreResult | None = None,
        options: ScanOptions | None = None,
    ) -> RecommendationSet:
        recommendations = self.prioritize(self.build(check_results))
        industry = options.industry if options is not None else None

        return RecommendationSet(
            summary=RecommendationSummary(
                total_recommendations=len(recommendations),
                critical_count=sum(1 for rec in recommendations if rec.impact == "critical"),
                high_count=sum(1 for rec in recommendations if rec.impact == "high"),
                medium_count=sum(1 for rec in recommendations if rec.impact == "medium"),
                low_count=sum(1 for rec in recommendations if rec.impact == "low"),
                estimated_time=estimate_time(recommendations),
            ),
            quick_wins=self.quick_wins(recommendations),
            major_improvements=self.major_improvements(recommendations),
            all_recommendations=recommendations,
            categorized=self.categorize(recommendations),
            industry_tips=industry_tips(industry),
            generated_at=self._clock(),
        )

    @staticmethod
    def build(check_results: Sequence[CheckResult]) -> list[Recommendation]:
        recommendations: list[Recommendation] = []
        for check in check_results:
            if check.passed or not check.recommendation:
                continue
            effort = effort_for(check.check_name)
            score = priority_score(check.impact, effort)
            recommendations.append(
                Recommendation(
                    id=f"rec-{check.check_name}",
                    check_name=check.check_name,
                    category=check.category,
                    issue=check.message,
                    recommendation=check.recommendation,
                    impact=check.impact,
                    severity=check.severity,
                    effort=effort,
                    details=check.details,
                    score=check.score,
                    examples=CHECK_EXAMPLES.get(check.check_name, []),
                    steps=CHECK_STEPS.get(check.check_name, DEFAULT_STEPS),
                    priority_score=score,
                    priority_label=priority_label(score),
                )
            )
        return recommendations

    @staticmethod
    def prioritize(recommendations: Sequence[Recommendation]) -> list[Recommendation]:
        # sorted() is stable, so equal priorities keep check order.
        return sorted(recommendations, key=lambda rec: rec.priority_score, reverse=True)

    def quick_wins(self, recommendations: Sequence[Recommendation]) -> list[Recommendation]:
        picked = [rec for rec in recommendations if rec.impact in HIGH_IMPACT and rec.effort in LOW_EFFORT]
        return [
            rec.model_copy(update={"rank": index, "reason": QUICK_WIN_REASON})
            for index, rec in enumerate(picked[: self.quick_wins_limit], start=1)
        ]

    def major_improvements(self, recommendations: Sequence[Recommendation]) -> list[Recommendation]:
        picked = [rec for rec in recommendations if rec.impact in HIGH_IMPACT]
        return [
            rec.model_copy(
                update={
                    "rank": index,
                    "reason": HEAVY_LIFT_REASON if rec.effort in {"high", "extensive"} else BOOST_REASON,
                }
            )
            for index, rec in enumerate(picked[: self.major_improvements_limit], start=1)
        ]

    @staticmethod
    def categorize(recommendations: Sequence[Recommendation]) -> dict[str, list[Recommendation]]:
        buckets: dict[str, list[Recommendation]] = {bucket: [] for bucket in DISPLAY_BUCKETS}
        for rec in recommendations:
            buckets[display_bucket(rec.category, rec.check_name)].append(rec)
        return buckets

    @staticmethod
    def matrix(recommendations: Sequence[Recommendation]) -> RecommendationMatrix:
        matrix = RecommendationMatrix()
        for rec in recommendations:
            high_impact = rec.impact in HIGH_IMPACT
            low_effort = rec.effort in LOW_EFFORT
            if high_impact and low_effort:
                matrix.high_impact_low_effort.append(rec)
            elif high_impact:
                matrix.high_impact_high_effort.append(rec)
            elif low_effort:
                matrix.low_impact_low_effort.append(rec)
            else:
                matrix.low_impact_high_effort.append(rec)
        return matrix

    def export_action_plan(self, recommendation_set: RecommendationSet, fmt: str = "markdown") -> str:
        if fmt == "markdown":
            return self._markdown(recommendation_set)
        if fmt == "checklist":
            return self._checklist(recommendation_set)
        return json.dumps(recommendation_set.model_dump(mode="json"), indent=2, ensure_ascii=False)

    def _markdown(self, recommendation_set: RecommendationSet) -> str:
        lines = ["# Resume Improvement Action Plan", "", f"Generated: {self._clock().date().isoformat()}", ""]

        if recommendation_set.quick_wins:
            lines += ["## Quick Wins (Start Here!)", ""]
            for index, rec in enumerate(recommendation_set.quick_wins, start=1):
                lines += [
                    f"### {index}. {rec.issue}",
                    f"**Impact:** {rec.impact} | **Effort:** {rec.effort}",
                    "",
                    f"**Action:** {rec.recommendation}",
                    "",
                ]
                if rec.steps:
                    lines += ["**Steps:**", *rec.steps, ""]

        if recommendation_set.major_improvements:
            lines += ["## Major Improvements", ""]
            for index, rec in enumerate(recommendation_set.major_improvements, start=1):
                lines += [
                    f"### {index}. {rec.issue}",
                    f"**Impact:** {rec.impact} | **Effort:** {rec.effort}",
                    "",
                    f"**Action:** {rec.recommendation}",
                    "",
                ]
        return "\n".join(lines) + "\n"

    @staticmethod
    def _checklist(recommendation_set: RecommendationSet) -> str:
        lines = ["Resume Improvement Checklist", "═" * 50, ""]
        for index, rec in enumerate(recommendation_set.all_recommendations[:20], start=1):
            lines += [f"☐ {index}. [{rec.impact.upper()}] {rec.issue}", f"   {rec.recommendation}", ""]
        return "\n".join(lines) + "\n"
