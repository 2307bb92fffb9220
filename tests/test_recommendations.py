import json
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from atsflow.analyzer.recommendations import (  # noqa: E402
    RecommendationsEngine,
    format_minutes,
    priority_label,
    priority_score,
)
from atsflow.schemas.analysis import CheckResult  # noqa: E402
from atsflow.schemas.resume import ScanOptions  # noqa: E402
from tests.resume_fixtures import fixed_clock  # noqa: E402


def _failed(check_name, impact, category="content", severity="medium"):
    return CheckResult(
        category=category,
        check_name=check_name,
        passed=False,
        score=40,
        severity=severity,
        message=f"{check_name} failed",
        recommendation=f"Fix {check_name}",
        impact=impact,
    )


def _passed(check_name):
    return CheckResult(
        category="formatting",
        check_name=check_name,
        passed=True,
        score=100,
        severity="pass",
        message="ok",
        impact="low",
    )


class RecommendationsTests(unittest.TestCase):
    def setUp(self):
        self.engine = RecommendationsEngine(quick_wins_limit=5, major_improvements_limit=8, clock=fixed_clock)
        self.results = [
            _passed("webSafeFonts"),
            _failed("noTables", "critical", category="formatting", severity="critical"),
            _failed("noPersonalPronouns", "medium"),
            _failed("dedicatedSkillsSection", "critical", severity="high"),
            _failed("consistentDates", "high", category="formatting"),
            _failed("quantifiedAchievements", "high"),
            _failed("chronologicalOrder", "low", category="structure"),
        ]

    def test_priority_is_impact_over_effort(self):
        self.assertEqual(priority_score("critical", "low"), 400)
        self.assertEqual(priority_score("high", "medium"), 150)
        self.assertEqual(priority_score("low", "extensive"), 25)
        self.assertEqual(priority_label(400), "Urgent")
        self.assertEqual(priority_label(100), "High Priority")
        self.assertEqual(priority_label(49), "Low Priority")

    def test_only_failed_checks_become_recommendations(self):
        recommendations = self.engine.build(self.results)
        self.assertEqual(len(recommendations), 6)
        self.assertNotIn("rec-webSafeFonts", [rec.id for rec in recommendations])
        self.assertTrue(all(rec.id == f"rec-{rec.check_name}" for rec in recommendations))

    def test_prioritized_order_is_stable(self):
        recommendations = self.engine.prioritize(self.engine.build(self.results))
        scores = [rec.priority_score for rec in recommendations]
        self.assertEqual(scores, sorted(scores, reverse=True))
        # consistentDates (high/low) = 300 and dedicatedSkillsSection (critical/medium) = 200
        self.assertEqual(
            [rec.check_name for rec in recommendations],
            [
                "consistentDates",
                "noPersonalPronouns",
                "dedicatedSkillsSection",
                "noTables",
                "quantifiedAchievements",
                "chronologicalOrder",
            ],
        )

    def test_equal_priorities_keep_input_order(self):
        results = [_failed("webSafeFonts", "medium"), _failed("noUnicodeBullets", "medium")]
        recommendations = self.engine.prioritize(self.engine.build(results))
        self.assertEqual([rec.check_name for rec in recommendations], ["webSafeFonts", "noUnicodeBullets"])

    def test_quick_wins_are_high_impact_low_effort_subset(self):
        recommendation_set = self.engine.generate(self.results)
        all_ids = {rec.id for rec in recommendation_set.all_recommendations}
        self.assertTrue(recommendation_set.quick_wins)
        for rec in recommendation_set.quick_wins:
            self.assertIn(rec.id, all_ids)
            self.assertIn(rec.impact, {"critical", "high"})
            self.assertIn(rec.effort, {"low", "medium"})
        self.assertEqual([rec.rank for rec in recommendation_set.quick_wins], [1, 2])

    def test_quick_wins_limit(self):
        engine = RecommendationsEngine(quick_wins_limit=1, major_improvements_limit=2, clock=fixed_clock)
        recommendation_set = engine.generate(self.results)
        self.assertEqual(len(recommendation_set.quick_wins), 1)
        self.assertEqual(len(recommendation_set.major_improvements), 2)

    def test_summary_counts_and_time_estimate(self):
        summary = self.engine.generate(self.results).summary
        self.assertEqual(summary.total_recommendations, 6)
        self.assertEqual(summary.critical_count, 2)
        self.assertEqual(summary.high_count, 2)
        self.assertEqual(summary.low_count, 1)
        # low 15 + low 15 + medium 45 + medium 45 + extensive 180 + high 90
        self.assertEqual(summary.estimated_time.minutes, 390)
        self.assertEqual(summary.estimated_time.formatted, "6h 30m")
        self.assertEqual(format_minutes(120), "2 hours")
        self.assertEqual(format_minutes(20), "20 minutes")

    def test_categorized_buckets(self):
        buckets = self.engine.generate(self.results).categorized
        self.assertEqual(sorted(buckets), ["atsCompatibility", "content", "formatting", "keywords", "structure"])
        self.assertEqual([rec.check_name for rec in buckets["keywords"]], ["dedicatedSkillsSection"])
        self.assertEqual([rec.check_name for rec in buckets["structure"]], ["chronologicalOrder"])

    def test_industry_tips_follow_options(self):
        recommendation_set = self.engine.generate(self.results, options=ScanOptions(industry="finance"))
        self.assertEqual(recommendation_set.industry_tips[0].tip, "Include certifications prominently")
        fallback = self.engine.generate(self.results, options=ScanOptions(industry="aerospace"))
        self.assertEqual(fallback.industry_tips[0].tip, "Use industry-standard job titles")

    def test_matrix_quadrants(self):
        matrix = self.engine.matrix(self.engine.build(self.results))
        self.assertEqual(
            sorted(rec.check_name for rec in matrix.high_impact_low_effort),
            ["consistentDates", "dedicatedSkillsSection"],
        )
        self.assertEqual(
            sorted(rec.check_name for rec in matrix.high_impact_high_effort),
            ["noTables", "quantifiedAchievements"],
        )
        self.assertEqual(
            [rec.check_name for rec in matrix.low_impact_low_effort], ["noPersonalPronouns", "chronologicalOrder"]
        )
        self.assertEqual(matrix.low_impact_high_effort, [])

    def test_action_plan_exports(self):
        recommendation_set = self.engine.generate(self.results)
        markdown = self.engine.export_action_plan(recommendation_set, "markdown")
        self.assertTrue(markdown.startswith("# Resume Improvement Action Plan"))
        self.assertIn("Generated: 2026-01-15", markdown)
        self.assertIn("## Quick Wins (Start Here!)", markdown)

        checklist = self.engine.export_action_plan(recommendation_set, "checklist")
        self.assertIn("☐ 1. [HIGH] consistentDates failed", checklist)

        as_json = json.loads(self.engine.export_action_plan(recommendation_set, "json"))
        self.assertEqual(len(as_json["all_recommendations"]), 6)

    def test_no_failures_means_no_recommendations(self):
        recommendation_set = self.engine.generate([_passed("webSafeFonts")])
        self.assertEqual(recommendation_set.all_recommendations, [])
        self.assertEqual(recommendation_set.summary.estimated_time.formatted, "0 minutes")


if __name__ == "__main__":
    unittest.main()
