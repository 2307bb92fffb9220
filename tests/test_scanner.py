import json
import sqlite3
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from atsflow.analyzer import ScanInputError, build_scanner  # noqa: E402
from atsflow.analyzer.export import export_csv  # noqa: E402
from atsflow.analyzer.scanner import coerce_document  # noqa: E402
from atsflow.history import InMemoryScanHistory  # noqa: E402
from atsflow.schemas.analysis import AnalysisReport, ScanError  # noqa: E402
from tests.resume_fixtures import FIXED_NOW, fixed_clock, strong_options, strong_resume, weak_resume  # noqa: E402

SECTION_DEPENDENT_CHECKS = (
    "standardSectionHeaders",
    "chronologicalOrder",
    "clearJobTitles",
    "properSectionOrdering",
    "noOrphanedContent",
    "consistentHeadingHierarchy",
    "dedicatedSkillsSection",
)


def documents_with_numeric_skills():
    return {"sections": [{"type": "skills", "title": "Skills", "content": [2019, 2020, 3.5, "SQL", ["Go", "Rust"]]}]}


class _BrokenHistory:
    def append(self, entry):
        raise sqlite3.OperationalError("database is locked")

    def entries(self):
        return []


class ScannerTests(unittest.TestCase):
    def setUp(self):
        self.scanner = build_scanner(clock=fixed_clock)

    def _scan(self, document, options=None):
        report = self.scanner.scan(document, options)
        self.assertIsInstance(report, AnalysisReport)
        return report

    def _by_name(self, report):
        return {result.check_name: result for result in report.checks.results}

    def test_full_scan_runs_thirty_checks(self):
        report = self._scan(strong_resume(), strong_options())
        self.assertEqual(report.checks.total, 30)
        self.assertEqual(len({r.check_name for r in report.checks.results}), 30)
        self.assertEqual(report.checks.passed + report.checks.failed, 30)
        self.assertEqual(report.version, "2.0.0")
        self.assertEqual(report.timestamp, FIXED_NOW)
        self.assertEqual(sorted(report.summaries), ["content", "formatting", "structure"])
        self.assertEqual(report.summaries["formatting"].total, 10)

    def test_strong_resume_report(self):
        report = self._scan(strong_resume(), strong_options())
        results = self._by_name(report)
        self.assertGreaterEqual(report.checks.passed, 28)
        self.assertFalse(results["appropriateLength"].passed)
        self.assertTrue(0 <= report.score.overall_score <= 100)
        self.assertGreaterEqual(report.score.overall_score, 80)
        self.assertEqual(report.metadata.file_format, "pdf")
        self.assertEqual(report.metadata.target_industry, "software")
        self.assertEqual(report.metadata.section_count, 5)
        self.assertGreater(report.metadata.word_count, 50)

    def test_weak_resume_scores_below_strong(self):
        strong = self._scan(strong_resume(), strong_options())
        weak = self._scan(weak_resume())
        self.assertLess(weak.score.overall_score, strong.score.overall_score)
        self.assertEqual(weak.metadata.file_format, "unknown")
        self.assertEqual(weak.metadata.target_industry, "general")
        ids = [rec.id for rec in weak.recommendations.all_recommendations]
        self.assertIn("rec-noTables", ids)

    def test_scan_is_deterministic_apart_from_timing(self):
        first = self._scan(strong_resume(), strong_options())
        second = self._scan(strong_resume(), strong_options())
        self.assertEqual(
            first.model_dump(exclude={"execution_time"}),
            second.model_dump(exclude={"execution_time"}),
        )

    def test_missing_document_returns_error_result(self):
        result = self.scanner.scan(None)
        self.assertIsInstance(result, ScanError)
        self.assertTrue(result.error)
        self.assertEqual(result.message, "Resume data is required")
        self.assertEqual(result.timestamp, FIXED_NOW)

        not_an_object = self.scanner.scan(["not", "a", "document"])
        self.assertIsInstance(not_an_object, ScanError)
        self.assertEqual(not_an_object.message, "Resume data must be an object with a 'sections' list")

        with self.assertRaises(ScanInputError):
            self.scanner.scan_or_raise(None)

    def test_loosely_typed_documents_still_produce_reports(self):
        documents = {
            "numeric_skill_items": {"sections": [{"type": "skills", "title": "Skills", "content": [1, 2, 3, None]}]},
            "null_metadata": {
                "sections": [{"type": "summary", "title": "Summary", "content": "Backend engineer", "metadata": None}]
            },
            "numeric_item_title": {
                "sections": [{"type": "experience", "title": "Experience", "content": [{"title": 2021, "company": "Acme"}]}]
            },
            "list_description": {
                "sections": [
                    {
                        "type": "experience",
                        "title": "Experience",
                        "content": [{"title": "Engineer", "description": ["Led a team of 5", "Cut costs by 20%"]}],
                    }
                ]
            },
            "bare_string_section": {"sections": ["Jane Doe jane@example.com", {"type": "skills", "content": ["Python"]}]},
            "odd_scalars": {
                "sections": [{"type": 7, "title": ["Work", "History"], "level": "h2", "content": 42}],
                "customization": "Arial",
            },
            "sections_not_a_list": {"sections": "not a list"},
        }
        for name, document in documents.items():
            with self.subTest(document=name):
                report = self._scan(document)
                self.assertEqual(len(report.checks.results), 30)
                self.assertTrue(0 <= report.score.overall_score <= 100)

    def test_loose_values_are_coerced_to_text(self):
        skills = self._by_name(self._scan(documents_with_numeric_skills()))["dedicatedSkillsSection"]
        self.assertEqual(skills.details["skill_count"], 5)

        document = coerce_document(
            {
                "sections": [
                    "Jane Doe",
                    {
                        "type": "experience",
                        "title": 2024,
                        "level": "h2",
                        "metadata": None,
                        "content": [{"title": 2021, "description": ["Led a team", "Cut costs"], "bullets": 3}],
                    },
                ]
            }
        )
        bare, experience = document.sections
        self.assertIsNone(bare.type)
        self.assertEqual(bare.content.text, "Jane Doe")
        self.assertEqual(experience.title, "2024")
        self.assertEqual(experience.level, 2)
        self.assertEqual(experience.metadata, {})
        item = experience.items[0]
        self.assertEqual(item.title, "2021")
        self.assertEqual(item.description, "Led a team\nCut costs")
        self.assertEqual(item.bullets, ["3"])

    def test_zero_sections_scores_low_without_raising(self):
        report = self._scan({"sections": []})
        results = self._by_name(report)
        for name in SECTION_DEPENDENT_CHECKS:
            with self.subTest(check=name):
                self.assertFalse(results[name].passed)
                self.assertIn(results[name].severity, {"error", "high"})
                self.assertLessEqual(results[name].score, 50)
        self.assertTrue(0 <= report.score.overall_score <= 100)
        self.assertEqual(report.metadata.word_count, 0)

    def test_skills_only_document(self):
        report = self._scan(
            {"sections": [{"type": "skills", "title": "Skills", "content": ["Python", "Go", "SQL", "Docker", "Linux"]}]}
        )
        results = self._by_name(report)
        self.assertTrue(results["dedicatedSkillsSection"].passed)
        self.assertEqual(results["dedicatedSkillsSection"].details["skill_count"], 5)
        self.assertFalse(results["appropriateLength"].passed)

    def test_half_quantified_bullets_in_full_scan(self):
        report = self._scan(
            {
                "sections": [
                    {
                        "type": "experience",
                        "title": "Experience",
                        "content": {"items": ["Increased sales by 25%", "Helped the team"]},
                    }
                ]
            }
        )
        quantified = self._by_name(report)["quantifiedAchievements"]
        self.assertTrue(quantified.passed)
        self.assertEqual(quantified.score, 100)

    def test_file_format_option(self):
        pdf = self._by_name(self._scan(strong_resume(), {"fileFormat": "pdf"}))["supportedFileFormat"]
        self.assertEqual((pdf.score, pdf.passed), (100, True))
        rtf = self._by_name(self._scan(strong_resume(), {"fileFormat": "rtf"}))["supportedFileFormat"]
        self.assertEqual((rtf.score, rtf.passed), (50, False))

    def test_comparing_a_resume_to_itself_is_a_tie_won_by_a(self):
        comparison = self.scanner.compare_resumes(strong_resume(), strong_resume(), strong_options())
        self.assertEqual(comparison.difference.score, 0)
        self.assertEqual(comparison.difference.passed, 0)
        self.assertEqual(comparison.difference.better, "Resume A")

    def test_compare_picks_the_better_resume(self):
        comparison = self.scanner.compare_resumes(weak_resume(), strong_resume())
        self.assertGreater(comparison.difference.score, 0)
        self.assertEqual(comparison.difference.better, "Resume B")
        self.assertEqual(comparison.details["resume_a"].score.overall_score, comparison.resume_a.score)

        with self.assertRaises(ScanInputError):
            self.scanner.compare_resumes(None, strong_resume())

    def test_quick_scan_keeps_the_critical_subset(self):
        quick = self.scanner.quick_scan(strong_resume(), strong_options())
        self.assertEqual(quick.type, "quick-scan")
        self.assertEqual(quick.checks_run, 8)
        self.assertEqual(
            {r.check_name for r in quick.results},
            {
                "noTables",
                "noMultiColumn",
                "parseableContactInfo",
                "standardSectionHeaders",
                "dedicatedSkillsSection",
                "quantifiedAchievements",
                "noTyposOrGrammar",
                "supportedFileFormat",
            },
        )
        self.assertEqual(quick.score, 100)
        self.assertEqual(quick.grade, "A+")

        with self.assertRaises(ScanInputError):
            self.scanner.quick_scan(None)

    def test_path_to_score(self):
        report = self._scan(weak_resume())
        reached = self.scanner.get_path_to_score(report, 0)
        self.assertTrue(reached.achieved)
        self.assertEqual(reached.recommendations, [])

        path = self.scanner.get_path_to_score(report, 100)
        self.assertFalse(path.achieved)
        self.assertEqual(path.gap, 100 - report.score.overall_score)
        self.assertEqual(path.recommendations_needed, len(path.recommendations))
        self.assertTrue(
            path.estimated_gain >= path.gap
            or path.recommendations_needed == len(report.recommendations.all_recommendations)
        )
        self.assertEqual(
            [rec.id for rec in path.recommendations],
            [rec.id for rec in report.recommendations.all_recommendations[: path.recommendations_needed]],
        )

        for target in (-1, 101):
            with self.assertRaises(ScanInputError):
                self.scanner.get_path_to_score(report, target)

    def test_json_export_matches_report(self):
        report = self._scan(strong_resume(), strong_options())
        exported = self.scanner.export_results(report, "json")
        self.assertEqual(json.loads(exported), report.model_dump(mode="json"))

        compact = self.scanner.export_results(report, "yaml")
        self.assertNotIn("\n", compact)
        self.assertEqual(json.loads(compact), report.model_dump(mode="json"))

    def test_csv_export_quotes_text_cells(self):
        report = self._scan(strong_resume(), strong_options())
        first = report.checks.results[0]
        report.checks.results[0] = first.model_copy(update={"message": 'Use a "Skills" header'})

        lines = export_csv(report).splitlines()
        self.assertEqual(lines[0], "Check Name,Category,Status,Score,Severity,Message")
        self.assertEqual(len(lines), 31)
        self.assertEqual(
            lines[1],
            f'"{first.check_name}","{first.category}","PASS",{first.score},"{first.severity}","Use a ""Skills"" header"',
        )

    def test_html_and_summary_exports(self):
        report = self._scan(strong_resume(), strong_options())
        report.checks.results[0] = report.checks.results[0].model_copy(update={"message": "<b>bold</b>"})

        html = self.scanner.export_results(report, "html")
        self.assertIn("<h1>ATS Analysis Results</h1>", html)
        self.assertIn(f'<div class="score">{report.score.overall_score}</div>', html)
        self.assertIn("&lt;b&gt;bold&lt;/b&gt;", html)

        summary = self.scanner.export_results(report, "summary")
        self.assertIn("ATSFLOW ATS SCANNER - ANALYSIS SUMMARY", summary)
        self.assertIn(f"Checks Passed: {report.checks.passed}/30", summary)
        self.assertIn("Analysis Date: 2026-01-15", summary)
        self.assertIn("CATEGORY BREAKDOWN:", summary)

    def test_info(self):
        info = self.scanner.info()
        self.assertEqual(info.total_checks, 30)
        self.assertEqual(info.categories, ["formatting", "structure", "content"])
        self.assertEqual(info.version, "2.0.0")


class ScannerHistoryTests(unittest.TestCase):
    def test_scans_are_recorded(self):
        scanner = build_scanner(history=InMemoryScanHistory(max_entries=10), clock=fixed_clock)
        first = scanner.scan(strong_resume(), strong_options())
        scanner.scan(strong_resume(), strong_options())
        scanner.scan(None)

        entries = scanner.history_entries()
        self.assertEqual(len(entries), 2)
        self.assertEqual(entries[0].score, first.score.overall_score)
        self.assertEqual(entries[0].total, 30)

        stats = scanner.history_statistics()
        self.assertEqual(stats.total_scans, 2)
        self.assertEqual(stats.improvement, 0)
        self.assertEqual(scanner.score_trend().trend, "stable")

    def test_no_history_sink(self):
        scanner = build_scanner(clock=fixed_clock)
        scanner.scan(strong_resume())
        self.assertEqual(scanner.history_entries(), [])
        self.assertEqual(scanner.history_statistics().total_scans, 0)
        self.assertEqual(scanner.score_trend().trend, "insufficient-data")

    def test_history_failures_do_not_fail_the_scan(self):
        scanner = build_scanner(history=_BrokenHistory(), clock=fixed_clock)
        with self.assertLogs("atsflow.analyzer.scanner", level="WARNING") as captured:
            report = scanner.scan(strong_resume())
        self.assertIsInstance(report, AnalysisReport)
        self.assertIn("ats_history_append_failed", captured.output[0])


if __name__ == "__main__":
    unittest.main()
