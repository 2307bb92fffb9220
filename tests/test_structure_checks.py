import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from atsflow.analyzer.checks import StructureChecks  # noqa: E402
from atsflow.analyzer.checks.structure import extract_contact_info, is_unclear_title  # noqa: E402
from atsflow.schemas.resume import ResumeDocument, ScanOptions  # noqa: E402
from tests.resume_fixtures import strong_options, strong_resume, weak_resume  # noqa: E402

NEEDS_SECTIONS = (
    "standardSectionHeaders",
    "chronologicalOrder",
    "clearJobTitles",
    "properSectionOrdering",
    "noOrphanedContent",
    "consistentHeadingHierarchy",
)


class StructureChecksTests(unittest.TestCase):
    def setUp(self):
        self.module = StructureChecks()
        self.options = ScanOptions()

    def _run(self, check_name, payload):
        return self.module.run_check(check_name, ResumeDocument.model_validate(payload), self.options)

    def test_strong_resume_passes_every_structure_check(self):
        document = ResumeDocument.model_validate(strong_resume())
        results = self.module.run_all(document, ScanOptions.model_validate(strong_options()))
        self.assertEqual(len(results), 10)
        self.assertEqual([r.check_name for r in results if not r.passed], [])

    def test_empty_document_returns_failed_checks(self):
        results = {r.check_name: r for r in self.module.run_all(ResumeDocument(), self.options)}
        for name in NEEDS_SECTIONS:
            with self.subTest(check=name):
                self.assertFalse(results[name].passed)
                self.assertEqual(results[name].severity, "error")
                self.assertEqual(results[name].score, 0)
                self.assertEqual(results[name].impact, "critical")
        self.assertTrue(results["clearSectionBoundaries"].passed)

    def test_non_standard_headers(self):
        result = self._run("standardSectionHeaders", weak_resume())
        self.assertFalse(result.passed)
        self.assertEqual(result.score, 70)
        self.assertEqual(result.details["non_standard_headers"], ["Header", "My Jobs"])

    def test_contact_fields_and_fallback_search(self):
        contact = extract_contact_info(ResumeDocument.model_validate(strong_resume()))
        self.assertEqual(contact["name"], "Jane Doe")
        self.assertEqual(contact["location"], "Austin, Texas")

        loose = {
            "sections": [
                {"type": "summary", "title": "Summary", "content": "Reach me at sam@example.org or 555-987-6543."}
            ]
        }
        result = self._run("parseableContactInfo", loose)
        self.assertFalse(result.passed)
        self.assertEqual(result.score, 67)
        self.assertEqual(result.details["missing"], ["name"])

    def test_reverse_chronological_order(self):
        result = self._run("chronologicalOrder", weak_resume())
        self.assertFalse(result.passed)
        self.assertEqual(result.score, 80)

    def test_no_experience_section_passes_ordering(self):
        result = self._run("chronologicalOrder", {"sections": [{"type": "skills", "title": "Skills"}]})
        self.assertTrue(result.passed)

    def test_acronyms_need_spelling_out(self):
        payload = {
            "sections": [
                {
                    "type": "skills",
                    "title": "Skills",
                    "content": ["Application Programming Interface (API) design", "GCP", "PhD research"],
                }
            ]
        }
        result = self._run("acronymsSpelledOut", payload)
        self.assertFalse(result.passed)
        self.assertEqual(result.details["unspelled_out"], ["GCP"])
        self.assertEqual(result.score, 90)

    def test_job_title_clarity(self):
        self.assertTrue(is_unclear_title("Code Ninja"))
        self.assertTrue(is_unclear_title("Consultant"))
        self.assertFalse(is_unclear_title("Engineer"))
        self.assertFalse(is_unclear_title("Data Analyst"))

        result = self._run("clearJobTitles", weak_resume())
        self.assertFalse(result.passed)
        self.assertEqual(result.score, 50)

    def test_section_ordering_penalties(self):
        payload = {
            "sections": [
                {"type": "education", "title": "Education", "content": ["State University"]},
                {"type": "experience", "title": "Experience", "content": ["Led team"]},
                {"type": "summary", "title": "Summary", "content": "Engineer."},
                {"type": "contact", "title": "Contact", "content": {"name": "Jane"}},
            ]
        }
        result = self._run("properSectionOrdering", payload)
        self.assertEqual(result.score, 75)
        self.assertFalse(result.passed)
        self.assertIn("Move contact information to the top", result.details["suggestions"])

    def test_orphaned_content(self):
        payload = {
            "sections": [
                {"type": "projects", "title": "Projects", "content": {"items": []}},
                {"type": "experience", "title": "Experience", "content": {"items": [{"company": "Acme"}, "  "]}},
            ]
        }
        result = self._run("noOrphanedContent", payload)
        self.assertFalse(result.passed)
        self.assertEqual(result.score, 70)

    def test_heading_levels_may_not_skip(self):
        result = self._run("consistentHeadingHierarchy", weak_resume())
        self.assertFalse(result.passed)
        self.assertEqual(result.score, 90)

    def test_untitled_sections_blur_boundaries(self):
        payload = {"sections": [{"content": "Loose text"}, {"type": "skills", "title": "Skills"}]}
        result = self._run("clearSectionBoundaries", payload)
        self.assertFalse(result.passed)
        self.assertEqual(result.score, 90)

    def test_complex_table_markers(self):
        payload = {"sections": [{"type": "skills", "title": "Skills", "metadata": {"layout": "colspan rowspan"}}]}
        result = self._run("noComplexTables", payload)
        self.assertFalse(result.passed)
        self.assertEqual(result.score, 40)
        self.assertEqual(result.severity, "high")

    def test_raising_check_becomes_error_result(self):
        class BrokenStructure(StructureChecks):
            def no_complex_tables(self, document, options):
                raise KeyError("layout")

        results = BrokenStructure().run_all(ResumeDocument.model_validate(strong_resume()))
        self.assertEqual(len(results), 10)
        broken = results[-1]
        self.assertEqual(broken.severity, "error")
        self.assertFalse(broken.passed)
        self.assertEqual(broken.impact, "low")
        self.assertEqual(broken.message, "Check failed to execute")
        self.assertIn("layout", broken.error)
        self.assertTrue(all(r.severity != "error" for r in results[:-1]))


if __name__ == "__main__":
    unittest.main()
