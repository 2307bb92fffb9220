import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from scripts.analyze_resume import main  # noqa: E402
from tests.resume_fixtures import STRONG_RESUME_TEXT, strong_options, strong_resume, weak_resume  # noqa: E402


class AnalyzeResumeCliTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _run(self, *argv):
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = main(list(argv))
        return code, stdout.getvalue(), stderr.getvalue()

    def _write_json(self, name, payload):
        path = self.tmp / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def test_json_request_body_to_csv_file(self):
        source = self._write_json("request.json", {"document": strong_resume(), "options": strong_options()})
        out = self.tmp / "reports" / "report.csv"
        code, stdout, _ = self._run(str(source), "--format", "csv", "--out", str(out))
        self.assertEqual(code, 0)
        self.assertIn("Wrote csv output", stdout)
        lines = out.read_text(encoding="utf-8").splitlines()
        self.assertEqual(lines[0], "Check Name,Category,Status,Score,Severity,Message")
        self.assertEqual(len(lines), 31)

    def test_bare_document_summary(self):
        source = self._write_json("resume.json", strong_resume())
        code, stdout, _ = self._run(str(source), "--industry", "Software")
        self.assertEqual(code, 0)
        self.assertIn("ATSFLOW ATS SCANNER - ANALYSIS SUMMARY", stdout)

    def test_text_file_quick_scan(self):
        source = self.tmp / "resume.txt"
        source.write_text(STRONG_RESUME_TEXT, encoding="utf-8")
        code, stdout, _ = self._run(str(source), "--quick")
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(stdout)["checks_run"], 8)

    def test_quick_scan_rejects_format(self):
        source = self._write_json("resume.json", strong_resume())
        with self.assertRaises(SystemExit) as ctx:
            self._run(str(source), "--quick", "--format", "csv")
        self.assertEqual(ctx.exception.code, 2)

    def test_path_to_target(self):
        source = self._write_json("weak.json", weak_resume())
        code, stdout, _ = self._run(str(source), "--target", "100")
        self.assertEqual(code, 0)
        body = json.loads(stdout)
        self.assertFalse(body["achieved"])
        self.assertGreater(body["recommendations_needed"], 0)

    def test_errors_exit_with_code_two(self):
        code, _, stderr = self._run(str(self.tmp / "missing.pdf"))
        self.assertEqual(code, 2)
        self.assertTrue(stderr.startswith("error:"))

        unsupported = self.tmp / "resume.rtf"
        unsupported.write_text("{\\rtf1 hello}", encoding="utf-8")
        self.assertEqual(self._run(str(unsupported))[0], 2)

        self.assertEqual(self._run(str(self._write_json("list.json", ["not", "a", "document"])))[0], 2)

        out_of_range = self._write_json("resume.json", strong_resume())
        self.assertEqual(self._run(str(out_of_range), "--target", "120")[0], 2)


if __name__ == "__main__":
    unittest.main()
