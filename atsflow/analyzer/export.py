from __future__ import annotations

import csv
import io
import json
from html import escape

from atsflow.schemas.analysis import AnalysisReport

EXPORT_FORMATS = ("json", "csv", "html", "summary")
MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
    "html": "text/html",
    "summary": "text/plain",
}

_CSV_HEADER = ("Check Name", "Category", "Status", "Score", "Severity", "Message")
_RULE = "=" * 60
_THIN_RULE = "-" * 60

_HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <title>ATS Analysis Results</title>
    <style>
        body {{ font-family: Arial, sans-serif; max-width: 1200px; margin: 40px auto; padding: 20px; }}
        .header {{ text-align: center; border-bottom: 3px solid #2563eb; padding-bottom: 20px; }}
        .score {{ font-size: 72px; font-weight: bold; color: #2563eb; }}
        .grade {{ font-size: 48px; color: #64748b; }}
        .check {{ margin: 10px 0; padding: 10px; background: white; border-left: 4px solid #e2e8f0; }}
        .check.passed {{ border-color: #10b981; }}
        .check.failed {{ border-color: #ef4444; }}
    </style>
</head>
<body>
    <div class="header">
        <h1>ATS Analysis Results</h1>
        <div class="score">{score}</div>
        <div class="grade">Grade: {grade}</div>
        <p>{description}</p>
    </div>

    <h2>Check Results</h2>
{checks}
</body>
</html>
"""


def report_payload(report: AnalysisReport) -> dict:
    return report.model_dump(mode="json")


def export_json(report: AnalysisReport, *, pretty: bool = True) -> str:
    if pretty:
        return json.dumps(report_payload(report), indent=2, ensure_ascii=False)
    return json.dumps(report_payload(report), separators=(",", ":"), ensure_ascii=False)


def export_csv(report: AnalysisReport) -> str:
    """One row per check. Text cells are quoted with embedded quotes doubled; the score is left bare."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    buffer.write(",".join(_CSV_HEADER) + "\n")
    for check in report.checks.results:
        writer.writerow(
            [
                check.check_name,
                check.category,
                "PASS" if check.passed else "FAIL",
                check.score,
                check.severity,
                check.message,
            ]
        )
    return buffer.getvalue()


def export_html(report: AnalysisReport) -> str:
    rows = []
    for check in report.checks.results:
        status_class = "passed" if check.passed else "failed"
        status = "✅ PASS" if check.passed else "❌ FAIL"
        rows.append(
            f'    <div class="check {status_class}">\n'
            f"        <strong>{escape(check.check_name)}</strong> - {status}\n"
            f"        <br>{escape(check.message)}\n"
            f"    </div>"
        )
    return _HTML_TEMPLATE.format(
        score=report.score.overall_score,
        grade=escape(report.score.grade),
        description=escape(report.score.grade_description),
        checks="\n".join(rows),
    )


def export_summary(report: AnalysisReport) -> str:
    lines = [
        _RULE,
        "ATSFLOW ATS SCANNER - ANALYSIS SUMMARY",
        _RULE,
        "",
        f"Overall Score: {report.score.overall_score}/100 ({report.score.grade})",
        f"Checks Passed: {report.checks.passed}/{report.checks.total}",
        f"Analysis Date: {report.timestamp.date().isoformat()}",
        "",
        "CATEGORY BREAKDOWN:",
        _THIN_RULE,
    ]
    for category in report.score.breakdown.categories:
        lines.append(f"{category.display_name}: {category.score}/100 ({category.status})")

    lines += ["", "TOP RECOMMENDATIONS:", _THIN_RULE]
    for index, rec in enumerate(report.recommendations.quick_wins[:5], start=1):
        lines += [f"{index}. {rec.issue}", f"   → {rec.recommendation}", ""]
    return "\n".join(lines) + "\n"


def export_report(report: AnalysisReport, fmt: str = "json") -> str:
    """Render a report; unknown formats fall back to compact JSON."""
    if fmt == "json":
        return export_json(report)
    if fmt == "csv":
        return export_csv(report)
    if fmt == "html":
        return export_html(report)
    if fmt == "summary":
        return export_summary(report)
    return export_json(report, pretty=False)
