from __future__ import annotations

import re
from typing import Any

from atsflow.schemas.analysis import CheckOutcome
from atsflow.schemas.resume import ResumeDocument, ScanOptions

from ..text import serialize_document, serialize_value
from .base import CheckModule

_TABLE_PATTERNS = (
    re.compile(r"\btable\b", re.IGNORECASE),
    re.compile(r"\btd\b", re.IGNORECASE),
    re.compile(r"\btr\b", re.IGNORECASE),
    re.compile(r"<table", re.IGNORECASE),
    re.compile(r"\|.*\|.*\|"),
)
_COLUMN_PATTERNS = (
    re.compile(r"column-count", re.IGNORECASE),
    re.compile(r"columns:", re.IGNORECASE),
    re.compile(r"multicol", re.IGNORECASE),
    re.compile(r"\bfloat:\s*(left|right)", re.IGNORECASE),
)
_IMAGE_PATTERNS = (
    re.compile(r"<img", re.IGNORECASE),
    re.compile(r"\bimage\b", re.IGNORECASE),
    re.compile(r"\.jpg", re.IGNORECASE),
    re.compile(r"\.png", re.IGNORECASE),
    re.compile(r"\.gif", re.IGNORECASE),
    re.compile(r"\.svg", re.IGNORECASE),
    re.compile(r"\bphoto\b", re.IGNORECASE),
)
_TEXT_BOX_PATTERNS = (
    re.compile(r"\btextbox\b", re.IGNORECASE),
    re.compile(r"position:\s*absolute", re.IGNORECASE),
    re.compile(r"position:\s*fixed", re.IGNORECASE),
    re.compile(r"\bfloat\b", re.IGNORECASE),
)
_BACKGROUND_PATTERNS = (
    re.compile(r"background-color:(?!\s*(?:white|transparent|#fff\b|#ffffff\b))", re.IGNORECASE),
    re.compile(r"background:(?!\s*(?:white|transparent|none)\b)", re.IGNORECASE),
)
_BACKGROUND_COLOR_RE = re.compile(r"background-color:\s*([^;}\"'\s\\]+)", re.IGNORECASE)
_NEUTRAL_BACKGROUNDS = {"white", "transparent", "#fff", "#ffffff"}
_UNICODE_BULLET_RE = re.compile(r"[▪▫■□●○◆◇★☆✓✔✖✗➤➢➣⮞]")

# Richer formats first: a bare year is only counted when it is not part of one of them.
_DATE_FORMATS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("MM/YYYY", re.compile(r"\b\d{1,2}/\d{4}\b")),
    ("Month YYYY", re.compile(r"\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+\d{4}\b", re.IGNORECASE)),
    ("YYYY-MM", re.compile(r"\b\d{4}-\d{1,2}\b")),
)
_BARE_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")

SAFE_FONTS = (
    "arial",
    "times new roman",
    "calibri",
    "helvetica",
    "georgia",
    "verdana",
    "courier new",
    "times",
    "trebuchet ms",
    "garamond",
    "inter",
    "roboto",
)
SUPPORTED_FILE_FORMATS = ("pdf", "docx")


def _any_match(patterns: tuple[re.Pattern[str], ...], text: str) -> bool:
    return any(pattern.search(text) for pattern in patterns)


class FormattingChecks(CheckModule):
    category = "formatting"
    checks = (
        "noTables",
        "noMultiColumn",
        "noHeadersFooters",
        "noImages",
        "noTextBoxes",
        "webSafeFonts",
        "noUnicodeBullets",
        "consistentDates",
        "supportedFileFormat",
        "noBackgroundColors",
    )

    def no_tables(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        detected = _any_match(_TABLE_PATTERNS, serialize_document(document))
        return CheckOutcome(
            passed=not detected,
            score=0 if detected else 100,
            severity="critical" if detected else "pass",
            message=(
                "Table-based layouts detected. ATS systems struggle to parse tabular data correctly."
                if detected
                else "No table-based layouts detected."
            ),
            recommendation="Convert tables to simple text sections with clear hierarchies." if detected else None,
            impact="critical",
            details={"reason": "ATS parsers read left-to-right, top-to-bottom. Tables break this flow."},
        )

    def no_multi_column(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        detected = _any_match(_COLUMN_PATTERNS, serialize_document(document))
        return CheckOutcome(
            passed=not detected,
            score=0 if detected else 100,
            severity="critical" if detected else "pass",
            message=(
                "Multi-column layout detected. Columns break ATS parsing flow."
                if detected
                else "Single-column layout detected."
            ),
            recommendation="Use a single-column layout. Stack all content vertically." if detected else None,
            impact="critical",
            details={"reason": "ATS reads line-by-line. Multi-column layouts scramble content order."},
        )

    def no_headers_footers(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        flagged = [
            section.label
            for section in document.sections
            if section.type in {"header", "footer"}
            or section.metadata.get("isHeader")
            or section.metadata.get("isFooter")
        ]
        detected = bool(flagged)
        return CheckOutcome(
            passed=not detected,
            score=30 if detected else 100,
            severity="high" if detected else "pass",
            message=(
                "Headers or footers detected. ATS often ignores or misplaces this content."
                if detected
                else "No headers or footers detected."
            ),
            recommendation="Move all important information (name, contact) into the main body." if detected else None,
            impact="high",
            details={"reason": "Many ATS systems skip header/footer regions entirely.", "sections": flagged},
        )

    def no_images(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        detected = _any_match(_IMAGE_PATTERNS, serialize_document(document))
        return CheckOutcome(
            passed=not detected,
            score=50 if detected else 100,
            severity="medium" if detected else "pass",
            message=(
                "Images or graphics detected. ATS cannot read image content."
                if detected
                else "No images or graphics detected."
            ),
            recommendation="Remove all images, photos, charts, and icons. Use text only." if detected else None,
            impact="medium",
            details={
                "reason": "ATS systems cannot extract text from images or decode graphics.",
                "examples": ["Profile photos", "Charts", "Icons", "Logos", "Infographics"],
            },
        )

    def no_text_boxes(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        detected = _any_match(_TEXT_BOX_PATTERNS, serialize_document(document))
        return CheckOutcome(
            passed=not detected,
            score=20 if detected else 100,
            severity="high" if detected else "pass",
            message=(
                "Text boxes or floating elements detected. These often get skipped by ATS."
                if detected
                else "No text boxes or floating elements detected."
            ),
            recommendation="Use standard paragraphs and bullet points. Avoid positioning elements." if detected else None,
            impact="high",
            details={"reason": "Floating elements break the document flow that ATS parsers expect."},
        )

    def web_safe_fonts(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        fonts = self._extract_fonts(document)
        unsafe = [font for font in fonts if not any(safe in font.lower() for safe in SAFE_FONTS)]
        return CheckOutcome(
            passed=not unsafe,
            score=100 if not unsafe else max(0, 100 - len(unsafe) * 20),
            severity="low" if unsafe else "pass",
            message=(
                f"Non-standard fonts detected: {', '.join(unsafe)}. May not render correctly in ATS."
                if unsafe
                else "All fonts are standard and web-safe."
            ),
            recommendation=(
                "Use standard fonts: Arial, Times New Roman, Calibri, Helvetica, Georgia." if unsafe else None
            ),
            impact="low",
            details={
                "detected_fonts": fonts,
                "unsafe_fonts": unsafe,
                "safe_fonts": ["Arial", "Times New Roman", "Calibri", "Helvetica", "Georgia", "Verdana"],
            },
        )

    def no_unicode_bullets(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        count = 0
        examples: list[str] = []
        for section in document.sections:
            for item in section.items:
                matches = _UNICODE_BULLET_RE.findall(serialize_value(item))
                count += len(matches)
                examples.extend(matches[:3])
        unique_examples = list(dict.fromkeys(examples))[:5]
        return CheckOutcome(
            passed=count == 0,
            score=100 if count == 0 else max(50, 100 - count * 5),
            severity="low" if count else "pass",
            message=(
                f"{count} Unicode or special bullets detected. May not display correctly in ATS."
                if count
                else "Standard bullet points used."
            ),
            recommendation="Use standard keyboard bullets (-, •) or simple dashes/asterisks." if count else None,
            impact="low",
            details={"count": count, "examples": unique_examples, "safe_bullets": ["•", "-", "*", "◦"]},
        )

    def consistent_dates(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        analysis = self._analyze_date_formats(document)
        consistent = analysis["consistent"]
        inconsistencies = analysis["inconsistencies"]
        return CheckOutcome(
            passed=consistent,
            score=100 if consistent else max(50, 100 - inconsistencies * 10),
            severity="pass" if consistent else "low",
            message=(
                "All dates use consistent formatting."
                if consistent
                else f"Found {inconsistencies} different date formats. Inconsistency may confuse ATS."
            ),
            recommendation=(
                None
                if consistent
                else f"Standardize all dates to one format (recommended: {analysis['recommended_format']})."
            ),
            impact="low",
            details={
                "formats": analysis["formats"],
                "recommended_format": analysis["recommended_format"],
                "examples": analysis["examples"],
            },
        )

    def supported_file_format(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        file_format = (options.file_format or "unknown").lower()
        is_supported = file_format in SUPPORTED_FILE_FORMATS
        is_pdf = file_format == "pdf"
        if is_pdf:
            score = 100
        elif file_format == "docx":
            score = 90
        else:
            score = 50

        if not is_supported:
            recommendation: str | None = "Convert your resume to PDF (preferred) or DOCX format."
        elif is_pdf:
            recommendation = None
        else:
            recommendation = "PDF format is slightly preferred over DOCX for consistent rendering."

        return CheckOutcome(
            passed=is_supported,
            score=score,
            severity="pass" if is_supported else "medium",
            message=(
                f"{file_format.upper()} format is widely supported by ATS systems."
                if is_supported
                else f"{file_format.upper()} format may not be compatible with all ATS systems."
            ),
            recommendation=recommendation,
            impact="medium",
            details={
                "current_format": file_format,
                "supported_formats": ["PDF", "DOCX"],
                "best_format": "PDF",
                "reason": "PDF preserves formatting while remaining ATS-parseable.",
            },
        )

    def no_background_colors(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        serialized = serialize_document(document)
        detected = _any_match(_BACKGROUND_PATTERNS, serialized)
        colors = [
            color
            for color in _BACKGROUND_COLOR_RE.findall(serialized)
            if color.lower() not in _NEUTRAL_BACKGROUNDS
        ]
        return CheckOutcome(
            passed=not detected,
            score=70 if detected else 100,
            severity="low" if detected else "pass",
            message=(
                "Background colors or shading detected. May reduce text readability in ATS."
                if detected
                else "No background colors detected."
            ),
            recommendation=(
                "Use white/transparent backgrounds only. Add emphasis with bold or headings." if detected else None
            ),
            impact="low",
            details={
                "colors": colors,
                "reason": "Background colors can reduce contrast and make text harder to parse.",
            },
        )

    @staticmethod
    def _extract_fonts(document: ResumeDocument) -> list[str]:
        fonts: list[str] = []
        customization = document.customization
        if customization is not None:
            for font in (customization.heading_font, customization.body_font):
                if font and font not in fonts:
                    fonts.append(font)
        return fonts or ["Arial"]

    @staticmethod
    def _analyze_date_formats(document: ResumeDocument) -> dict[str, Any]:
        found: list[str] = []
        examples: dict[str, list[str]] = {}

        def record(label: str, sample: str) -> None:
            if label not in found:
                found.append(label)
            examples.setdefault(label, []).append(sample)

        for section in document.sections:
            if section.content is None:
                continue
            remaining = serialize_value(section.content)
            for label, pattern in _DATE_FORMATS:
                match = pattern.search(remaining)
                if match:
                    record(label, match.group(0))
                remaining = pattern.sub(" ", remaining)
            bare = _BARE_YEAR_RE.search(remaining)
            if bare:
                record("YYYY", bare.group(0))

        return {
            "consistent": len(found) <= 1,
            "inconsistencies": max(0, len(found) - 1),
            "formats": found,
            "recommended_format": "Month YYYY (e.g., January 2024)",
            "examples": examples,
        }
