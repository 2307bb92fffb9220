from __future__ import annotations

import re
from typing import Any

from atsflow.schemas.analysis import CheckOutcome
from atsflow.schemas.resume import ResumeDocument, ResumeItem, ResumeSection, ScanOptions

from ..text import header_fields, is_empty_content, serialize_document
from .base import CheckModule, failed_check

STANDARD_HEADERS = (
    "contact",
    "summary",
    "professional summary",
    "objective",
    "experience",
    "work experience",
    "professional experience",
    "employment",
    "education",
    "academic background",
    "skills",
    "technical skills",
    "core competencies",
    "certifications",
    "licenses",
    "projects",
    "publications",
    "awards",
    "achievements",
    "volunteer",
    "volunteering",
    "languages",
    "references",
)
IDEAL_SECTION_ORDER = (
    "contact",
    "summary",
    "experience",
    "education",
    "skills",
    "certifications",
    "projects",
    "awards",
    "volunteer",
    "references",
)
HEADER_SUGGESTIONS = {
    "about": "Summary",
    "bio": "Professional Summary",
    "jobs": "Experience",
    "work": "Experience",
    "career": "Experience",
    "schooling": "Education",
    "learning": "Education",
    "expertise": "Skills",
    "abilities": "Skills",
    "tech": "Technical Skills",
}
# First matching key wins, so the order matters.
SECTION_SYNONYMS = (
    ("contact", "contact"),
    ("header", "contact"),
    ("summary", "summary"),
    ("objective", "summary"),
    ("experience", "experience"),
    ("work", "experience"),
    ("employment", "experience"),
    ("education", "education"),
    ("skills", "skills"),
    ("certifications", "certifications"),
    ("projects", "projects"),
    ("awards", "awards"),
    ("volunteer", "volunteer"),
    ("references", "references"),
)

CONTACT_SECTION_TYPES = {"contact", "header", "personal"}
EXPERIENCE_SECTION_TYPES = {"experience", "work-experience", "employment"}
JOB_TITLE_SECTION_TYPES = {"experience", "work-experience"}
COMMON_ACRONYMS = {"US", "USA", "UK", "PhD", "MBA", "GPA", "ID"}
TITLE_JARGON = ("ninja", "rockstar", "guru", "wizard", "hacker", "jedi", "evangelist")
VAGUE_TITLES = {"specialist", "expert", "professional", "consultant"}
ONE_WORD_TITLES = {"manager", "director", "engineer", "developer", "analyst"}
COMPLEX_TABLE_MARKERS = ("colspan", "rowspan", "merged", "nested-table")

EMAIL_SEARCH_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
EMAIL_FULL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_SEARCH_RE = re.compile(r"(\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
_ACRONYM_RE = re.compile(r"\b[A-Z]{2,}(?![a-z])\b")
_YEAR_RE = re.compile(r"\d{4}")
_NON_DIGIT_RE = re.compile(r"\D")


def normalize_section_type(value: str | None) -> str:
    lowered = (value or "").lower()
    for key, normalized in SECTION_SYNONYMS:
        if key in lowered:
            return normalized
    return value or ""


def _first_field(fields: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = fields.get(key)
        if value:
            return str(value)
    return None


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_FULL_RE.match(email))


def is_valid_phone(phone: str) -> bool:
    digits = _NON_DIGIT_RE.sub("", phone)
    return 10 <= len(digits) <= 15


def extract_contact_info(document: ResumeDocument) -> dict[str, str | None]:
    contact: dict[str, str | None] = {"name": None, "email": None, "phone": None, "location": None}
    if not document.sections:
        return contact

    section = next((s for s in document.sections if s.type in CONTACT_SECTION_TYPES), None)
    if section is not None:
        fields = header_fields(section)
        contact["name"] = _first_field(fields, "name", "fullName", "full_name")
        contact["email"] = _first_field(fields, "email")
        contact["phone"] = _first_field(fields, "phone", "phoneNumber", "phone_number")
        contact["location"] = _first_field(fields, "location", "address")

    if not contact["email"] or not contact["phone"]:
        serialized = serialize_document(document)
        if not contact["email"]:
            match = EMAIL_SEARCH_RE.search(serialized)
            if match:
                contact["email"] = match.group(0)
        if not contact["phone"]:
            match = PHONE_SEARCH_RE.search(serialized)
            if match:
                contact["phone"] = match.group(0)
    return contact


def _item_dates(items: list[str | ResumeItem]) -> list[tuple[int, str]]:
    dates: list[tuple[int, str]] = []
    for item in items:
        if isinstance(item, str):
            continue
        date_text = item.date_text()
        end_date = item.end_date or ""
        match = _YEAR_RE.search(f"{date_text} {end_date}")
        if match:
            dates.append((int(match.group(0)), date_text or end_date))
    return dates


def is_unclear_title(title: str) -> bool:
    lowered = title.lower()
    if any(word in lowered for word in TITLE_JARGON):
        return True
    if lowered in VAGUE_TITLES:
        return True
    return len(title.split()) == 1 and lowered not in ONE_WORD_TITLES


def _item_has_text(item: str | ResumeItem) -> bool:
    if isinstance(item, str):
        return bool(item.strip())
    return bool(item.text or item.description or item.headline() or item.bullets)


class StructureChecks(CheckModule):
    category = "structure"
    checks = (
        "standardSectionHeaders",
        "parseableContactInfo",
        "chronologicalOrder",
        "acronymsSpelledOut",
        "clearJobTitles",
        "properSectionOrdering",
        "noOrphanedContent",
        "consistentHeadingHierarchy",
        "clearSectionBoundaries",
        "noComplexTables",
    )

    def standard_section_headers(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        if not document.sections:
            return failed_check("No sections found in resume")

        non_standard: list[str] = []
        for section in document.sections:
            header = section.label.lower().strip()
            if not header:
                continue
            if not any(std in header or header in std for std in STANDARD_HEADERS):
                non_standard.append(section.label)

        passed = not non_standard
        return CheckOutcome(
            passed=passed,
            score=max(50, 100 - len(non_standard) * 15),
            severity="pass" if passed else "medium",
            message=(
                "All section headers use standard terminology recognized by ATS."
                if passed
                else f"{len(non_standard)} non-standard section headers detected: {', '.join(non_standard)}"
            ),
            recommendation=(
                None if passed else "Use standard headers: Summary, Experience, Education, Skills, Certifications."
            ),
            impact="medium",
            details={
                "non_standard_headers": non_standard,
                "standard_headers": list(STANDARD_HEADERS[:10]),
                "suggestions": self._suggest_standard_headers(non_standard),
            },
        )

    def parseable_contact_info(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        contact = extract_contact_info(document)
        missing = [field for field in ("name", "email", "phone") if not contact[field]]

        has_email = bool(contact["email"]) and is_valid_email(contact["email"] or "")
        has_phone = bool(contact["phone"]) and is_valid_phone(contact["phone"] or "")
        has_name = bool(contact["name"]) and len(contact["name"] or "") > 2

        passed = not missing and has_email and has_phone and has_name
        found_count = 3 - len(missing)
        return CheckOutcome(
            passed=passed,
            score=int(round(found_count / 3 * 100)),
            severity="pass" if passed else "critical",
            message=(
                "Contact information is complete and parseable by ATS."
                if passed
                else f"Missing or invalid contact info: {', '.join(missing)}"
            ),
            recommendation=(
                None
                if passed
                else "Include full name, valid email address, and phone number in standard formats at the top."
            ),
            impact="critical",
            details={
                "found": {
                    "name": has_name,
                    "email": has_email,
                    "phone": has_phone,
                    "location": bool(contact["location"]),
                },
                "missing": missing,
                "contact_info": contact,
            },
        )

    def chronological_order(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        if not document.sections:
            return failed_check("No sections found")

        experience_sections = [s for s in document.sections if s.type in EXPERIENCE_SECTION_TYPES]
        if not experience_sections:
            return CheckOutcome(
                passed=True,
                score=100,
                severity="pass",
                message="No experience sections found to check ordering.",
                impact="low",
            )

        issues: list[dict[str, Any]] = []
        for section in experience_sections:
            dates = _item_dates(section.items)
            for (year, text), (next_year, next_text) in zip(dates, dates[1:]):
                if year < next_year:
                    issues.append({"section": section.title, "issue": f"{text} appears before {next_text}"})

        ordered = not issues
        return CheckOutcome(
            passed=ordered,
            score=100 if ordered else max(50, 100 - len(issues) * 20),
            severity="pass" if ordered else "medium",
            message=(
                "Experience entries are in reverse chronological order (most recent first)."
                if ordered
                else f"{len(issues)} chronological ordering issues found."
            ),
            recommendation=(
                None if ordered else "Order all experience entries from most recent to oldest (reverse chronological)."
            ),
            impact="medium",
            details={"issues": issues, "correct_order": "Most Recent → Oldest"},
        )

    def acronyms_spelled_out(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        serialized = serialize_document(document)
        acronyms = [
            acronym
            for acronym in dict.fromkeys(_ACRONYM_RE.findall(serialized))
            if acronym not in COMMON_ACRONYMS and len(acronym) <= 6
        ]
        unspelled = [acronym for acronym in acronyms if not self._is_spelled_out(serialized, acronym)]

        passed = not unspelled or not acronyms
        score = 100 if not acronyms else max(60, 100 - len(unspelled) * 10)
        return CheckOutcome(
            passed=passed,
            score=score,
            severity="pass" if passed else "low",
            message=(
                "Acronyms are properly spelled out or are universally recognized."
                if passed
                else f"{len(unspelled)} acronyms may need spelling out: {', '.join(unspelled[:5])}"
            ),
            recommendation=(
                None if passed else 'Spell out acronyms on first use: "Application Programming Interface (API)"'
            ),
            impact="low",
            details={
                "total_acronyms": len(acronyms),
                "unspelled_out": unspelled[:10],
                "examples": ["AWS (Amazon Web Services)", "API (Application Programming Interface)"],
            },
        )

    def clear_job_titles(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        if not document.sections:
            return failed_check("No sections found")

        titles = self._job_titles(document)
        unclear = [title for title in titles if is_unclear_title(title)]
        passed = not unclear
        score = 100 if not titles else max(50, 100 - len(unclear) / len(titles) * 50)
        return CheckOutcome(
            passed=passed,
            score=int(round(score)),
            severity="pass" if passed else "medium",
            message=(
                "Job titles are clear and use standard industry terminology."
                if passed
                else f"{len(unclear)} job titles may be unclear or non-standard: {', '.join(unclear)}"
            ),
            recommendation=(
                None if passed else "Use standard job titles that clearly describe your role. Avoid internal jargon."
            ),
            impact="medium",
            details={
                "total_titles": len(titles),
                "unclear_titles": unclear,
                "good_examples": ["Software Engineer", "Senior Product Manager", "Data Analyst"],
                "bad_examples": ["Code Ninja", "Growth Hacker", "Rockstar Developer"],
            },
        )

    def proper_section_ordering(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        if not document.sections:
            return failed_check("No sections found")

        current_order = [normalize_section_type(section.type or section.title) for section in document.sections]
        order_score = self._order_score(current_order)
        passed = order_score >= 80
        return CheckOutcome(
            passed=passed,
            score=order_score,
            severity="pass" if passed else "low",
            message=(
                "Sections are in a logical order for ATS parsing."
                if passed
                else "Section ordering could be improved for better ATS readability."
            ),
            recommendation=None if passed else f"Recommended order: {' → '.join(IDEAL_SECTION_ORDER)}",
            impact="low",
            details={
                "current_order": current_order,
                "ideal_order": list(IDEAL_SECTION_ORDER),
                "suggestions": self._suggest_better_order(current_order),
            },
        )

    def no_orphaned_content(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        if not document.sections:
            return failed_check("No sections found")

        orphaned: list[dict[str, str]] = []
        for section in document.sections:
            if is_empty_content(section.content):
                orphaned.append({"section": section.label, "reason": "Empty content"})
            empty_items = sum(1 for item in section.items if not _item_has_text(item))
            if empty_items:
                orphaned.append({"section": section.label, "reason": f"{empty_items} empty items"})

        passed = not orphaned
        return CheckOutcome(
            passed=passed,
            score=max(60, 100 - len(orphaned) * 15),
            severity="pass" if passed else "low",
            message=(
                "All sections have proper content with no orphaned elements."
                if passed
                else f"{len(orphaned)} sections with orphaned or empty content detected."
            ),
            recommendation=None if passed else "Remove empty sections or fill them with relevant content.",
            impact="low",
            details={"orphaned_sections": orphaned},
        )

    def consistent_heading_hierarchy(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        if not document.sections:
            return failed_check("No sections found")

        issues = self._heading_issues(document.sections)
        passed = not issues
        return CheckOutcome(
            passed=passed,
            score=max(70, 100 - len(issues) * 10),
            severity="pass" if passed else "low",
            message=(
                "Heading hierarchy is consistent throughout the resume."
                if passed
                else f"{len(issues)} heading hierarchy issues detected."
            ),
            recommendation=(
                None if passed else "Use consistent heading levels: H1 for name, H2 for sections, H3 for subsections."
            ),
            impact="low",
            details={"issues": issues, "recommendation": "H1: Name, H2: Section Titles, H3: Job Titles/Subsections"},
        )

    def clear_section_boundaries(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        if len(document.sections) < 2:
            return CheckOutcome(
                passed=True,
                score=100,
                severity="pass",
                message="Section boundaries are clear.",
                impact="low",
            )

        issues = [
            {"section": index, "issue": "Section has no title"}
            for index, section in enumerate(document.sections, start=1)
            if not section.title and not section.type
        ]
        passed = not issues
        return CheckOutcome(
            passed=passed,
            score=max(70, 100 - len(issues) * 10),
            severity="pass" if passed else "low",
            message=(
                "All sections have clear boundaries and separation."
                if passed
                else f"{len(issues)} section boundary issues detected."
            ),
            recommendation=None if passed else "Ensure each section has a clear title and adequate spacing.",
            impact="low",
            details={"issues": issues},
        )

    def no_complex_tables(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        serialized = serialize_document(document).lower()
        markers = [marker for marker in COMPLEX_TABLE_MARKERS if marker in serialized]
        passed = not markers
        return CheckOutcome(
            passed=passed,
            score=100 if passed else max(30, 100 - len(markers) * 30),
            severity="pass" if passed else "high",
            message=(
                "No complex tables or merged cells detected."
                if passed
                else f"{len(markers)} complex table structures detected."
            ),
            recommendation=(
                None
                if passed
                else "Avoid tables with merged cells, nested tables, or complex layouts. Use simple lists."
            ),
            impact="high",
            details={
                "complex_tables": markers,
                "reason": "Merged cells and nested tables break ATS parsing logic.",
            },
        )

    @staticmethod
    def _suggest_standard_headers(headers: list[str]) -> dict[str, str]:
        suggestions: dict[str, str] = {}
        for header in headers:
            lowered = header.lower()
            suggestions[header] = next(
                (value for key, value in HEADER_SUGGESTIONS.items() if key in lowered),
                "Consider using standard terminology",
            )
        return suggestions

    @staticmethod
    def _is_spelled_out(serialized: str, acronym: str) -> bool:
        pattern = re.compile(r"([A-Z][a-z]+\s+){1,5}\(" + re.escape(acronym) + r"\)", re.IGNORECASE)
        return bool(pattern.search(serialized))

    @staticmethod
    def _job_titles(document: ResumeDocument) -> list[str]:
        titles: list[str] = []
        for section in document.sections:
            if section.type not in JOB_TITLE_SECTION_TYPES:
                continue
            for item in section.items:
                if isinstance(item, ResumeItem) and item.headline():
                    titles.append(item.headline() or "")
        return titles

    @staticmethod
    def _order_score(current_order: list[str]) -> int:
        normalized = [normalize_section_type(entry) for entry in current_order]

        def index_of(name: str) -> int:
            return normalized.index(name) if name in normalized else -1

        contact = index_of("contact")
        summary = index_of("summary")
        experience = index_of("experience")
        education = index_of("education")

        score = 100
        if contact > 0:
            score -= 10
        if summary != -1 and experience != -1 and summary > experience:
            score -= 10
        if experience != -1 and education != -1 and experience > education:
            score -= 5
        return max(0, score)

    @staticmethod
    def _suggest_better_order(current_order: list[str]) -> list[str]:
        normalized = [normalize_section_type(entry) for entry in current_order]
        suggestions: list[str] = []
        if not normalized or normalized[0] != "contact":
            suggestions.append("Move contact information to the top")
        if "experience" in normalized and "education" in normalized:
            if normalized.index("experience") > normalized.index("education"):
                suggestions.append("Consider moving Experience before Education")
        return suggestions

    @staticmethod
    def _heading_issues(sections: list[ResumeSection]) -> list[dict[str, str]]:
        # The candidate name is the implicit H1, so section headings start below it.
        issues: list[dict[str, str]] = []
        previous_level = 1
        for section in sections:
            level = section.level or 2
            if level > previous_level + 1:
                issues.append(
                    {"section": section.label, "issue": f"Skipped heading level (H{previous_level} to H{level})"}
                )
            previous_level = level
        return issues
