from __future__ import annotations

import re

from atsflow.parsing.models import ParsedDoc
from atsflow.schemas.resume import (
    FieldsContent,
    ItemListContent,
    ResumeDocument,
    ResumeItem,
    ResumeSection,
    TextContent,
)

from .utils import (
    DATE_RANGE_RE,
    EMAIL_RE,
    LOCATION_RE,
    PHONE_RE,
    URL_RE,
    YEAR_RE,
    heading_key,
    is_bullet_like,
    is_contact_or_url,
    looks_like_heading,
    normalize_line,
    split_list_line,
    strip_bullet_prefix,
)

HEADING_SYNONYMS: dict[str, str] = {
    "summary": "summary",
    "professional summary": "summary",
    "career summary": "summary",
    "objective": "summary",
    "career objective": "summary",
    "profile": "summary",
    "professional profile": "summary",
    "about": "summary",
    "about me": "summary",
    "experience": "experience",
    "work experience": "experience",
    "professional experience": "experience",
    "relevant experience": "experience",
    "employment": "experience",
    "employment history": "experience",
    "work history": "experience",
    "career history": "experience",
    "education": "education",
    "academic background": "education",
    "education and training": "education",
    "skills": "skills",
    "technical skills": "skills",
    "core competencies": "skills",
    "key skills": "skills",
    "competencies": "skills",
    "certifications": "certifications",
    "certificates": "certifications",
    "licenses": "certifications",
    "licenses and certifications": "certifications",
    "certifications and licenses": "certifications",
    "projects": "projects",
    "personal projects": "projects",
    "key projects": "projects",
    "achievements": "achievements",
    "accomplishments": "achievements",
    "awards": "achievements",
    "honors and awards": "achievements",
    "languages": "languages",
    "volunteering": "volunteering",
    "volunteer experience": "volunteering",
    "volunteer work": "volunteering",
}

# Sections whose dated lines open a new entry instead of becoming a plain item.
_DATED_ENTRY_SECTIONS = frozenset({"experience", "education", "projects", "volunteering", "certifications"})
_TITLE_SPLIT_RE = re.compile(r"\s+(?:at|@)\s+|\s*\|\s*|\s+[-–—]\s+|\s*,\s*", re.IGNORECASE)
_TRIM_CHARS = " ,;|-–—()"


def section_type_for_heading(line: str, *, allow_custom: bool = True) -> str | None:
    key = heading_key(line).replace("&", "and")
    key = re.sub(r"\s+", " ", key)
    if key in HEADING_SYNONYMS:
        return HEADING_SYNONYMS[key]
    if allow_custom and looks_like_heading(line):
        return re.sub(r"[^a-z0-9]+", "-", key).strip("-") or None
    return None


def _heading_title(line: str) -> str:
    title = normalize_line(line).rstrip(":").strip()
    return title.title() if title.isupper() else title


def _header_section(lines: list[str]) -> ResumeSection | None:
    if not lines:
        return None

    fields: dict[str, str] = {}
    links: list[str] = []
    for line in lines:
        email = EMAIL_RE.search(line)
        if email and "email" not in fields:
            fields["email"] = email.group(0)
        phone = PHONE_RE.search(line)
        if phone and "phone" not in fields:
            fields["phone"] = phone.group(0).strip()
        links.extend(match.group(0) for match in URL_RE.finditer(line))

        if is_contact_or_url(line):
            # Contact rows often carry the location as well: "Austin, TX | jane@x.io".
            for fragment in re.split(r"\s*[|•·]\s*", line):
                if "location" not in fields and LOCATION_RE.match(fragment.strip()):
                    fields["location"] = fragment.strip()
            continue
        if "name" not in fields:
            fields["name"] = line
        elif "location" not in fields and LOCATION_RE.match(line):
            fields["location"] = line

    if links:
        fields["links"] = ", ".join(links)
    if not fields:
        return None
    return ResumeSection(type="contact", title="Contact Information", level=1, content=FieldsContent(fields=fields))


def _dated_entry(line: str) -> ResumeItem:
    match = DATE_RANGE_RE.search(line)
    if match is None:
        return ResumeItem(title=line)

    remainder = (line[: match.start()] + " " + line[match.end() :]).strip(_TRIM_CHARS)
    remainder = normalize_line(remainder)
    parts = [part.strip(_TRIM_CHARS) for part in _TITLE_SPLIT_RE.split(remainder, maxsplit=1)]
    parts = [part for part in parts if part]
    start = match.group("start")
    end = match.group("end")
    return ResumeItem(
        title=parts[0] if parts else None,
        company=parts[1] if len(parts) > 1 else None,
        date=normalize_line(match.group(0)),
        start_date=start,
        end_date=end.title() if end and end.isalpha() else end,
    )


class _SectionBuilder:
    def __init__(self, section_type: str, title: str) -> None:
        self.section_type = section_type
        self.title = title
        self.lines: list[str] = []
        self.items: list[str | ResumeItem] = []
        self.current: ResumeItem | None = None

    def add(self, line: str) -> None:
        self.lines.append(line)
        if self.section_type == "summary":
            return
        if self.section_type == "skills":
            self.items.extend(split_list_line(line))
            return

        bullet = is_bullet_like(line)
        text = strip_bullet_prefix(line) if bullet else line
        if self.section_type in _DATED_ENTRY_SECTIONS and not bullet and YEAR_RE.search(line):
            self.current = _dated_entry(line)
            self.items.append(self.current)
            return
        if self.current is not None:
            if bullet:
                self.current.bullets = [*(self.current.bullets or []), text]
            elif self.current.company is None and not self.current.bullets:
                self.current.company = text
            else:
                joined = f"{self.current.description} {text}" if self.current.description else text
                self.current.description = joined
            return
        self.items.append(text)

    def build(self) -> ResumeSection:
        if self.section_type == "summary":
            content: TextContent | ItemListContent = TextContent(text=" ".join(self.lines))
        else:
            content = ItemListContent(items=self.items)
        return ResumeSection(type=self.section_type, title=self.title, level=2, content=content)


def document_from_text(text: str) -> ResumeDocument:
    """Split plain resume text into typed sections.

    Lines before the first recognised heading form the contact section; each heading starts a new
    section. Bullets become items, dated lines in experience-like sections become entries.
    """
    header_lines: list[str] = []
    sections: list[ResumeSection] = []
    builder: _SectionBuilder | None = None

    for raw in text.splitlines():
        line = normalize_line(raw)
        if not line:
            continue
        # An all-caps name line must not open a section before the first known heading.
        section_type = section_type_for_heading(line, allow_custom=builder is not None)
        if section_type is not None:
            if builder is not None:
                sections.append(builder.build())
            builder = _SectionBuilder(section_type, _heading_title(line))
            continue
        if builder is None:
            header_lines.append(line)
        else:
            builder.add(line)

    if builder is not None:
        sections.append(builder.build())

    header = _header_section(header_lines)
    if header is not None:
        sections.insert(0, header)
    return ResumeDocument(sections=sections)


def document_from_parsed(parsed: ParsedDoc) -> ResumeDocument:
    return document_from_text(parsed.text)
