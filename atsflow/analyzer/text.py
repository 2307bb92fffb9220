from __future__ import annotations

import json
from typing import Any

from atsflow.schemas.resume import (
    FieldsContent,
    ItemListContent,
    ResumeDocument,
    ResumeItem,
    ResumeSection,
    SectionContent,
    TextContent,
)

SKILLS_SECTION_TYPES = {"skills", "technical-skills", "core-competencies"}


def serialize_document(document: ResumeDocument) -> str:
    """Flat JSON view of the document used by layout-marker detectors."""
    payload = document.model_dump(mode="json", exclude_none=True)
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def serialize_value(value: Any) -> str:
    if hasattr(value, "model_dump"):
        value = value.model_dump(mode="json", exclude_none=True)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _collect_strings(value: Any, out: list[str]) -> None:
    if value is None or isinstance(value, bool):
        return
    if isinstance(value, str):
        if value.strip():
            out.append(value)
        return
    if isinstance(value, (int, float)):
        out.append(str(value))
        return
    if isinstance(value, dict):
        for entry in value.values():
            _collect_strings(entry, out)
        return
    if isinstance(value, (list, tuple)):
        for entry in value:
            _collect_strings(entry, out)


def item_strings(item: str | ResumeItem) -> list[str]:
    if isinstance(item, str):
        return [item] if item.strip() else []
    out: list[str] = []
    _collect_strings(item.model_dump(mode="json", exclude_none=True), out)
    return out


def content_strings(content: SectionContent | None) -> list[str]:
    if content is None:
        return []
    if isinstance(content, TextContent):
        return [content.text] if content.text.strip() else []
    if isinstance(content, ItemListContent):
        out: list[str] = []
        for item in content.items:
            out.extend(item_strings(item))
        return out
    out = []
    _collect_strings(content.fields, out)
    return out


def extract_all_text(document: ResumeDocument) -> str:
    parts: list[str] = []
    for section in document.sections:
        if section.title:
            parts.append(section.title)
        parts.extend(content_strings(section.content))
    return " ".join(parts)


def word_count(text: str) -> int:
    return len(text.split())


def is_skills_section(section: ResumeSection) -> bool:
    if (section.type or "") in SKILLS_SECTION_TYPES:
        return True
    return bool(section.title and "skill" in section.title.lower())


def extract_bullets(document: ResumeDocument) -> list[str]:
    bullets: list[str] = []
    for section in document.sections:
        skills_section = is_skills_section(section)
        for item in section.items:
            if isinstance(item, str):
                if not skills_section and item.strip():
                    bullets.append(item)
                continue
            if item.description:
                bullets.append(item.description)
            if item.text:
                bullets.append(item.text)
            if item.bullets:
                bullets.extend(entry for entry in item.bullets if entry.strip())
    return bullets


def is_empty_content(content: SectionContent | None) -> bool:
    if content is None:
        return True
    if isinstance(content, TextContent):
        return not content.text.strip()
    if isinstance(content, ItemListContent):
        return len(content.items) == 0
    if isinstance(content, FieldsContent):
        return all(not value or (hasattr(value, "__len__") and len(value) == 0) for value in content.fields.values())
    return False


def header_fields(section: ResumeSection) -> dict[str, Any]:
    if isinstance(section.content, FieldsContent):
        return section.content.fields
    return {}
