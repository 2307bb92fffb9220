from __future__ import annotations

import re
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

_LEVEL_RE = re.compile(r"\d+")


def as_text(value: Any, joiner: str = " ") -> Any:
    """Flatten loosely typed payload values (numbers, lists, nested objects) into a string."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        parts = [as_text(entry, joiner) for entry in value]
        return joiner.join(part for part in parts if part)
    if isinstance(value, dict):
        return as_text(list(value.values()), joiner)
    return str(value)


class ResumeItem(BaseModel):
    """One entry of a list section. Unknown keys are kept so layout markers stay visible."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str | None = None
    company: str | None = None
    position: str | None = None
    role: str | None = None
    name: str | None = None
    location: str | None = None
    date: str | None = None
    start_date: str | None = Field(default=None, validation_alias=AliasChoices("start_date", "startDate"))
    end_date: str | None = Field(default=None, validation_alias=AliasChoices("end_date", "endDate"))
    year: str | None = None
    description: str | None = None
    bullets: list[str] | None = None
    text: str | None = None
    gpa: str | None = None
    honors: str | None = None

    @field_validator(
        "title", "company", "position", "role", "name", "location",
        "date", "start_date", "end_date", "year", "gpa", "honors",
        mode="before",
    )
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        return as_text(value)

    @field_validator("description", "text", mode="before")
    @classmethod
    def _join_lines(cls, value: Any) -> Any:
        return as_text(value, "\n")

    @field_validator("bullets", mode="before")
    @classmethod
    def _coerce_bullets(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, dict):
            value = list(value.values())
        if not isinstance(value, (list, tuple)):
            value = [value]
        bullets = [as_text(entry) for entry in value]
        return [entry for entry in bullets if entry]

    def headline(self) -> str | None:
        return self.title or self.position or self.role

    def date_text(self) -> str:
        return self.start_date or self.date or self.year or ""


class TextContent(BaseModel):
    kind: Literal["text"] = "text"
    text: str = ""

    @field_validator("text", mode="before")
    @classmethod
    def _flatten(cls, value: Any) -> Any:
        return "" if value is None else as_text(value, "\n")


class ItemListContent(BaseModel):
    kind: Literal["items"] = "items"
    items: list[Union[str, ResumeItem]] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def _coerce_items(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            value = [value]
        items: list[Any] = []
        for entry in value:
            if entry is None:
                continue
            if isinstance(entry, (str, dict, BaseModel)):
                items.append(entry)
            else:
                text = as_text(entry)
                if text:
                    items.append(text)
        return items


class FieldsContent(BaseModel):
    kind: Literal["fields"] = "fields"
    fields: dict[str, Any] = Field(default_factory=dict)

    @field_validator("fields", mode="before")
    @classmethod
    def _wrap_scalar(cls, value: Any) -> Any:
        if value is None:
            return {}
        if not isinstance(value, dict):
            return {"value": value}
        return value


SectionContent = Annotated[Union[TextContent, ItemListContent, FieldsContent], Field(discriminator="kind")]


def coerce_section_content(value: Any) -> Any:
    """Wrap untagged browser payloads into the tagged content variants."""
    if value is None or isinstance(value, BaseModel):
        return value
    if isinstance(value, str):
        return {"kind": "text", "text": value}
    if isinstance(value, (list, tuple)):
        return {"kind": "items", "items": list(value)}
    if isinstance(value, dict):
        if value.get("kind") in {"text", "items", "fields"}:
            return value
        if isinstance(value.get("items"), list):
            return {"kind": "items", "items": value["items"]}
        if set(value.keys()) == {"text"}:
            return {"kind": "text", "text": value["text"]}
        return {"kind": "fields", "fields": dict(value)}
    return {"kind": "text", "text": as_text(value)}


def coerce_section(value: Any) -> Any:
    """Sections that are not objects (bare strings, numbers, lists) become untyped text sections."""
    if isinstance(value, (dict, BaseModel)):
        return value
    return {"content": {"kind": "text", "text": as_text(value, "\n")}}


class ResumeSection(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str | None = None
    title: str | None = None
    content: SectionContent | None = None
    level: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        value = as_text(value)
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @field_validator("title", mode="before")
    @classmethod
    def _stringify_title(cls, value: Any) -> Any:
        return as_text(value)

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> Any:
        # Accepts 2, "2" and "h2"; anything else counts as unspecified.
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value)
        if isinstance(value, str):
            match = _LEVEL_RE.search(value)
            return int(match.group(0)) if match else None
        return None

    @field_validator("metadata", mode="before")
    @classmethod
    def _coerce_metadata(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_content(cls, value: Any) -> Any:
        return coerce_section_content(value)

    @property
    def label(self) -> str:
        return self.title or self.type or ""

    @property
    def items(self) -> list[str | ResumeItem]:
        if isinstance(self.content, ItemListContent):
            return self.content.items
        return []


class ResumeCustomization(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    heading_font: str | None = Field(default=None, validation_alias=AliasChoices("heading_font", "headingFont"))
    body_font: str | None = Field(default=None, validation_alias=AliasChoices("body_font", "bodyFont"))

    @field_validator("heading_font", "body_font", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        return as_text(value)


class ResumeDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    sections: list[ResumeSection] = Field(default_factory=list)
    customization: ResumeCustomization | None = None

    @field_validator("sections", mode="before")
    @classmethod
    def _coerce_sections(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (dict, str)):
            value = [value]
        elif not isinstance(value, (list, tuple)):
            return []
        return [coerce_section(entry) for entry in value if entry is not None]

    @field_validator("customization", mode="before")
    @classmethod
    def _drop_non_mapping(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, BaseModel)) else None


class ScanOptions(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    file_format: str | None = Field(default=None, validation_alias=AliasChoices("file_format", "fileFormat"))
    industry: str | None = None
    label: str | None = None

    @field_validator("file_format", "industry", mode="before")
    @classmethod
    def _normalize_key(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value
