from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from .resume import ScanOptions

MAX_RESUME_TEXT_CHARS = 100_000


# Documents stay loosely typed here so a missing or malformed resume surfaces as the scanner's
# own 400 message instead of a generic 422.
class ScanRequest(BaseModel):
    document: dict[str, Any] | None = Field(default=None, validation_alias=AliasChoices("document", "resume"))
    options: ScanOptions | None = None


class CompareRequest(BaseModel):
    resume_a: dict[str, Any] | None = Field(default=None, validation_alias=AliasChoices("resume_a", "resumeA"))
    resume_b: dict[str, Any] | None = Field(default=None, validation_alias=AliasChoices("resume_b", "resumeB"))
    options: ScanOptions | None = None


class PathToScoreRequest(ScanRequest):
    target_score: int = Field(default=90, validation_alias=AliasChoices("target_score", "targetScore"))


class ScanTextRequest(BaseModel):
    resume_text: str = Field(
        min_length=1,
        max_length=MAX_RESUME_TEXT_CHARS,
        validation_alias=AliasChoices("resume_text", "resumeText"),
    )
    options: ScanOptions | None = None
