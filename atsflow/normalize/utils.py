from __future__ import annotations

import re

_BULLET_CHARS = "•◦▪▫●○■□◆◇▶►★☆✓✔➤➢-–—*·"
_BULLET_PATTERN = re.compile(rf"^\s*(?:[{re.escape(_BULLET_CHARS)}]|(?:\d+[\.\)]))\s+")
EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_RE = re.compile(r"\+?\d[\d\s().-]{7,}\d")
URL_RE = re.compile(r"(?:https?://\S+|www\.\S+|linkedin\.com/\S+|github\.com/\S+)", re.IGNORECASE)
LOCATION_RE = re.compile(r"^[A-Za-z .'-]{2,},\s*[A-Za-z .'-]{2,}$")
YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")

_MONTH = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"
_DATE_POINT = rf"(?:{_MONTH}\s+(?:19|20)\d{{2}}|\d{{1,2}}/(?:19|20)\d{{2}}|(?:19|20)\d{{2}}(?:-\d{{2}}(?!\d))?)"
DATE_RANGE_RE = re.compile(
    rf"\b(?P<start>{_DATE_POINT})(?:\s*(?:-|–|—|to)\s*(?P<end>{_DATE_POINT}|present|current|now))?",
    re.IGNORECASE,
)


def normalize_line(line: str) -> str:
    return re.sub(r"\s+", " ", line).strip()


def is_bullet_like(line: str) -> bool:
    return bool(_BULLET_PATTERN.match(line))


def strip_bullet_prefix(line: str) -> str:
    return _BULLET_PATTERN.sub("", line).strip()


def heading_key(line: str) -> str:
    return normalize_line(line).rstrip(":").strip().lower()


def looks_like_heading(line: str) -> bool:
    """Short all-caps lines are treated as headings even when they are not in the synonym table."""
    stripped = normalize_line(line).rstrip(":")
    if not stripped or is_contact_or_url(stripped):
        return False
    # "SQL, AWS" in a skills block is a list, not a heading.
    if any(ch in stripped for ch in ",;|.") or is_bullet_like(stripped):
        return False
    letters = [ch for ch in stripped if ch.isalpha()]
    if not letters:
        return False
    return stripped.isupper() and len(stripped.split()) <= 5 and len(stripped) <= 36


def is_contact_or_url(line: str) -> bool:
    stripped = normalize_line(line)
    if not stripped:
        return False
    return bool(EMAIL_RE.search(stripped) or PHONE_RE.search(stripped) or URL_RE.search(stripped))


def split_list_line(line: str) -> list[str]:
    parts = re.split(r"\s*[,;|•·]\s*", strip_bullet_prefix(line))
    return [part.strip() for part in parts if part.strip()]
