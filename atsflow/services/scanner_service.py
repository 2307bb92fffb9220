from __future__ import annotations

import logging
from functools import lru_cache

from atsflow.analyzer import ATSScanner, ScanInputError, build_scanner
from atsflow.core.config import settings
from atsflow.history import build_history_sink
from atsflow.normalize import document_from_parsed, document_from_text
from atsflow.parsing import parse_bytes
from atsflow.schemas.analysis import AnalysisReport
from atsflow.schemas.resume import ScanOptions

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_scanner() -> ATSScanner:
    scanner = build_scanner(history=build_history_sink(settings))
    logger.info(
        "ats_scanner_ready version=%s checks=%s history_backend=%s",
        scanner.version,
        scanner.total_checks,
        settings.scan_history_backend,
    )
    return scanner


def scan_text(scanner: ATSScanner, resume_text: str, options: ScanOptions | None = None) -> AnalysisReport:
    if not resume_text.strip():
        raise ScanInputError("Resume text is empty")
    document = document_from_text(resume_text)
    return scanner.scan_or_raise(document, options)


def scan_upload(
    scanner: ATSScanner, filename: str, content: bytes, options: ScanOptions | None = None
) -> AnalysisReport:
    """Parse an uploaded pdf/docx/txt file and scan it; the extension decides ``file_format``."""
    parsed = parse_bytes(filename, content)
    for warning in parsed.parsing_warnings:
        logger.warning("ats_upload_parse_warning doc_id=%s: %s", parsed.doc_id, warning)
    if not parsed.text.strip():
        raise ScanInputError("No extractable text found in the uploaded file.")

    base = options or ScanOptions()
    scan_options = base.model_copy(update={"file_format": parsed.source_type})
    return scanner.scan_or_raise(document_from_parsed(parsed), scan_options)
