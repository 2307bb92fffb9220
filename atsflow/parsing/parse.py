from __future__ import annotations

import hashlib
import io
import zipfile
from pathlib import Path
from typing import BinaryIO

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from .models import SUPPORTED_SOURCE_TYPES, ParsedBlock, ParsedDoc


def source_type_for(filename: str) -> str:
    extension = Path(filename).suffix.lower().lstrip(".")
    if extension not in SUPPORTED_SOURCE_TYPES:
        raise NotImplementedError(
            f"Unsupported file type '.{extension}'. Supported types: .txt, .pdf, .docx"
        )
    return extension


def _compute_doc_id(text: str, name: str) -> str:
    seed = text if text.strip() else name
    digest = hashlib.sha256(seed.encode("utf-8", errors="ignore")).hexdigest()
    return digest[:16]


def _parse_txt(raw: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    text = raw.decode("utf-8", errors="replace")
    return text, [], []


def _parse_pdf(stream: BinaryIO) -> tuple[str, list[ParsedBlock], list[str]]:
    warnings: list[str] = []
    blocks: list[ParsedBlock] = []
    try:
        reader = PdfReader(stream)
        text_parts: list[str] = []
        for index, page in enumerate(reader.pages, start=1):
            page_text = (page.extract_text() or "").strip()
            if page_text:
                text_parts.append(page_text)
                blocks.append(ParsedBlock(page=index, text=page_text))
    except PdfReadError as exc:
        warnings.append(f"PDF parsing failed: {exc}")
        return "", blocks, warnings

    if not text_parts:
        warnings.append("No extractable text found in PDF.")
    return "\n".join(text_parts), blocks, warnings


def _parse_docx(stream: BinaryIO) -> tuple[str, list[ParsedBlock], list[str]]:
    warnings: list[str] = []
    blocks: list[ParsedBlock] = []
    try:
        document = Document(stream)
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError) as exc:
        warnings.append(f"DOCX parsing failed: {exc}")
        return "", blocks, warnings

    paragraphs = [p.text.strip() for p in document.paragraphs if p.text and p.text.strip()]
    for paragraph_text in paragraphs:
        blocks.append(ParsedBlock(page=None, text=paragraph_text))
    if not paragraphs:
        warnings.append("No extractable text found in DOCX.")
    return "\n".join(paragraphs), blocks, warnings


def parse_bytes(filename: str, content: bytes) -> ParsedDoc:
    """Extract plain text from an uploaded resume file."""
    source_type = source_type_for(filename)
    if source_type == "txt":
        text, blocks, warnings = _parse_txt(content)
    elif source_type == "pdf":
        text, blocks, warnings = _parse_pdf(io.BytesIO(content))
    else:
        text, blocks, warnings = _parse_docx(io.BytesIO(content))

    return ParsedDoc(
        doc_id=_compute_doc_id(text, filename),
        source_type=source_type,
        text=text,
        blocks=blocks,
        parsing_warnings=warnings,
    )


def parse_document(file_path: str | Path) -> ParsedDoc:
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Input document not found: '{path}'")
    source_type_for(path.name)
    return parse_bytes(path.name, path.read_bytes())
