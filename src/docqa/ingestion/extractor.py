"""Text extraction: thin wrappers around pypdf and python-docx."""

from __future__ import annotations

import io
import logging
import math
import re
from typing import Any, Protocol

from docx import Document as DocxDocument
from pypdf import PdfReader

from docqa.errors import UnsupportedFileType
from docqa.ingestion.models import ExtractionResult

logger = logging.getLogger(__name__)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TXT = "text/plain"

WORDS_PER_PAGE = 250


class TextExtractor(Protocol):
    """Turns raw document bytes into plain text plus basic statistics."""

    def extract(self, data: bytes, file_type: str) -> ExtractionResult: ...


def clean_text(text: str) -> str:
    """Normalise line endings and collapse whitespace runs."""
    text = text.replace("\r\n", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = text.replace("\t", " ")
    text = re.sub(r"\s{2,}", " ", text)
    return text.strip()


def _estimate_pages(word_count: int) -> int:
    return max(1, math.ceil(word_count / WORDS_PER_PAGE))


def _result(text: str, pages: int | None, metadata: dict[str, Any]) -> ExtractionResult:
    word_count = len(text.split())
    pages = pages if pages is not None else _estimate_pages(word_count)
    return ExtractionResult(
        text=text,
        pages=pages,
        word_count=word_count,
        character_count=len(text),
        metadata={**metadata, "pages": pages},
    )


def extract_pdf(data: bytes) -> ExtractionResult:
    """Extract text and document info from PDF bytes."""
    reader = PdfReader(io.BytesIO(data))
    text = clean_text("\n".join(page.extract_text() or "" for page in reader.pages))
    info = reader.metadata or {}
    metadata = {
        "title": info.get("/Title", "") or "",
        "author": info.get("/Author", "") or "",
        "subject": info.get("/Subject", "") or "",
        "creator": info.get("/Creator", "") or "",
        "producer": info.get("/Producer", "") or "",
    }
    return _result(text, len(reader.pages), metadata)


def extract_docx(data: bytes) -> ExtractionResult:
    """Extract paragraph and table text from DOCX bytes."""
    doc = DocxDocument(io.BytesIO(data))
    parts = [para.text.strip() for para in doc.paragraphs if para.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                parts.append(" | ".join(cells))

    props = doc.core_properties
    metadata = {
        "title": props.title or "",
        "author": props.author or "",
        "subject": props.subject or "",
    }
    return _result(clean_text("\n\n".join(parts)), None, metadata)


def extract_txt(data: bytes) -> ExtractionResult:
    """Decode UTF-8 text bytes."""
    text = clean_text(data.decode("utf-8", errors="replace"))
    return _result(text, None, {"title": "", "author": "", "subject": "", "encoding": "utf-8"})


class DefaultTextExtractor:
    """Dispatches on MIME type to the PDF, DOCX or plain-text reader."""

    _READERS = {
        PDF: extract_pdf,
        DOCX: extract_docx,
        TXT: extract_txt,
    }

    def extract(self, data: bytes, file_type: str) -> ExtractionResult:
        reader = self._READERS.get(file_type)
        if reader is None:
            raise UnsupportedFileType(f"Unsupported file type: {file_type}", file_type=file_type)

        result = reader(data)
        logger.info(
            "Extracted %d words, %d pages, %d characters from %s",
            result.word_count,
            result.pages,
            result.character_count,
            file_type,
        )
        return result
