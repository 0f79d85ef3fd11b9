"""Domain models produced by the ingestion stages."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import ConfigDict, Field

from docqa.models import CamelModel


class ExtractionResult(CamelModel):
    """Plain text and basic statistics extracted from a document.

    Attributes
    ----------
    text:
        Whitespace-normalised document text.
    pages:
        Page count (estimated for formats without real pages).
    word_count:
        Number of whitespace-separated words in ``text``.
    character_count:
        ``len(text)``.
    metadata:
        Format-specific metadata (title, author, encoding, …).
    """

    text: str
    pages: int = 1
    word_count: int = 0
    character_count: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)


class TextChunk(CamelModel):
    """A chunk as emitted by the chunker, before document metadata is attached."""

    model_config = ConfigDict(frozen=True)

    text: str
    token_count: int
    sentence_count: int
    chunk_index: int
    sentences: tuple[str, ...] = Field(default=(), exclude=True)


class Chunk(CamelModel):
    """A bounded, possibly overlapping slice of a document's text.

    Chunks are immutable once created and owned by their document job.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    document_id: str
    text: str
    chunk_index: int
    token_count: int
    sentence_count: int
    word_count: int
    total_chunks: int
    is_first_chunk: bool
    is_last_chunk: bool
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ChunkingStats(CamelModel):
    """Token statistics over all chunks of a document."""

    total_chunks: int = 0
    total_tokens: int = 0
    avg_tokens_per_chunk: int = 0
    min_tokens_per_chunk: int = 0
    max_tokens_per_chunk: int = 0
