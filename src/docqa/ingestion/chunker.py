"""Sentence-based, token-budgeted text chunking."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from typing import Any

from docqa.ingestion.models import Chunk, ChunkingStats, TextChunk

logger = logging.getLogger(__name__)

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")

# Rough words → tokens ratio; not a real tokenizer.
TOKENS_PER_WORD = 0.75


def split_into_sentences(text: str) -> list[str]:
    """Split *text* at whitespace that follows ``.``, ``!`` or ``?``.

    A trailing unit without terminal punctuation is kept; empty units are
    dropped.
    """
    units = (unit.strip() for unit in _SENTENCE_BOUNDARY.split(text))
    return [unit for unit in units if unit]


def estimate_tokens(text: str) -> int:
    """Estimate the token count of *text* as ``ceil(words * 0.75)``."""
    return math.ceil(len(text.split()) * TOKENS_PER_WORD)


def _close_chunk(sentences: list[str], tokens: int, index: int) -> TextChunk:
    return TextChunk(
        text=" ".join(sentences).strip(),
        token_count=tokens,
        sentence_count=len(sentences),
        chunk_index=index,
        sentences=tuple(sentences),
    )


def _overlap_suffix(sentences: list[str], overlap_tokens: int) -> tuple[list[str], int]:
    """Return the longest run of trailing whole sentences within *overlap_tokens*."""
    suffix: list[str] = []
    suffix_tokens = 0
    for sentence in reversed(sentences):
        sentence_tokens = estimate_tokens(sentence)
        if suffix_tokens + sentence_tokens > overlap_tokens:
            break
        suffix.insert(0, sentence)
        suffix_tokens += sentence_tokens
    return suffix, suffix_tokens


def chunk_text(text: str, max_tokens: int = 400, overlap_tokens: int = 50) -> list[TextChunk]:
    """Split *text* into overlapping chunks of at most *max_tokens* estimated tokens.

    Sentences are accumulated greedily.  When the next sentence would push
    the working chunk over budget, the chunk is closed and the next one is
    seeded with the trailing sentences of the closed chunk that fit in
    *overlap_tokens*.  A single sentence larger than *max_tokens* is never
    split; it ends up whole in an oversized chunk.

    Parameters
    ----------
    text:
        Normalised document text.
    max_tokens:
        Estimated token budget per chunk.
    overlap_tokens:
        Estimated token budget of the sentences repeated at the start of
        the following chunk.

    Returns
    -------
    list[TextChunk]
        Chunks indexed ``0..n-1``; empty for empty input.
    """
    if max_tokens < 1:
        raise ValueError(f"max_tokens must be >= 1, got {max_tokens}")
    if overlap_tokens < 0:
        raise ValueError(f"overlap_tokens must be >= 0, got {overlap_tokens}")

    sentences = split_into_sentences(text)
    logger.info(
        "Chunking %d characters (~%d tokens) split into %d sentences",
        len(text),
        estimate_tokens(text),
        len(sentences),
    )

    chunks: list[TextChunk] = []
    current: list[str] = []
    current_tokens = 0

    for sentence in sentences:
        sentence_tokens = estimate_tokens(sentence)

        if current and current_tokens + sentence_tokens > max_tokens:
            chunks.append(_close_chunk(current, current_tokens, len(chunks)))
            overlap, overlap_count = _overlap_suffix(current, overlap_tokens)
            current = [*overlap, sentence]
            current_tokens = overlap_count + sentence_tokens
        else:
            current.append(sentence)
            current_tokens += sentence_tokens

    if current:
        chunks.append(_close_chunk(current, current_tokens, len(chunks)))

    logger.info("Created %d chunks", len(chunks))
    return chunks


def add_metadata_to_chunks(
    chunks: list[TextChunk],
    document_id: str,
    metadata: Mapping[str, Any] | None = None,
) -> list[Chunk]:
    """Attach document identity and metadata to raw chunks."""
    total = len(chunks)
    document_metadata = dict(metadata or {})
    return [
        Chunk(
            id=f"{document_id}_chunk_{index}",
            document_id=document_id,
            text=chunk.text,
            chunk_index=index,
            token_count=chunk.token_count,
            sentence_count=chunk.sentence_count,
            word_count=len(chunk.text.split()),
            total_chunks=total,
            is_first_chunk=index == 0,
            is_last_chunk=index == total - 1,
            metadata=document_metadata,
        )
        for index, chunk in enumerate(chunks)
    ]


def chunk_document(
    text: str,
    document_id: str,
    metadata: Mapping[str, Any] | None = None,
    *,
    max_tokens: int = 400,
    overlap_tokens: int = 50,
) -> list[Chunk]:
    """Chunk *text* and attach *document_id* and *metadata* in one pass."""
    return add_metadata_to_chunks(
        chunk_text(text, max_tokens=max_tokens, overlap_tokens=overlap_tokens),
        document_id,
        metadata,
    )


def get_chunking_stats(chunks: list[Chunk] | list[TextChunk]) -> ChunkingStats:
    """Summarise token counts over *chunks*; all zeros for no chunks."""
    if not chunks:
        return ChunkingStats()
    token_counts = [c.token_count for c in chunks]
    total = sum(token_counts)
    return ChunkingStats(
        total_chunks=len(chunks),
        total_tokens=total,
        avg_tokens_per_chunk=round(total / len(chunks)),
        min_tokens_per_chunk=min(token_counts),
        max_tokens_per_chunk=max(token_counts),
    )
