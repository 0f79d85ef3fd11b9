"""Embedding generation for chunks and queries."""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import numpy as np

from docqa.errors import EmbeddingError
from docqa.ingestion.models import Chunk
from docqa.retrieval.models import EmbeddingRecord

logger = logging.getLogger(__name__)


class EmbeddingGenerator(ABC):
    """Pluggable ``embed(text) -> vector`` capability.

    Implementations must be deterministic for identical input and always
    return vectors of length :attr:`dimension`.
    """

    model_name: str = "unknown"

    def __init__(self, dimension: int) -> None:
        if dimension < 1:
            raise ValueError(f"dimension must be >= 1, got {dimension}")
        self.dimension = dimension

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Return the embedding of *text*."""
        ...


class HashEmbeddingGenerator(EmbeddingGenerator):
    """Deterministic placeholder embedding built from character codes.

    Each character of each word adds ``sin(code + word_index) * 0.1`` to the
    slot ``(code + word_index * char_position) % dimension``; the result is
    L2-normalised.  Texts sharing words land close together, but there is
    no semantic understanding behind it.
    """

    model_name = "development-hash"

    def __init__(self, dimension: int = 1536) -> None:
        super().__init__(dimension)

    def embed(self, text: str) -> list[float]:
        vector = np.zeros(self.dimension, dtype=np.float64)
        for word_index, word in enumerate(text.lower().split()):
            for position, char in enumerate(word):
                code = ord(char)
                slot = (code + word_index * position) % self.dimension
                vector[slot] += math.sin(code + word_index) * 0.1

        magnitude = float(np.linalg.norm(vector))
        if magnitude > 0:
            vector /= magnitude
        return vector.tolist()


@dataclass
class EmbeddingBatch:
    """Outcome of embedding every chunk of one document."""

    records: list[EmbeddingRecord] = field(default_factory=list)
    total_tokens: int = 0
    success_count: int = 0
    failure_count: int = 0


def _record_metadata(chunk: Chunk, text_limit: int, run_id: str | None) -> dict:
    metadata = {
        "text": chunk.text[:text_limit],
        "documentId": chunk.document_id,
        "fileName": chunk.metadata.get("fileName"),
        "fileType": chunk.metadata.get("fileType"),
        "chunkIndex": chunk.chunk_index,
        "totalChunks": chunk.total_chunks,
        "tokenCount": chunk.token_count,
        "wordCount": chunk.word_count,
        "createdAt": chunk.created_at.isoformat(),
    }
    if run_id is not None:
        metadata["runId"] = run_id
    return metadata


def embed_chunks(
    chunks: list[Chunk],
    generator: EmbeddingGenerator,
    text_limit: int = 1000,
    run_id: str | None = None,
) -> EmbeddingBatch:
    """Embed *chunks* and assemble one :class:`EmbeddingRecord` per chunk.

    A chunk whose embedding fails is logged and counted in
    ``failure_count``; the remaining chunks are still embedded.  Records are
    tagged with *run_id* when given so a run can later find its own output.

    Raises
    ------
    EmbeddingError
        When there were chunks but none of them could be embedded.
    """
    batch = EmbeddingBatch()
    logger.info("Embedding %d chunks with %s", len(chunks), generator.model_name)

    for chunk in chunks:
        try:
            vector = generator.embed(chunk.text)
        except Exception:
            logger.exception("Failed to embed chunk %s", chunk.id)
            batch.failure_count += 1
            continue

        batch.records.append(
            EmbeddingRecord(id=chunk.id, vector=vector, metadata=_record_metadata(chunk, text_limit, run_id))
        )
        batch.total_tokens += len(chunk.text.split())
        batch.success_count += 1

    if chunks and not batch.records:
        raise EmbeddingError(f"All {len(chunks)} chunks failed to embed")

    logger.info(
        "Generated %d embeddings (%d failed, %d tokens)",
        batch.success_count,
        batch.failure_count,
        batch.total_tokens,
    )
    return batch
