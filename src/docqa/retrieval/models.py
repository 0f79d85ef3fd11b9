"""Domain models for vector records, matches and citation tracking."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class EmbeddingRecord(BaseModel):
    """A vector stored in the index, keyed by chunk id.

    Attributes
    ----------
    id:
        The chunk id this vector was computed from.
    vector:
        Fixed-dimension embedding.
    metadata:
        Flat metadata used for filtering and answer assembly: a truncated
        ``text`` preview plus ``documentId``, ``fileName``, ``fileType``,
        ``chunkIndex``, ``totalChunks``, ``tokenCount``, ``wordCount``,
        ``createdAt`` and the ``runId`` of the pipeline run that wrote it.
    """

    id: str
    vector: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)


class VectorMatch(BaseModel):
    """One ranked hit returned by a vector-store query."""

    id: str
    score: float
    metadata: dict[str, Any] | None = None


class IndexStats(BaseModel):
    """Size and dimension of a vector index."""

    count: int
    dimension: int


class Citation(BaseModel):
    """Where a retrieved passage came from.

    Attributes
    ----------
    chunk_id:
        The vector-store id of the chunk.
    document_id:
        The document the chunk belongs to.
    file_name:
        Original upload name, shown to users as the source.
    chunk_index:
        Position of the chunk within its document.
    score:
        Cosine similarity returned by the vector store.
    metadata:
        The full metadata stored alongside the vector.
    retrieved_at:
        When the passage was retrieved (UTC).
    """

    chunk_id: str
    document_id: str | None = None
    file_name: str = "unknown"
    chunk_index: int | None = None
    score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    retrieved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def short_ref(self) -> str:
        """Return a compact ``[file§chunk]`` reference string."""
        chunk = self.chunk_index if self.chunk_index is not None else "?"
        return f"[{self.file_name}§{chunk}]"


class RetrievalResult(BaseModel):
    """Chunk text returned by the retriever, with its citation."""

    content: str
    citation: Citation
