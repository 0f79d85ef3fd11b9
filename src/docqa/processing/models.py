"""Job state and summaries produced by the processing orchestrator."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import Field

from docqa.ingestion.models import Chunk, ChunkingStats
from docqa.models import CamelModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class ExtractionStats(CamelModel):
    """What the extraction stage found in the document."""

    word_count: int = 0
    character_count: int = 0
    pages: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)
    preview_text: str = ""


class EmbeddingStats(CamelModel):
    """Outcome of the embedding and storage stages."""

    success_count: int = 0
    failure_count: int = 0
    total_tokens: int = 0
    vectors_stored: int = 0


class DocumentJob(CamelModel):
    """Per-document record tracking ingestion progress and outcome.

    Attributes
    ----------
    document_id:
        Opaque unique key supplied by the caller.
    run_id:
        Identifies one processing run; a pipeline only writes to the job
        carrying its own run id.
    source_key:
        Storage key the raw bytes are fetched from.
    status:
        ``processing`` until the pipeline reaches ``completed`` or ``error``.
    progress:
        Short label of the current stage.
    progress_details:
        Free-text description of the current stage.
    error_stage:
        Name of the stage that failed, when ``status`` is ``error``.
    """

    document_id: str
    run_id: str = Field(default_factory=lambda: uuid4().hex)
    file_name: str
    file_type: str
    source_key: str
    status: JobStatus = JobStatus.PROCESSING
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None
    progress: str = "Initializing..."
    progress_details: str = ""
    extraction_stats: ExtractionStats | None = None
    chunking_stats: ChunkingStats | None = None
    embedding_stats: EmbeddingStats | None = None
    total_chunks: int | None = None
    processing_time_ms: int | None = None
    error: str | None = None
    error_at: datetime | None = None
    error_stage: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not JobStatus.PROCESSING


class StorageCleared(CamelModel):
    processed_documents: bool = False
    document_chunks: bool = False
    embeddings: bool = False
    embeddings_deleted: int = 0


class DeletionSummary(CamelModel):
    """Result of deleting a document's job, chunks and vectors.

    ``storage_cleared.embeddings`` is ``False`` when vector deletion failed;
    the job and chunks are removed regardless.
    """

    document_id: str
    file_name: str
    storage_cleared: StorageCleared
    remaining_docs: int
    remaining_chunks: int


class ChunkPage(CamelModel):
    """One page of a document's chunks."""

    document_id: str
    total_chunks: int
    page: int
    limit: int
    chunks: list[Chunk]
    has_more: bool


class DocumentPreview(CamelModel):
    document_id: str
    file_name: str
    preview: str
    total_chunks: int


class EmbeddingsCleared(CamelModel):
    """Result of clearing vectors without touching jobs or chunks.

    ``document_id`` is ``None`` when the whole index was cleared.  A
    backend failure is reported in ``warning`` with ``deleted_count`` 0.
    """

    document_id: str | None = None
    deleted_count: int = 0
    warning: str | None = None
