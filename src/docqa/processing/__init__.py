"""
Processing: the per-document ingestion state machine.

Public surface
--------------
- :class:`ProcessingOrchestrator`: starts, tracks, pages and deletes jobs
  and clears vectors.
- :class:`JobRegistry`: lock-guarded job and chunk tables.
- :class:`DocumentJob`, :class:`JobStatus`, :class:`DeletionSummary`: models.
"""

from docqa.processing.models import (
    ChunkPage,
    DeletionSummary,
    DocumentJob,
    DocumentPreview,
    EmbeddingsCleared,
    EmbeddingStats,
    ExtractionStats,
    JobStatus,
    StorageCleared,
)
from docqa.processing.orchestrator import ProcessingOrchestrator
from docqa.processing.registry import JobRegistry

__all__ = [
    "ChunkPage",
    "DeletionSummary",
    "DocumentJob",
    "DocumentPreview",
    "EmbeddingsCleared",
    "EmbeddingStats",
    "ExtractionStats",
    "JobRegistry",
    "JobStatus",
    "ProcessingOrchestrator",
    "StorageCleared",
]
