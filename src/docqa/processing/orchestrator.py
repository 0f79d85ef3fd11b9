"""Per-document processing state machine.

A processing request registers a job and returns immediately; the pipeline

    extract → chunk → attach metadata → embed → store

runs on a worker thread and reports progress through the job record.  The
only way to observe completion is to read the job status.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any

from docqa.config import Settings
from docqa.config import settings as default_settings
from docqa.errors import NotFoundError, StageFailure, ValidationError
from docqa.ingestion.chunker import add_metadata_to_chunks, chunk_text, get_chunking_stats
from docqa.ingestion.embedder import EmbeddingGenerator, embed_chunks
from docqa.ingestion.extractor import TextExtractor
from docqa.ingestion.models import Chunk, ExtractionResult
from docqa.ingestion.source import DocumentSource
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
    utcnow,
)
from docqa.processing.registry import JobRegistry
from docqa.retrieval.base import VectorStoreBase
from docqa.retrieval.models import EmbeddingRecord

logger = logging.getLogger(__name__)

PREVIEW_CHUNKS = 3
PREVIEW_CHARS = 1000


class ProcessingOrchestrator:
    """Drives documents from raw bytes to indexed vectors.

    Parameters
    ----------
    registry:
        Shared job and chunk registry.
    store:
        Vector store receiving the embedding records.
    embedder:
        Embedding generator applied to every chunk.
    source:
        Where raw document bytes are fetched from.
    extractor:
        Turns raw bytes into text.
    settings:
        Chunk budgets, metadata limits and worker count.
    executor:
        Runs background pipelines; a ``ThreadPoolExecutor`` sized from
        *settings* is created when omitted.
    """

    def __init__(
        self,
        registry: JobRegistry,
        store: VectorStoreBase,
        embedder: EmbeddingGenerator,
        source: DocumentSource,
        extractor: TextExtractor,
        *,
        settings: Settings | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.registry = registry
        self.store = store
        self.embedder = embedder
        self.source = source
        self.extractor = extractor
        self.settings = settings or default_settings
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.settings.max_workers,
            thread_name_prefix="docqa-pipeline",
        )

    # -- public API -----------------------------------------------------------

    def start_processing(
        self,
        document_id: str,
        file_name: str | None,
        file_type: str | None,
        source_key: str | None,
    ) -> DocumentJob:
        """Register a job and schedule its pipeline in the background.

        Raises
        ------
        ValidationError
            When a required field is missing or blank.
        ConflictError
            When a job for *document_id* is already processing.
        """
        fields = {"fileName": file_name, "fileType": file_type, "sourceKey": source_key}
        missing = [name for name, value in fields.items() if not value or not value.strip()]
        if not document_id or not document_id.strip():
            missing.insert(0, "documentId")
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", missing=missing)

        job = self.registry.register(
            DocumentJob(
                document_id=document_id,
                file_name=file_name,
                file_type=file_type,
                source_key=source_key,
            )
        )
        logger.info("Processing started for %s (%s)", document_id, file_name)
        self._executor.submit(self._run_pipeline, job)
        return job

    def get_job(self, document_id: str) -> DocumentJob:
        job = self.registry.get(document_id)
        if job is None:
            raise NotFoundError("Document not found", documentId=document_id)
        return job

    def list_jobs(self) -> list[DocumentJob]:
        return self.registry.list_jobs()

    def get_chunks(self, document_id: str, page: int = 1, limit: int = 10) -> ChunkPage:
        """Return one page of a document's chunks."""
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive integers", page=page, limit=limit)

        chunks = self.registry.get_chunks(document_id)
        if chunks is None:
            raise NotFoundError("Chunks not found for document", documentId=document_id)

        start = (page - 1) * limit
        end = start + limit
        return ChunkPage(
            document_id=document_id,
            total_chunks=len(chunks),
            page=page,
            limit=limit,
            chunks=chunks[start:end],
            has_more=end < len(chunks),
        )

    def get_preview(self, document_id: str) -> DocumentPreview:
        """Return roughly the first 1000 characters of a completed document."""
        job = self.registry.get(document_id)
        if job is None or job.status is not JobStatus.COMPLETED:
            raise NotFoundError("Document not found or not yet processed", documentId=document_id)

        chunks = self.registry.get_chunks(document_id) or []
        text = " ".join(chunk.text for chunk in chunks[:PREVIEW_CHUNKS])
        if len(text) > PREVIEW_CHARS:
            text = text[:PREVIEW_CHARS] + "..."
        return DocumentPreview(
            document_id=document_id,
            file_name=job.file_name,
            preview=text,
            total_chunks=len(chunks),
        )

    def delete_document(self, document_id: str) -> DeletionSummary:
        """Remove a document's job, chunks and vectors.

        Vector deletion is best effort: a failure is logged and reported
        through ``storage_cleared.embeddings`` instead of being raised.
        """
        with self.registry.exclusive(document_id):
            job = self.registry.remove(document_id)
            had_chunks = self.registry.remove_chunks(document_id)

            embeddings_cleared = False
            deleted = 0
            try:
                deleted = self.store.delete_many({"documentId": document_id})
                embeddings_cleared = True
            except Exception:
                logger.exception("Failed to clear embeddings for %s", document_id)
                logger.warning(
                    "Embeddings may not have been cleared for %s; searches may still find it",
                    document_id,
                )

        if embeddings_cleared and deleted == 0 and job is not None:
            logger.warning(
                "No embeddings found for document %s; indexed documents: %s",
                document_id,
                self.store.document_ids(),
            )

        summary = DeletionSummary(
            document_id=document_id,
            file_name=job.file_name if job is not None else "Unknown Document",
            storage_cleared=StorageCleared(
                processed_documents=job is not None,
                document_chunks=had_chunks,
                embeddings=embeddings_cleared,
                embeddings_deleted=deleted,
            ),
            remaining_docs=self.registry.job_count(),
            remaining_chunks=self.registry.chunk_set_count(),
        )
        logger.info("Deleted document %s: %s", document_id, summary.storage_cleared)
        return summary

    def clear_embeddings(self, document_id: str) -> EmbeddingsCleared:
        """Remove a document's vectors, leaving its job and chunks in place.

        A backend failure is logged and returned as a warning.
        """
        with self.registry.exclusive(document_id):
            try:
                deleted = self.store.delete_many({"documentId": document_id})
            except Exception as exc:
                logger.warning("Could not clear embeddings for %s: %s", document_id, exc)
                return EmbeddingsCleared(document_id=document_id, warning=str(exc) or type(exc).__name__)
        logger.info("Cleared %d embeddings for %s", deleted, document_id)
        return EmbeddingsCleared(document_id=document_id, deleted_count=deleted)

    def clear_all_embeddings(self) -> EmbeddingsCleared:
        """Empty the whole vector index.  Jobs and chunks are kept.

        Pipelines still running will store their vectors afterwards.
        """
        logger.warning("Clearing ALL embeddings, index before: %s", self.store.describe_stats())
        deleted = self.store.delete_all()
        logger.info("Index after clearing: %s", self.store.describe_stats())
        return EmbeddingsCleared(deleted_count=deleted)

    def wait_for_completion(
        self,
        document_id: str,
        timeout: float = 30.0,
        poll_interval: float = 0.05,
    ) -> DocumentJob:
        """Poll until the job is ``completed`` or ``error``.

        Giving up raises ``TimeoutError`` and has no effect on the running
        pipeline.
        """
        deadline = time.monotonic() + timeout
        while True:
            job = self.get_job(document_id)
            if job.is_terminal:
                return job
            if time.monotonic() >= deadline:
                raise TimeoutError(f"Document {document_id} still processing after {timeout}s")
            time.sleep(poll_interval)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    # -- pipeline -------------------------------------------------------------

    def _progress(self, job: DocumentJob, progress: str, details: str) -> None:
        logger.info("[%s] %s %s", job.document_id, progress, details)
        self.registry.update(job.document_id, run_id=job.run_id, progress=progress, progress_details=details)

    def _run_pipeline(self, job: DocumentJob) -> None:
        try:
            self._process(job)
        except StageFailure as exc:
            self._fail(job, exc)
        except Exception as exc:
            # Every run must end in a terminal state.
            logger.exception("Unexpected error while processing %s", job.document_id)
            self._fail(job, StageFailure("finalize", str(exc) or type(exc).__name__))

    def _fail(self, job: DocumentJob, exc: StageFailure) -> None:
        logger.error("Processing failed for %s during %s: %s", job.file_name, exc.stage, exc.message)
        self.registry.update(
            job.document_id,
            run_id=job.run_id,
            status=JobStatus.ERROR,
            error=exc.message,
            error_at=utcnow(),
            error_stage=exc.stage,
            progress="Error",
            progress_details=exc.message,
        )

    @staticmethod
    def _stage(name: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            logger.exception("Stage %r failed", name)
            raise StageFailure(name, str(exc) or type(exc).__name__) from exc

    def _extract(self, job: DocumentJob) -> ExtractionResult:
        data = self.source.fetch_document_bytes(job.source_key)
        return self.extractor.extract(data, job.file_type)

    def _store_vectors(self, job: DocumentJob, records: list[EmbeddingRecord]) -> int:
        with self.registry.owned_by(job.document_id, job.run_id) as owned:
            if not owned:
                logger.warning("Run %s no longer owns %s; skipping vector storage", job.run_id, job.document_id)
                return 0
            # Vectors of an earlier run may outnumber this run's chunks.
            replaced = self.store.delete_many({"documentId": job.document_id})
            if replaced:
                logger.info("Replaced %d vectors from a previous run of %s", replaced, job.document_id)
            return self.store.upsert(records)

    def _process(self, job: DocumentJob) -> None:
        cfg = self.settings

        self._progress(job, "Extracting text...", "Downloading and parsing document")
        extraction = self._stage("extraction", self._extract, job)

        self._progress(job, "Chunking text...", f"Splitting {extraction.word_count} words into chunks")
        text_chunks = self._stage(
            "chunking",
            chunk_text,
            extraction.text,
            max_tokens=cfg.chunk_max_tokens,
            overlap_tokens=cfg.chunk_overlap_tokens,
        )

        self._progress(job, "Adding metadata...", "Enriching chunks with document information")
        chunks: list[Chunk] = self._stage(
            "metadata",
            add_metadata_to_chunks,
            text_chunks,
            job.document_id,
            {"fileName": job.file_name, "fileType": job.file_type, **extraction.metadata},
        )

        self._progress(job, "Generating embeddings...", f"Embedding {len(chunks)} chunks")
        batch = self._stage(
            "embedding",
            embed_chunks,
            chunks,
            self.embedder,
            cfg.metadata_text_limit,
            run_id=job.run_id,
        )

        self._progress(job, "Storing vectors...", f"Saving {len(batch.records)} embeddings to vector store")
        stored = self._stage("storage", self._store_vectors, job, batch.records)

        completed_at = utcnow()
        preview = extraction.text[:300] + "..."
        updated = self.registry.complete(
            job.document_id,
            job.run_id,
            chunks,
            status=JobStatus.COMPLETED,
            completed_at=completed_at,
            progress="Completed",
            progress_details="Document processing finished successfully",
            extraction_stats=ExtractionStats(
                word_count=extraction.word_count,
                character_count=extraction.character_count,
                pages=extraction.pages,
                metadata=extraction.metadata,
                preview_text=preview,
            ),
            chunking_stats=get_chunking_stats(chunks),
            embedding_stats=EmbeddingStats(
                success_count=batch.success_count,
                failure_count=batch.failure_count,
                total_tokens=batch.total_tokens,
                vectors_stored=stored,
            ),
            total_chunks=len(chunks),
            processing_time_ms=int((completed_at - job.started_at).total_seconds() * 1000),
        )

        if updated is None:
            logger.warning("Job %s was deleted during processing; discarding its output", job.document_id)
            self.store.delete_many({"documentId": job.document_id, "runId": job.run_id})
            return

        logger.info(
            "Completed %s: %d chunks, %d vectors in %d ms",
            job.file_name,
            len(chunks),
            stored,
            updated.processing_time_ms,
        )
