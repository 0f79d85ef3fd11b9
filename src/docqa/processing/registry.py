"""Thread-safe registry of document jobs and their chunks."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from docqa.errors import ConflictError
from docqa.ingestion.models import Chunk
from docqa.processing.models import DocumentJob, JobStatus


class JobRegistry:
    """Owns every :class:`DocumentJob` and chunk list in the process.

    Request handlers read from it while background pipelines write to it,
    so every access goes through one lock.  Jobs handed out are deep
    copies; callers never observe a job mid-update.

    Work that touches state outside the registry, such as vector writes,
    is serialised per document through :meth:`exclusive` and
    :meth:`owned_by`.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, DocumentJob] = {}
        self._chunks: dict[str, list[Chunk]] = {}
        self._lock = threading.Lock()
        self._guards: dict[str, threading.Lock] = {}

    # -- jobs -----------------------------------------------------------------

    def register(self, job: DocumentJob) -> DocumentJob:
        """Store *job* unless a job for the same document is still processing.

        Raises
        ------
        ConflictError
            Carrying the existing, unchanged job.
        """
        with self._lock:
            existing = self._jobs.get(job.document_id)
            if existing is not None and existing.status is JobStatus.PROCESSING:
                raise ConflictError(
                    "Document is already being processed",
                    job=existing.model_copy(deep=True),
                )
            self._jobs[job.document_id] = job.model_copy(deep=True)
            return job.model_copy(deep=True)

    def get(self, document_id: str) -> DocumentJob | None:
        with self._lock:
            job = self._jobs.get(document_id)
            return job.model_copy(deep=True) if job is not None else None

    def update(
        self,
        document_id: str,
        *,
        run_id: str | None = None,
        **changes: Any,
    ) -> DocumentJob | None:
        """Apply *changes* to the stored job.

        Returns ``None`` without touching anything when the job no longer
        exists or, if *run_id* is given, belongs to a different run.
        """
        with self._lock:
            job = self._jobs.get(document_id)
            if job is None or (run_id is not None and job.run_id != run_id):
                return None
            updated = job.model_copy(update=changes, deep=True)
            self._jobs[document_id] = updated
            return updated.model_copy(deep=True)

    def complete(
        self,
        document_id: str,
        run_id: str,
        chunks: list[Chunk],
        **changes: Any,
    ) -> DocumentJob | None:
        """Store *chunks* and apply *changes* atomically for the given run."""
        with self._lock:
            job = self._jobs.get(document_id)
            if job is None or job.run_id != run_id:
                return None
            self._chunks[document_id] = list(chunks)
            updated = job.model_copy(update=changes, deep=True)
            self._jobs[document_id] = updated
            return updated.model_copy(deep=True)

    def list_jobs(self) -> list[DocumentJob]:
        """All jobs, most recently started first."""
        with self._lock:
            jobs = [job.model_copy(deep=True) for job in self._jobs.values()]
        return sorted(jobs, key=lambda job: job.started_at, reverse=True)

    def remove(self, document_id: str) -> DocumentJob | None:
        with self._lock:
            return self._jobs.pop(document_id, None)

    def completed_count(self) -> int:
        with self._lock:
            return sum(1 for job in self._jobs.values() if job.status is JobStatus.COMPLETED)

    def job_count(self) -> int:
        with self._lock:
            return len(self._jobs)

    # -- chunks ---------------------------------------------------------------

    def get_chunks(self, document_id: str) -> list[Chunk] | None:
        # Chunks are frozen, a shallow copy of the list is enough.
        with self._lock:
            chunks = self._chunks.get(document_id)
            return list(chunks) if chunks is not None else None

    def remove_chunks(self, document_id: str) -> bool:
        with self._lock:
            return self._chunks.pop(document_id, None) is not None

    def chunk_set_count(self) -> int:
        with self._lock:
            return len(self._chunks)

    # -- per-document guards --------------------------------------------------

    @contextmanager
    def exclusive(self, document_id: str) -> Iterator[None]:
        """Hold the guard of *document_id* for the duration of the block."""
        with self._lock:
            guard = self._guards.setdefault(document_id, threading.Lock())
        with guard:
            yield

    @contextmanager
    def owned_by(self, document_id: str, run_id: str) -> Iterator[bool]:
        """Hold the document guard and yield whether *run_id* owns the job.

        Ownership cannot change while the block runs, as long as removals
        happen under :meth:`exclusive`.
        """
        with self.exclusive(document_id):
            with self._lock:
                job = self._jobs.get(document_id)
                owned = job is not None and job.run_id == run_id
            yield owned
