"""Error taxonomy shared by the processing, retrieval and serving layers.

Every error that can reach an HTTP caller derives from :class:`DocQAError`
and carries the status code the serving layer should answer with.
Errors raised inside a background pipeline never reach a caller directly;
they are recorded on the job as a :class:`StageFailure`.
"""

from __future__ import annotations

from typing import Any


class DocQAError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(DocQAError):
    """A required field is missing or empty."""

    status_code = 400


class NotFoundError(DocQAError):
    """Unknown document, job or chunk set."""

    status_code = 404


class ConflictError(DocQAError):
    """A job for the same document is already processing.

    ``job`` is the existing, unchanged job.
    """

    status_code = 409

    def __init__(self, message: str, job: Any) -> None:
        super().__init__(message)
        self.job = job


class StageFailure(DocQAError):
    """A pipeline stage failed; recorded on the job, never raised to callers."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(message)
        self.stage = stage


class UnsupportedFileType(DocQAError):
    """The extractor has no reader for the given MIME type."""

    status_code = 400


class EmbeddingError(DocQAError):
    """No chunk of a document could be embedded."""
