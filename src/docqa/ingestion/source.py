"""Document sources: where uploaded bytes are fetched from."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Protocol

from docqa.errors import NotFoundError

logger = logging.getLogger(__name__)


class DocumentSource(Protocol):
    """Anything that can hand back the raw bytes stored under a key."""

    def fetch_document_bytes(self, key: str) -> bytes: ...


class LocalDocumentSource:
    """Reads documents stored under *root* on the local filesystem.

    Keys are paths relative to *root*; keys resolving outside of it are
    rejected.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def _resolve(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root):
            raise NotFoundError(f"Invalid document key: {key!r}", key=key)
        return path

    def fetch_document_bytes(self, key: str) -> bytes:
        path = self._resolve(key)
        if not path.is_file():
            raise NotFoundError(f"Document not found in storage: {key!r}", key=key)
        data = path.read_bytes()
        logger.info("Read %d bytes from %s", len(data), path)
        return data


class InMemoryDocumentSource:
    """Dict-backed source for tests and local demos."""

    def __init__(self, documents: dict[str, bytes] | None = None) -> None:
        self._documents: dict[str, bytes] = dict(documents or {})
        self._lock = threading.Lock()

    def put(self, key: str, data: bytes) -> None:
        with self._lock:
            self._documents[key] = data

    def fetch_document_bytes(self, key: str) -> bytes:
        with self._lock:
            data = self._documents.get(key)
        if data is None:
            raise NotFoundError(f"Document not found in storage: {key!r}", key=key)
        return data
