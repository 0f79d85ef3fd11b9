"""In-memory implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np

from docqa.retrieval.base import VectorStoreBase
from docqa.retrieval.models import EmbeddingRecord, IndexStats, VectorMatch

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Cosine similarity of *a* and *b*, clamped to ``[-1, 1]``.

    Returns ``0.0`` when either vector has zero norm or the lengths differ.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        return 0.0
    magnitude = float(np.linalg.norm(a)) * float(np.linalg.norm(b))
    if magnitude == 0.0:
        return 0.0
    return float(np.clip(np.dot(a, b) / magnitude, -1.0, 1.0))


def _matches(metadata: Mapping[str, Any], filter: Mapping[str, Any] | None) -> bool:
    if not filter:
        return True
    return all(key in metadata and metadata[key] == value for key, value in filter.items())


class InMemoryVectorStore(VectorStoreBase):
    """Process-local vector index with exhaustive cosine search.

    Records live in an insertion-ordered dict guarded by a re-entrant lock;
    nothing survives a restart.  Replacing a record keeps its original
    position, so ties in similarity resolve by first insertion.

    Parameters
    ----------
    dimension:
        Length every stored vector must have.
    """

    def __init__(self, dimension: int = 1536) -> None:
        if dimension < 1:
            raise ValueError(f"dimension must be >= 1, got {dimension}")
        self.dimension = dimension
        self._records: dict[str, EmbeddingRecord] = {}
        self._vectors: dict[str, np.ndarray] = {}
        self._lock = threading.RLock()

    # -- VectorStoreBase overrides --------------------------------------------

    def upsert(self, records: Sequence[EmbeddingRecord]) -> int:
        for record in records:
            if len(record.vector) != self.dimension:
                raise ValueError(
                    f"Record {record.id!r} has dimension {len(record.vector)}, "
                    f"expected {self.dimension}"
                )

        with self._lock:
            for record in records:
                self._records[record.id] = record
                self._vectors[record.id] = np.asarray(record.vector, dtype=np.float64)
        logger.info("Upserted %d vectors (index size %d)", len(records), len(self._records))
        return len(records)

    def query(
        self,
        vector: Sequence[float],
        *,
        top_k: int = 5,
        filter: Mapping[str, Any] | None = None,
        include_metadata: bool = True,
    ) -> list[VectorMatch]:
        if top_k <= 0:
            return []

        query_vector = np.asarray(vector, dtype=np.float64)
        with self._lock:
            scored = [
                (record, cosine_similarity(query_vector, self._vectors[record_id]))
                for record_id, record in self._records.items()
                if _matches(record.metadata, filter)
            ]

        # Stable sort: equal scores keep insertion order.
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return [
            VectorMatch(
                id=record.id,
                score=score,
                metadata=dict(record.metadata) if include_metadata else None,
            )
            for record, score in scored[:top_k]
        ]

    def delete_many(self, filter: Mapping[str, Any]) -> int:
        if not filter:
            raise ValueError("delete_many requires a non-empty filter; use delete_all()")

        with self._lock:
            doomed = [rid for rid, rec in self._records.items() if _matches(rec.metadata, filter)]
            for record_id in doomed:
                del self._records[record_id]
                del self._vectors[record_id]
        logger.info("Deleted %d vectors matching %s", len(doomed), dict(filter))
        return len(doomed)

    def delete_all(self) -> int:
        with self._lock:
            count = len(self._records)
            self._records.clear()
            self._vectors.clear()
        logger.warning("Cleared all %d vectors from the index", count)
        return count

    def describe_stats(self) -> IndexStats:
        with self._lock:
            return IndexStats(count=len(self._records), dimension=self.dimension)

    def document_ids(self) -> list[str]:
        with self._lock:
            seen = dict.fromkeys(
                rec.metadata["documentId"]
                for rec in self._records.values()
                if rec.metadata.get("documentId")
            )
        return list(seen)
