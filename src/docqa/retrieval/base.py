"""Vector-store contract shared by the orchestrator and the retriever.

Backends subclass :class:`VectorStoreBase`; only the in-memory store ships,
but nothing above this module depends on it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from docqa.retrieval.models import EmbeddingRecord, IndexStats, VectorMatch


class VectorStoreBase(ABC):
    """Upsert, filtered top-k query and deletion over embedding records.

    Filters are flat ``{metadata_key: value}`` mappings; a record matches
    when **every** key is present in its metadata with an equal value.
    """

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(self, records: Sequence[EmbeddingRecord]) -> int:
        """Insert *records*, replacing any sharing an id.  Returns the count stored."""
        ...

    @abstractmethod
    def query(
        self,
        vector: Sequence[float],
        *,
        top_k: int = 5,
        filter: Mapping[str, Any] | None = None,
        include_metadata: bool = True,
    ) -> list[VectorMatch]:
        """Return the *top_k* records most similar to *vector*.

        Parameters
        ----------
        vector:
            Query embedding.
        top_k:
            Maximum number of matches.
        filter:
            Equality constraints on record metadata; ``None`` or empty means
            no constraint.
        include_metadata:
            Whether matches carry the stored metadata.
        """
        ...

    @abstractmethod
    def delete_many(self, filter: Mapping[str, Any]) -> int:
        """Delete every record matching *filter*.  Returns the number removed.

        An empty filter is rejected; use :meth:`delete_all` instead.
        """
        ...

    @abstractmethod
    def delete_all(self) -> int:
        """Remove every record.  Returns the number removed."""
        ...

    @abstractmethod
    def describe_stats(self) -> IndexStats:
        """Return record count and vector dimension."""
        ...

    # -- optional overrides ---------------------------------------------------

    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        return True

    def document_ids(self) -> list[str]:
        """Distinct ``documentId`` values in the index; empty if the backend cannot list them."""
        return []
