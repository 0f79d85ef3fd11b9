"""Query-side retrieval: embed, search, threshold, cite.

The chat layer never talks to a vector store directly.  It asks the
:class:`SemanticRetriever` for passages, which embeds the question with the
same generator used at ingestion, optionally scopes the query to one
document and keeps only matches above a similarity threshold.

Example::

    retriever = SemanticRetriever(store, embedder)
    for hit in retriever.search_with_fallback("How is the index built?", k=8):
        print(hit.citation.short_ref(), hit.content[:80])
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docqa.retrieval.base import VectorStoreBase
from docqa.retrieval.models import Citation, RetrievalResult, VectorMatch

if TYPE_CHECKING:
    from docqa.ingestion.embedder import EmbeddingGenerator

logger = logging.getLogger(__name__)


class SemanticRetriever:
    """Thresholded similarity search over chunk embeddings.

    Parameters
    ----------
    store:
        Vector index holding one record per chunk.
    embedder:
        Generator used to embed queries; must match the one used at ingestion.
    default_k:
        Number of matches requested when the caller gives no ``k``.
    score_threshold:
        Matches scoring below this are dropped.
    fallback_threshold:
        Lower bar applied once by :meth:`search_with_fallback` when nothing
        clears ``score_threshold``.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: EmbeddingGenerator,
        *,
        default_k: int = 8,
        score_threshold: float = 0.15,
        fallback_threshold: float = 0.05,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self.default_k = default_k
        self.score_threshold = score_threshold
        self.fallback_threshold = fallback_threshold

    def search(
        self,
        query: str,
        *,
        k: int | None = None,
        document_id: str | None = None,
        threshold: float | None = None,
    ) -> list[RetrievalResult]:
        """Return up to *k* passages scoring at least *threshold*.

        Parameters
        ----------
        query:
            Question or phrase to embed.
        k:
            Matches requested from the store; ``default_k`` when omitted.
        document_id:
            Only consider chunks of this document.
        threshold:
            Minimum score; ``score_threshold`` when omitted.
        """
        top_k = k or self.default_k
        min_score = self.score_threshold if threshold is None else threshold
        matches = self._store.query(
            self._embedder.embed(query),
            top_k=top_k,
            filter={"documentId": document_id} if document_id else None,
            include_metadata=True,
        )
        hits = [self._to_result(m) for m in matches if m.score >= min_score]
        logger.info(
            "Kept %d of %d matches at threshold %.2f for %r",
            len(hits),
            len(matches),
            min_score,
            query[:80],
        )
        if hits:
            logger.debug("Sources: %s", " ".join(hit.citation.short_ref() for hit in hits))
        return hits

    def search_with_fallback(
        self,
        query: str,
        *,
        k: int | None = None,
        document_id: str | None = None,
    ) -> list[RetrievalResult]:
        """Like :meth:`search`, retrying once at ``fallback_threshold`` when empty."""
        hits = self.search(query, k=k, document_id=document_id)
        if hits:
            return hits
        logger.info("No matches at %.2f, relaxing to %.2f", self.score_threshold, self.fallback_threshold)
        return self.search(query, k=k, document_id=document_id, threshold=self.fallback_threshold)

    @staticmethod
    def _to_result(match: VectorMatch) -> RetrievalResult:
        meta = match.metadata or {}
        return RetrievalResult(
            content=meta.get("text", ""),
            citation=Citation(
                chunk_id=match.id,
                document_id=meta.get("documentId"),
                file_name=meta.get("fileName") or "unknown",
                chunk_index=meta.get("chunkIndex"),
                score=match.score,
                metadata=meta,
            ),
        )
