"""Unit tests for the retrieval layer: models, base, and SemanticRetriever."""

from __future__ import annotations

import logging

import pytest

from docqa.retrieval.models import Citation
from docqa.retrieval.retriever import SemanticRetriever
from fakes import CannedVectorStore, FixedEmbedder, match

# ── Fixtures ────────────────────────────────────────────────────────────

SAMPLE_MATCHES = [
    match("guide_chunk_3", 0.92, fileName="guide.md", chunkIndex=3, text="Pipelines run in the background."),
    match("guide_chunk_1", 0.41, fileName="guide.md", chunkIndex=1, text="Chunks overlap by whole sentences."),
    match("faq_chunk_0", 0.10, documentId="doc-2", fileName="faq.md", text="Weak match."),
]


@pytest.fixture()
def fake_store() -> CannedVectorStore:
    return CannedVectorStore(SAMPLE_MATCHES)


@pytest.fixture()
def retriever(fake_store: CannedVectorStore) -> SemanticRetriever:
    return SemanticRetriever(fake_store, FixedEmbedder(), default_k=5)


# ── Citation model tests ───────────────────────────────────────────────


class TestCitation:
    def test_short_ref_with_chunk(self) -> None:
        c = Citation(chunk_id="x", file_name="guide.md", chunk_index=3)
        assert c.short_ref() == "[guide.md§3]"

    def test_short_ref_without_chunk(self) -> None:
        c = Citation(chunk_id="x", file_name="guide.md")
        assert c.short_ref() == "[guide.md§?]"

    def test_default_file_name_is_unknown(self) -> None:
        assert Citation(chunk_id="x").file_name == "unknown"

    def test_retrieved_at_is_set(self) -> None:
        assert Citation(chunk_id="x").retrieved_at is not None


# ── SemanticRetriever tests ────────────────────────────────────────────


class TestSemanticRetriever:
    def test_search_applies_threshold(self, retriever: SemanticRetriever) -> None:
        results = retriever.search("How do pipelines run?")
        assert [r.citation.chunk_id for r in results] == ["guide_chunk_3", "guide_chunk_1"]

    def test_search_builds_citations(self, retriever: SemanticRetriever) -> None:
        top = retriever.search("anything")[0]
        assert top.content == "Pipelines run in the background."
        assert top.citation.file_name == "guide.md"
        assert top.citation.chunk_index == 3
        assert top.citation.document_id == "doc-1"
        assert top.citation.score == pytest.approx(0.92)

    def test_search_explicit_threshold(self, retriever: SemanticRetriever) -> None:
        assert len(retriever.search("anything", threshold=0.0)) == 3
        assert len(retriever.search("anything", threshold=0.5)) == 1

    def test_search_uses_default_k(self, retriever: SemanticRetriever, fake_store: CannedVectorStore) -> None:
        retriever.search("anything")
        assert fake_store.queries[-1]["top_k"] == 5

    def test_search_passes_k(self, retriever: SemanticRetriever, fake_store: CannedVectorStore) -> None:
        results = retriever.search("anything", k=1)
        assert fake_store.queries[-1]["top_k"] == 1
        assert len(results) == 1

    def test_document_filter_is_forwarded(
        self, retriever: SemanticRetriever, fake_store: CannedVectorStore
    ) -> None:
        retriever.search("anything", document_id="doc-1")
        assert fake_store.queries[-1]["filter"] == {"documentId": "doc-1"}

    def test_no_filter_without_document(
        self, retriever: SemanticRetriever, fake_store: CannedVectorStore
    ) -> None:
        retriever.search("anything")
        assert fake_store.queries[-1]["filter"] is None

    def test_missing_file_name_is_unknown(self) -> None:
        store = CannedVectorStore([match("c0", 0.9, fileName=None)])
        result = SemanticRetriever(store, FixedEmbedder()).search("q")[0]
        assert result.citation.file_name == "unknown"

    def test_logs_source_references(
        self, retriever: SemanticRetriever, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="docqa.retrieval.retriever"):
            retriever.search("anything")
        assert "Sources: [guide.md§3] [guide.md§1]" in caplog.text

    def test_empty_store_returns_empty(self) -> None:
        assert SemanticRetriever(CannedVectorStore(), FixedEmbedder()).search("q") == []


class TestSearchWithFallback:
    def test_relaxes_threshold_when_nothing_passes(self) -> None:
        store = CannedVectorStore([match("c0", 0.10), match("c1", 0.08), match("c2", 0.01)])
        retriever = SemanticRetriever(store, FixedEmbedder())

        assert retriever.search("q") == []
        results = retriever.search_with_fallback("q")

        assert [r.citation.chunk_id for r in results] == ["c0", "c1"]

    def test_no_retry_when_primary_search_succeeds(self) -> None:
        store = CannedVectorStore([match("c0", 0.5)])
        retriever = SemanticRetriever(store, FixedEmbedder())

        retriever.search_with_fallback("q")
        assert len(store.queries) == 1

    def test_empty_after_fallback(self) -> None:
        store = CannedVectorStore([match("c0", 0.01)])
        retriever = SemanticRetriever(store, FixedEmbedder())

        assert retriever.search_with_fallback("q") == []
        assert len(store.queries) == 2
