"""Unit tests for embedding generation."""

from __future__ import annotations

import math

import pytest

from docqa.errors import EmbeddingError
from docqa.ingestion.chunker import chunk_document
from docqa.ingestion.embedder import EmbeddingGenerator, HashEmbeddingGenerator, embed_chunks


class FlakyEmbedder(EmbeddingGenerator):
    """Fails on every text containing *poison*."""

    model_name = "flaky"

    def __init__(self, poison: str) -> None:
        super().__init__(8)
        self.poison = poison

    def embed(self, text: str) -> list[float]:
        if self.poison in text:
            raise RuntimeError("embedding backend rejected the text")
        return [1.0] * self.dimension


def _norm(vector: list[float]) -> float:
    return math.sqrt(sum(x * x for x in vector))


# ── HashEmbeddingGenerator ──────────────────────────────────────────────


class TestHashEmbeddingGenerator:
    def test_is_deterministic(self) -> None:
        gen = HashEmbeddingGenerator(128)
        assert gen.embed("The quick brown fox") == gen.embed("The quick brown fox")

    def test_separate_instances_agree(self) -> None:
        assert HashEmbeddingGenerator(128).embed("same text") == HashEmbeddingGenerator(128).embed("same text")

    def test_has_configured_dimension(self) -> None:
        assert len(HashEmbeddingGenerator().embed("hello")) == 1536
        assert len(HashEmbeddingGenerator(32).embed("hello")) == 32

    def test_is_unit_length(self) -> None:
        vector = HashEmbeddingGenerator(256).embed("Vectors are normalised after hashing.")
        assert _norm(vector) == pytest.approx(1.0)

    def test_is_case_insensitive(self) -> None:
        gen = HashEmbeddingGenerator(64)
        assert gen.embed("Hello World") == gen.embed("hello world")

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_text_gives_zero_vector(self, text: str) -> None:
        vector = HashEmbeddingGenerator(16).embed(text)
        assert vector == [0.0] * 16

    def test_different_texts_differ(self) -> None:
        gen = HashEmbeddingGenerator(64)
        assert gen.embed("apples and pears") != gen.embed("network protocols")

    def test_rejects_non_positive_dimension(self) -> None:
        with pytest.raises(ValueError):
            HashEmbeddingGenerator(0)


# ── embed_chunks ────────────────────────────────────────────────────────


class TestEmbedChunks:
    def test_builds_one_record_per_chunk(self) -> None:
        chunks = chunk_document(
            "Alpha sentence here. Beta sentence here.",
            "doc-7",
            {"fileName": "a.txt", "fileType": "text/plain"},
            max_tokens=3,
            overlap_tokens=0,
        )
        batch = embed_chunks(chunks, HashEmbeddingGenerator(32))

        assert batch.success_count == 2
        assert batch.failure_count == 0
        assert [r.id for r in batch.records] == ["doc-7_chunk_0", "doc-7_chunk_1"]
        meta = batch.records[0].metadata
        assert meta["documentId"] == "doc-7"
        assert meta["fileName"] == "a.txt"
        assert meta["fileType"] == "text/plain"
        assert meta["chunkIndex"] == 0
        assert meta["totalChunks"] == 2
        assert meta["text"] == "Alpha sentence here."
        assert batch.total_tokens == 6

    def test_truncates_metadata_text(self) -> None:
        chunks = chunk_document("x" * 50 + ".", "doc-1", {"fileName": "x.txt"})
        batch = embed_chunks(chunks, HashEmbeddingGenerator(16), text_limit=10)
        assert batch.records[0].metadata["text"] == "x" * 10

    def test_tags_records_with_run(self) -> None:
        chunks = chunk_document("Alpha sentence here.", "doc-1", {"fileName": "a.txt"})
        assert "runId" not in embed_chunks(chunks, HashEmbeddingGenerator(16)).records[0].metadata

        batch = embed_chunks(chunks, HashEmbeddingGenerator(16), run_id="run-1")
        assert batch.records[0].metadata["runId"] == "run-1"

    def test_counts_partial_failures(self) -> None:
        chunks = chunk_document(
            "Good first line. Bad second line. Good third line.",
            "doc-1",
            {"fileName": "a.txt"},
            max_tokens=3,
            overlap_tokens=0,
        )
        batch = embed_chunks(chunks, FlakyEmbedder("Bad"))

        assert batch.success_count == 2
        assert batch.failure_count == 1
        assert [r.id for r in batch.records] == ["doc-1_chunk_0", "doc-1_chunk_2"]

    def test_raises_when_every_chunk_fails(self) -> None:
        chunks = chunk_document("Bad one. Bad two.", "doc-1", max_tokens=2, overlap_tokens=0)
        with pytest.raises(EmbeddingError, match="All 2 chunks failed"):
            embed_chunks(chunks, FlakyEmbedder("Bad"))

    def test_empty_chunk_list_is_not_an_error(self) -> None:
        batch = embed_chunks([], HashEmbeddingGenerator(16))
        assert batch.records == []
        assert batch.success_count == 0
