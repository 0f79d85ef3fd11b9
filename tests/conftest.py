"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest
from fakes import DIMENSION, SAMPLE_TEXT

from docqa.config import Settings
from docqa.ingestion.embedder import HashEmbeddingGenerator
from docqa.ingestion.extractor import DefaultTextExtractor
from docqa.ingestion.source import InMemoryDocumentSource
from docqa.processing.orchestrator import ProcessingOrchestrator
from docqa.processing.registry import JobRegistry
from docqa.retrieval.base import VectorStoreBase
from docqa.retrieval.memory_store import InMemoryVectorStore


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(embedding_dimension=DIMENSION, max_workers=2, _env_file=None)


@pytest.fixture()
def embedder() -> HashEmbeddingGenerator:
    return HashEmbeddingGenerator(DIMENSION)


@pytest.fixture()
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore(DIMENSION)


@pytest.fixture()
def registry() -> JobRegistry:
    return JobRegistry()


@pytest.fixture()
def source() -> InMemoryDocumentSource:
    return InMemoryDocumentSource({"docs/guide.txt": SAMPLE_TEXT.encode("utf-8")})


@pytest.fixture()
def make_orchestrator(
    registry: JobRegistry,
    embedder: HashEmbeddingGenerator,
    test_settings: Settings,
) -> Iterator[Callable[..., ProcessingOrchestrator]]:
    """Factory building orchestrators that are shut down after the test."""
    created: list[ProcessingOrchestrator] = []

    def _make(store: VectorStoreBase, source: InMemoryDocumentSource) -> ProcessingOrchestrator:
        orchestrator = ProcessingOrchestrator(
            registry,
            store,
            embedder,
            source,
            DefaultTextExtractor(),
            settings=test_settings,
        )
        created.append(orchestrator)
        return orchestrator

    yield _make
    for orchestrator in created:
        orchestrator.shutdown(wait=True)


@pytest.fixture()
def orchestrator(
    make_orchestrator: Callable[..., ProcessingOrchestrator],
    store: InMemoryVectorStore,
    source: InMemoryDocumentSource,
) -> ProcessingOrchestrator:
    return make_orchestrator(store, source)
