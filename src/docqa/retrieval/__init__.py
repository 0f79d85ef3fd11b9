"""
Retrieval: vector index, similarity search and citation assembly.

Records are keyed by chunk id and filtered on flat metadata such as
``documentId``; queries score every candidate by cosine similarity.

Public surface
--------------
- :class:`SemanticRetriever`: query embedding, thresholding and citations.
- :class:`VectorStoreBase`: abstract backend.
- :class:`InMemoryVectorStore`: default process-local backend.
- :class:`EmbeddingRecord`, :class:`VectorMatch`, :class:`IndexStats`,
  :class:`Citation`, :class:`RetrievalResult`: data models.
"""

from docqa.retrieval.base import VectorStoreBase
from docqa.retrieval.memory_store import InMemoryVectorStore, cosine_similarity
from docqa.retrieval.models import (
    Citation,
    EmbeddingRecord,
    IndexStats,
    RetrievalResult,
    VectorMatch,
)
from docqa.retrieval.retriever import SemanticRetriever

__all__ = [
    "Citation",
    "EmbeddingRecord",
    "InMemoryVectorStore",
    "IndexStats",
    "RetrievalResult",
    "SemanticRetriever",
    "VectorMatch",
    "VectorStoreBase",
    "cosine_similarity",
]
