"""
Ingestion: document fetching, text extraction, chunking and embedding.

This package turns raw uploaded bytes into embedded chunks ready to be
upserted into a vector store:

    source bytes → extracted text → chunks → embedding records
"""

from docqa.ingestion.chunker import (
    add_metadata_to_chunks,
    chunk_document,
    chunk_text,
    estimate_tokens,
    get_chunking_stats,
    split_into_sentences,
)
from docqa.ingestion.embedder import EmbeddingGenerator, HashEmbeddingGenerator, embed_chunks
from docqa.ingestion.models import Chunk, ChunkingStats, ExtractionResult, TextChunk

__all__ = [
    "Chunk",
    "ChunkingStats",
    "EmbeddingGenerator",
    "ExtractionResult",
    "HashEmbeddingGenerator",
    "TextChunk",
    "add_metadata_to_chunks",
    "chunk_document",
    "chunk_text",
    "embed_chunks",
    "estimate_tokens",
    "get_chunking_stats",
    "split_into_sentences",
]
