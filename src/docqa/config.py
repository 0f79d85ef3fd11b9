"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Tunables for chunking, embedding, retrieval, processing and serving.

    Every field can be overridden by an environment variable of the same
    name (case-insensitive) or a ``.env`` file in the working directory.
    """

    # Chunking
    chunk_max_tokens: int = Field(default=400, description="Estimated token budget per chunk")
    chunk_overlap_tokens: int = Field(default=50, description="Token budget of the overlap suffix")

    # Embedding
    embedding_dimension: int = 1536
    metadata_text_limit: int = Field(
        default=1000,
        description="Characters of chunk text kept in vector metadata",
    )

    # Retrieval
    retrieval_threshold: float = 0.15
    retrieval_fallback_threshold: float = 0.05
    chat_max_chunks: int = 8

    # Storage / processing
    storage_dir: str = Field(default="./uploads", description="Root directory for uploaded documents")
    max_workers: int = Field(default=4, description="Concurrent background processing tasks")

    # Serving
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Shared instance, read once at import time.
settings = Settings()
