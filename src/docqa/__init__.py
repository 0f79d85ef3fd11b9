"""
docqa: document ingestion and question answering over an in-memory index.

Uploaded documents are extracted, split into token-budgeted chunks,
embedded and indexed; questions are answered from the closest chunks
with a deterministic, template-based synthesizer.
"""

__version__ = "0.1.0"
