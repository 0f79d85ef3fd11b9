"""Answer synthesis: retrieval plus templated composition."""

from __future__ import annotations

import logging

from docqa.answering.classifier import classify_question, compose_answer
from docqa.models import CamelModel
from docqa.processing.registry import JobRegistry
from docqa.retrieval.retriever import SemanticRetriever

logger = logging.getLogger(__name__)

NO_DOCUMENTS_ANSWER = (
    "I don't have any processed documents to search through yet. Please upload "
    "and process some documents first, then try asking your question again."
)
NO_MATCHES_ANSWER = (
    "I couldn't find any relevant information in your documents to answer that "
    "question. Try asking about topics that are covered in your uploaded "
    "documents, or try rephrasing your question."
)


class ChatAnswer(CamelModel):
    """Answer text, the files it came from and how many chunks were used."""

    answer: str
    sources: list[str] = []
    relevant_chunk_count: int = 0


class AnswerSynthesizer:
    """Answers questions from the chunks of completed documents.

    Parameters
    ----------
    registry:
        Job registry, consulted for whether any document has completed.
    retriever:
        Retriever configured with the primary and fallback thresholds.
    max_chunks:
        Default number of chunks retrieved per question.
    """

    def __init__(self, registry: JobRegistry, retriever: SemanticRetriever, max_chunks: int = 8) -> None:
        self._registry = registry
        self._retriever = retriever
        self.max_chunks = max_chunks

    def answer(
        self,
        question: str,
        document_id: str | None = None,
        max_chunks: int | None = None,
    ) -> ChatAnswer:
        if self._registry.completed_count() == 0:
            return ChatAnswer(answer=NO_DOCUMENTS_ANSWER)

        results = self._retriever.search_with_fallback(
            question,
            k=max_chunks or self.max_chunks,
            document_id=document_id,
        )
        if not results:
            return ChatAnswer(answer=NO_MATCHES_ANSWER)

        sources = list(dict.fromkeys(r.citation.file_name for r in results))
        logger.info(
            "Answering %s question from %d chunks across %d files",
            classify_question(question).value,
            len(results),
            len(sources),
        )
        return ChatAnswer(
            answer=compose_answer(question, (r.content for r in results)),
            sources=sources,
            relevant_chunk_count=len(results),
        )
