"""FastAPI application exposing document processing and chat over HTTP."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, Field

from docqa.answering.synthesizer import AnswerSynthesizer
from docqa.config import Settings, settings
from docqa.errors import ConflictError, DocQAError, ValidationError
from docqa.ingestion.embedder import HashEmbeddingGenerator
from docqa.ingestion.extractor import DefaultTextExtractor
from docqa.ingestion.source import LocalDocumentSource
from docqa.models import CamelModel
from docqa.processing.orchestrator import ProcessingOrchestrator
from docqa.processing.registry import JobRegistry
from docqa.retrieval.memory_store import InMemoryVectorStore
from docqa.retrieval.retriever import SemanticRetriever

logger = logging.getLogger(__name__)


# ── Request schemas ───────────────────────────────────────────────────
class ProcessRequest(CamelModel):
    """Body of ``POST /process/{documentId}``; missing fields are reported as 400."""

    file_name: str | None = None
    file_type: str | None = None
    source_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("sourceKey", "source_key", "s3Key"),
    )


class ChatRequest(CamelModel):
    """Question from the user, optionally scoped to one document."""

    message: str = ""
    document_id: str | None = None
    max_chunks: int | None = Field(default=None, ge=1, le=100)


# ── Wiring ────────────────────────────────────────────────────────────
def build_services(cfg: Settings = settings) -> tuple[ProcessingOrchestrator, AnswerSynthesizer]:
    """Assemble the default in-memory stack from *cfg*."""
    registry = JobRegistry()
    embedder = HashEmbeddingGenerator(cfg.embedding_dimension)
    store = InMemoryVectorStore(cfg.embedding_dimension)
    orchestrator = ProcessingOrchestrator(
        registry,
        store,
        embedder,
        LocalDocumentSource(cfg.storage_dir),
        DefaultTextExtractor(),
        settings=cfg,
    )
    retriever = SemanticRetriever(
        store,
        embedder,
        default_k=cfg.chat_max_chunks,
        score_threshold=cfg.retrieval_threshold,
        fallback_threshold=cfg.retrieval_fallback_threshold,
    )
    return orchestrator, AnswerSynthesizer(registry, retriever, max_chunks=cfg.chat_max_chunks)


def create_app(
    orchestrator: ProcessingOrchestrator | None = None,
    synthesizer: AnswerSynthesizer | None = None,
) -> FastAPI:
    """Build the API around the given services (default stack when omitted)."""
    if orchestrator is None or synthesizer is None:
        default_orchestrator, default_synthesizer = build_services()
        orchestrator = orchestrator or default_orchestrator
        synthesizer = synthesizer or default_synthesizer

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        orchestrator.shutdown(wait=False)

    app = FastAPI(
        title="docqa API",
        version="0.1.0",
        description="Document processing pipeline and question answering over processed documents.",
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator
    app.state.synthesizer = synthesizer

    # ── Error mapping ─────────────────────────────────────────────────
    @app.exception_handler(DocQAError)
    async def handle_domain_error(request: Request, exc: DocQAError) -> JSONResponse:
        body = {"error": exc.message, **exc.context}
        if isinstance(exc, ConflictError):
            body["document"] = exc.job
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(body))

    @app.exception_handler(RequestValidationError)
    async def handle_bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=jsonable_encoder({"error": "Invalid request", "details": exc.errors()}),
        )

    # ── Routes ────────────────────────────────────────────────────────
    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok"}

    @app.get("/process")
    async def list_documents() -> dict:
        documents = orchestrator.list_jobs()
        return jsonable_encoder({"documents": documents, "total": len(documents)})

    # Registered before the ``/{document_id}`` routes so "chat" is not read as an id.
    @app.post("/process/chat")
    def chat(body: ChatRequest) -> dict:
        if not body.message or not body.message.strip():
            raise ValidationError("Message is required")

        result = synthesizer.answer(body.message, document_id=body.document_id, max_chunks=body.max_chunks)
        return {
            "message": body.message,
            "answer": result.answer,
            "sources": result.sources,
            "relevantChunks": result.relevant_chunk_count,
        }

    @app.post("/process/{document_id}")
    async def start_processing(document_id: str, body: ProcessRequest) -> dict:
        job = orchestrator.start_processing(document_id, body.file_name, body.file_type, body.source_key)
        return jsonable_encoder({"message": "Document processing started", "document": job})

    @app.get("/process/{document_id}")
    async def get_status(document_id: str) -> dict:
        return jsonable_encoder({"document": orchestrator.get_job(document_id)})

    @app.get("/process/{document_id}/chunks")
    async def get_chunks(
        document_id: str,
        page: int = Query(default=1, ge=1),
        limit: int = Query(default=10, ge=1, le=100),
    ) -> dict:
        return jsonable_encoder(orchestrator.get_chunks(document_id, page=page, limit=limit))

    @app.get("/process/{document_id}/preview")
    async def get_preview(document_id: str) -> dict:
        return jsonable_encoder(orchestrator.get_preview(document_id))

    @app.delete("/process/{document_id}")
    async def delete_document(document_id: str) -> dict:
        summary = orchestrator.delete_document(document_id)
        return {"message": "Document deletion completed", **jsonable_encoder(summary)}

    @app.delete("/process/embeddings/{document_id}")
    async def clear_embeddings(document_id: str) -> dict:
        cleared = orchestrator.clear_embeddings(document_id)
        body = {"documentId": document_id, "deletedCount": cleared.deleted_count}
        if cleared.warning is not None:
            return {"message": "No embeddings found to clear (this is normal)", **body, "warning": cleared.warning}
        return {"message": "Document embeddings cleared successfully", **body}

    # Outside ``/process`` so it cannot collide with a document id.
    @app.delete("/admin/embeddings")
    async def clear_all_embeddings() -> dict:
        cleared = orchestrator.clear_all_embeddings()
        return {"message": "All embeddings cleared", "deletedCount": cleared.deleted_count}

    return app


app = create_app()


def main() -> None:
    """Console entry point: ``docqa-serve``."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
