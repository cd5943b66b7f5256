"""docuchat FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging before the first request is served.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from docuchat import __version__
from docuchat.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from docuchat.api.routes import internal_router
from docuchat.api.routes import router as api_router
from docuchat.config.loader import load_config
from docuchat.config.settings import Settings
from docuchat.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docuchat.providers.extraction.file_text_extractor import FileTextExtractor
from docuchat.providers.llm.registry import CompletionProviderRegistry
from docuchat.providers.registry.sqlite_document_registry import SQLiteDocumentRegistry
from docuchat.providers.storage.local_blob_store import LocalBlobStore
from docuchat.providers.vector_store.chromadb_provider import ChromaDBProvider
from docuchat.services.chunker import TextChunker
from docuchat.services.document_service import DocumentService
from docuchat.services.language_service import LanguageService
from docuchat.services.rag_service import RAGService
from docuchat.utils.concurrency import DocumentLockManager
from docuchat.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    rag_config = app_config["rag"]
    upload_config = app_config["uploads"]

    # -- Providers --
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    vector_store = ChromaDBProvider(
        persist_directory=app_settings.chromadb_persist_dir,
        collection_name=app_settings.chromadb_collection,
    )
    document_registry = SQLiteDocumentRegistry(db_path=app_settings.registry_db_path)
    blob_store = LocalBlobStore(
        root=app_settings.blob_storage_dir,
        public_base_url=app_settings.blob_public_base_url,
    )
    completion_registry = CompletionProviderRegistry.from_config(
        app_config["models"], app_settings
    )

    # -- Services --
    chunker = TextChunker(
        chunk_size=rag_config["chunk_size"],
        overlap=rag_config["chunk_overlap"],
    )
    rag_service = RAGService(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        completion_registry=completion_registry,
        similarity_threshold=rag_config["similarity_threshold"],
        search_limit=rag_config["search_limit"],
        cross_tenant_search_limit=app_settings.cross_tenant_search_limit,
        batch_size=rag_config["vector_batch_size"],
        temperature=app_settings.completion_temperature,
        max_tokens=app_settings.completion_max_tokens,
        language_directives=app_config["languages"],
    )
    document_service = DocumentService(
        extractor=FileTextExtractor(),
        blob_store=blob_store,
        registry=document_registry,
        chunker=chunker,
        rag_service=rag_service,
        max_upload_bytes=upload_config["max_upload_bytes"],
        allowed_file_types=upload_config["allowed_file_types"],
        lock_manager=DocumentLockManager(),
    )
    language_service = LanguageService(
        completion_registry=completion_registry,
        model_id=app_settings.utility_model,
    )

    return {
        "settings": app_settings,
        "embedding_provider": embedding_provider,
        "vector_store": vector_store,
        "document_registry": document_registry,
        "blob_store": blob_store,
        "completion_registry": completion_registry,
        "rag_service": rag_service,
        "document_service": document_service,
        "language_service": language_service,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    # Creates the documents table if needed
    await components["document_registry"].initialize()

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        models=components["completion_registry"].model_ids(),
        embedding_available=components["embedding_provider"].is_available(),
        internal_analytics=bool(settings.internal_api_key),
    )

    yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="docuchat API",
        version=__version__,
        description=(
            "Upload pdf, docx and txt documents per tenant and chat with them: "
            "text is chunked, embedded and stored in a vector database, and "
            "answers are generated from the most relevant chunks by the "
            "selected language model."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.cors_origins)

    # -- API routes --
    application.include_router(api_router)
    application.include_router(internal_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "docuchat.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
