"""FastAPI routes for docuchat.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.  The tenant is taken from the
``X-Tenant-ID`` header; authenticating that header is the job of the
gateway in front of this service.

Endpoint                              Method  Description
----------------------------------------------------------------------
/api/v1/documents                     POST    Upload and ingest a file
/api/v1/documents                     GET     List documents (newest first)
/api/v1/documents/stats               GET     Registry (+ chunk) statistics
/api/v1/documents/{id}                GET     One document
/api/v1/documents/{id}/reprocess      POST    Re-extract and re-embed
/api/v1/documents/{id}                DELETE  Delete chunks, blob and row
/api/v1/chat                          POST    RAG answer
/api/v1/chat/stream                   POST    RAG answer as a text stream
/api/v1/translate                     POST    Translate text
/api/v1/detect-language               POST    Guess the language of text
/api/v1/chatbots/validate             POST    Validate a chatbot config
/api/v1/health                        GET     Health check

The cross-tenant search lives on ``internal_router`` (``/internal``) and is
guarded by the ``X-Internal-Key`` header.  It must never be mounted under
a tenant-facing prefix.
"""

from __future__ import annotations

import secrets
from collections.abc import AsyncIterator
from typing import Annotated, Any, Literal

import structlog
from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query, Request, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import ValidationError as PydanticValidationError

from docuchat import __version__
from docuchat.api.schemas import (
    ChatbotCreateRequest,
    ChatbotUpdateRequest,
    ChatbotValidateResponse,
    ChatRequest,
    ChatResponse,
    CrossTenantSearchRequest,
    CrossTenantSearchResponse,
    DetectLanguageRequest,
    DetectLanguageResponse,
    DocumentListResponse,
    DocumentResponse,
    DocumentStatsResponse,
    ErrorResponse,
    HealthResponse,
    TranslateRequest,
    TranslateResponse,
)
from docuchat.config.settings import Settings
from docuchat.models.document import UploadedFile
from docuchat.models.rag import ConversationTurn, Role
from docuchat.services.document_service import DocumentService
from docuchat.services.language_service import LanguageService
from docuchat.services.rag_service import RAGService
from docuchat.utils.errors import ValidationError
from docuchat.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")
internal_router = APIRouter(prefix="/internal", include_in_schema=False)

_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_document_service(request: Request) -> DocumentService:
    return request.app.state.document_service


def _get_rag_service(request: Request) -> RAGService:
    return request.app.state.rag_service


def _get_language_service(request: Request) -> LanguageService:
    return request.app.state.language_service


def _get_tenant_id(x_tenant_id: Annotated[str | None, Header()] = None) -> str:
    """Return the caller's tenant from the ``X-Tenant-ID`` header."""
    if not x_tenant_id or not x_tenant_id.strip():
        raise ValidationError(message="X-Tenant-ID header is required")
    return x_tenant_id.strip()


def _require_internal_key(
    settings: Annotated[Settings, Depends(_get_settings)],
    x_internal_key: Annotated[str | None, Header()] = None,
) -> None:
    """Reject callers without the internal API key.

    The internal routes do not exist (404) while no key is configured.
    """
    if not settings.internal_api_key:
        raise HTTPException(status_code=404, detail="Not Found")
    if not x_internal_key or not secrets.compare_digest(
        x_internal_key, settings.internal_api_key
    ):
        _logger.warning("internal_key_rejected")
        raise HTTPException(status_code=403, detail="Invalid internal API key")


SettingsDep = Annotated[Settings, Depends(_get_settings)]
DocumentServiceDep = Annotated[DocumentService, Depends(_get_document_service)]
RAGServiceDep = Annotated[RAGService, Depends(_get_rag_service)]
LanguageServiceDep = Annotated[LanguageService, Depends(_get_language_service)]
TenantDep = Annotated[str, Depends(_get_tenant_id)]


# ---------------------------------------------------------------------------
# Document endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/documents",
    response_model=DocumentResponse,
    status_code=201,
    responses={422: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Upload a document and index it for chat",
)
async def upload_document(
    file: UploadFile,
    tenant_id: TenantDep,
    document_service: DocumentServiceDep,
    settings: SettingsDep,
    x_user_id: Annotated[str | None, Header()] = None,
) -> DocumentResponse:
    """Accept a pdf/docx/txt upload, extract, chunk, embed and store it."""
    # Read at most one byte past the limit so oversized uploads are rejected
    # without buffering the whole body.
    chunks: list[bytes] = []
    total_size = 0
    while total_size <= settings.max_upload_bytes:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        chunks.append(chunk)
        total_size += len(chunk)
    content = b"".join(chunks)

    uploaded = UploadedFile(
        filename=file.filename or "",
        content=content,
        content_type=file.content_type or "application/octet-stream",
        size=file.size if file.size is not None else len(content),
    )
    document = await document_service.ingest(uploaded, tenant_id, user_id=x_user_id)
    return DocumentResponse.from_document(document)


@router.get(
    "/documents",
    response_model=DocumentListResponse,
    summary="List the tenant's documents, newest first",
)
async def list_documents(
    tenant_id: TenantDep,
    document_service: DocumentServiceDep,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> DocumentListResponse:
    documents = await document_service.list_documents(tenant_id, limit=limit, offset=offset)
    return DocumentListResponse(
        documents=[DocumentResponse.from_document(d) for d in documents],
        limit=limit,
        offset=offset,
    )


@router.get(
    "/documents/stats",
    response_model=DocumentStatsResponse,
    summary="Document and chunk statistics for the tenant",
)
async def document_stats(
    tenant_id: TenantDep,
    document_service: DocumentServiceDep,
    rag_service: RAGServiceDep,
    include_chunks: bool = False,
) -> DocumentStatsResponse:
    stats = await document_service.stats(tenant_id)
    chunks = await rag_service.chunk_stats(tenant_id) if include_chunks else None
    return DocumentStatsResponse(documents=stats, chunks=chunks)


@router.get(
    "/documents/{document_id}",
    response_model=DocumentResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get one document",
)
async def get_document(
    document_id: str,
    tenant_id: TenantDep,
    document_service: DocumentServiceDep,
) -> DocumentResponse:
    document = await document_service.get_document(document_id, tenant_id)
    return DocumentResponse.from_document(document)


@router.post(
    "/documents/{document_id}/reprocess",
    response_model=DocumentResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Re-extract, re-chunk and re-embed a document",
)
async def reprocess_document(
    document_id: str,
    tenant_id: TenantDep,
    document_service: DocumentServiceDep,
) -> DocumentResponse:
    document = await document_service.reprocess(document_id, tenant_id)
    return DocumentResponse.from_document(document)


@router.delete(
    "/documents/{document_id}",
    status_code=204,
    summary="Delete a document and its chunks (idempotent)",
)
async def delete_document(
    document_id: str,
    tenant_id: TenantDep,
    document_service: DocumentServiceDep,
) -> None:
    await document_service.delete(document_id, tenant_id)


# ---------------------------------------------------------------------------
# Chat endpoints
# ---------------------------------------------------------------------------


def _history(body: ChatRequest) -> list[ConversationTurn]:
    return [
        ConversationTurn(role=Role(turn.role), content=turn.content)
        for turn in body.conversation_history
    ]


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Answer a question from the tenant's documents",
)
async def chat(
    body: ChatRequest,
    tenant_id: TenantDep,
    rag_service: RAGServiceDep,
) -> ChatResponse:
    answer = await rag_service.answer(
        tenant_id,
        body.message,
        body.model_id,
        language=body.language,
        conversation_history=_history(body),
    )
    return ChatResponse(**answer.to_payload())


@router.post(
    "/chat/stream",
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Answer a question, streaming the response text",
)
async def chat_stream(
    body: ChatRequest,
    tenant_id: TenantDep,
    rag_service: RAGServiceDep,
) -> StreamingResponse:
    """Stream the answer as plain text.

    Retrieval and the first fragment are awaited before the response starts,
    so their errors still map to a typed error response.
    """
    fragments = await rag_service.answer_stream(
        tenant_id,
        body.message,
        body.model_id,
        language=body.language,
        conversation_history=_history(body),
    )
    first = await anext(fragments, None)

    async def _body() -> AsyncIterator[str]:
        if first is not None:
            yield first
        async for fragment in fragments:
            yield fragment

    return StreamingResponse(_body(), media_type="text/plain; charset=utf-8")


@router.post(
    "/translate",
    response_model=TranslateResponse,
    summary="Translate text into another language",
)
async def translate(
    body: TranslateRequest,
    tenant_id: TenantDep,
    language_service: LanguageServiceDep,
) -> TranslateResponse:
    translated = await language_service.translate(body.text, body.target_language)
    return TranslateResponse(translated_text=translated, target_language=body.target_language)


@router.post(
    "/detect-language",
    response_model=DetectLanguageResponse,
    summary="Detect the language of text (falls back to English)",
)
async def detect_language(
    body: DetectLanguageRequest,
    tenant_id: TenantDep,
    language_service: LanguageServiceDep,
) -> DetectLanguageResponse:
    return DetectLanguageResponse(language=await language_service.detect_language(body.text))


# ---------------------------------------------------------------------------
# Chatbot configuration
# ---------------------------------------------------------------------------


@router.post(
    "/chatbots/validate",
    response_model=ChatbotValidateResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Validate a chatbot configuration and fill in defaults",
)
async def validate_chatbot(
    config: Annotated[dict[str, Any], Body()],
    mode: Annotated[Literal["create", "update"], Query()] = "create",
) -> ChatbotValidateResponse:
    schema = ChatbotCreateRequest if mode == "create" else ChatbotUpdateRequest
    try:
        parsed = schema.model_validate(config)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ValidationError(message=problems) from exc
    return ChatbotValidateResponse(
        valid=True,
        config=parsed.model_dump(mode="json", exclude_unset=mode == "update"),
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health and provider availability."""
    state = request.app.state
    providers: dict[str, Any] = {
        "embedding": state.embedding_provider.is_available(),
        "vector_store": state.vector_store.is_available(),
        "models": state.completion_registry.model_ids(),
    }
    if providers["embedding"] and providers["vector_store"] and providers["models"]:
        status = "healthy"
    elif providers["vector_store"]:
        status = "degraded"
    else:
        status = "unhealthy"
    return HealthResponse(status=status, version=__version__, providers=providers)


# ---------------------------------------------------------------------------
# Internal analytics (never tenant-facing)
# ---------------------------------------------------------------------------


@internal_router.post(
    "/analytics/search",
    response_model=CrossTenantSearchResponse,
    dependencies=[Depends(_require_internal_key)],
)
async def cross_tenant_search(
    body: CrossTenantSearchRequest,
    rag_service: RAGServiceDep,
) -> CrossTenantSearchResponse:
    """Search every tenant's chunks.  Results carry their ``tenant_id``."""
    results = await rag_service.cross_tenant_search(body.query, limit=body.limit)
    return CrossTenantSearchResponse(results=results)
