"""Pydantic request/response schemas for the docuchat API.

Request schemas end with "Request", response schemas with "Response".
``Field(...)`` adds constraints and descriptions for the OpenAPI docs.

The chatbot configuration schemas at the bottom are plain shape
validation for the dashboard; chatbots themselves are not stored here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import AnyUrl, BaseModel, Field

from docuchat.models.document import Document, DocumentStats
from docuchat.models.rag import CompletionUsage, RetrievalResult, TenantChunkStats


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
    retryable: bool = False


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class DocumentResponse(BaseModel):
    """Public view of a registry row."""

    id: str
    filename: str
    file_type: str
    file_size_bytes: int
    content_length: int
    status: str
    chunk_count: int
    storage_url: str | None = None
    error_message: str | None = None
    user_id: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, document: Document) -> DocumentResponse:
        return cls(
            id=document.id,
            filename=document.filename,
            file_type=document.file_type.value,
            file_size_bytes=document.file_size_bytes,
            content_length=document.content_length,
            status=document.status.value,
            chunk_count=document.chunk_count,
            storage_url=document.storage_url,
            error_message=document.error_message,
            user_id=document.user_id,
            created_at=document.created_at,
            updated_at=document.updated_at,
        )


class DocumentListResponse(BaseModel):
    documents: list[DocumentResponse]
    limit: int
    offset: int


class DocumentStatsResponse(BaseModel):
    """Registry aggregation, plus vector-store chunk stats when requested."""

    documents: DocumentStats
    chunks: TenantChunkStats | None = None


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatTurn(BaseModel):
    """One earlier message of the conversation."""

    role: Literal["user", "assistant"]
    content: str = Field(..., max_length=8000)


class ChatRequest(BaseModel):
    """An end-user question for the tenant's assistant."""

    message: str = Field(..., min_length=1, max_length=4000)
    model_id: str = Field(default="gpt-3.5-turbo", description="Public model id, e.g. gpt-4")
    language: str = Field(default="en", description="Response language code")
    conversation_history: list[ChatTurn] = Field(default_factory=list, max_length=50)


class ChatResponse(BaseModel):
    response: str
    context_used: list[RetrievalResult]
    usage: CompletionUsage
    model_used: str
    language: str


class TranslateRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=8000)
    target_language: str = Field(..., min_length=2, max_length=50)


class TranslateResponse(BaseModel):
    translated_text: str
    target_language: str


class DetectLanguageRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=8000)


class DetectLanguageResponse(BaseModel):
    language: str


# ---------------------------------------------------------------------------
# Internal analytics
# ---------------------------------------------------------------------------


class CrossTenantSearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=4000)
    limit: int | None = Field(default=None, ge=1, le=100)


class CrossTenantSearchResponse(BaseModel):
    results: list[RetrievalResult]


# ---------------------------------------------------------------------------
# Chatbot configuration
# ---------------------------------------------------------------------------

ChatbotModel = Literal["gpt-4", "gpt-3.5-turbo", "gemini-pro"]
LanguageCode = Literal["en", "es", "fr", "de", "hi", "ne", "zh", "ja"]

_HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class ChatbotCreateRequest(BaseModel):
    """Configuration for a new chatbot widget."""

    name: str = Field(..., min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    ai_model: ChatbotModel = "gpt-3.5-turbo"
    welcome_message: str | None = Field(default=None, max_length=500)
    primary_color: str = Field(default="#2563eb", pattern=_HEX_COLOR)
    supported_languages: list[LanguageCode] = Field(default_factory=lambda: ["en"], min_length=1)
    logo_url: AnyUrl | None = None


class ChatbotUpdateRequest(BaseModel):
    """Partial update of a chatbot; every field is optional."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    ai_model: ChatbotModel | None = None
    welcome_message: str | None = Field(default=None, max_length=500)
    primary_color: str | None = Field(default=None, pattern=_HEX_COLOR)
    supported_languages: list[LanguageCode] | None = Field(default=None, min_length=1)
    logo_url: AnyUrl | None = None
    status: Literal["active", "inactive"] | None = None


class ChatbotValidateResponse(BaseModel):
    valid: bool
    config: dict[str, Any]
