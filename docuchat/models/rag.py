"""RAG pipeline data models.

Defines Pydantic v2 models for stored chunk records, retrieval results,
conversation turns, completion results, and the final RAG answer.

RAG overview:
    1. INGESTION: uploaded documents are split into overlapping text chunks.
    2. EMBEDDING: each chunk is converted into a fixed-length vector.
    3. STORAGE: chunks + vectors are stored in the vector database, tagged
       with ``tenant_id`` and ``document_id``.
    4. RETRIEVAL: a user question is embedded and the most similar chunks
       of the caller's tenant are fetched.
    5. GENERATION: retrieved chunks are placed in the system prompt and the
       selected LLM answers the question.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def chunk_id_for(document_id: str, chunk_index: int) -> str:
    """Return the deterministic id of chunk *chunk_index* of *document_id*."""
    return f"{document_id}_chunk_{chunk_index}"


# ---------------------------------------------------------------------------
# Stored chunks
# ---------------------------------------------------------------------------
class ChunkMetadata(BaseModel):
    """Descriptive metadata copied onto every chunk of a document."""

    model_config = ConfigDict(frozen=True)

    filename: str = ""
    file_type: str = ""
    storage_url: str | None = None
    created_at: datetime | None = None
    char_length: int = Field(default=0, ge=0)


class ChunkRecord(BaseModel):
    """One retrievable unit of text, as persisted in the vector store."""

    model_config = ConfigDict(frozen=True)

    id: str
    tenant_id: str
    document_id: str
    chunk_index: int = Field(ge=0)
    content: str
    embedding: list[float]
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------
class RetrievalResult(BaseModel):
    """A chunk returned from a similarity search with its score."""

    model_config = ConfigDict(frozen=True)

    content: str
    similarity_score: float = Field(default=0.0, ge=0.0, le=1.0)
    document_id: str
    tenant_id: str
    chunk_index: int = 0
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)


class DocumentChunkStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    chunk_count: int = 0
    content_length: int = 0
    created_at: datetime | None = None


class TenantChunkStats(BaseModel):
    """Vector-store view of a tenant's knowledge base."""

    model_config = ConfigDict(frozen=True)

    total_chunks: int = 0
    total_content_length: int = 0
    documents: dict[str, DocumentChunkStats] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Conversation / completion
# ---------------------------------------------------------------------------
class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ConversationTurn(BaseModel):
    """One message in a chat transcript."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    def as_message(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class CompletionUsage(BaseModel):
    """Token accounting reported by a completion provider.

    ``reported`` is ``False`` when the provider cannot report usage; all
    counts are then zero rather than estimated.
    """

    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    reported: bool = True

    @classmethod
    def unknown(cls) -> CompletionUsage:
        return cls(prompt_tokens=0, completion_tokens=0, total_tokens=0, reported=False)


class CompletionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    usage: CompletionUsage = Field(default_factory=CompletionUsage.unknown)
    model: str = ""


class RAGAnswer(BaseModel):
    """Answer produced by the RAG orchestrator plus what it was based on."""

    model_config = ConfigDict(frozen=True)

    response_text: str
    context_used: list[RetrievalResult] = Field(default_factory=list)
    usage: CompletionUsage = Field(default_factory=CompletionUsage.unknown)
    model_used: str
    language: str

    def to_payload(self) -> dict[str, Any]:
        """Serialise with the public field names used by the chat API."""
        return {
            "response": self.response_text,
            "context_used": [r.model_dump(mode="json") for r in self.context_used],
            "usage": self.usage.model_dump(),
            "model_used": self.model_used,
            "language": self.language,
        }
