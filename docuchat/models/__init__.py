"""Pydantic models for documents, chunks, retrieval, and chat completions."""

from docuchat.models.document import (
    Document,
    DocumentStats,
    DocumentStatus,
    FileType,
    UploadedFile,
)
from docuchat.models.rag import (
    ChunkMetadata,
    ChunkRecord,
    CompletionResult,
    CompletionUsage,
    ConversationTurn,
    RAGAnswer,
    RetrievalResult,
    Role,
    TenantChunkStats,
    chunk_id_for,
)

__all__ = [
    "ChunkMetadata",
    "ChunkRecord",
    "CompletionResult",
    "CompletionUsage",
    "ConversationTurn",
    "Document",
    "DocumentStats",
    "DocumentStatus",
    "FileType",
    "RAGAnswer",
    "RetrievalResult",
    "Role",
    "TenantChunkStats",
    "UploadedFile",
    "chunk_id_for",
]
