"""Document registry models and the document lifecycle state machine.

A :class:`Document` is one uploaded source file.  Its ``status`` only moves
along the edges declared in ``_TRANSITIONS``::

    processing -> processed | failed | deleted
    processed  -> processing (reprocess) | failed (interrupted delete) | deleted
    failed     -> processing (reprocess) | deleted

``deleted`` is terminal.  ``processed`` is only reached from ``processing``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import PurePath
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FileType(str, Enum):
    """Supported upload formats."""

    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]

    @classmethod
    def from_filename(cls, filename: str) -> FileType | None:
        """Return the file type for *filename*'s extension, or ``None``."""
        extension = file_extension(filename)
        try:
            return cls(extension)
        except ValueError:
            return None


_MIME_TYPES: dict[FileType, str] = {
    FileType.PDF: "application/pdf",
    FileType.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    FileType.TXT: "text/plain",
}


def file_extension(filename: str) -> str:
    """Return the lower-cased extension of *filename* without the dot."""
    return PurePath(filename).suffix.lower().lstrip(".")


class DocumentStatus(str, Enum):
    """Lifecycle states of a document."""

    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"
    DELETED = "deleted"

    def can_transition_to(self, target: DocumentStatus) -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[DocumentStatus, frozenset[DocumentStatus]] = {
    DocumentStatus.PROCESSING: frozenset(
        {DocumentStatus.PROCESSED, DocumentStatus.FAILED, DocumentStatus.DELETED}
    ),
    DocumentStatus.PROCESSED: frozenset(
        {DocumentStatus.PROCESSING, DocumentStatus.FAILED, DocumentStatus.DELETED}
    ),
    DocumentStatus.FAILED: frozenset({DocumentStatus.PROCESSING, DocumentStatus.DELETED}),
    DocumentStatus.DELETED: frozenset(),
}


class UploadedFile(BaseModel):
    """A raw file handed to the ingestion pipeline."""

    model_config = ConfigDict(frozen=True)

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"
    size: int = Field(default=-1, description="Declared size; derived from content when omitted.")

    @model_validator(mode="before")
    @classmethod
    def _derive_size(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "content" not in data:
            return data
        size = data.get("size")
        if size is None or size < 0:
            data = {**data, "size": len(data["content"])}
        return data


class Document(BaseModel):
    """Registry row describing one uploaded document."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    tenant_id: str
    user_id: str | None = None
    filename: str
    file_type: FileType
    file_size_bytes: int = Field(default=0, ge=0)
    content_length: int = Field(default=0, ge=0, description="Characters extracted.")
    status: DocumentStatus = DocumentStatus.PROCESSING
    # Authoritative only when status is PROCESSED.
    chunk_count: int = Field(default=0, ge=0)
    storage_key: str | None = None
    storage_url: str | None = None
    error_message: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class DocumentStats(BaseModel):
    """Per-tenant aggregation over registry rows."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    processed: int = 0
    processing: int = 0
    failed: int = 0
    total_size_bytes: int = 0
    total_chunks: int = 0
