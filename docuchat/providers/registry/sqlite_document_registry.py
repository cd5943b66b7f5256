"""SQLite-backed document registry.

Persists :class:`Document` rows to a local SQLite database at
``data/documents.db``.  Uses ``aiosqlite`` for async I/O.  Every query
filters on ``tenant_id``; a row belonging to another tenant is
indistinguishable from a missing row.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from docuchat.interfaces.document_registry import IDocumentRegistry
from docuchat.models.document import Document, utc_now
from docuchat.utils.errors import NotFoundError, StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/documents.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    id               TEXT    PRIMARY KEY,
    tenant_id        TEXT    NOT NULL,
    user_id          TEXT,
    filename         TEXT    NOT NULL,
    file_type        TEXT    NOT NULL,
    file_size_bytes  INTEGER NOT NULL DEFAULT 0,
    content_length   INTEGER NOT NULL DEFAULT 0,
    status           TEXT    NOT NULL,
    chunk_count      INTEGER NOT NULL DEFAULT 0,
    storage_key      TEXT,
    storage_url      TEXT,
    error_message    TEXT,
    created_at       TEXT    NOT NULL,
    updated_at       TEXT    NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_tenant ON documents(tenant_id);",
    "CREATE INDEX IF NOT EXISTS idx_documents_tenant_created "
    "ON documents(tenant_id, created_at DESC);",
]

_COLUMNS = (
    "id",
    "tenant_id",
    "user_id",
    "filename",
    "file_type",
    "file_size_bytes",
    "content_length",
    "status",
    "chunk_count",
    "storage_key",
    "storage_url",
    "error_message",
    "created_at",
    "updated_at",
)

_UPDATABLE = frozenset(_COLUMNS) - {"id", "tenant_id", "created_at", "updated_at"}

_SELECT_SQL = f"SELECT {', '.join(_COLUMNS)} FROM documents"


def _to_db(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class SQLiteDocumentRegistry(IDocumentRegistry):
    """SQLite-backed :class:`IDocumentRegistry`."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the documents table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_CREATE_TABLE_SQL)
                for idx_sql in _CREATE_INDICES_SQL:
                    await db.execute(idx_sql)
                await db.commit()
        except aiosqlite.Error as exc:
            raise self._wrap(exc, "initialize") from exc
        logger.info("document_registry_initialized", path=str(self._db_path))

    async def create(self, document: Document) -> Document:
        row = document.model_dump()
        placeholders = ", ".join("?" for _ in _COLUMNS)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    f"INSERT INTO documents ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                    tuple(_to_db(row[c]) for c in _COLUMNS),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise self._wrap(exc, "create") from exc
        logger.debug("document_row_created", document_id=document.id, tenant_id=document.tenant_id)
        return document

    async def get(self, document_id: str, tenant_id: str) -> Document | None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(
                    f"{_SELECT_SQL} WHERE id = ? AND tenant_id = ?",
                    (document_id, tenant_id),
                )
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise self._wrap(exc, "get") from exc
        return Document.model_validate(dict(row)) if row else None

    async def update(self, document_id: str, tenant_id: str, **fields: Any) -> Document:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            msg = f"Cannot update document columns: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        fields["updated_at"] = utc_now()
        assignments = ", ".join(f"{name} = ?" for name in fields)
        params = (*(_to_db(v) for v in fields.values()), document_id, tenant_id)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    f"UPDATE documents SET {assignments} WHERE id = ? AND tenant_id = ?",
                    params,
                )
                await db.commit()
                updated = cursor.rowcount
        except aiosqlite.Error as exc:
            raise self._wrap(exc, "update") from exc

        if not updated:
            raise NotFoundError(message=f"Document {document_id} not found")
        document = await self.get(document_id, tenant_id)
        if document is None:
            raise NotFoundError(message=f"Document {document_id} not found")
        return document

    async def delete(self, document_id: str, tenant_id: str) -> bool:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    "DELETE FROM documents WHERE id = ? AND tenant_id = ?",
                    (document_id, tenant_id),
                )
                await db.commit()
                deleted = cursor.rowcount
        except aiosqlite.Error as exc:
            raise self._wrap(exc, "delete") from exc
        return deleted > 0

    async def list(self, tenant_id: str, limit: int = 50, offset: int = 0) -> list[Document]:
        """Return one page of the tenant's documents, newest first."""
        return await self._select_many(
            f"{_SELECT_SQL} WHERE tenant_id = ? "
            "ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
            (tenant_id, limit, offset),
        )

    async def list_all_for_tenant(self, tenant_id: str) -> list[Document]:
        return await self._select_many(
            f"{_SELECT_SQL} WHERE tenant_id = ? ORDER BY created_at DESC, rowid DESC",
            (tenant_id,),
        )

    def get_provider_name(self) -> str:
        return "sqlite"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _select_many(self, sql: str, params: tuple) -> list[Document]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(sql, params)
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise self._wrap(exc, "select") from exc
        return [Document.model_validate(dict(r)) for r in rows]

    def _wrap(self, exc: Exception, operation: str) -> StorageError:
        return StorageError(
            message=f"Document registry {operation} failed: {exc}",
            provider_name=self.get_provider_name(),
            retryable=isinstance(exc, aiosqlite.OperationalError),
        )
