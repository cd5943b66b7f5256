"""ChromaDB vector store provider adapter.

Wraps `chromadb.PersistentClient` to implement :class:`IVectorStoreProvider`.
Uses cosine distance for similarity search; a result's similarity score is
``1 - distance`` clamped to ``[0, 1]``.  Every chunk carries ``tenant_id``
and ``document_id`` metadata so reads and deletes can be scoped with a
``where`` predicate.
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Any

# ChromaDB's bundled PostHog telemetry breaks against newer posthog
# releases; disable it before chromadb is imported.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from docuchat.interfaces.vector_store_provider import IVectorStoreProvider
from docuchat.models.rag import ChunkMetadata, ChunkRecord, RetrievalResult
from docuchat.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_PAGE_SIZE = 5000


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Prevents ChromaDB from loading its default embedding model.

    docuchat always passes pre-computed embeddings, so the built-in function
    must never run.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "docuchat uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence."""

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "document_embeddings",
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        # Collections created by older ChromaDB versions reject a different
        # embedding function; reopen them with the persisted one.
        try:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def insert_many(self, records: list[ChunkRecord]) -> int:
        """Upsert *records* in one ChromaDB call.

        Ids are deterministic (``<document_id>_chunk_<n>``), so writing the
        same chunk twice replaces it instead of duplicating it.
        """
        if not records:
            return 0
        try:
            self._collection.upsert(
                ids=[r.id for r in records],
                embeddings=[r.embedding for r in records],
                documents=[r.content for r in records],
                metadatas=[self._record_to_metadata(r) for r in records],
            )
        except Exception as exc:
            raise StorageError(
                message=f"ChromaDB insert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug("chromadb_insert_many", count=len(records))
        return len(records)

    async def search(
        self,
        vector: list[float],
        limit: int,
        tenant_id: str | None,
    ) -> list[RetrievalResult]:
        """Cosine-similarity search, scoped to *tenant_id* unless it is ``None``."""
        try:
            total = self._collection.count()
            if total == 0 or limit <= 0:
                return []

            kwargs: dict[str, Any] = {
                "query_embeddings": [vector],
                "n_results": min(limit, total),
                "include": ["documents", "metadatas", "distances"],
            }
            if tenant_id is not None:
                kwargs["where"] = {"tenant_id": tenant_id}

            results = self._collection.query(**kwargs)
        except Exception as exc:
            raise StorageError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not results["documents"] or not results["documents"][0]:
            return []

        documents = results["documents"][0]
        metadatas = results["metadatas"][0] if results["metadatas"] else [{}] * len(documents)
        distances = results["distances"][0] if results["distances"] else [1.0] * len(documents)

        retrieved = [
            self._to_result(text, meta, max(0.0, min(1.0, 1.0 - distance)))
            for text, meta, distance in zip(documents, metadatas, distances, strict=True)
        ]
        retrieved.sort(key=lambda r: r.similarity_score, reverse=True)

        logger.debug(
            "chromadb_query",
            tenant_id=tenant_id,
            results_count=len(retrieved),
            top_score=retrieved[0].similarity_score if retrieved else 0.0,
        )
        return retrieved

    async def delete_many(self, tenant_id: str, document_id: str | None = None) -> int:
        """Delete every chunk of the tenant, or of one of its documents."""
        where = self._where(tenant_id, document_id)
        try:
            existing = self._collection.get(where=where, include=[])
            count = len(existing["ids"]) if existing["ids"] else 0
            if count > 0:
                self._collection.delete(where=where)
        except Exception as exc:
            raise StorageError(
                message=f"ChromaDB delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "chromadb_delete_many",
            tenant_id=tenant_id,
            document_id=document_id,
            deleted_count=count,
        )
        return count

    async def get_records(
        self, tenant_id: str, document_id: str | None = None
    ) -> list[RetrievalResult]:
        """Return all chunks matching the filter, paging through the collection."""
        where = self._where(tenant_id, document_id)
        records: list[RetrievalResult] = []
        offset = 0
        try:
            while True:
                page = self._collection.get(
                    where=where,
                    include=["documents", "metadatas"],
                    limit=_PAGE_SIZE,
                    offset=offset,
                )
                documents = page["documents"] or []
                metadatas = page["metadatas"] or []
                records.extend(
                    self._to_result(text, meta, 0.0)
                    for text, meta in zip(documents, metadatas, strict=True)
                )
                if len(documents) < _PAGE_SIZE:
                    break
                offset += _PAGE_SIZE
        except Exception as exc:
            raise StorageError(
                message=f"ChromaDB get failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return records

    async def count(self, tenant_id: str, document_id: str | None = None) -> int:
        try:
            existing = self._collection.get(
                where=self._where(tenant_id, document_id), include=[]
            )
        except Exception as exc:
            raise StorageError(
                message=f"ChromaDB count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return len(existing["ids"]) if existing["ids"] else 0

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB collection is accessible."""
        try:
            self._collection.count()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _where(tenant_id: str, document_id: str | None) -> dict[str, Any]:
        if document_id is None:
            return {"tenant_id": tenant_id}
        return {"$and": [{"tenant_id": tenant_id}, {"document_id": document_id}]}

    @staticmethod
    def _record_to_metadata(record: ChunkRecord) -> dict[str, str | int | float | bool]:
        """Flatten a record into ChromaDB metadata (scalar values only, no None)."""
        meta: dict[str, str | int | float | bool] = {
            "tenant_id": record.tenant_id,
            "document_id": record.document_id,
            "chunk_index": record.chunk_index,
            "filename": record.metadata.filename,
            "file_type": record.metadata.file_type,
            "char_length": record.metadata.char_length,
        }
        if record.metadata.storage_url is not None:
            meta["storage_url"] = record.metadata.storage_url
        if record.metadata.created_at is not None:
            meta["created_at"] = record.metadata.created_at.isoformat()
        return meta

    @staticmethod
    def _to_result(text: str, meta: dict[str, Any], score: float) -> RetrievalResult:
        created_at = meta.get("created_at")
        return RetrievalResult(
            content=text or "",
            similarity_score=score,
            document_id=str(meta.get("document_id", "")),
            tenant_id=str(meta.get("tenant_id", "")),
            chunk_index=int(meta.get("chunk_index", 0)),
            metadata=ChunkMetadata(
                filename=meta.get("filename", ""),
                file_type=meta.get("file_type", ""),
                storage_url=meta.get("storage_url"),
                created_at=datetime.fromisoformat(created_at) if created_at else None,
                char_length=int(meta.get("char_length", len(text or ""))),
            ),
        )
