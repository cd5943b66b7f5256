"""Abstract base class for vector-store service providers.

Defines the access pattern the RAG layer relies on: bulk insert of chunk
records, similarity search filtered by tenant, and bulk delete filtered by
tenant and document.  Every call except the explicit cross-tenant search
carries a ``tenant_id`` predicate.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docuchat.models.rag import ChunkRecord, RetrievalResult


# Concrete implementation: ChromaDBProvider (docuchat/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for tenant-scoped chunk storage and similarity retrieval.

    All methods are async so network-backed stores do not block the event
    loop.  Similarity scores are normalised to ``[0, 1]`` with 1 meaning
    identical direction (cosine).
    """

    @abstractmethod
    async def insert_many(self, records: list[ChunkRecord]) -> int:
        """Persist *records* (already embedded).

        Returns
        -------
        int
            The number of records written.

        Raises
        ------
        docuchat.utils.errors.StorageError
            If the write fails.  A failure may leave part of *records*
            written; callers treat the whole store operation as failed.
        """

    @abstractmethod
    async def search(
        self,
        vector: list[float],
        limit: int,
        tenant_id: str | None,
    ) -> list[RetrievalResult]:
        """Return up to *limit* records most similar to *vector*.

        ``tenant_id=None`` searches across all tenants and is reserved for
        the internal analytics path.

        Returns
        -------
        list[RetrievalResult]
            Ranked by similarity, most similar first.
        """

    @abstractmethod
    async def delete_many(self, tenant_id: str, document_id: str | None = None) -> int:
        """Delete every record of *tenant_id* (optionally of one document).

        Returns the number of records deleted.  Deleting nothing is not an
        error.
        """

    @abstractmethod
    async def get_records(
        self, tenant_id: str, document_id: str | None = None
    ) -> list[RetrievalResult]:
        """Return stored records (unranked, score 0) for stats and audits."""

    @abstractmethod
    async def count(self, tenant_id: str, document_id: str | None = None) -> int:
        """Return the number of stored records matching the filter."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is reachable."""
