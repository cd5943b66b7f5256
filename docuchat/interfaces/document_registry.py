"""Abstract base class for the relational document registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from docuchat.models.document import Document


# Concrete implementation: SQLiteDocumentRegistry (docuchat/providers/registry/)
class IDocumentRegistry(ABC):
    """CRUD over :class:`Document` rows, always filtered by tenant.

    Lookups with a mismatching ``tenant_id`` behave exactly like lookups of
    an unknown id.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables / indices if they do not exist."""

    @abstractmethod
    async def create(self, document: Document) -> Document:
        """Insert *document* and return it as stored."""

    @abstractmethod
    async def get(self, document_id: str, tenant_id: str) -> Document | None:
        """Return the document, or ``None`` if absent for this tenant."""

    @abstractmethod
    async def update(self, document_id: str, tenant_id: str, **fields: Any) -> Document:
        """Update the given columns, bump ``updated_at``, return the new row.

        Raises
        ------
        docuchat.utils.errors.NotFoundError
            If the document does not exist for this tenant.
        """

    @abstractmethod
    async def delete(self, document_id: str, tenant_id: str) -> bool:
        """Delete the row.  Returns ``False`` if nothing was deleted."""

    @abstractmethod
    async def list(self, tenant_id: str, limit: int = 50, offset: int = 0) -> list[Document]:
        """Return one page of the tenant's documents, newest first."""

    @abstractmethod
    async def list_all_for_tenant(self, tenant_id: str) -> list[Document]:
        """Return every document of the tenant (used for aggregation)."""
