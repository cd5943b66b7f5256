"""Abstract base class for raw-file storage (key -> bytes -> URL)."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: LocalBlobStore (docuchat/providers/storage/)
class IBlobStore(ABC):
    """Stores the original uploaded bytes so documents can be reprocessed."""

    @abstractmethod
    async def put(
        self,
        key: str,
        content: bytes,
        content_type: str,
        overwrite: bool = False,
    ) -> str:
        """Store *content* under *key* and return its URL.

        Raises
        ------
        docuchat.utils.errors.StorageError
            If *key* already exists and *overwrite* is ``False``, or the
            write fails.
        """

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Return the bytes stored under *key* (``StorageError`` if missing)."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key*.  A missing key is not an error."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is stored."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"local-disk"``."""
