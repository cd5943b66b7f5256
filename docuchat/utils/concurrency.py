"""Per-document mutual exclusion for lifecycle operations.

Reprocess and delete on the same document must never interleave: a
delete-chunks step from one operation running between another operation's
delete and store steps leaves ghost or missing chunks.  The
:class:`DocumentLockManager` serialises every lifecycle operation keyed by
``document_id``.

The default implementation holds one ``asyncio.Lock`` per document id inside
the current process.  A multi-process deployment replaces it with a manager
backed by a shared lease (e.g. a database advisory lock) exposing the same
:meth:`DocumentLockManager.hold` async context manager.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog

from docuchat.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


class DocumentLockManager:
    """Hands out one lock per document id, released when no longer used."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        # Number of holders plus waiters per id; the lock entry is dropped
        # when this reaches zero so the dict does not grow without bound.
        self._refcounts: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, document_id: str) -> AsyncIterator[None]:
        """Acquire the lock for *document_id* for the duration of the block."""
        lock = self._locks.setdefault(document_id, asyncio.Lock())
        self._refcounts[document_id] = self._refcounts.get(document_id, 0) + 1
        try:
            if lock.locked():
                _logger.debug("document_lock_wait", document_id=document_id)
            async with lock:
                yield
        finally:
            remaining = self._refcounts[document_id] - 1
            if remaining:
                self._refcounts[document_id] = remaining
            else:
                del self._refcounts[document_id]
                del self._locks[document_id]

    def is_locked(self, document_id: str) -> bool:
        """Return ``True`` while an operation holds the lock for *document_id*."""
        lock = self._locks.get(document_id)
        return lock is not None and lock.locked()
