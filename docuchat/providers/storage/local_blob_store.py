"""Local-disk blob store.

Stores each uploaded file at ``<root>/<key>``.  Keys look like
``<tenant_id>/<document_id>/<filename>``.  URLs are ``file://`` URIs unless
a public base URL is configured (e.g. a static file server or CDN in front
of the directory), in which case ``<base>/<key>`` is returned.
"""

from __future__ import annotations

import asyncio
from pathlib import Path, PurePosixPath

import structlog

from docuchat.interfaces.blob_store import IBlobStore
from docuchat.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)


class LocalBlobStore(IBlobStore):
    """Filesystem-backed :class:`IBlobStore`."""

    def __init__(self, root: str | Path = "data/blobs", public_base_url: str = "") -> None:
        self._root = Path(root)
        self._public_base_url = public_base_url.rstrip("/")

    async def put(
        self,
        key: str,
        content: bytes,
        content_type: str,
        overwrite: bool = False,
    ) -> str:
        path = self._path_for(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            # "xb" fails atomically when the file already exists.
            with open(path, "wb" if overwrite else "xb") as f:
                f.write(content)

        try:
            await asyncio.to_thread(_write)
        except FileExistsError as exc:
            raise StorageError(
                message=f"Blob already exists: {key}",
                provider_name=self.get_provider_name(),
            ) from exc
        except OSError as exc:
            raise StorageError(
                message=f"Failed to write blob {key}: {exc}",
                provider_name=self.get_provider_name(),
                retryable=True,
            ) from exc

        logger.info("blob_stored", key=key, size=len(content), content_type=content_type)
        return self._url_for(key, path)

    async def get(self, key: str) -> bytes:
        path = self._path_for(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as exc:
            raise StorageError(
                message=f"Blob not found: {key}",
                provider_name=self.get_provider_name(),
            ) from exc
        except OSError as exc:
            raise StorageError(
                message=f"Failed to read blob {key}: {exc}",
                provider_name=self.get_provider_name(),
                retryable=True,
            ) from exc

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(path.unlink, True)
        except OSError as exc:
            raise StorageError(
                message=f"Failed to delete blob {key}: {exc}",
                provider_name=self.get_provider_name(),
                retryable=True,
            ) from exc
        logger.info("blob_deleted", key=key)

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self._path_for(key).is_file)

    def get_provider_name(self) -> str:
        return "local-disk"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _path_for(self, key: str) -> Path:
        parts = PurePosixPath(key).parts
        if not parts or key.startswith("/") or any(p in ("", ".", "..") for p in parts):
            raise StorageError(
                message=f"Invalid blob key: {key!r}",
                provider_name=self.get_provider_name(),
            )
        return self._root.joinpath(*parts)

    def _url_for(self, key: str, path: Path) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{key}"
        return path.resolve().as_uri()
