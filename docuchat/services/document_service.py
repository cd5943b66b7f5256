"""Document lifecycle: ingest, reprocess, delete, and registry queries.

The :class:`DocumentService` coordinates five collaborators (text
extractor, blob store, document registry, chunker, RAG service) through
the document state machine in :mod:`docuchat.models.document`:

    ingest:    validate -> extract -> register (processing) -> upload blob
               -> chunk -> embed + store -> processed
    reprocess: load -> processing -> download blob -> extract
               -> delete old chunks -> chunk -> embed + store -> processed
    delete:    chunks -> blob -> registry row

Any failure after the registry row exists pins the document to ``failed``
(with the error message) and re-raises; nothing is retried.  Ingest,
reprocess and delete on the same document id are serialised by the
injected :class:`DocumentLockManager`.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import TYPE_CHECKING

import structlog

from docuchat.models.document import (
    Document,
    DocumentStats,
    DocumentStatus,
    FileType,
    UploadedFile,
    file_extension,
)
from docuchat.models.rag import ChunkMetadata
from docuchat.utils.concurrency import DocumentLockManager
from docuchat.utils.errors import (
    DocuChatError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from docuchat.interfaces.blob_store import IBlobStore
    from docuchat.interfaces.document_registry import IDocumentRegistry
    from docuchat.interfaces.text_extractor import ITextExtractor
    from docuchat.services.chunker import TextChunker
    from docuchat.services.rag_service import RAGService

logger = structlog.get_logger(logger_name=__name__)


def storage_key_for(tenant_id: str, document_id: str, filename: str) -> str:
    """Return the blob key ``<tenant_id>/<document_id>/<filename>``."""
    return f"{tenant_id}/{document_id}/{filename}"


class DocumentService:
    """Runs the document lifecycle for every tenant.

    Parameters
    ----------
    extractor:
        Turns uploaded bytes into plain text.
    blob_store:
        Keeps the original bytes for reprocessing.
    registry:
        Relational store of :class:`Document` rows.
    chunker:
        Splits extracted text into overlapping chunks.
    rag_service:
        Embeds and stores chunks; deletes them again.
    max_upload_bytes:
        Largest accepted upload.
    allowed_file_types:
        Accepted extensions (without dot).
    lock_manager:
        Per-document mutual exclusion; an in-process manager by default.
    """

    def __init__(
        self,
        extractor: ITextExtractor,
        blob_store: IBlobStore,
        registry: IDocumentRegistry,
        chunker: TextChunker,
        rag_service: RAGService,
        max_upload_bytes: int = 10 * 1024 * 1024,
        allowed_file_types: list[str] | None = None,
        lock_manager: DocumentLockManager | None = None,
    ) -> None:
        self._extractor = extractor
        self._blob_store = blob_store
        self._registry = registry
        self._chunker = chunker
        self._rag_service = rag_service
        self._max_upload_bytes = max_upload_bytes
        self._allowed_file_types = [
            t.lower().lstrip(".") for t in (allowed_file_types or [f.value for f in FileType])
        ]
        self._locks = lock_manager or DocumentLockManager()

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    async def ingest(
        self,
        file: UploadedFile | None,
        tenant_id: str,
        user_id: str | None = None,
    ) -> Document:
        """Validate, extract, register, upload, chunk and store one file.

        Returns
        -------
        Document
            The finalized document with status ``processed``.

        Raises
        ------
        ValidationError
            Before any side effect, if the file is missing, too large or of
            a disallowed type.
        ExtractionError
            If the text cannot be extracted; no registry row is created.
        StorageError, EmbeddingError
            If a later step fails; the document is left ``failed``.
        """
        file_type = self._validate(file)
        filename = PurePath(file.filename).name
        text = await self._extractor.extract(file.content, file_type)

        document = Document(
            tenant_id=tenant_id,
            user_id=user_id,
            filename=filename,
            file_type=file_type,
            file_size_bytes=len(file.content),
            content_length=len(text),
            status=DocumentStatus.PROCESSING,
        )
        document = document.model_copy(
            update={"storage_key": storage_key_for(tenant_id, document.id, filename)}
        )
        log = logger.bind(tenant_id=tenant_id, document_id=document.id)

        async with self._locks.hold(document.id):
            document = await self._registry.create(document)
            log.info("document_registered", filename=filename, size=len(file.content))
            try:
                storage_url = await self._blob_store.put(
                    document.storage_key,
                    file.content,
                    file.content_type or file_type.mime_type,
                    overwrite=False,
                )
                document = await self._registry.update(
                    document.id, tenant_id, storage_url=storage_url
                )

                chunks = self._chunker.chunk(text)
                stored = await self._rag_service.store(
                    tenant_id, document.id, chunks, self._chunk_metadata(document)
                )
                document = await self._transition(
                    document, DocumentStatus.PROCESSED, chunk_count=stored, error_message=None
                )
            except Exception as exc:
                await self._pin_failed(document, exc)
                raise

        log.info("document_ingested", chunk_count=document.chunk_count)
        return document

    async def reprocess(self, document_id: str, tenant_id: str) -> Document:
        """Re-extract, re-chunk and re-embed a stored document.

        The old chunk set is deleted in full before new chunks are written.

        Raises
        ------
        NotFoundError
            If the document does not exist for this tenant.
        InvalidStateTransitionError
            If the document is still ``processing``.
        """
        log = logger.bind(tenant_id=tenant_id, document_id=document_id)
        async with self._locks.hold(document_id):
            document = await self._require(document_id, tenant_id)
            document = await self._transition(document, DocumentStatus.PROCESSING)
            try:
                if not document.storage_key:
                    raise NotFoundError(message=f"Document {document_id} has no stored file")
                content = await self._blob_store.get(document.storage_key)
                text = await self._extractor.extract(content, document.file_type)

                deleted = await self._rag_service.delete_for_document(tenant_id, document_id)
                chunks = self._chunker.chunk(text)
                stored = await self._rag_service.store(
                    tenant_id, document_id, chunks, self._chunk_metadata(document)
                )
                document = await self._transition(
                    document,
                    DocumentStatus.PROCESSED,
                    chunk_count=stored,
                    content_length=len(text),
                    error_message=None,
                )
            except Exception as exc:
                await self._pin_failed(document, exc)
                raise

        log.info("document_reprocessed", old_chunks=deleted, new_chunks=stored)
        return document

    async def delete(self, document_id: str, tenant_id: str) -> None:
        """Delete chunks, then the blob, then the registry row.

        Unknown ids (including ids of other tenants) are a no-op.
        """
        log = logger.bind(tenant_id=tenant_id, document_id=document_id)
        async with self._locks.hold(document_id):
            document = await self._registry.get(document_id, tenant_id)
            if document is None:
                log.info("document_delete_noop")
                return
            try:
                chunks = await self._rag_service.delete_for_document(tenant_id, document_id)
                if document.storage_key:
                    await self._blob_store.delete(document.storage_key)
                await self._registry.delete(document_id, tenant_id)
            except Exception as exc:
                await self._pin_failed(document, exc)
                raise

        log.info("document_deleted", chunks_deleted=chunks)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_document(self, document_id: str, tenant_id: str) -> Document:
        return await self._require(document_id, tenant_id)

    async def list_documents(
        self, tenant_id: str, limit: int = 50, offset: int = 0
    ) -> list[Document]:
        """Return the tenant's documents, newest first."""
        return await self._registry.list(tenant_id, limit=limit, offset=offset)

    async def stats(self, tenant_id: str) -> DocumentStats:
        """Aggregate the tenant's registry rows.

        ``total_chunks`` counts processed documents only, since chunk counts
        of other states are not authoritative.
        """
        documents = await self._registry.list_all_for_tenant(tenant_id)
        by_status = {status: 0 for status in DocumentStatus}
        for doc in documents:
            by_status[doc.status] += 1
        return DocumentStats(
            total=len(documents),
            processed=by_status[DocumentStatus.PROCESSED],
            processing=by_status[DocumentStatus.PROCESSING],
            failed=by_status[DocumentStatus.FAILED],
            total_size_bytes=sum(d.file_size_bytes for d in documents),
            total_chunks=sum(
                d.chunk_count for d in documents if d.status is DocumentStatus.PROCESSED
            ),
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _validate(self, file: UploadedFile | None) -> FileType:
        if file is None:
            raise ValidationError(message="No file provided")
        if not file.filename or not PurePath(file.filename).name:
            raise ValidationError(message="File name is required")

        size = max(file.size, len(file.content))
        if size > self._max_upload_bytes:
            raise ValidationError(
                message=(
                    f"File size {size} bytes exceeds the maximum of "
                    f"{self._max_upload_bytes} bytes"
                )
            )

        extension = file_extension(file.filename)
        file_type = FileType.from_filename(file.filename)
        if file_type is None or extension not in self._allowed_file_types:
            raise ValidationError(
                message=(
                    f"File type '{extension or 'none'}' is not allowed. "
                    f"Allowed types: {', '.join(self._allowed_file_types)}"
                )
            )
        return file_type

    async def _require(self, document_id: str, tenant_id: str) -> Document:
        document = await self._registry.get(document_id, tenant_id)
        if document is None:
            raise NotFoundError(message=f"Document {document_id} not found")
        return document

    async def _transition(
        self, document: Document, target: DocumentStatus, **fields: object
    ) -> Document:
        if not document.status.can_transition_to(target):
            raise InvalidStateTransitionError(
                message=(
                    f"Document {document.id} cannot move from "
                    f"'{document.status.value}' to '{target.value}'"
                )
            )
        return await self._registry.update(
            document.id, document.tenant_id, status=target, **fields
        )

    async def _pin_failed(self, document: Document, exc: Exception) -> None:
        """Record *exc* on the document and move it to ``failed``.

        The caller re-raises *exc*; a failure here is logged alongside it.
        """
        try:
            current = await self._registry.get(document.id, document.tenant_id)
            if current is None or not current.status.can_transition_to(DocumentStatus.FAILED):
                return
            await self._registry.update(
                document.id,
                document.tenant_id,
                status=DocumentStatus.FAILED,
                error_message=str(exc),
            )
        except DocuChatError as pin_exc:
            logger.error(
                "document_fail_pin_failed",
                document_id=document.id,
                error=str(pin_exc),
                original_error=str(exc),
            )
            return
        logger.warning(
            "document_marked_failed",
            tenant_id=document.tenant_id,
            document_id=document.id,
            error=str(exc),
            error_type=type(exc).__name__,
        )

    @staticmethod
    def _chunk_metadata(document: Document) -> ChunkMetadata:
        return ChunkMetadata(
            filename=document.filename,
            file_type=document.file_type.value,
            storage_url=document.storage_url,
            created_at=document.created_at,
        )
