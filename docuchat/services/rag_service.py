"""Retrieval-augmented generation orchestrator.

The :class:`RAGService` owns the vector-store side of the system:

- **store** -- embed each chunk (in order), build deterministic chunk
  records and write them in bounded batches
- **search** -- embed the query, search within the tenant, keep only
  results at or above the similarity threshold
- **answer** -- resolve the model, retrieve context, build the
  language-aware system prompt and delegate to the completion provider

All collaborators are injected.  Tenant scoping is applied here on every
call except :meth:`RAGService.cross_tenant_search`, which exists for
internal analytics only.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, AsyncIterator

import structlog

from docuchat.models.rag import (
    ChunkMetadata,
    ChunkRecord,
    ConversationTurn,
    DocumentChunkStats,
    RAGAnswer,
    RetrievalResult,
    Role,
    TenantChunkStats,
    chunk_id_for,
)
from docuchat.services.prompt_builder import build_system_prompt

if TYPE_CHECKING:
    from docuchat.interfaces.completion_provider import ICompletionProvider
    from docuchat.interfaces.embedding_provider import IEmbeddingProvider
    from docuchat.interfaces.vector_store_provider import IVectorStoreProvider
    from docuchat.providers.llm.registry import CompletionProviderRegistry

logger = structlog.get_logger(logger_name=__name__)

ConversationHistory = Sequence[ConversationTurn | dict[str, str]]


class RAGService:
    """Stores, retrieves and answers over a tenant's document chunks.

    Parameters
    ----------
    embedding_provider:
        Embeds chunks at store time and queries at search time.
    vector_store:
        Persists chunk records and performs similarity search.
    completion_registry:
        Resolves a public model id to its completion provider.
    similarity_threshold:
        Results scoring below this are discarded.  Calibrated for cosine
        similarity.
    search_limit:
        Default maximum number of results per search.
    cross_tenant_search_limit:
        Default limit for the analytics search.
    batch_size:
        Records per ``insert_many`` call.
    temperature, max_tokens:
        Completion parameters for answers.
    language_directives:
        Language code -> directive table for system prompts.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        completion_registry: CompletionProviderRegistry,
        similarity_threshold: float = 0.70,
        search_limit: int = 5,
        cross_tenant_search_limit: int = 10,
        batch_size: int = 20,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        language_directives: dict[str, str] | None = None,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._completion_registry = completion_registry
        self._similarity_threshold = similarity_threshold
        self._search_limit = search_limit
        self._cross_tenant_search_limit = cross_tenant_search_limit
        self._batch_size = max(1, batch_size)
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._language_directives = language_directives

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    async def store(
        self,
        tenant_id: str,
        document_id: str,
        chunks: list[str],
        metadata: ChunkMetadata | None = None,
    ) -> int:
        """Embed and persist *chunks* for one document.

        Every chunk is embedded before anything is written, so an
        :class:`EmbeddingError` leaves the store untouched.  A write failure
        in a later batch raises :class:`StorageError` and may leave earlier
        batches written; the caller marks the document failed.

        Returns
        -------
        int
            Number of chunk records written.
        """
        metadata = metadata or ChunkMetadata()
        records: list[ChunkRecord] = []
        for index, content in enumerate(chunks):
            embedding = await self._embedding_provider.embed_single(content)
            records.append(
                ChunkRecord(
                    id=chunk_id_for(document_id, index),
                    tenant_id=tenant_id,
                    document_id=document_id,
                    chunk_index=index,
                    content=content,
                    embedding=embedding,
                    metadata=metadata.model_copy(update={"char_length": len(content)}),
                )
            )

        stored = 0
        for start in range(0, len(records), self._batch_size):
            stored += await self._vector_store.insert_many(
                records[start : start + self._batch_size]
            )

        logger.info(
            "chunks_stored",
            tenant_id=tenant_id,
            document_id=document_id,
            count=stored,
            batches=(len(records) + self._batch_size - 1) // self._batch_size,
        )
        return stored

    async def delete_for_document(self, tenant_id: str, document_id: str) -> int:
        """Remove every chunk of *document_id* within *tenant_id*."""
        deleted = await self._vector_store.delete_many(tenant_id, document_id)
        logger.info(
            "chunks_deleted", tenant_id=tenant_id, document_id=document_id, count=deleted
        )
        return deleted

    async def update_for_document(
        self,
        tenant_id: str,
        document_id: str,
        chunks: list[str],
        metadata: ChunkMetadata | None = None,
    ) -> int:
        """Replace the document's chunk set: delete everything, then store."""
        await self.delete_for_document(tenant_id, document_id)
        return await self.store(tenant_id, document_id, chunks, metadata)

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    async def search(
        self,
        tenant_id: str,
        query: str,
        limit: int | None = None,
        threshold: float | None = None,
    ) -> list[RetrievalResult]:
        """Return the tenant's chunks most similar to *query*, best first.

        Results below *threshold* are dropped, so fewer than *limit* (or
        none) may be returned.
        """
        limit = self._search_limit if limit is None else limit
        threshold = self._similarity_threshold if threshold is None else threshold

        vector = await self._embedding_provider.embed_single(query)
        raw = await self._vector_store.search(vector, limit, tenant_id)
        results = sorted(
            (r for r in raw if r.similarity_score >= threshold and r.tenant_id == tenant_id),
            key=lambda r: r.similarity_score,
            reverse=True,
        )[:limit]

        logger.info(
            "rag_search",
            tenant_id=tenant_id,
            query_length=len(query),
            raw_results=len(raw),
            results=len(results),
            top_score=results[0].similarity_score if results else None,
        )
        return results

    async def cross_tenant_search(
        self, query: str, limit: int | None = None
    ) -> list[RetrievalResult]:
        """Search every tenant's chunks.  Internal analytics only.

        No threshold is applied; each result carries its ``tenant_id``.
        """
        limit = self._cross_tenant_search_limit if limit is None else limit
        vector = await self._embedding_provider.embed_single(query)
        results = await self._vector_store.search(vector, limit, None)
        logger.info(
            "rag_cross_tenant_search",
            query_length=len(query),
            results=len(results),
            tenants=len({r.tenant_id for r in results}),
        )
        return results

    async def chunk_stats(self, tenant_id: str, document_id: str | None = None) -> TenantChunkStats:
        """Aggregate stored chunk counts and content lengths per document."""
        records = await self._vector_store.get_records(tenant_id, document_id)
        per_document: dict[str, dict] = {}
        total_length = 0
        for record in records:
            entry = per_document.setdefault(
                record.document_id,
                {"chunk_count": 0, "content_length": 0, "created_at": record.metadata.created_at},
            )
            entry["chunk_count"] += 1
            entry["content_length"] += len(record.content)
            total_length += len(record.content)

        return TenantChunkStats(
            total_chunks=len(records),
            total_content_length=total_length,
            documents={doc_id: DocumentChunkStats(**v) for doc_id, v in per_document.items()},
        )

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def answer(
        self,
        tenant_id: str,
        query: str,
        model_id: str,
        language: str = "en",
        conversation_history: ConversationHistory | None = None,
    ) -> RAGAnswer:
        """Answer *query* from the tenant's documents with the chosen model.

        The model id is resolved before any embedding or storage call, so an
        unknown id raises :class:`UnsupportedModelError` without side
        effects.
        """
        provider = self.resolve_provider(model_id)
        context, messages = await self._prepare(
            tenant_id, query, language, conversation_history
        )

        result = await provider.generate(
            messages, temperature=self._temperature, max_tokens=self._max_tokens
        )
        logger.info(
            "rag_answer",
            tenant_id=tenant_id,
            model_id=model_id,
            provider=provider.get_provider_name(),
            language=language,
            context_chunks=len(context),
            total_tokens=result.usage.total_tokens if result.usage.reported else None,
        )
        return RAGAnswer(
            response_text=result.content,
            context_used=context,
            usage=result.usage,
            model_used=model_id,
            language=language,
        )

    async def answer_stream(
        self,
        tenant_id: str,
        query: str,
        model_id: str,
        language: str = "en",
        conversation_history: ConversationHistory | None = None,
    ) -> AsyncIterator[str]:
        """Like :meth:`answer` but return the response text as an async iterator.

        Model resolution and retrieval are awaited here, so their errors
        raise from this call rather than from the first iteration.
        Providers without native streaming yield the whole response once.
        """
        provider = self.resolve_provider(model_id)
        context, messages = await self._prepare(
            tenant_id, query, language, conversation_history
        )
        logger.info(
            "rag_answer_stream",
            tenant_id=tenant_id,
            model_id=model_id,
            streaming=provider.supports_streaming(),
            context_chunks=len(context),
        )
        return provider.generate_stream(
            messages, temperature=self._temperature, max_tokens=self._max_tokens
        )

    def resolve_provider(self, model_id: str) -> ICompletionProvider:
        return self._completion_registry.get(model_id)

    async def _prepare(
        self,
        tenant_id: str,
        query: str,
        language: str,
        conversation_history: ConversationHistory | None,
    ) -> tuple[list[RetrievalResult], list[dict[str, str]]]:
        context = await self.search(tenant_id, query)
        context_block = "\n\n".join(r.content for r in context)
        system_prompt = build_system_prompt(context_block, language, self._language_directives)

        messages = [{"role": Role.SYSTEM.value, "content": system_prompt}]
        for turn in conversation_history or ():
            if isinstance(turn, ConversationTurn):
                messages.append(turn.as_message())
            else:
                messages.append({"role": turn["role"], "content": turn["content"]})
        messages.append({"role": Role.USER.value, "content": query})
        return context, messages
