"""Shared pytest fixtures for the docuchat test suite."""

from __future__ import annotations

import hashlib
import math
import re
from pathlib import Path
from typing import Any

import pytest

from docuchat.config.settings import Settings
from docuchat.interfaces.completion_provider import ICompletionProvider
from docuchat.interfaces.embedding_provider import IEmbeddingProvider
from docuchat.interfaces.vector_store_provider import IVectorStoreProvider
from docuchat.models.rag import ChunkRecord, CompletionResult, CompletionUsage, RetrievalResult
from docuchat.providers.extraction.file_text_extractor import FileTextExtractor
from docuchat.providers.llm.registry import CompletionProviderRegistry
from docuchat.providers.registry.sqlite_document_registry import SQLiteDocumentRegistry
from docuchat.providers.storage.local_blob_store import LocalBlobStore
from docuchat.services.chunker import TextChunker
from docuchat.services.document_service import DocumentService
from docuchat.services.rag_service import RAGService

_WORD_RE = re.compile(r"\w+")
_DIMENSION = 64


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Hashed bag-of-words vectors: identical word sets score 1.0."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        vector = [0.0] * _DIMENSION
        for word in _WORD_RE.findall(text.lower()):
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % _DIMENSION
            vector[bucket] += 1.0
        norm = math.sqrt(sum(v * v for v in vector)) or 1.0
        return [v / norm for v in vector]

    def get_dimension(self) -> int:
        return _DIMENSION

    def get_provider_name(self) -> str:
        return "fake_embedding"

    def is_available(self) -> bool:
        return True


class InMemoryVectorStore(IVectorStoreProvider):
    """Cosine-similarity vector store kept in a dict, keyed by chunk id."""

    def __init__(self) -> None:
        self.records: dict[str, ChunkRecord] = {}

    async def insert_many(self, records: list[ChunkRecord]) -> int:
        for record in records:
            self.records[record.id] = record
        return len(records)

    async def search(
        self, vector: list[float], limit: int, tenant_id: str | None
    ) -> list[RetrievalResult]:
        scored = []
        for record in self.records.values():
            if tenant_id is not None and record.tenant_id != tenant_id:
                continue
            score = sum(a * b for a, b in zip(vector, record.embedding))
            scored.append((max(0.0, min(1.0, score)), record))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [_to_result(record, score) for score, record in scored[:limit]]

    async def delete_many(self, tenant_id: str, document_id: str | None = None) -> int:
        doomed = [r.id for r in self._matching(tenant_id, document_id)]
        for record_id in doomed:
            del self.records[record_id]
        return len(doomed)

    async def get_records(
        self, tenant_id: str, document_id: str | None = None
    ) -> list[RetrievalResult]:
        return [_to_result(r, 0.0) for r in self._matching(tenant_id, document_id)]

    async def count(self, tenant_id: str, document_id: str | None = None) -> int:
        return len(self._matching(tenant_id, document_id))

    def get_provider_name(self) -> str:
        return "in_memory"

    def is_available(self) -> bool:
        return True

    def _matching(self, tenant_id: str, document_id: str | None) -> list[ChunkRecord]:
        return [
            r
            for r in self.records.values()
            if r.tenant_id == tenant_id and (document_id is None or r.document_id == document_id)
        ]


def _to_result(record: ChunkRecord, score: float) -> RetrievalResult:
    return RetrievalResult(
        content=record.content,
        similarity_score=score,
        document_id=record.document_id,
        tenant_id=record.tenant_id,
        chunk_index=record.chunk_index,
        metadata=record.metadata,
    )


class FakeCompletionProvider(ICompletionProvider):
    """Returns a canned reply and records every message list it receives."""

    def __init__(self, reply: str = "Here is what the documents say.", model: str = "fake-model") -> None:
        self.reply = reply
        self.model = model
        self.calls: list[dict[str, Any]] = []

    async def generate(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> CompletionResult:
        self.calls.append(
            {"messages": messages, "temperature": temperature, "max_tokens": max_tokens}
        )
        return CompletionResult(
            content=self.reply,
            usage=CompletionUsage(prompt_tokens=12, completion_tokens=8, total_tokens=20),
            model=self.model,
        )

    def get_model_name(self) -> str:
        return self.model

    def get_provider_name(self) -> str:
        return "fake"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with every path under a temporary directory and no API keys."""
    return Settings(
        _env_file=None,
        openai_api_key="",
        google_api_key="",
        anthropic_api_key="",
        chromadb_persist_dir=str(tmp_path / "chromadb"),
        registry_db_path=str(tmp_path / "documents.db"),
        blob_storage_dir=str(tmp_path / "blobs"),
        config_path=str(tmp_path / "missing.yaml"),
    )


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def completion_provider() -> FakeCompletionProvider:
    return FakeCompletionProvider()


@pytest.fixture
def completion_registry(completion_provider: FakeCompletionProvider) -> CompletionProviderRegistry:
    return CompletionProviderRegistry(
        {"gpt-3.5-turbo": completion_provider, "gpt-4": completion_provider}
    )


@pytest.fixture
def rag_service(
    embedding_provider: FakeEmbeddingProvider,
    vector_store: InMemoryVectorStore,
    completion_registry: CompletionProviderRegistry,
) -> RAGService:
    return RAGService(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        completion_registry=completion_registry,
    )


@pytest.fixture
async def document_registry(tmp_path: Path) -> SQLiteDocumentRegistry:
    registry = SQLiteDocumentRegistry(db_path=tmp_path / "documents.db")
    await registry.initialize()
    return registry


@pytest.fixture
def blob_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(root=tmp_path / "blobs")


@pytest.fixture
def document_service(
    document_registry: SQLiteDocumentRegistry,
    blob_store: LocalBlobStore,
    rag_service: RAGService,
) -> DocumentService:
    return DocumentService(
        extractor=FileTextExtractor(),
        blob_store=blob_store,
        registry=document_registry,
        chunker=TextChunker(chunk_size=1000, overlap=200),
        rag_service=rag_service,
        max_upload_bytes=10 * 1024 * 1024,
    )


@pytest.fixture
def refund_policy_text() -> str:
    """2,500 characters of policy text without sentence breaks."""
    sentence = "our refund policy allows returns within thirty days of purchase "
    return (sentence * 50)[:2500]
