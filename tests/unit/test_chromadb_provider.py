"""Unit tests for the ChromaDB vector store provider.

Uses a real persistent client in a temporary directory.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from docuchat.models.rag import ChunkMetadata, ChunkRecord, chunk_id_for
from docuchat.providers.vector_store.chromadb_provider import ChromaDBProvider


def _record(
    tenant_id: str,
    document_id: str,
    index: int,
    embedding: list[float],
    content: str | None = None,
) -> ChunkRecord:
    return ChunkRecord(
        id=chunk_id_for(document_id, index),
        tenant_id=tenant_id,
        document_id=document_id,
        chunk_index=index,
        content=content or f"{document_id} chunk {index}",
        embedding=embedding,
        metadata=ChunkMetadata(
            filename="faq.txt",
            file_type="txt",
            created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
            char_length=len(content or ""),
        ),
    )


@pytest.fixture()
def provider(tmp_path) -> ChromaDBProvider:
    return ChromaDBProvider(
        persist_directory=str(tmp_path / "chroma"),
        collection_name="test_collection",
    )


class TestChromaDBProvider:
    def test_provider_name_and_availability(self, provider) -> None:
        assert provider.get_provider_name() == "chromadb"
        assert provider.is_available() is True

    @pytest.mark.asyncio
    async def test_search_empty_collection(self, provider) -> None:
        assert await provider.search([1.0, 0.0, 0.0], 5, "t1") == []

    @pytest.mark.asyncio
    async def test_search_ranks_and_scores(self, provider) -> None:
        await provider.insert_many(
            [
                _record("t1", "d1", 0, [1.0, 0.0, 0.0], "exact"),
                _record("t1", "d1", 1, [0.0, 1.0, 0.0], "orthogonal"),
                _record("t1", "d1", 2, [0.7, 0.7, 0.0], "close"),
            ]
        )

        results = await provider.search([1.0, 0.0, 0.0], 3, "t1")

        assert [r.content for r in results] == ["exact", "close", "orthogonal"]
        assert results[0].similarity_score == pytest.approx(1.0, abs=1e-4)
        assert results[-1].similarity_score == pytest.approx(0.0, abs=1e-4)
        assert results[0].metadata.filename == "faq.txt"
        assert results[0].tenant_id == "t1"

    @pytest.mark.asyncio
    async def test_search_is_tenant_scoped(self, provider) -> None:
        await provider.insert_many(
            [
                _record("t1", "d1", 0, [1.0, 0.0, 0.0]),
                _record("t2", "d2", 0, [1.0, 0.0, 0.0]),
            ]
        )

        scoped = await provider.search([1.0, 0.0, 0.0], 5, "t1")
        everywhere = await provider.search([1.0, 0.0, 0.0], 5, None)

        assert {r.tenant_id for r in scoped} == {"t1"}
        assert {r.tenant_id for r in everywhere} == {"t1", "t2"}

    @pytest.mark.asyncio
    async def test_upsert_does_not_duplicate(self, provider) -> None:
        record = _record("t1", "d1", 0, [1.0, 0.0, 0.0])
        await provider.insert_many([record])
        await provider.insert_many([record])

        assert await provider.count("t1") == 1

    @pytest.mark.asyncio
    async def test_delete_many_by_document(self, provider) -> None:
        await provider.insert_many(
            [
                _record("t1", "d1", 0, [1.0, 0.0, 0.0]),
                _record("t1", "d1", 1, [0.0, 1.0, 0.0]),
                _record("t1", "d2", 0, [0.0, 0.0, 1.0]),
                _record("t2", "d3", 0, [1.0, 0.0, 0.0]),
            ]
        )

        deleted = await provider.delete_many("t1", "d1")

        assert deleted == 2
        assert await provider.count("t1") == 1
        assert await provider.count("t2") == 1
        assert await provider.delete_many("t1", "d1") == 0

    @pytest.mark.asyncio
    async def test_delete_never_crosses_tenants(self, provider) -> None:
        await provider.insert_many([_record("t2", "shared", 0, [1.0, 0.0, 0.0])])

        assert await provider.delete_many("t1", "shared") == 0
        assert await provider.count("t2", "shared") == 1

    @pytest.mark.asyncio
    async def test_get_records_round_trips_metadata(self, provider) -> None:
        await provider.insert_many([_record("t1", "d1", 4, [1.0, 0.0, 0.0], "hello")])

        (record,) = await provider.get_records("t1", "d1")

        assert record.content == "hello"
        assert record.chunk_index == 4
        assert record.document_id == "d1"
        assert record.metadata.created_at == datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert record.metadata.storage_url is None

    @pytest.mark.asyncio
    async def test_insert_nothing(self, provider) -> None:
        assert await provider.insert_many([]) == 0
