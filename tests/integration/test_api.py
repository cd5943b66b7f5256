"""Integration tests for FastAPI API endpoints using TestClient.

Services are real; the embedding provider, vector store and completion
provider are the deterministic fakes from ``tests/conftest.py``.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from docuchat import __version__
from docuchat.api.middleware import ErrorHandlingMiddleware
from docuchat.api.routes import internal_router
from docuchat.api.routes import router as api_router
from docuchat.config.settings import Settings
from docuchat.interfaces.completion_provider import ICompletionProvider
from docuchat.models.rag import CompletionResult
from docuchat.providers.extraction.file_text_extractor import FileTextExtractor
from docuchat.providers.llm.registry import CompletionProviderRegistry
from docuchat.providers.registry.sqlite_document_registry import SQLiteDocumentRegistry
from docuchat.providers.storage.local_blob_store import LocalBlobStore
from docuchat.services.chunker import TextChunker
from docuchat.services.document_service import DocumentService
from docuchat.services.language_service import LanguageService
from docuchat.services.rag_service import RAGService
from docuchat.utils.errors import CompletionError, EmbeddingError

_INTERNAL_KEY = "internal-secret"
_MAX_UPLOAD = 10_000


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _language_provider(reply: str) -> MagicMock:
    provider = MagicMock(spec=ICompletionProvider)
    provider.get_provider_name.return_value = "mock"
    provider.generate = AsyncMock(return_value=CompletionResult(content=reply))
    return provider


def _create_test_app(
    tmp_path: Path,
    rag_service: RAGService,
    embedding_provider,
    vector_store,
    completion_registry: CompletionProviderRegistry,
    internal_api_key: str = _INTERNAL_KEY,
) -> FastAPI:
    """Create a FastAPI app with real services over in-memory fakes."""
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.include_router(api_router)
    app.include_router(internal_router)

    settings = Settings(
        _env_file=None,
        max_upload_bytes=_MAX_UPLOAD,
        internal_api_key=internal_api_key,
    )
    registry = SQLiteDocumentRegistry(db_path=tmp_path / "documents.db")
    asyncio.run(registry.initialize())
    document_service = DocumentService(
        extractor=FileTextExtractor(),
        blob_store=LocalBlobStore(root=tmp_path / "blobs"),
        registry=registry,
        chunker=TextChunker(),
        rag_service=rag_service,
        max_upload_bytes=_MAX_UPLOAD,
    )
    language_service = LanguageService(
        CompletionProviderRegistry({"gpt-3.5-turbo": _language_provider("es")}),
    )

    app.state.settings = settings
    app.state.embedding_provider = embedding_provider
    app.state.vector_store = vector_store
    app.state.completion_registry = completion_registry
    app.state.rag_service = rag_service
    app.state.document_service = document_service
    app.state.language_service = language_service
    return app


def _headers(tenant_id: str = "t1") -> dict[str, str]:
    return {"X-Tenant-ID": tenant_id}


def _upload(client: TestClient, text: str, filename: str = "policy.txt", tenant_id: str = "t1"):
    return client.post(
        "/api/v1/documents",
        files={"file": (filename, text.encode(), "text/plain")},
        headers=_headers(tenant_id),
    )


@pytest.fixture()
def app_factory(tmp_path, rag_service, embedding_provider, vector_store, completion_registry):
    def _factory(internal_api_key: str = _INTERNAL_KEY) -> FastAPI:
        return _create_test_app(
            tmp_path,
            rag_service,
            embedding_provider,
            vector_store,
            completion_registry,
            internal_api_key=internal_api_key,
        )

    return _factory


@pytest.fixture()
def client(app_factory) -> TestClient:
    return TestClient(app_factory())


@pytest.fixture()
def policy_text() -> str:
    return ("what does this document say " * 100)[:2500]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class TestDocumentEndpoints:
    def test_upload_processes_document(self, client: TestClient, policy_text: str) -> None:
        response = _upload(client, policy_text)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "processed"
        assert body["chunk_count"] == 3
        assert body["filename"] == "policy.txt"
        assert body["storage_url"].startswith("file://")

    def test_upload_requires_tenant(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/documents", files={"file": ("a.txt", b"hello", "text/plain")}
        )

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    def test_oversized_upload_rejected(self, client: TestClient) -> None:
        response = _upload(client, "x" * (_MAX_UPLOAD + 1))

        assert response.status_code == 422
        assert "exceeds" in response.json()["detail"]
        assert client.get("/api/v1/documents", headers=_headers()).json()["documents"] == []

    def test_disallowed_type_rejected(self, client: TestClient) -> None:
        response = _upload(client, "MZ", filename="setup.exe")

        assert response.status_code == 422
        assert "not allowed" in response.json()["detail"]

    def test_get_is_tenant_scoped(self, client: TestClient) -> None:
        doc_id = _upload(client, "tenant one content").json()["id"]

        assert client.get(f"/api/v1/documents/{doc_id}", headers=_headers()).status_code == 200
        other = client.get(f"/api/v1/documents/{doc_id}", headers=_headers("t2"))
        assert other.status_code == 404
        assert other.json()["error"] == "NotFoundError"

    def test_list_and_stats(self, client: TestClient, policy_text: str) -> None:
        _upload(client, policy_text, "a.txt")
        _upload(client, "short note", "b.txt")

        listing = client.get("/api/v1/documents", headers=_headers()).json()
        stats = client.get(
            "/api/v1/documents/stats", params={"include_chunks": True}, headers=_headers()
        ).json()

        assert [d["filename"] for d in listing["documents"]] == ["b.txt", "a.txt"]
        assert stats["documents"]["total"] == 2
        assert stats["documents"]["total_chunks"] == 4
        assert stats["chunks"]["total_chunks"] == 4

    def test_reprocess(self, client: TestClient, policy_text: str) -> None:
        doc_id = _upload(client, policy_text).json()["id"]

        response = client.post(f"/api/v1/documents/{doc_id}/reprocess", headers=_headers())

        assert response.status_code == 200
        assert response.json()["chunk_count"] == 3

    def test_reprocess_unknown(self, client: TestClient) -> None:
        response = client.post("/api/v1/documents/nope/reprocess", headers=_headers())
        assert response.status_code == 404

    def test_delete_is_idempotent(self, client: TestClient) -> None:
        doc_id = _upload(client, "delete me").json()["id"]

        assert client.delete(f"/api/v1/documents/{doc_id}", headers=_headers()).status_code == 204
        assert client.delete(f"/api/v1/documents/{doc_id}", headers=_headers()).status_code == 204
        assert client.get(f"/api/v1/documents/{doc_id}", headers=_headers()).status_code == 404


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class TestChatEndpoints:
    def test_chat_answers_with_context(self, client: TestClient, policy_text: str) -> None:
        _upload(client, policy_text)

        response = client.post(
            "/api/v1/chat",
            json={
                "message": "What does this document say?",
                "model_id": "gpt-4",
                "conversation_history": [
                    {"role": "user", "content": "Hi"},
                    {"role": "assistant", "content": "Hello!"},
                ],
            },
            headers=_headers(),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["response"] == "Here is what the documents say."
        assert body["model_used"] == "gpt-4"
        assert body["language"] == "en"
        assert body["context_used"]
        assert body["usage"]["total_tokens"] == 20

    def test_chat_unknown_model(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/chat", json={"message": "hi", "model_id": "foo-bar"}, headers=_headers()
        )

        assert response.status_code == 400
        assert response.json()["error"] == "UnsupportedModelError"

    def test_chat_rejects_empty_message(self, client: TestClient) -> None:
        response = client.post("/api/v1/chat", json={"message": ""}, headers=_headers())
        assert response.status_code == 422

    def test_chat_stream(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/chat/stream", json={"message": "hi", "model_id": "gpt-4"}, headers=_headers()
        )

        assert response.status_code == 200
        assert response.text == "Here is what the documents say."
        assert response.headers["content-type"].startswith("text/plain")

    def test_chat_stream_unknown_model(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/chat/stream", json={"message": "hi", "model_id": "foo-bar"}, headers=_headers()
        )
        assert response.status_code == 400

    def test_chat_stream_retrieval_failure_is_typed_error(
        self, client: TestClient, embedding_provider
    ) -> None:
        embedding_provider.embed_single = AsyncMock(
            side_effect=EmbeddingError(message="upstream timeout", retryable=True)
        )

        response = client.post(
            "/api/v1/chat/stream", json={"message": "hi", "model_id": "gpt-4"}, headers=_headers()
        )

        assert response.status_code == 502
        assert response.json() == {
            "error": "EmbeddingError",
            "detail": "upstream timeout",
            "retryable": True,
        }

    def test_chat_stream_completion_failure_is_typed_error(
        self, client: TestClient, completion_provider
    ) -> None:
        completion_provider.generate = AsyncMock(
            side_effect=CompletionError(message="model overloaded", retryable=True)
        )

        response = client.post(
            "/api/v1/chat/stream", json={"message": "hi", "model_id": "gpt-4"}, headers=_headers()
        )

        assert response.status_code == 502
        assert response.json()["error"] == "CompletionError"

    def test_translate(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/translate",
            json={"text": "Hello", "target_language": "Spanish"},
            headers=_headers(),
        )

        assert response.status_code == 200
        assert response.json() == {"translated_text": "es", "target_language": "Spanish"}

    def test_detect_language(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/detect-language", json={"text": "Hola amigos"}, headers=_headers()
        )

        assert response.json() == {"language": "es"}


# ---------------------------------------------------------------------------
# Chatbot configuration and health
# ---------------------------------------------------------------------------


class TestChatbotValidation:
    def test_create_fills_defaults(self, client: TestClient) -> None:
        response = client.post("/api/v1/chatbots/validate", json={"name": "Support Bot"})

        assert response.status_code == 200
        config = response.json()["config"]
        assert config["ai_model"] == "gpt-3.5-turbo"
        assert config["primary_color"] == "#2563eb"
        assert config["supported_languages"] == ["en"]

    def test_create_rejects_bad_fields(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/chatbots/validate",
            json={"name": "X", "primary_color": "blue", "supported_languages": ["xx"]},
        )

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert "name" in detail
        assert "primary_color" in detail

    def test_update_is_partial(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/chatbots/validate",
            params={"mode": "update"},
            json={"status": "inactive"},
        )

        assert response.status_code == 200
        assert response.json()["config"] == {"status": "inactive"}


def test_health(client: TestClient) -> None:
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["version"] == __version__
    assert body["providers"]["models"] == ["gpt-3.5-turbo", "gpt-4"]


# ---------------------------------------------------------------------------
# Internal analytics
# ---------------------------------------------------------------------------


class TestInternalSearch:
    def test_requires_key(self, client: TestClient) -> None:
        response = client.post("/internal/analytics/search", json={"query": "refunds"})
        assert response.status_code == 403

    def test_wrong_key(self, client: TestClient) -> None:
        response = client.post(
            "/internal/analytics/search",
            json={"query": "refunds"},
            headers={"X-Internal-Key": "guess"},
        )
        assert response.status_code == 403

    def test_spans_tenants(self, client: TestClient) -> None:
        _upload(client, "refund policy for tenant one", tenant_id="t1")
        _upload(client, "refund policy for tenant two", tenant_id="t2")

        response = client.post(
            "/internal/analytics/search",
            json={"query": "refund policy"},
            headers={"X-Internal-Key": _INTERNAL_KEY},
        )

        assert response.status_code == 200
        assert {r["tenant_id"] for r in response.json()["results"]} == {"t1", "t2"}

    def test_disabled_without_key(self, app_factory) -> None:
        client = TestClient(app_factory(internal_api_key=""))
        response = client.post(
            "/internal/analytics/search",
            json={"query": "refunds"},
            headers={"X-Internal-Key": ""},
        )
        assert response.status_code == 404
