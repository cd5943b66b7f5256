"""Unit tests for document and RAG models, the status machine, and errors."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from docuchat.models.document import (
    Document,
    DocumentStatus,
    FileType,
    UploadedFile,
    file_extension,
)
from docuchat.models.rag import (
    ChunkMetadata,
    CompletionUsage,
    ConversationTurn,
    RAGAnswer,
    RetrievalResult,
    Role,
    chunk_id_for,
)
from docuchat.utils.errors import (
    CompletionError,
    DocuChatError,
    EmbeddingError,
    InvalidStateTransitionError,
    NotFoundError,
    StorageError,
    UnsupportedModelError,
    ValidationError,
)


class TestFileType:
    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("handbook.pdf", FileType.PDF),
            ("Policy.DOCX", FileType.DOCX),
            ("notes.txt", FileType.TXT),
            ("archive.tar.gz", None),
            ("README", None),
        ],
    )
    def test_from_filename(self, filename: str, expected: FileType | None) -> None:
        assert FileType.from_filename(filename) is expected

    def test_file_extension_lowercase(self) -> None:
        assert file_extension("Report.PDF") == "pdf"
        assert file_extension("noext") == ""

    def test_mime_types(self) -> None:
        assert FileType.PDF.mime_type == "application/pdf"
        assert FileType.TXT.mime_type.startswith("text/plain")


class TestUploadedFile:
    def test_size_derived_from_content(self) -> None:
        upload = UploadedFile(filename="a.txt", content=b"hello")
        assert upload.size == 5

    def test_declared_size_kept(self) -> None:
        upload = UploadedFile(filename="a.txt", content=b"hello", size=999)
        assert upload.size == 999

    def test_explicit_none_size_derived_from_content(self) -> None:
        upload = UploadedFile(filename="a.txt", content=b"hello", size=None)
        assert upload.size == 5


class TestDocumentStatus:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (DocumentStatus.PROCESSING, DocumentStatus.PROCESSED),
            (DocumentStatus.PROCESSING, DocumentStatus.FAILED),
            (DocumentStatus.PROCESSED, DocumentStatus.PROCESSING),
            (DocumentStatus.FAILED, DocumentStatus.PROCESSING),
            (DocumentStatus.PROCESSED, DocumentStatus.DELETED),
        ],
    )
    def test_allowed(self, current: DocumentStatus, target: DocumentStatus) -> None:
        assert current.can_transition_to(target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (DocumentStatus.FAILED, DocumentStatus.PROCESSED),
            (DocumentStatus.PROCESSING, DocumentStatus.PROCESSING),
            (DocumentStatus.DELETED, DocumentStatus.PROCESSING),
            (DocumentStatus.DELETED, DocumentStatus.PROCESSED),
        ],
    )
    def test_rejected(self, current: DocumentStatus, target: DocumentStatus) -> None:
        assert not current.can_transition_to(target)


class TestDocument:
    def test_defaults(self) -> None:
        doc = Document(tenant_id="t1", filename="a.txt", file_type=FileType.TXT)
        assert doc.status is DocumentStatus.PROCESSING
        assert doc.chunk_count == 0
        assert len(doc.id) == 32

    def test_frozen(self) -> None:
        doc = Document(tenant_id="t1", filename="a.txt", file_type=FileType.TXT)
        with pytest.raises(PydanticValidationError):
            doc.status = DocumentStatus.PROCESSED  # type: ignore[misc]


class TestRagModels:
    def test_chunk_id_is_deterministic(self) -> None:
        assert chunk_id_for("doc1", 3) == "doc1_chunk_3"

    def test_similarity_bounded(self) -> None:
        with pytest.raises(PydanticValidationError):
            RetrievalResult(content="x", similarity_score=1.5, document_id="d", tenant_id="t")

    def test_unknown_usage(self) -> None:
        usage = CompletionUsage.unknown()
        assert usage.reported is False
        assert usage.total_tokens == 0

    def test_conversation_turn_as_message(self) -> None:
        turn = ConversationTurn(role=Role.ASSISTANT, content="Hi")
        assert turn.as_message() == {"role": "assistant", "content": "Hi"}

    def test_answer_payload_uses_public_names(self) -> None:
        answer = RAGAnswer(
            response_text="42",
            context_used=[
                RetrievalResult(
                    content="ctx",
                    similarity_score=0.9,
                    document_id="d",
                    tenant_id="t",
                    metadata=ChunkMetadata(filename="a.txt"),
                )
            ],
            model_used="gpt-4",
            language="en",
        )
        payload = answer.to_payload()

        assert payload["response"] == "42"
        assert payload["model_used"] == "gpt-4"
        assert payload["context_used"][0]["metadata"]["filename"] == "a.txt"


class TestErrors:
    @pytest.mark.parametrize(
        ("error_cls", "status"),
        [
            (ValidationError, 422),
            (NotFoundError, 404),
            (UnsupportedModelError, 400),
            (InvalidStateTransitionError, 409),
            (EmbeddingError, 502),
            (CompletionError, 502),
            (StorageError, 503),
        ],
    )
    def test_status_codes(self, error_cls: type[DocuChatError], status: int) -> None:
        assert error_cls.status_code == status
        assert issubclass(error_cls, DocuChatError)

    def test_str_prefixes_provider(self) -> None:
        exc = CompletionError(message="Rate limited", provider_name="openai", retryable=True)
        assert str(exc) == "[openai] Rate limited"
        assert exc.retryable is True

    def test_not_retryable_by_default(self) -> None:
        assert EmbeddingError().retryable is False
