"""Custom exception hierarchy for docuchat.

All application exceptions inherit from :class:`DocuChatError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "chromadb", "sqlite") caused the failure,
and a ``retryable`` flag separating transient upstream failures (timeouts,
rate limits) from permanent ones (bad input, unknown model).

The hierarchy is organized by pipeline domain:

    DocuChatError  (base -- catch-all for any docuchat error)
    +-- ValidationError              (bad upload / request shape)
    +-- ExtractionError              (unreadable or corrupt source file)
    +-- EmbeddingError               (embedding provider failure)
    +-- CompletionError              (LLM provider failure)
    +-- UnsupportedModelError        (unknown model id)
    +-- NotFoundError                (unknown id or tenant mismatch)
    +-- StorageError                 (blob store, registry, or vector store)
    +-- InvalidStateTransitionError  (document lifecycle violation)
    +-- ConfigurationError           (startup / invalid config)

Every class declares the HTTP ``status_code`` the API layer maps it to.
"""


class DocuChatError(Exception):
    """Base exception for all docuchat errors.

    Every subclass carries a human-readable ``message``, an optional
    ``provider_name`` identifying which external service triggered the
    error, and a ``retryable`` flag.  The ``__str__`` method prefixes the
    provider name in brackets for structured log output, e.g.
    ``[openai] Rate limit exceeded``.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
        retryable: bool = False,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        self._retryable = retryable
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    @property
    def retryable(self) -> bool:
        return self._retryable

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Caller-correctable errors
# ---------------------------------------------------------------------------

class ValidationError(DocuChatError):
    """Raised when an upload or request violates size, type, or shape limits."""

    status_code = 422

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ExtractionError(DocuChatError):
    """Raised when text cannot be extracted from an uploaded file."""

    status_code = 422

    def __init__(
        self,
        message: str = "Text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(DocuChatError):
    """Raised for an unknown document id or a tenant mismatch.

    Both cases produce the same error so that document existence never
    leaks across tenants.
    """

    status_code = 404

    def __init__(
        self,
        message: str = "Resource not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedModelError(DocuChatError):
    """Raised when a model id has no registered completion provider."""

    status_code = 400

    def __init__(
        self,
        message: str = "Unsupported model",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InvalidStateTransitionError(DocuChatError):
    """Raised when a document status change skips the lifecycle rules."""

    status_code = 409

    def __init__(
        self,
        message: str = "Invalid document status transition",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Upstream AI provider errors
# ---------------------------------------------------------------------------

class EmbeddingError(DocuChatError):
    """Raised when the embedding provider fails, including timeouts."""

    status_code = 502

    def __init__(
        self,
        message: str = "Embedding generation failed",
        provider_name: str | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=retryable)


class CompletionError(DocuChatError):
    """Raised when an LLM completion call fails or returns no content."""

    status_code = 502

    def __init__(
        self,
        message: str = "LLM completion failed",
        provider_name: str | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=retryable)


# ---------------------------------------------------------------------------
# Storage / configuration errors
# ---------------------------------------------------------------------------

class StorageError(DocuChatError):
    """Raised when the blob store, document registry, or vector store fails."""

    status_code = 503

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=retryable)


class ConfigurationError(DocuChatError):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
