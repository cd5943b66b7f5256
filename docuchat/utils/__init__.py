"""Utility modules for docuchat.

- **errors** -- Domain exception hierarchy rooted at DocuChatError; each
  pipeline stage raises its own subclass so callers can tell retryable
  upstream failures from caller-correctable input errors.
- **concurrency** -- Per-document lock manager serialising ingest,
  reprocess, and delete on the same document id.
- **logging** -- structlog setup (console in development, JSON in
  production) and request-scoped context binding.
"""

# -- Structured logging setup ----------------------------------------------
from docuchat.utils.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)

# -- Domain exception hierarchy --------------------------------------------
from docuchat.utils.errors import (
    CompletionError,
    ConfigurationError,
    DocuChatError,
    EmbeddingError,
    ExtractionError,
    InvalidStateTransitionError,
    NotFoundError,
    StorageError,
    UnsupportedModelError,
    ValidationError,
)

# -- Per-document locking ---------------------------------------------------
from docuchat.utils.concurrency import DocumentLockManager

__all__ = [
    "CompletionError",
    "ConfigurationError",
    "DocuChatError",
    "DocumentLockManager",
    "EmbeddingError",
    "ExtractionError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "StorageError",
    "UnsupportedModelError",
    "ValidationError",
    "bind_request_context",
    "clear_request_context",
    "configure_logging",
    "get_logger",
]
