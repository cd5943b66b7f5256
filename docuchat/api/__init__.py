"""docuchat API layer: routes, schemas, and middleware."""

from docuchat.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from docuchat.api.routes import internal_router, router
from docuchat.api.schemas import (
    ChatRequest,
    ChatResponse,
    DocumentResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "internal_router",
    "router",
    "ChatRequest",
    "ChatResponse",
    "DocumentResponse",
    "ErrorResponse",
    "HealthResponse",
]
