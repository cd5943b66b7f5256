"""API middleware: CORS, request logging, and error handling.

Starlette middleware is a stack (last added, first executed).  In
``main.py`` ErrorHandlingMiddleware is added before RequestLoggingMiddleware,
so the logging middleware is outermost and records the final status code,
including error responses produced by ErrorHandlingMiddleware::

    Client -> RequestLogging -> ErrorHandling -> route handler
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from docuchat.api.schemas import ErrorResponse
from docuchat.utils.errors import DocuChatError
from docuchat.utils.logging import bind_request_context, clear_request_context, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware so the dashboard and chat widget can call the API.

    Defaults to ``["*"]``; restrict to the deployed domains in production.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, tenant, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None
        clear_request_context()
        bind_request_context(
            tenant_id=request.headers.get("x-tenant-id"),
            path=str(request.url.path),
        )

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                status=status_code,
                duration_ms=duration_ms,
            )
            clear_request_context()


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def error_response(exc: DocuChatError) -> JSONResponse:
    """Render *exc* as an :class:`ErrorResponse` with the error's status code."""
    body = ErrorResponse(
        error=type(exc).__name__,
        detail=exc.message,
        retryable=exc.retryable,
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert ``DocuChatError`` subclasses into structured JSON errors.

    The client sees the error type, message and ``retryable`` flag only;
    stack traces and provider internals stay in the server logs.  Other
    exceptions fall through to FastAPI's default 500 handler.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except DocuChatError as exc:
            log = _logger.error if exc.status_code >= 500 else _logger.warning
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                retryable=exc.retryable,
                status=exc.status_code,
            )
            return error_response(exc)
