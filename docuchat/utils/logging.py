"""structlog configuration for docuchat.

One processor chain serves both structlog loggers and the stdlib loggers of
the libraries underneath us (uvicorn, chromadb, httpx, the LLM SDKs).  Output
is a coloured console in development and one JSON object per line when
``APP_ENV=production`` or ``json_output=True``.

Request handlers bind ``tenant_id`` (and the request path) with
:func:`bind_request_context`; every event logged while the request is being
served carries those keys without passing them around.
"""

import logging
import os
import sys
from typing import Any

import structlog

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS: dict[str, int] = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "chromadb": logging.WARNING,
    "openai": logging.WARNING,
    "anthropic": logging.WARNING,
}


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: Minimum level name, e.g. ``"DEBUG"`` or ``"WARNING"``.
        json_output: Always render JSON.  Otherwise JSON is used only when
            ``APP_ENV`` is ``"production"``.

    Returns:
        The root structlog logger.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    production = os.environ.get("APP_ENV", "development") == "production"
    renderer: structlog.types.Processor
    if json_output or production:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    processors = _shared_processors()
    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(quiet_level, level))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger bound with ``logger_name``, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)


def bind_request_context(**values: Any) -> None:
    """Bind request-scoped keys (``None`` values are skipped)."""
    structlog.contextvars.bind_contextvars(
        **{key: value for key, value in values.items() if value is not None}
    )


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
