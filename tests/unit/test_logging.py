"""Unit tests for logging helpers."""

from __future__ import annotations

import logging

import structlog

from docuchat.utils.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)


def test_bind_skips_none() -> None:
    clear_request_context()
    bind_request_context(tenant_id="t1", user_id=None)

    assert structlog.contextvars.get_contextvars() == {"tenant_id": "t1"}

    clear_request_context()
    assert structlog.contextvars.get_contextvars() == {}


def test_configure_sets_levels() -> None:
    configure_logging("DEBUG", json_output=True)

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING


def test_unknown_level_falls_back_to_info() -> None:
    configure_logging("chatty")

    assert logging.getLogger().level == logging.INFO


def test_get_logger_returns_usable_logger() -> None:
    log = get_logger("docuchat.tests")
    log.info("logger_smoke_test", value=1)
