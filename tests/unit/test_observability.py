"""Unit tests for structured logging utilities in ``observability``."""

from __future__ import annotations

import logging

import pytest

from lib_config_source import bind_trace_id, get_logger
from lib_config_source.observability import TRACE_ID, log_info, make_event, new_trace_id, trace_scope


def test_null_handler_present() -> None:
    """Package logger should always include a NullHandler to avoid surprises."""

    logger = get_logger()
    assert logger.name == "lib_config_source"
    assert any(isinstance(handler, logging.NullHandler) for handler in logger.handlers)


def test_trace_id_in_log(caplog: pytest.LogCaptureFixture) -> None:
    """Structured logs should include the bound trace identifier and contextual fields."""

    caplog.set_level(logging.INFO, logger="lib_config_source")
    bind_trace_id("trace-123")
    try:
        log_info("configuration_merged", environment="prod", path=None)
    finally:
        bind_trace_id(None)
    record = caplog.records[-1]
    assert getattr(record, "context") == {"trace_id": "trace-123", "environment": "prod", "path": None}


def test_bind_trace_id_clears_context() -> None:
    bind_trace_id("trace-temp")
    bind_trace_id(None)
    assert TRACE_ID.get() is None


def test_make_event_merges_optional_payload() -> None:
    assert make_event("prod", "/srv", {"keys": 3}) == {"environment": "prod", "path": "/srv", "keys": 3}
    assert make_event(None, None) == {"environment": None, "path": None}


def test_trace_scope_restores_previous_binding() -> None:
    bind_trace_id("outer")
    try:
        with pytest.raises(RuntimeError):
            with trace_scope("inner"):
                assert TRACE_ID.get() == "inner"
                raise RuntimeError("boom")
        assert TRACE_ID.get() == "outer"
    finally:
        bind_trace_id(None)


def test_trace_scope_generates_identifiers() -> None:
    with trace_scope() as first:
        assert TRACE_ID.get() == first
    with trace_scope() as second:
        pass
    assert len(first) == 32 and first != second
    assert new_trace_id() != new_trace_id()
