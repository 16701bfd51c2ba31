"""Structured logging for configuration queries.

Every record emitted by the library goes through :func:`_emit` and carries a
``context`` attribute: a dict holding the active trace id plus the fields the
caller passed (``environment``, ``path`` and event specific values). The
package logger only has a :class:`logging.NullHandler`; applications attach
their own handlers and formatters.

Trace ids live in a context variable, so threads and asyncio tasks running
queries side by side keep separate ids.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Final, Iterator, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_config_source_trace_id", default=None)

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_config_source")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the ``lib_config_source`` logger for handler configuration."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Set the trace id for the current context; ``None`` clears it.

    Examples
    --------
    >>> bind_trace_id('abc123')
    >>> TRACE_ID.get()
    'abc123'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def new_trace_id() -> str:
    """Return a fresh random trace id (32 hex characters)."""

    return uuid.uuid4().hex


@contextmanager
def trace_scope(trace_id: str | None = None) -> Iterator[str]:
    """Bind *trace_id* (or a new one) for the duration of the block.

    The previous binding is restored on exit, also when the block raises.

    Examples
    --------
    >>> with trace_scope("query-1") as active:
    ...     TRACE_ID.get() == active
    True
    >>> TRACE_ID.get() is None
    True
    """

    active = trace_id or new_trace_id()
    token = TRACE_ID.set(active)
    try:
        yield active
    finally:
        TRACE_ID.reset(token)


def log_debug(message: str, **fields: Any) -> None:
    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    _emit(logging.INFO, message, fields)


def log_error(message: str, **fields: Any) -> None:
    _emit(logging.ERROR, message, fields)


def make_event(
    environment: str | None,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return the standard ``environment``/``path`` fields plus *payload*.

    Examples
    --------
    >>> make_event('prod', None, {'files': 2})
    {'environment': 'prod', 'path': None, 'files': 2}
    """

    event: dict[str, Any] = {"environment": environment, "path": path}
    event.update(payload or {})
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    if not _LOGGER.isEnabledFor(level):
        return
    context = {"trace_id": TRACE_ID.get(), **fields}
    _LOGGER.log(level, message, extra={"context": context})
