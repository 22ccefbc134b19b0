"""Structured logging helpers for the reconciliation engine.

Purpose
    Keep every emission of logging data predictable, contextual, and ready for
    downstream aggregation without forcing applications onto a specific logging
    backend, and make sure resolved secrets never reach a log record.

Contents
    - ``TRACE_ID``: context variable storing the active trace identifier.
    - ``get_logger``: returns the shared package logger (quiet by default).
    - ``bind_trace_id`` / ``new_trace_id``: bind, clear, or mint identifiers.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``: emit
      structured entries via a single private emitter.
    - ``make_event``: convenience builder for structured event payloads.
    - ``mask_value``: replaces sensitive values with :data:`SENSITIVE_MASK`.

System Integration
    Used by adapters, the provider, and the facades so all diagnostics carry
    the same trace metadata. Each reconciliation cycle binds a fresh trace id
    so the events of one cycle can be correlated.
"""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_reloadable_config_trace_id", default=None)
"""Current trace identifier propagated through logging helpers."""

SENSITIVE_MASK: Final[str] = "[sensitive]"
"""Placeholder written instead of any value flagged sensitive by a resolver."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_reloadable_config")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind or clear the active trace identifier.

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
    """Bind and return a short random identifier for one reconciliation cycle."""

    trace_id = uuid.uuid4().hex[:12]
    TRACE_ID.set(trace_id)
    return trace_id


def log_debug(message: str, **fields: Any) -> None:
    """Emit a structured debug log entry that includes the trace context."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit a structured info log entry that includes the trace context."""

    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    """Emit a structured warning log entry that includes the trace context."""

    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Emit a structured error log entry that includes the trace context."""

    _emit(logging.ERROR, message, fields)


def make_event(
    locator: str,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured logging payload for locator lifecycle events.

    Why
        Keeps event construction consistent so downstream log processors can
        rely on stable keys.
    Inputs
        locator: Diagnostic base path of the locator being observed.
        path: Logical resource path associated with the event, if any.
        payload: Optional mapping with extra diagnostic detail.

    Examples
    --------
    >>> make_event('file://config/', 'default/application.yml', {'keys': 3})
    {'locator': 'file://config/', 'path': 'default/application.yml', 'keys': 3}
    """

    event: dict[str, Any] = {"locator": locator, "path": path}
    if payload:
        event |= dict(payload)
    return event


def mask_value(value: str, sensitive: bool) -> str:
    """Return *value* unless it is *sensitive*, in which case return the mask.

    Examples
    --------
    >>> mask_value('hunter2', True)
    '[sensitive]'
    >>> mask_value('8080', False)
    '8080'
    """

    return SENSITIVE_MASK if sensitive else value


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Send a log entry through the shared logger with contextual metadata."""

    _LOGGER.log(level, message, extra={"context": _with_trace(fields)})


def _with_trace(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Attach the current trace identifier to the provided structured fields."""

    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    return context
