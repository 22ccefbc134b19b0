"""Unit tests for structured logging utilities in ``observability``.

Validates the null handler, trace binding, masking, and event construction
behaviour promised to downstream consumers.
"""

from __future__ import annotations

import logging

import pytest

from lib_reloadable_config import bind_trace_id, get_logger
from lib_reloadable_config.observability import (
    SENSITIVE_MASK,
    TRACE_ID,
    log_info,
    make_event,
    mask_value,
    new_trace_id,
)
from lib_reloadable_config.testing import InMemoryResourceLocator, config_provider_scope


def test_null_handler_present() -> None:
    logger = get_logger()
    assert any(isinstance(handler, logging.NullHandler) for handler in logger.handlers)


def test_trace_id_in_log(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="lib_reloadable_config")
    bind_trace_id("trace-123")
    log_info("reload_complete", locator="file://cfg/", path=None)
    record = caplog.records[-1]
    assert getattr(record, "context") == {"trace_id": "trace-123", "locator": "file://cfg/", "path": None}


def test_bind_trace_id_clears_context() -> None:
    bind_trace_id("trace-temp")
    bind_trace_id(None)
    assert TRACE_ID.get() is None


def test_new_trace_id_binds_a_fresh_identifier() -> None:
    first = new_trace_id()
    second = new_trace_id()
    assert first != second
    assert TRACE_ID.get() == second


def test_make_event_merges_optional_payload() -> None:
    event = make_event("file://cfg/", None, {"keys": 3})
    assert event == {"locator": "file://cfg/", "path": None, "keys": 3}


def test_mask_value() -> None:
    assert mask_value("hunter2", True) == SENSITIVE_MASK == "[sensitive]"
    assert mask_value("8080", False) == "8080"


def test_sensitive_values_never_reach_the_log(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="lib_reloadable_config")
    locator = InMemoryResourceLocator({"default/application.yml": "db:\n  password: hunter2\n  url: jdbc\n"})

    class Flagging:
        def resolve(self, name: str, value: str) -> str:
            return value

        def is_sensitive(self, name: str, value: str) -> bool:
            return name.endswith(".password")

    with config_provider_scope(["default"], locators=[locator], resolvers=[Flagging()]):
        pass
    contexts = [getattr(record, "context", {}) for record in caplog.records]
    assert all("hunter2" not in repr(context) for context in contexts)
    loaded = {context.get("property"): context.get("value") for context in contexts if "property" in context}
    assert loaded["db.password"] == SENSITIVE_MASK
    assert loaded["db.url"] == "jdbc"


def test_each_reload_cycle_binds_its_own_trace(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="lib_reloadable_config")
    locator = InMemoryResourceLocator({"default/application.yml": "a: 1\n"})
    with config_provider_scope(["default"], locators=[locator]) as provider:
        provider.reload()
    traces = {record.context["trace_id"] for record in caplog.records if record.getMessage() == "reload_complete"}
    assert len(traces) == 2
