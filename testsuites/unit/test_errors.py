import asyncio

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from e2e_toolkit.common.errors import (
    ConfigurationError,
    ErrorHandler,
    ErrorType,
    FrameworkError,
    is_timeout,
)
from testsuites.unit.doubles import log_messages


def test_timeout_keeps_operation_kind_and_is_operational():
    error = ErrorHandler.handle(
        PlaywrightTimeoutError("Timeout 500ms exceeded"),
        ErrorType.UI_ACTION,
        context={"page_name": "Login", "element_key": "submit"},
    )

    assert error.error_type == ErrorType.UI_ACTION
    assert error.is_operational
    assert error.context == {"page_name": "Login", "element_key": "submit", "timed_out": True}
    assert isinstance(error.cause, PlaywrightTimeoutError)


def test_timeout_without_specific_kind_becomes_timeout():
    error = ErrorHandler.handle(asyncio.TimeoutError())

    assert error.error_type == ErrorType.TIMEOUT
    assert error.message == "TimeoutError"
    assert not error.is_operational


def test_non_timeout_error_keeps_kind_and_is_critical():
    error = ErrorHandler.handle(RuntimeError("element detached"), ErrorType.UI_QUERY)

    assert error.error_type == ErrorType.UI_QUERY
    assert not error.is_operational
    assert "timed_out" not in error.context
    assert str(error) == "[UI_QUERY_ERROR] element detached"


def test_framework_error_passes_through_with_merged_context():
    original = FrameworkError("bad dialog", ErrorType.DIALOG, context={"a": 1})

    handled = ErrorHandler.handle(original, ErrorType.UI_ACTION, context={"b": 2})

    assert handled is original
    assert handled.error_type == ErrorType.DIALOG
    assert handled.context == {"a": 1, "b": 2}


def test_is_timeout_detects_timeouts_by_type_and_message():
    assert is_timeout(PlaywrightTimeoutError("waiting"))
    assert is_timeout(asyncio.TimeoutError())
    assert is_timeout(RuntimeError("page.goto: Timeout 30000ms exceeded."))
    assert not is_timeout(ValueError("bad value"))
    assert not is_timeout(RuntimeError("ReferenceError: setTimeout2 is not defined"))
    assert not is_timeout(RuntimeError("Invalid timeout option"))


def test_script_error_mentioning_timeout_is_critical(captured_logs):
    error = ErrorHandler.handle(Exception("ReferenceError: setTimeout2 is not defined"), ErrorType.JAVASCRIPT)

    assert error.error_type == ErrorType.JAVASCRIPT
    assert not error.is_operational
    assert "timed_out" not in error.context
    assert any("Critical Error: JAVASCRIPT_ERROR" in m for m in log_messages(captured_logs, "ERROR"))
    assert log_messages(captured_logs, "WARNING") == []


def test_new_error_config_kind_builds_configuration_error():
    with pytest.raises(ConfigurationError) as exc_info:
        ErrorHandler.new_error("missing endpoint", ErrorType.CONFIG, raise_error=True)

    assert exc_info.value.error_type == ErrorType.CONFIG


def test_new_error_without_raise_returns_record():
    error = ErrorHandler.new_error("no captcha", ErrorType.CAPTCHA, context={"attempts": 3})

    assert isinstance(error, FrameworkError)
    record = error.to_dict()
    assert record["type"] == "CAPTCHA_ERROR"
    assert record["context"] == {"attempts": 3}
    assert record["cause"] is None
    assert record["timestamp"]


def test_log_level_follows_operational_flag(captured_logs):
    ErrorHandler.new_error("expected hiccup", ErrorType.VALIDATION, is_operational=True)
    ErrorHandler.new_error("real failure", ErrorType.IO)

    assert any("expected hiccup" in m for m in log_messages(captured_logs, "WARNING"))
    assert any("real failure" in m for m in log_messages(captured_logs, "ERROR"))


def test_to_dict_describes_cause():
    error = ErrorHandler.handle(ValueError("bad json"), ErrorType.CONFIG)

    assert error.to_dict()["cause"] == {"name": "ValueError", "message": "bad json"}
