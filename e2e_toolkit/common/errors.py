"""
================================================================================
Error Classification and Handling
================================================================================

Typed error records shared by the whole framework.

Every failure that crosses a framework boundary is converted into a
`FrameworkError` carrying its classified kind (`ErrorType`), the original
exception, free-form context and an "operational" flag. The handler logs the
record (warning for operational errors, error otherwise) and hands it back to
the caller, which re-raises it.

Usage:
    try:
        await locator.click(timeout=timeout)
    except Exception as e:
        raise ErrorHandler.handle(e, ErrorType.UI_ACTION) from e

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from loguru import logger
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


# Wording Playwright uses for every exceeded wait
TIMEOUT_MESSAGE = re.compile(r"\bTimeout \d+ms exceeded")


class ErrorType(str, Enum):
    """Classification of failures by origin."""

    NAVIGATION = "NAVIGATION_ERROR"
    UI = "UI_ERROR"
    UI_ACTION = "UI_ACTION_ERROR"
    UI_QUERY = "UI_QUERY_ERROR"
    WAIT = "WAIT_ERROR"
    TIMEOUT = "TIMEOUT_ERROR"
    ASSERTION = "ASSERTION_ERROR"
    FRAME = "FRAME_ERROR"
    PAGE = "PAGE_ERROR"
    DIALOG = "DIALOG_ERROR"
    JAVASCRIPT = "JAVASCRIPT_ERROR"
    IO = "IO_ERROR"
    CAPTCHA = "CAPTCHA_ERROR"
    CONFIG = "CONFIG_ERROR"
    VALIDATION = "VALIDATION_ERROR"
    LLM = "LLM_ERROR"
    API = "API_ERROR"
    GENERIC = "GENERIC_ERROR"


class FrameworkError(Exception):
    """
    Classified error record.

    Attributes:
        error_type: Classified kind of the failure
        cause: Underlying exception (if any)
        context: Additional diagnostic data
        is_operational: Expected/recoverable failure (logged as warning)
        timestamp: UTC creation time in ISO format
    """

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.GENERIC,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
        is_operational: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.cause = cause
        self.context: Dict[str, Any] = dict(context or {})
        self.is_operational = is_operational
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the record for logs and report attachments."""
        cause = None
        if self.cause is not None:
            cause = {"name": type(self.cause).__name__, "message": str(self.cause)}
        return {
            "type": self.error_type.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "is_operational": self.is_operational,
            "cause": cause,
            "context": self.context,
        }

    def __str__(self) -> str:
        return f"[{self.error_type.value}] {self.message}"


class ConfigurationError(FrameworkError):
    """Raised when configuration or definition files cannot be used."""

    def __init__(self, message: str, cause: Optional[BaseException] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorType.CONFIG, cause=cause, context=context)


class StepDefinitionError(FrameworkError):
    """Raised when a scenario step has no (or more than one) matching definition."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorType.VALIDATION, context=context)


def is_timeout(error: BaseException) -> bool:
    """Return True for Playwright/asyncio timeouts or errors carrying Playwright's timeout wording."""
    if isinstance(error, (PlaywrightTimeoutError, asyncio.TimeoutError)):
        return True
    return bool(TIMEOUT_MESSAGE.search(str(error)))


class ErrorHandler:
    """
    Central place where failures are classified and logged.

    All methods are static; the handler holds no state.
    """

    @staticmethod
    def handle(
        error: BaseException,
        default_type: ErrorType = ErrorType.GENERIC,
        context: Optional[Dict[str, Any]] = None,
    ) -> FrameworkError:
        """
        Classify an exception, log it and return the typed record.

        A `FrameworkError` passes through unchanged. Timeouts are classified
        as TIMEOUT only when the caller did not ask for a specific kind;
        otherwise the requested kind is kept and the record is flagged with
        `timed_out` and marked operational.

        Args:
            error: The exception to classify
            default_type: Kind of the operation that failed
            context: Extra diagnostic data merged into the record

        Returns:
            The classified FrameworkError (caller decides whether to raise)
        """
        if isinstance(error, FrameworkError):
            if context:
                error.context.update(context)
            ErrorHandler.log_error(error)
            return error

        record_context: Dict[str, Any] = dict(context or {})
        error_type = default_type
        is_operational = False

        if is_timeout(error):
            if default_type == ErrorType.GENERIC:
                error_type = ErrorType.TIMEOUT
            else:
                record_context["timed_out"] = True
                is_operational = True

        message = str(error) or type(error).__name__
        record = FrameworkError(
            message,
            error_type,
            cause=error,
            context=record_context,
            is_operational=is_operational,
        )
        ErrorHandler.log_error(record)
        return record

    @staticmethod
    def log_error(error: FrameworkError) -> None:
        """Log at warning level for operational errors, error level otherwise."""
        details = error.to_dict()
        if error.is_operational:
            logger.warning(f"Operational Error: {error.error_type.value} - {error.message} | {details['context']}")
        else:
            logger.error(f"Critical Error: {error.error_type.value} - {error.message} | {details}")

    @staticmethod
    def new_error(
        message: str,
        error_type: ErrorType,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
        is_operational: bool = False,
        raise_error: bool = False,
    ) -> FrameworkError:
        """
        Create and log a new error record, optionally raising it.

        Raises:
            FrameworkError: When `raise_error` is True
        """
        if error_type == ErrorType.CONFIG:
            error: FrameworkError = ConfigurationError(message, cause=cause, context=context)
            error.is_operational = is_operational
        else:
            error = FrameworkError(message, error_type, cause=cause, context=context, is_operational=is_operational)
        ErrorHandler.log_error(error)
        if raise_error:
            raise error
        return error


__all__ = [
    "ErrorType",
    "FrameworkError",
    "ConfigurationError",
    "StepDefinitionError",
    "ErrorHandler",
    "is_timeout",
]
