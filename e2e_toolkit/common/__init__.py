"""
================================================================================
E2E Toolkit Common Utilities
================================================================================

Shared configuration, logging setup and error model for the framework.

Exports:
    - Settings: Read-only configuration object
    - init_logger: Loguru setup
    - ErrorType / FrameworkError / ErrorHandler: Error classification

Usage:
    from e2e_toolkit.common import Settings, init_logger

    settings = Settings.load()
    init_logger(settings)

================================================================================
"""

from .errors import (
    ConfigurationError,
    ErrorHandler,
    ErrorType,
    FrameworkError,
    StepDefinitionError,
)
from .logging_setup import init_logger
from .settings import Settings

__all__ = [
    "ConfigurationError",
    "ErrorHandler",
    "ErrorType",
    "FrameworkError",
    "StepDefinitionError",
    "Settings",
    "init_logger",
]
