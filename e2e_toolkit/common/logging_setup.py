"""
================================================================================
Logging Setup
================================================================================

Centralized Loguru configuration for the framework.

Call `init_logger(settings)` once at process start (the root conftest
does this). Repeated calls are no-ops unless `force=True`.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import sys
from typing import Optional

from loguru import logger

from .settings import Settings


DEFAULT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"

_logger_initialized: bool = False


def init_logger(
    settings: Optional[Settings] = None,
    level: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Initialize the global Loguru logger.

    Args:
        settings: Framework settings (log level and optional log file)
        level: Explicit level overriding the settings value
        force: Reconfigure even if already initialized
    """
    global _logger_initialized

    if _logger_initialized and not force:
        return

    log_level = (level or (settings.log_level if settings else "INFO")).upper()

    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        format=DEFAULT_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    log_file = settings.log_file if settings else None
    if log_file:
        log_path = settings.resolve_path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_format = DEFAULT_FORMAT.replace("{level: <8}", "{level}")
        logger.add(
            str(log_path),
            level="DEBUG",
            format=file_format,
            rotation="10 MB",
            retention="7 days",
            compression="zip",
            enqueue=True,
        )
        error_path = log_path.with_name(f"{log_path.stem}-error{log_path.suffix or '.log'}")
        logger.add(
            str(error_path),
            level="ERROR",
            format=file_format,
            rotation="10 MB",
            retention="7 days",
            compression="zip",
            enqueue=True,
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {log_level}")


def reset_logger() -> None:
    """Forget the initialized state so the next `init_logger()` reconfigures."""
    global _logger_initialized
    _logger_initialized = False


__all__ = [
    "init_logger",
    "reset_logger",
    "DEFAULT_FORMAT",
]
