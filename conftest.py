"""
Repository-level pytest configuration.

  - Provide safe defaults for local runs (no secrets embedded)
  - Initialize the Loguru logger once per test process from config/*.yaml + env

Real projects should load secrets from a secure secret manager in CI/CD.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest

from e2e_toolkit.common import Settings, init_logger


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _demo_safe_env_defaults() -> Generator[None, None, None]:
    """
    Set demo-safe environment defaults if not already provided by the user/CI.

    This prevents accidental leakage and keeps local runs predictable.
    """
    defaults = {
        "TEST_ENV": "development",
        "UI_USERNAME": "demo_user",
        "UI_PASSWORD": "demo_password",
        "CAPTCHA_SOLVER_ENABLED": "false",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    init_logger(Settings.load())
    yield
