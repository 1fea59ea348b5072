"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the root pytest configuration for the entire test suite.
It registers common markers and provides shared fixtures.

================================================================================
"""

from pathlib import Path

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests simulating user flows"
    )
    config.addinivalue_line(
        "markers", "scenario: Tests generated from YAML scenario files"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "unit: Browser-free tests of framework components"
    )
    config.addinivalue_line(
        "markers", "ui: UI-specific tests"
    )
    config.addinivalue_line(
        "markers", "external: Tests that need access to public websites"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify collected test items.

    Adds the domain marker matching the directory a test lives in.
    """
    for item in items:
        path = str(item.fspath)
        if "unit" in Path(path).parts:
            item.add_marker(pytest.mark.unit)

        if "ui_testing" in path:
            item.add_marker(pytest.mark.ui)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Playwright E2E Framework",
        "=" * 60,
        "",
    ]
