"""
================================================================================
UI Testing Pytest Configuration
================================================================================

This module configures pytest for UI tests, providing fixtures for browser
management, page objects, scenario worlds and failure capture.

Key Features:
- Settings and locator store built once per session
- Browser, context and page per test (isolation)
- Page Object fixtures
- Screenshot capture on failed scenarios

Browser tests are skipped when Playwright browsers are not installed
(`playwright install chromium`).

================================================================================
"""

from typing import AsyncGenerator

import pytest
from playwright.async_api import BrowserContext, Error as PlaywrightError, Page

import testsuites.ui_testing.steps  # noqa: F401  (registers step phrases)
from e2e_toolkit.common import Settings
from testsuites.ui_testing.framework.browser_manager import BrowserManager
from testsuites.ui_testing.framework.locator_manager import LocatorStore
from testsuites.ui_testing.framework.scenario import ScenarioWorld, capture_failure_screenshot
from testsuites.ui_testing.pages.demo_form_page import DemoFormPage


BROWSER_MISSING_HINTS = (
    "Executable doesn't exist",
    "Host system is missing dependencies",
)


# ================================================================================
# Configuration Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def settings() -> Settings:
    """Session-scoped settings (config/*.yaml + environment)."""
    return Settings.load()


@pytest.fixture(scope="session")
def locators(settings: Settings) -> LocatorStore:
    """Session-scoped, read-only locator store."""
    return LocatorStore(settings.resolve_path(settings.locators_dir)).load()


# ================================================================================
# Browser Fixtures
# ================================================================================

@pytest.fixture
async def browser_manager(settings: Settings) -> AsyncGenerator[BrowserManager, None]:
    """
    Function-scoped browser manager.

    Skips the test when the browser executable is not installed.
    """
    manager = BrowserManager(settings)
    try:
        await manager.start()
    except PlaywrightError as e:
        if any(hint in str(e) for hint in BROWSER_MISSING_HINTS):
            pytest.skip(f"Playwright browser '{settings.browser_name}' is not installed")
        raise
    yield manager
    await manager.close()


@pytest.fixture
async def context(browser_manager: BrowserManager) -> AsyncGenerator[BrowserContext, None]:
    """Isolated browser context per test."""
    context = await browser_manager.new_context()
    yield context


@pytest.fixture
async def page(context: BrowserContext) -> AsyncGenerator[Page, None]:
    """Page within the test's context."""
    page = await context.new_page()
    yield page


# ================================================================================
# Page Object Fixtures
# ================================================================================

@pytest.fixture
async def demo_page(page: Page, locators: LocatorStore, settings: Settings) -> DemoFormPage:
    """DemoFormPage opened on the local demo site."""
    demo = DemoFormPage(page, locators, settings)
    await demo.open()
    return demo


# ================================================================================
# Scenario Fixtures
# ================================================================================

@pytest.fixture
async def world(
    request: pytest.FixtureRequest,
    settings: Settings,
    locators: LocatorStore,
    context: BrowserContext,
    page: Page,
) -> AsyncGenerator[ScenarioWorld, None]:
    """
    Scenario world; takes a failure screenshot when the test call failed.
    """
    world = ScenarioWorld(settings=settings, locators=locators, page=page, context=context)
    yield world

    report = getattr(request.node, "rep_call", None)
    if report is not None and report.failed:
        await capture_failure_screenshot(world)


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Keep each phase's report on the item (rep_setup / rep_call / rep_teardown)."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)
