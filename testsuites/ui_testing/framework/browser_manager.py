"""
================================================================================
Browser Manager
================================================================================

Browser lifecycle management for UI automation.

Features:
    - Browser selection and launch options from Settings
    - Context isolation (one context per scenario)
    - Context tracking and cleanup

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)

from e2e_toolkit.common.errors import ErrorHandler, ErrorType
from e2e_toolkit.common.settings import Settings


SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")


class BrowserManager:
    """
    Manages browser instances and contexts for UI testing.

    Usage:
        async with BrowserManager(settings) as manager:
            context = await manager.new_context()
            page = await context.new_page()
            await page.goto("https://example.com")
    """

    def __init__(
        self,
        settings: Settings,
        headless: Optional[bool] = None,
        browser_type: Optional[str] = None,
    ):
        """
        Initialize browser manager.

        Args:
            settings: Framework settings (browser, headless, launch args, viewport)
            headless: Override settings.headless
            browser_type: Override settings.browser_name - 'chromium', 'firefox', 'webkit'
        """
        self.settings = settings
        self.headless = settings.headless if headless is None else headless
        self.browser_type = (browser_type or settings.browser_name or "chromium").lower()
        if self.browser_type not in SUPPORTED_BROWSERS:
            ErrorHandler.new_error(
                f"Unsupported browser '{self.browser_type}'. Expected one of {', '.join(SUPPORTED_BROWSERS)}",
                ErrorType.CONFIG,
                raise_error=True,
            )

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: List[BrowserContext] = []

    async def __aenter__(self) -> "BrowserManager":
        """Async context manager entry - start browser."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - close browser."""
        await self.close()

    @property
    def launch_options(self) -> Dict[str, Any]:
        return {
            "headless": self.headless,
            "args": list(self.settings.launch_args),
        }

    @property
    def context_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"ignore_https_errors": self.settings.ignore_https_errors}
        if self.settings.viewport:
            options["viewport"] = self.settings.viewport
        return options

    async def start(self) -> None:
        """Start Playwright and launch browser."""
        self._playwright = await async_playwright().start()
        browser_launcher = getattr(self._playwright, self.browser_type)
        try:
            self._browser = await browser_launcher.launch(**self.launch_options)
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise
        logger.debug(
            f"Browser started: {self.browser_type} "
            f"(headless={self.headless}, args={list(self.settings.launch_args)})"
        )

    async def close(self) -> None:
        """Close all contexts and browser."""
        for context in self._contexts:
            try:
                await context.close()
            except Exception as e:
                logger.debug(f"Context already closed: {e}")
        self._contexts.clear()

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.debug("Browser closed")

    async def new_context(
        self,
        **options: Any,
    ) -> BrowserContext:
        """
        Create new browser context.

        Each context is isolated - separate cookies, localStorage, etc.

        Args:
            **options: Additional context options (override settings-derived ones)

        Returns:
            New BrowserContext
        """
        if not self._browser:
            raise RuntimeError("Browser not started. Call start() first.")

        context = await self._browser.new_context(**{**self.context_options, **options})
        context.set_default_timeout(self.settings.default_timeout)
        self._contexts.append(context)
        return context

    async def new_page(
        self,
        context: Optional[BrowserContext] = None,
        **context_options: Any,
    ) -> Page:
        """
        Create new page in new or existing context.

        Args:
            context: Existing context to use (creates new if None)
            **context_options: Options for new context

        Returns:
            New Page
        """
        if context is None:
            context = await self.new_context(**context_options)
        return await context.new_page()

    @property
    def browser(self) -> Optional[Browser]:
        """Get browser instance."""
        return self._browser


__all__ = [
    "BrowserManager",
    "SUPPORTED_BROWSERS",
]
