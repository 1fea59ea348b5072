"""
================================================================================
Playwright Site Page Object
================================================================================

Example page object over the public playwright.dev site.

Elements live under the "PlaywrightSite" key of
`locators/example_page.json`.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Optional

import allure

from testsuites.ui_testing.framework.page_base import BasePage


class ExamplePage(BasePage):
    """playwright.dev landing page."""

    PAGE_NAME = "PlaywrightSite"
    SITE_URL = "https://playwright.dev/"

    MAIN_HEADING = "mainHeading"
    GET_STARTED_BUTTON = "getStartedButton"
    SEARCH_BUTTON = "searchButton"
    SEARCH_INPUT = "searchInput"

    @allure.step("Open playwright.dev")
    async def open(self, wait_until: str = "load") -> "ExamplePage":
        await self.navigate_to(self.SITE_URL, wait_until=wait_until)
        return self

    @allure.step("Click 'Get started'")
    async def click_get_started(self) -> None:
        await self.click_element(self.PAGE_NAME, self.GET_STARTED_BUTTON)

    @allure.step("Search docs for '{text}'")
    async def search_for(self, text: str) -> None:
        """Open the search dialog, type the query and submit it."""
        await self.click_element(self.PAGE_NAME, self.SEARCH_BUTTON)
        await self.fill_element(self.PAGE_NAME, self.SEARCH_INPUT, text)
        await self.press_key(self.PAGE_NAME, self.SEARCH_INPUT, "Enter")

    async def get_main_heading_text(self) -> str:
        return await self.get_element_text(self.PAGE_NAME, self.MAIN_HEADING)

    async def verify_title_contains(self, expected_text: str, timeout: Optional[int] = None) -> None:
        await self.expect_page_title_contains(expected_text, timeout=timeout)

    async def right_click_get_started_button(self) -> None:
        await self.right_click_element(self.PAGE_NAME, self.GET_STARTED_BUTTON)


__all__ = ["ExamplePage"]
