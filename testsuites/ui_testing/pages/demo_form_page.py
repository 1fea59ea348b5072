"""
================================================================================
Demo Form Page Object
================================================================================

Page object over the static demo site shipped in `testsuites/ui_testing/sites`.

The site runs from the local file system, so browser tests need no server:
a form, dialogs, an iframe, a popup link, drag and drop targets and a
text CAPTCHA.

Locator page keys:
    - DemoForm:  main page elements
    - DemoFrame: elements inside the iframe
    - DemoPopup: elements of the popup page

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from pathlib import Path

import allure

from testsuites.ui_testing.framework.page_base import BasePage


SITES_DIR = Path(__file__).resolve().parent.parent / "sites"


class DemoFormPage(BasePage):
    """Demo form page (local HTML)."""

    PAGE_NAME = "DemoForm"
    FRAME_PAGE_NAME = "DemoFrame"
    POPUP_PAGE_NAME = "DemoPopup"
    SITE_FILE = SITES_DIR / "demo_form.html"

    @property
    def url(self) -> str:
        return self.SITE_FILE.as_uri()

    @allure.step("Open demo form")
    async def open(self, wait_until: str = "load") -> "DemoFormPage":
        await self.navigate_to(self.url, wait_until=wait_until)
        return self

    @allure.step("Submit demo form (name={name}, country={country})")
    async def submit_form(self, name: str, country: str, accept_terms: bool = True) -> str:
        """
        Fill and submit the form.

        Returns:
            Text of the result paragraph
        """
        await self.fill_element(self.PAGE_NAME, "nameInput", name)
        await self.select_option_by_label(self.PAGE_NAME, "countrySelect", country)
        if accept_terms:
            await self.check_element(self.PAGE_NAME, "termsCheckbox")
        await self.click_element(self.PAGE_NAME, "submitButton")
        await self.expect_element_to_contain_text(self.PAGE_NAME, "result", name)
        return await self.get_element_text(self.PAGE_NAME, "result")

    async def open_nav_item(self, item_name: str) -> None:
        await self.click_element(self.PAGE_NAME, "navItem", replacements={"itemName": item_name})

    async def get_status(self) -> str:
        return await self.get_element_text(self.PAGE_NAME, "status")

    async def get_dialog_result(self) -> str:
        return await self.get_element_text(self.PAGE_NAME, "dialogResult")


__all__ = ["DemoFormPage", "SITES_DIR"]
