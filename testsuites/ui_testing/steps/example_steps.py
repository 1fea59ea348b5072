"""
================================================================================
Example Step Definitions
================================================================================

Phrases for the playwright.dev example page object.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from testsuites.ui_testing.framework.scenario import ScenarioWorld, step
from testsuites.ui_testing.pages.example_page import ExamplePage


def _example_page(world: ScenarioWorld) -> ExamplePage:
    if not isinstance(world.base_page, ExamplePage):
        world.use_page_object(ExamplePage)
    return world.base_page


@step('I am on the Playwright website')
async def open_playwright_site(world: ScenarioWorld) -> None:
    await _example_page(world).open()


@step('I click the Get Started button')
async def click_get_started(world: ScenarioWorld) -> None:
    await _example_page(world).click_get_started()


@step('I search the docs for {string}')
async def search_docs(world: ScenarioWorld, text: str) -> None:
    await _example_page(world).search_for(text)


@step('the title should contain {string}')
async def title_should_contain(world: ScenarioWorld, expected: str) -> None:
    await _example_page(world).verify_title_contains(expected)


@step('the main heading should contain {string}')
async def heading_should_contain(world: ScenarioWorld, expected: str) -> None:
    page = _example_page(world)
    await page.expect_element_to_contain_text(page.PAGE_NAME, page.MAIN_HEADING, expected)
