"""
================================================================================
Base Step Definitions
================================================================================

Generic phrases for scenario files. Elements are always named as
`"<element>" on the "<page>" page`, matching the locator store keys.

Per-step `options` (timeout, nth, button, ...) and `replacements`
(`${name}` values) come from the scenario step mapping.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio

from loguru import logger

from e2e_toolkit.common.errors import ErrorHandler, ErrorType
from testsuites.ui_testing.framework.scenario import ScenarioWorld, step
from testsuites.ui_testing.pages import PAGE_OBJECTS


def _assert(condition: bool, message: str, **context) -> None:
    if not condition:
        ErrorHandler.new_error(message, ErrorType.ASSERTION, context=context, raise_error=True)


# =============================================================================
# Navigation and page objects
# =============================================================================

@step('I navigate to {string}')
async def navigate_to(world: ScenarioWorld, url: str) -> None:
    await world.base_page.navigate_to(url)


@step('I open the {string} page')
async def open_page_object(world: ScenarioWorld, name: str) -> None:
    page_object_cls = PAGE_OBJECTS.get(name)
    if page_object_cls is None:
        ErrorHandler.new_error(
            f"Unknown page object '{name}'",
            ErrorType.VALIDATION,
            context={"available": sorted(PAGE_OBJECTS)},
            raise_error=True,
        )
    page_object = world.use_page_object(page_object_cls)
    await page_object.open()


@step('I wait for {int} seconds')
async def wait_seconds(world: ScenarioWorld, seconds: int) -> None:
    logger.debug(f"Waiting {seconds}s")
    await asyncio.sleep(seconds)


# =============================================================================
# Actions
# =============================================================================

@step('I click {string} on the {string} page')
async def click(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.click_element(page, element, world.options, world.replacements)


@step('I right click {string} on the {string} page')
async def right_click(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.right_click_element(page, element, world.options, world.replacements)


@step('I double click {string} on the {string} page')
async def double_click(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.double_click_element(page, element, world.options, world.replacements)


@step('I hover over {string} on the {string} page')
async def hover(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.hover_element(page, element, world.options, world.replacements)


@step('I fill {string} on the {string} page with {string}')
async def fill(world: ScenarioWorld, element: str, page: str, value: str) -> None:
    await world.base_page.fill_element(page, element, value, world.options, world.replacements)


@step('I type {string} into {string} on the {string} page')
async def type_text(world: ScenarioWorld, text: str, element: str, page: str) -> None:
    await world.base_page.type_element(page, element, text, world.options, world.replacements)


@step('I clear {string} on the {string} page')
async def clear(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.clear_element(page, element, world.options, world.replacements)


@step('I select {string} from {string} on the {string} page')
async def select_by_label(world: ScenarioWorld, label: str, element: str, page: str) -> None:
    await world.base_page.select_option_by_label(page, element, label, world.options, world.replacements)


@step('I select the option with value {string} from {string} on the {string} page')
async def select_by_value(world: ScenarioWorld, value: str, element: str, page: str) -> None:
    await world.base_page.select_option_by_value(page, element, value, world.options, world.replacements)


@step('I check {string} on the {string} page')
async def check(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.check_element(page, element, world.options, world.replacements)


@step('I uncheck {string} on the {string} page')
async def uncheck(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.uncheck_element(page, element, world.options, world.replacements)


@step('I press {string} in {string} on the {string} page')
async def press(world: ScenarioWorld, key: str, element: str, page: str) -> None:
    await world.base_page.press_key(page, element, key, world.options, world.replacements)


@step('I drag {string} on the {string} page to {string} on the {string} page')
async def drag_to(world: ScenarioWorld, source: str, source_page: str, target: str, target_page: str) -> None:
    await world.base_page.drag_and_drop_element(
        source_page, source, target_page, target, world.options, source_replacements=world.replacements
    )


@step('I scroll to {string} on the {string} page')
async def scroll_to(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.scroll_to_element(page, element, world.options, world.replacements)


# =============================================================================
# Frames, pages and dialogs
# =============================================================================

@step('I switch to the frame {string} on the {string} page')
async def switch_to_frame(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.switch_to_frame(page, element, world.options, world.replacements)


@step('I switch to the main content')
def switch_to_default_content(world: ScenarioWorld) -> None:
    world.base_page.switch_to_default_content()


@step('I switch to page {int}')
async def switch_to_page_index(world: ScenarioWorld, index: int) -> None:
    await world.base_page.switch_to_page(index)


@step('I switch to the page with URL containing {string}')
async def switch_to_page_url(world: ScenarioWorld, url_part: str) -> None:
    await world.base_page.switch_to_page(url_part)


@step('I click {string} on the {string} page and switch to the new page')
async def click_and_switch(world: ScenarioWorld, element: str, page: str) -> None:
    base_page = world.base_page
    await base_page.wait_for_new_page(
        lambda: base_page.click_element(page, element, world.options, world.replacements)
    )


@step('I close the current page')
async def close_current_page(world: ScenarioWorld) -> None:
    await world.base_page.close_current_page()


@step('I will accept the next dialog')
def will_accept_dialog(world: ScenarioWorld) -> None:
    world.base_page.handle_next_dialog("accept")


@step('I will dismiss the next dialog')
def will_dismiss_dialog(world: ScenarioWorld) -> None:
    world.base_page.handle_next_dialog("dismiss")


@step('I will answer the next dialog with {string}')
def will_answer_dialog(world: ScenarioWorld, text: str) -> None:
    world.base_page.handle_next_dialog("accept", prompt_text=text)


@step('I accept the dialog')
async def accept_dialog(world: ScenarioWorld) -> None:
    accepted = await world.base_page.accept_dialog()
    _assert(accepted, "Expected a dialog to accept, but none appeared")


@step('I dismiss the dialog')
async def dismiss_dialog(world: ScenarioWorld) -> None:
    dismissed = await world.base_page.dismiss_dialog()
    _assert(dismissed, "Expected a dialog to dismiss, but none appeared")


@step('the dialog message should be {string}')
def dialog_message_should_be(world: ScenarioWorld, expected: str) -> None:
    actual = world.base_page.last_dialog_message
    _assert(actual == expected, f'Expected dialog message "{expected}", got "{actual}"', actual=actual)


# =============================================================================
# Assertions
# =============================================================================

@step('{string} on the {string} page should be visible')
async def should_be_visible(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.expect_element_to_be_visible(page, element, world.options, world.replacements)


@step('{string} on the {string} page should be hidden')
async def should_be_hidden(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.expect_element_to_be_hidden(page, element, world.options, world.replacements)


@step('{string} on the {string} page should be enabled')
async def should_be_enabled(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.expect_element_to_be_enabled(page, element, world.options, world.replacements)


@step('{string} on the {string} page should be disabled')
async def should_be_disabled(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.expect_element_to_be_disabled(page, element, world.options, world.replacements)


@step('{string} on the {string} page should be checked')
async def should_be_checked(world: ScenarioWorld, element: str, page: str) -> None:
    await world.base_page.expect_element_to_be_checked(
        page, element, options=world.options, replacements=world.replacements
    )


@step('{string} on the {string} page should have text {string}')
async def should_have_text(world: ScenarioWorld, element: str, page: str, text: str) -> None:
    await world.base_page.expect_element_to_have_text(page, element, text, world.options, world.replacements)


@step('{string} on the {string} page should contain text {string}')
async def should_contain_text(world: ScenarioWorld, element: str, page: str, text: str) -> None:
    await world.base_page.expect_element_to_contain_text(page, element, text, world.options, world.replacements)


@step('{string} on the {string} page should have attribute {string} with value {string}')
async def should_have_attribute(world: ScenarioWorld, element: str, page: str, attribute: str, value: str) -> None:
    actual = await world.base_page.get_element_attribute(page, element, attribute, world.options, world.replacements)
    _assert(
        actual == value,
        f'Expected {page}.{element}[{attribute}] to be "{value}", got "{actual}"',
        actual=actual,
    )


@step('there should be {int} {string} elements on the {string} page')
async def should_have_count(world: ScenarioWorld, expected: int, element: str, page: str) -> None:
    count = await world.base_page.get_element_count(page, element, world.options, world.replacements)
    _assert(count == expected, f"Expected {expected} {page}.{element} elements, found {count}", count=count)


@step('I should see the page title contains {string}')
async def title_contains(world: ScenarioWorld, text: str) -> None:
    await world.base_page.expect_page_title_contains(text)


@step('the current URL should be {string}')
async def url_should_be(world: ScenarioWorld, url: str) -> None:
    await world.base_page.expect_url(url)


# =============================================================================
# Variables, scripts, screenshots and CAPTCHA
# =============================================================================

@step('I remember the text of {string} on the {string} page as {word}')
async def remember_text(world: ScenarioWorld, element: str, page: str, name: str) -> None:
    world.variables[name] = await world.base_page.get_element_text(page, element, world.options, world.replacements)


@step('the remembered {word} should be {string}')
def remembered_should_be(world: ScenarioWorld, name: str, expected: str) -> None:
    actual = world.variables.get(name)
    _assert(actual == expected, f'Expected remembered "{name}" to be "{expected}", got "{actual}"', actual=actual)


@step('I execute the script {string}')
async def execute_script(world: ScenarioWorld, script: str) -> None:
    world.variables["last_script_result"] = await world.base_page.execute_javascript(script)


@step('I take a screenshot named {string}')
async def take_screenshot(world: ScenarioWorld, name: str) -> None:
    await world.base_page.take_full_page_screenshot(name)


@step('I solve the CAPTCHA {string} into {string} on the {string} page')
async def solve_captcha(world: ScenarioWorld, image: str, field: str, page: str) -> None:
    solved = await world.base_page.solve_and_fill_captcha(page, image, page, field, solver=world.llm)
    _assert(solved, f"CAPTCHA {page}.{image} could not be solved")
