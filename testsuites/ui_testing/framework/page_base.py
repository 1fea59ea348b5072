"""
================================================================================
Base Page Object
================================================================================

Foundation class for Page Object Model implementation.

Every element verb addresses its target by `(page_name, element_key)` in the
locator store and follows the same contract:

    1. Resolve the named selector (with `${name}` replacements) against the
       current root (page, or the frame selected with `switch_to_frame`)
    2. Wait for a state precondition, bounded by the call's timeout
    3. Perform the action
    4. On failure, classify through ErrorHandler and re-raise

Provides:
    - Navigation and page/frame switching
    - Mouse, keyboard and form interactions
    - Queries, predicates, waits and Playwright `expect` assertions
    - Dialog handling
    - Screenshots and JavaScript execution
    - CAPTCHA solving via the solver adapter

One instance per scenario; the current page, frame and pending dialog are
mutable state.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union

import allure
from loguru import logger
from playwright.async_api import (
    Dialog,
    FrameLocator,
    Locator,
    Page,
    TimeoutError as PlaywrightTimeoutError,
    expect,
)

from e2e_toolkit.common.errors import ErrorHandler, ErrorType, FrameworkError
from e2e_toolkit.common.settings import Settings
from e2e_toolkit.report_tools.allure_utils import attach_png

from .captcha_solver import CaptchaSolver, CaptchaSolverAdapter
from .locator_manager import LocatorStore, Replacements


PREDICATE_TIMEOUT = 5000
DIALOG_TIMEOUT = 5000

MOUSE_BUTTONS = ("left", "right", "middle")
ABSOLUTE_URL = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")

PageSelector = Union[int, str, Callable[[Page], bool]]


@dataclass
class InteractionOptions:
    """
    Per-call interaction settings.

    Attributes:
        timeout: Timeout in milliseconds (operation default when None)
        nth: Zero-based index when the selector matches several elements
        button: Mouse button - 'left', 'right', 'middle'
        click_count: Number of clicks
        delay: Delay in milliseconds (between mousedown/mouseup or keystrokes)
        position: Point relative to the element's top-left corner, {"x", "y"}
        has_text: Narrow the match to elements containing this text
        force: Skip Playwright actionability checks
    """

    timeout: Optional[int] = None
    nth: Optional[int] = None
    button: Optional[str] = None
    click_count: Optional[int] = None
    delay: Optional[float] = None
    position: Optional[Dict[str, float]] = None
    has_text: Optional[str] = None
    force: bool = False

    # Scenario tables may use camelCase keys
    _ALIASES = {
        "clickCount": "click_count",
        "hasText": "has_text",
    }

    def __post_init__(self) -> None:
        if self.button is not None and self.button not in MOUSE_BUTTONS:
            ErrorHandler.new_error(
                f"Invalid mouse button '{self.button}'. Expected one of {', '.join(MOUSE_BUTTONS)}",
                ErrorType.VALIDATION,
                context={"button": self.button},
                raise_error=True,
            )
        for name in ("timeout", "nth", "click_count"):
            value = getattr(self, name)
            if value is None:
                continue
            try:
                setattr(self, name, int(value))
            except (TypeError, ValueError) as e:
                ErrorHandler.new_error(
                    f"Option '{name}' must be an integer, got {value!r}",
                    ErrorType.VALIDATION,
                    cause=e,
                    context={name: value},
                    raise_error=True,
                )
        if self.timeout is not None and self.timeout <= 0:
            ErrorHandler.new_error(
                f"Timeout must be a positive number of milliseconds, got {self.timeout}",
                ErrorType.VALIDATION,
                context={"timeout": self.timeout},
                raise_error=True,
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "InteractionOptions":
        """
        Build options from a plain mapping (keyword arguments or a scenario table).

        Raises:
            FrameworkError: VALIDATION kind for unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        unknown: List[str] = []
        for key, value in data.items():
            name = cls._ALIASES.get(key, key)
            if name in known:
                values[name] = value
            else:
                unknown.append(key)
        if unknown:
            ErrorHandler.new_error(
                f"Unknown interaction option(s): {', '.join(sorted(unknown))}",
                ErrorType.VALIDATION,
                context={"allowed": sorted(known)},
                raise_error=True,
            )
        return cls(**values)

    @classmethod
    def coerce(cls, options: Union["InteractionOptions", Mapping[str, Any], None]) -> "InteractionOptions":
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.from_mapping(options)

    def timeout_or(self, default: int) -> int:
        return int(self.timeout) if self.timeout is not None else default

    def click_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments understood by Locator.click()/dblclick()."""
        kwargs: Dict[str, Any] = {}
        if self.button is not None:
            kwargs["button"] = self.button
        if self.click_count is not None:
            kwargs["click_count"] = self.click_count
        if self.delay is not None:
            kwargs["delay"] = self.delay
        if self.position is not None:
            kwargs["position"] = dict(self.position)
        if self.force:
            kwargs["force"] = True
        return kwargs


Options = Union[InteractionOptions, Mapping[str, Any], None]


class BasePage:
    """
    Base class for all page objects.

    Usage:
        class LoginPage(BasePage):
            PAGE_NAME = "LoginPage"
            URL_PATH = "/login"

            async def login(self, username: str, password: str):
                await self.fill_element(self.PAGE_NAME, "usernameInput", username)
                await self.fill_element(self.PAGE_NAME, "passwordInput", password)
                await self.click_element(self.PAGE_NAME, "submitButton")
    """

    # Override in subclasses
    PAGE_NAME: str = ""
    URL_PATH: str = "/"

    def __init__(
        self,
        page: Page,
        locators: LocatorStore,
        settings: Settings,
    ):
        """
        Initialize page object.

        Args:
            page: Playwright Page object
            locators: Loaded locator store
            settings: Framework settings
        """
        self.page = page
        self.locators = locators
        self.settings = settings
        self.base_url = settings.base_url.rstrip("/")
        self.action_timeout = settings.action_timeout
        self.last_dialog_message: Optional[str] = None

        self._frame: Optional[FrameLocator] = None
        self._frame_path: List[str] = []
        self._pending_dialog: Optional[Dialog] = None

    # =========================================================================
    # Element Resolution
    # =========================================================================

    @property
    def current_root(self) -> Union[Page, FrameLocator]:
        """Page or frame that element lookups are relative to."""
        return self._frame if self._frame is not None else self.page

    @property
    def in_frame(self) -> bool:
        return self._frame is not None

    def get_element(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> Locator:
        """
        Resolve a named element to a live locator (no waiting).

        Raises:
            LocatorNotFoundError: When the page or element is not defined
        """
        opts = InteractionOptions.coerce(options)
        return self.locators.resolve(
            self.current_root,
            page_name,
            element_key,
            replacements,
            nth=opts.nth,
            has_text=opts.has_text,
        )

    async def _ready(
        self,
        page_name: str,
        element_key: str,
        opts: InteractionOptions,
        replacements: Optional[Replacements],
        state: str,
        timeout: int,
    ) -> Locator:
        locator = self.get_element(page_name, element_key, opts, replacements)
        await locator.wait_for(state=state, timeout=timeout)
        return locator

    @staticmethod
    def _context(page_name: str, element_key: str, **extra: Any) -> Dict[str, Any]:
        context: Dict[str, Any] = {"page_name": page_name, "element_key": element_key}
        context.update(extra)
        return context

    # =========================================================================
    # Navigation
    # =========================================================================

    @property
    def url(self) -> str:
        """Get full URL of this page object."""
        return f"{self.base_url}{self.URL_PATH}"

    async def open(self, wait_until: str = "load") -> None:
        """Navigate to this page object's URL_PATH."""
        await self.navigate_to(self.URL_PATH, wait_until=wait_until)

    async def navigate_to(
        self,
        url: str,
        wait_until: str = "load",
        timeout: Optional[int] = None,
    ) -> None:
        """
        Navigate to a URL.

        Args:
            url: Absolute URL, or a path joined to the configured base URL
            wait_until: Wait condition - 'load', 'domcontentloaded', 'networkidle', 'commit'
            timeout: Timeout in milliseconds (defaults to settings.default_timeout)
        """
        full_url = url if ABSOLUTE_URL.match(url) else f"{self.base_url}/{url.lstrip('/')}"
        timeout = timeout or self.settings.default_timeout
        with allure.step(f"Navigate to {full_url}"):
            try:
                await self.page.goto(full_url, wait_until=wait_until, timeout=timeout)
                self._frame = None
                self._frame_path.clear()
                logger.info(f"Navigated to: {full_url}")
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.NAVIGATION, context={"url": full_url}) from e

    async def get_page_title(self) -> str:
        try:
            return await self.page.title()
        except Exception as e:
            raise ErrorHandler.handle(e, ErrorType.UI_QUERY) from e

    def get_current_url(self) -> str:
        return self.page.url

    # =========================================================================
    # Mouse Interactions
    # =========================================================================

    async def click_element(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """
        Click element after it becomes visible.

        Args:
            page_name: Page key in the locator store
            element_key: Element key within the page
            options: InteractionOptions or mapping (button, click_count, position, ...)
            replacements: Values for `${name}` placeholders
        """
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Click: {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                await locator.click(timeout=timeout, **opts.click_kwargs())
                logger.debug(f"Clicked {page_name}.{element_key}")
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.UI_ACTION, context=self._context(page_name, element_key)) from e

    async def right_click_element(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """Right-click (context-click) element."""
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        kwargs = opts.click_kwargs()
        kwargs["button"] = "right"
        with allure.step(f"Right-click: {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                await locator.click(timeout=timeout, **kwargs)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.UI_ACTION, context=self._context(page_name, element_key)) from e

    async def double_click_element(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """Double-click element."""
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        kwargs = opts.click_kwargs()
        kwargs.pop("click_count", None)
        with allure.step(f"Double-click: {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                await locator.dblclick(timeout=timeout, **kwargs)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.UI_ACTION, context=self._context(page_name, element_key)) from e

    async def click_and_hold_element(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """
        Move the mouse over the element and press the button without releasing.

        Pair with `release_mouse()`.
        """
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Click and hold: {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                await locator.hover(timeout=timeout, position=opts.position, force=opts.force)
                await self.page.mouse.down(button=opts.button or "left")
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.UI_ACTION, context=self._context(page_name, element_key)) from e

    async def release_mouse(
        self,
        page_name: Optional[str] = None,
        element_key: Optional[str] = None,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """
        Release the mouse button, optionally over a named element.
        """
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step("Release mouse"):
            try:
                if page_name and element_key:
                    locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                    await locator.hover(timeout=timeout, position=opts.position, force=opts.force)
                await self.page.mouse.up(button=opts.button or "left")
            except Exception as e:
                raise ErrorHandler.handle(
                    e, ErrorType.UI_ACTION, context=self._context(page_name or "", element_key or "")
                ) from e

    async def hover_element(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """Hover over element."""
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Hover: {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                await locator.hover(timeout=timeout, position=opts.position, force=opts.force)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.UI_ACTION, context=self._context(page_name, element_key)) from e

    async def drag_and_drop_element(
        self,
        source_page: str,
        source_key: str,
        target_page: str,
        target_key: str,
        options: Options = None,
        source_replacements: Optional[Replacements] = None,
        target_replacements: Optional[Replacements] = None,
    ) -> None:
        """
        Drag the source element onto the target element.

        `options.nth`/`has_text` apply to the source only.
        """
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Drag and drop: {source_page}.{source_key} -> {target_page}.{target_key}"):
            try:
                source = await self._ready(source_page, source_key, opts, source_replacements, "visible", timeout)
                target = await self._ready(
                    target_page, target_key, InteractionOptions(), target_replacements, "visible", timeout
                )
                await source.drag_to(target, timeout=timeout, force=opts.force)
            except Exception as e:
                raise ErrorHandler.handle(
                    e,
                    ErrorType.UI_ACTION,
                    context=self._context(source_page, source_key, target=f"{target_page}.{target_key}"),
                ) from e

    # =========================================================================
    # Keyboard and Form Interactions
    # =========================================================================

    async def fill_element(
        self,
        page_name: str,
        element_key: str,
        value: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """
        Replace the input's value.

        Args:
            page_name: Page key in the locator store
            element_key: Element key within the page
            value: Value to fill
            options: InteractionOptions or mapping
            replacements: Values for `${name}` placeholders
        """
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        shown = "*" * len(value) if "password" in element_key.lower() else value
        with allure.step(f"Fill {page_name}.{element_key}: {shown}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                await locator.fill(value, timeout=timeout, force=opts.force)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.UI_ACTION, context=self._context(page_name, element_key)) from e

    async def type_element(
        self,
        page_name: str,
        element_key: str,
        text: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """Type text key by key (`options.delay` between keystrokes)."""
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        shown = "*" * len(text) if "password" in element_key.lower() else text
        with allure.step(f"Type into {page_name}.{element_key}: {shown}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                await locator.press_sequentially(text, delay=opts.delay, timeout=timeout)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.UI_ACTION, context=self._context(page_name, element_key)) from e

    async def clear_element(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Clear: {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                await locator.clear(timeout=timeout, force=opts.force)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.UI_ACTION, context=self._context(page_name, element_key)) from e

    async def press_key(
        self,
        page_name: str,
        element_key: str,
        key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """
        Focus element and press a key or chord ("Enter", "Control+A").
        """
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Press {key} on {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                await locator.press(key, delay=opts.delay, timeout=timeout)
            except Exception as e:
                raise ErrorHandler.handle(
                    e, ErrorType.UI_ACTION, context=self._context(page_name, element_key, key=key)
                ) from e

    async def select_option_by_label(
        self,
        page_name: str,
        element_key: str,
        label: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> List[str]:
        """Select option by visible label; returns the selected values."""
        return await self._select_option(page_name, element_key, options, replacements, label=label)

    async def select_option_by_value(
        self,
        page_name: str,
        element_key: str,
        value: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> List[str]:
        """Select option by its value attribute."""
        return await self._select_option(page_name, element_key, options, replacements, value=value)

    async def select_option_by_index(
        self,
        page_name: str,
        element_key: str,
        index: int,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> List[str]:
        """Select option by zero-based index."""
        return await self._select_option(page_name, element_key, options, replacements, index=int(index))

    async def _select_option(
        self,
        page_name: str,
        element_key: str,
        options: Options,
        replacements: Optional[Replacements],
        **selection: Any,
    ) -> List[str]:
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        (how, what), = selection.items()
        with allure.step(f"Select option by {how} '{what}': {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                return await locator.select_option(timeout=timeout, force=opts.force, **selection)
            except Exception as e:
                raise ErrorHandler.handle(
                    e, ErrorType.UI_ACTION, context=self._context(page_name, element_key, **{how: what})
                ) from e

    async def check_element(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """Check a checkbox or radio button."""
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Check: {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                await locator.check(timeout=timeout, force=opts.force)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.UI_ACTION, context=self._context(page_name, element_key)) from e

    async def uncheck_element(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Uncheck: {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                await locator.uncheck(timeout=timeout, force=opts.force)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.UI_ACTION, context=self._context(page_name, element_key)) from e

    async def upload_files(
        self,
        page_name: str,
        element_key: str,
        files: Union[str, Path, Sequence[Union[str, Path]]],
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """Set files on a file input (the input may be hidden)."""
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Upload file(s) to {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "attached", timeout)
                await locator.set_input_files(files, timeout=timeout)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.UI_ACTION, context=self._context(page_name, element_key)) from e

    # =========================================================================
    # Scrolling
    # =========================================================================

    async def scroll_to_element(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Scroll to: {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "attached", timeout)
                await locator.scroll_into_view_if_needed(timeout=timeout)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.UI_ACTION, context=self._context(page_name, element_key)) from e

    async def scroll_page(self, x: int = 0, y: int = 0) -> None:
        """Scroll the window by an offset in pixels."""
        with allure.step(f"Scroll page by ({x}, {y})"):
            try:
                await self.page.evaluate("([x, y]) => window.scrollBy(x, y)", [x, y])
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.UI_ACTION, context={"x": x, "y": y}) from e

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_element_text(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> str:
        """
        Get rendered text of a visible element.

        Returns:
            Inner text
        """
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        try:
            locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
            return await locator.inner_text(timeout=timeout)
        except Exception as e:
            raise ErrorHandler.handle(e, ErrorType.UI_QUERY, context=self._context(page_name, element_key)) from e

    async def get_element_attribute(
        self,
        page_name: str,
        element_key: str,
        attribute: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> Optional[str]:
        """Get attribute value (None when the attribute is absent)."""
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        try:
            locator = await self._ready(page_name, element_key, opts, replacements, "attached", timeout)
            return await locator.get_attribute(attribute, timeout=timeout)
        except Exception as e:
            raise ErrorHandler.handle(
                e, ErrorType.UI_QUERY, context=self._context(page_name, element_key, attribute=attribute)
            ) from e

    async def get_element_select_options(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> List[Dict[str, str]]:
        """
        List the options of a <select>.

        Returns:
            [{"value": ..., "label": ...}, ...] in document order
        """
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        try:
            locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
            return await locator.evaluate(
                "el => Array.from(el.options || []).map(o => ({value: o.value, label: o.text}))"
            )
        except Exception as e:
            raise ErrorHandler.handle(e, ErrorType.UI_QUERY, context=self._context(page_name, element_key)) from e

    async def get_element_count(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> int:
        """Count matching elements right now (no waiting)."""
        try:
            return await self.get_element(page_name, element_key, options, replacements).count()
        except Exception as e:
            raise ErrorHandler.handle(e, ErrorType.UI_QUERY, context=self._context(page_name, element_key)) from e

    async def is_element_checked(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> bool:
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        try:
            locator = await self._ready(page_name, element_key, opts, replacements, "attached", timeout)
            return await locator.is_checked(timeout=timeout)
        except Exception as e:
            raise ErrorHandler.handle(e, ErrorType.UI_QUERY, context=self._context(page_name, element_key)) from e

    # =========================================================================
    # Predicates (never raise)
    # =========================================================================

    async def is_element_visible(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> bool:
        """
        Check if element becomes visible within the timeout.

        Returns:
            True if visible, False otherwise (including lookup failures)
        """
        try:
            opts = InteractionOptions.coerce(options)
            await self._ready(page_name, element_key, opts, replacements, "visible", opts.timeout_or(PREDICATE_TIMEOUT))
            return True
        except Exception as e:
            logger.debug(f"{page_name}.{element_key} is not visible: {e}")
            return False

    async def is_element_hidden(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> bool:
        """Check if element is hidden or detached within the timeout."""
        try:
            opts = InteractionOptions.coerce(options)
            await self._ready(page_name, element_key, opts, replacements, "hidden", opts.timeout_or(PREDICATE_TIMEOUT))
            return True
        except Exception as e:
            logger.debug(f"{page_name}.{element_key} is not hidden: {e}")
            return False

    async def is_element_enabled(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> bool:
        """Check if element is visible and enabled."""
        try:
            opts = InteractionOptions.coerce(options)
            timeout = opts.timeout_or(PREDICATE_TIMEOUT)
            locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
            return await locator.is_enabled(timeout=timeout)
        except Exception as e:
            logger.debug(f"{page_name}.{element_key} is not enabled: {e}")
            return False

    # =========================================================================
    # Wait Utilities
    # =========================================================================

    async def wait_for_element_to_be_visible(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Wait for visible: {page_name}.{element_key}"):
            try:
                await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.WAIT, context=self._context(page_name, element_key)) from e

    async def wait_for_element_to_be_hidden(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Wait for hidden: {page_name}.{element_key}"):
            try:
                await self._ready(page_name, element_key, opts, replacements, "hidden", timeout)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.WAIT, context=self._context(page_name, element_key)) from e

    async def wait_for_element_to_be_clickable(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """Wait until element is visible and enabled."""
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Wait for clickable: {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                await expect(locator).to_be_enabled(timeout=timeout)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.WAIT, context=self._context(page_name, element_key)) from e

    # =========================================================================
    # Assertions
    # =========================================================================

    async def _expect(
        self,
        description: str,
        page_name: str,
        element_key: str,
        options: Options,
        replacements: Optional[Replacements],
        check: Callable[[Any, int], Awaitable[None]],
    ) -> None:
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Expect {page_name}.{element_key} {description}"):
            try:
                locator = self.get_element(page_name, element_key, opts, replacements)
                await check(expect(locator), timeout)
            except Exception as e:
                raise ErrorHandler.handle(
                    e, ErrorType.ASSERTION, context=self._context(page_name, element_key, expectation=description)
                ) from e

    async def expect_element_to_have_text(
        self,
        page_name: str,
        element_key: str,
        text: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """Assert the element's full text equals `text`."""
        await self._expect(
            f"to have text '{text}'", page_name, element_key, options, replacements,
            lambda assertion, timeout: assertion.to_have_text(text, timeout=timeout),
        )

    async def expect_element_to_contain_text(
        self,
        page_name: str,
        element_key: str,
        text: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        await self._expect(
            f"to contain text '{text}'", page_name, element_key, options, replacements,
            lambda assertion, timeout: assertion.to_contain_text(text, timeout=timeout),
        )

    async def expect_element_to_be_visible(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        await self._expect(
            "to be visible", page_name, element_key, options, replacements,
            lambda assertion, timeout: assertion.to_be_visible(timeout=timeout),
        )

    async def expect_element_to_be_hidden(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        await self._expect(
            "to be hidden", page_name, element_key, options, replacements,
            lambda assertion, timeout: assertion.to_be_hidden(timeout=timeout),
        )

    async def expect_element_to_be_enabled(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        await self._expect(
            "to be enabled", page_name, element_key, options, replacements,
            lambda assertion, timeout: assertion.to_be_enabled(timeout=timeout),
        )

    async def expect_element_to_be_disabled(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        await self._expect(
            "to be disabled", page_name, element_key, options, replacements,
            lambda assertion, timeout: assertion.to_be_disabled(timeout=timeout),
        )

    async def expect_element_to_be_checked(
        self,
        page_name: str,
        element_key: str,
        checked: bool = True,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        await self._expect(
            "to be checked" if checked else "to be unchecked", page_name, element_key, options, replacements,
            lambda assertion, timeout: assertion.to_be_checked(checked=checked, timeout=timeout),
        )

    async def expect_page_title_contains(self, text: str, timeout: Optional[int] = None) -> None:
        """Assert the page title contains `text`."""
        with allure.step(f"Expect page title to contain '{text}'"):
            try:
                await expect(self.page).to_have_title(
                    re.compile(re.escape(text)), timeout=timeout or self.action_timeout
                )
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.ASSERTION, context={"expected_title_part": text}) from e

    async def expect_url(self, url: Union[str, "re.Pattern[str]"], timeout: Optional[int] = None) -> None:
        """
        Assert the current URL.

        Relative paths are joined to the configured base URL.
        """
        expected = url
        if isinstance(url, str) and not ABSOLUTE_URL.match(url):
            expected = f"{self.base_url}/{url.lstrip('/')}"
        with allure.step(f"Expect URL to be {expected}"):
            try:
                await expect(self.page).to_have_url(expected, timeout=timeout or self.action_timeout)
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.ASSERTION, context={"expected_url": str(expected)}) from e

    # =========================================================================
    # Frames
    # =========================================================================

    async def switch_to_frame(
        self,
        page_name: str,
        element_key: str,
        options: Options = None,
        replacements: Optional[Replacements] = None,
    ) -> None:
        """
        Make subsequent lookups relative to the iframe named by the element.

        Calls nest: switching again while inside a frame goes one level deeper.
        """
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        with allure.step(f"Switch to frame: {page_name}.{element_key}"):
            try:
                selector = self.locators.substitute(self.locators.get_selector(page_name, element_key), replacements)
                await self.current_root.locator(selector).first.wait_for(state="attached", timeout=timeout)
                self._frame = self.current_root.frame_locator(selector)
                self._frame_path.append(selector)
                logger.debug(f"Switched to frame: {' > '.join(self._frame_path)}")
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.FRAME, context=self._context(page_name, element_key)) from e

    def switch_to_default_content(self) -> None:
        """Return element lookups to the top-level page."""
        if self._frame is not None:
            logger.debug("Switched to default content")
        self._frame = None
        self._frame_path.clear()

    # =========================================================================
    # Pages (tabs / popups)
    # =========================================================================

    async def switch_to_page(self, target: PageSelector, timeout: Optional[int] = None) -> Page:
        """
        Switch to another page of the current browser context.

        Args:
            target: Index in context.pages, a URL substring, or a predicate on Page

        Returns:
            The page switched to
        """
        with allure.step(f"Switch to page: {target}"):
            try:
                pages = self.page.context.pages
                selected: Optional[Page] = None
                if isinstance(target, int):
                    if 0 <= target < len(pages):
                        selected = pages[target]
                elif isinstance(target, str):
                    selected = next((p for p in pages if target in p.url), None)
                else:
                    selected = next((p for p in pages if target(p)), None)

                if selected is None:
                    ErrorHandler.new_error(
                        f"No page matches {target!r} ({len(pages)} open)",
                        ErrorType.PAGE,
                        context={"open_pages": [p.url for p in pages]},
                        raise_error=True,
                    )

                await selected.bring_to_front()
                await selected.wait_for_load_state(timeout=timeout or self.settings.default_timeout)
                self._use_page(selected)
                return selected
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.PAGE, context={"target": str(target)}) from e

    async def wait_for_new_page(
        self,
        trigger: Optional[Callable[[], Awaitable[Any]]] = None,
        timeout: Optional[int] = None,
    ) -> Page:
        """
        Wait for a new page (tab/popup) in the context and switch to it.

        Args:
            trigger: Coroutine function causing the page to open
            timeout: Timeout in milliseconds
        """
        timeout = timeout or self.action_timeout
        with allure.step("Wait for new page"):
            try:
                async with self.page.context.expect_page(timeout=timeout) as page_info:
                    if trigger is not None:
                        await trigger()
                new_page = await page_info.value
                await new_page.wait_for_load_state(timeout=timeout)
                await new_page.bring_to_front()
                self._use_page(new_page)
                return new_page
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.PAGE) from e

    async def close_current_page(self) -> None:
        """Close the current page and switch to the last remaining one."""
        with allure.step("Close current page"):
            try:
                context = self.page.context
                closed_url = self.page.url
                await self.page.close()
                remaining = context.pages
                if not remaining:
                    logger.warning(f"Closed last page ({closed_url}); no page left in context")
                    return
                self._use_page(remaining[-1])
                await self.page.bring_to_front()
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.PAGE) from e

    def _use_page(self, page: Page) -> None:
        self.page = page
        self.switch_to_default_content()
        self._pending_dialog = None
        logger.info(f"Switched to page: {page.url}")

    # =========================================================================
    # Dialogs
    # =========================================================================

    async def _next_dialog(self, timeout: int) -> Optional[Dialog]:
        if self._pending_dialog is not None:
            dialog, self._pending_dialog = self._pending_dialog, None
            return dialog
        try:
            return await self.page.wait_for_event("dialog", timeout=timeout)
        except PlaywrightTimeoutError:
            return None

    async def accept_dialog(self, prompt_text: Optional[str] = None, timeout: Optional[int] = None) -> bool:
        """
        Accept the pending dialog or the next one to appear.

        Returns:
            False when no dialog appeared within the timeout
        """
        try:
            dialog = await self._next_dialog(timeout or DIALOG_TIMEOUT)
            if dialog is None:
                logger.warning("No dialog appeared to accept within timeout.")
                return False
            self.last_dialog_message = dialog.message
            logger.info(f'Dialog found with message: "{dialog.message}". Accepting.')
            if prompt_text is not None:
                await dialog.accept(prompt_text)
            else:
                await dialog.accept()
            return True
        except Exception as e:
            raise ErrorHandler.handle(e, ErrorType.DIALOG) from e

    async def dismiss_dialog(self, timeout: Optional[int] = None) -> bool:
        """
        Dismiss the pending dialog or the next one to appear.

        Returns:
            False when no dialog appeared within the timeout
        """
        try:
            dialog = await self._next_dialog(timeout or DIALOG_TIMEOUT)
            if dialog is None:
                logger.warning("No dialog appeared to dismiss within timeout.")
                return False
            self.last_dialog_message = dialog.message
            logger.info(f'Dialog found with message: "{dialog.message}". Dismissing.')
            await dialog.dismiss()
            return True
        except Exception as e:
            raise ErrorHandler.handle(e, ErrorType.DIALOG) from e

    async def get_dialog_message(self, timeout: Optional[int] = None) -> Optional[str]:
        """
        Read the message of the pending/next dialog without closing it.

        The dialog stays pending so a following accept/dismiss/fill acts on it.

        Returns:
            Dialog message, or None when no dialog appeared
        """
        try:
            dialog = await self._next_dialog(timeout or DIALOG_TIMEOUT)
            if dialog is None:
                logger.warning("No dialog appeared to read a message from within timeout.")
                return None
            self._pending_dialog = dialog
            self.last_dialog_message = dialog.message
            return dialog.message
        except Exception as e:
            raise ErrorHandler.handle(e, ErrorType.DIALOG) from e

    async def fill_in_dialog(self, text: str, timeout: Optional[int] = None) -> bool:
        """
        Answer a prompt() dialog with `text`.

        A dialog of another type is dismissed and reported as a DIALOG error.

        Returns:
            False when no dialog appeared within the timeout
        """
        try:
            dialog = await self._next_dialog(timeout or DIALOG_TIMEOUT)
            if dialog is None:
                logger.warning("No prompt dialog appeared to fill within timeout.")
                return False
            self.last_dialog_message = dialog.message
            if dialog.type != "prompt":
                await dialog.dismiss()
                ErrorHandler.new_error(
                    f"Expected a prompt dialog but got '{dialog.type}'",
                    ErrorType.DIALOG,
                    context={"dialog_type": dialog.type, "dialog_message": dialog.message},
                    raise_error=True,
                )
            await dialog.accept(text)
            return True
        except Exception as e:
            raise ErrorHandler.handle(e, ErrorType.DIALOG) from e

    def handle_next_dialog(self, action: str = "accept", prompt_text: Optional[str] = None) -> None:
        """
        Register a one-shot handler for the next dialog.

        Use before the action that opens the dialog; the triggering click
        then completes normally. The message is kept in `last_dialog_message`.
        """
        if action not in ("accept", "dismiss"):
            ErrorHandler.new_error(
                f"Unsupported dialog action '{action}'", ErrorType.VALIDATION, raise_error=True
            )

        async def _handle(dialog: Dialog) -> None:
            self.last_dialog_message = dialog.message
            logger.info(f'Handling dialog "{dialog.message}" with {action}')
            if action == "accept":
                if prompt_text is not None:
                    await dialog.accept(prompt_text)
                else:
                    await dialog.accept()
            else:
                await dialog.dismiss()

        self.page.once("dialog", _handle)

    # =========================================================================
    # Screenshots
    # =========================================================================

    def _screenshot_path(self, name: str) -> Path:
        directory = self.settings.resolve_path(self.settings.screenshots_dir)
        directory.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        safe_name = re.sub(r"[^\w.-]+", "_", name).strip("_") or "screenshot"
        return directory / f"{safe_name}_{timestamp}.png"

    async def take_full_page_screenshot(self, name: str = "full_page", attach_to_allure: bool = True) -> Path:
        """
        Capture the whole scrollable page.

        Returns:
            Path to saved screenshot
        """
        with allure.step(f"Take full page screenshot: {name}"):
            try:
                path = self._screenshot_path(name)
                image = await self.page.screenshot(path=str(path), full_page=True)
                if attach_to_allure:
                    attach_png(image, name)
                logger.debug(f"Screenshot saved: {path}")
                return path
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.IO, context={"name": name}) from e

    async def take_screenshot_of_element(
        self,
        page_name: str,
        element_key: str,
        name: Optional[str] = None,
        options: Options = None,
        replacements: Optional[Replacements] = None,
        attach_to_allure: bool = True,
    ) -> Path:
        """Capture a single visible element."""
        opts = InteractionOptions.coerce(options)
        timeout = opts.timeout_or(self.action_timeout)
        name = name or f"{page_name}_{element_key}"
        with allure.step(f"Take element screenshot: {page_name}.{element_key}"):
            try:
                locator = await self._ready(page_name, element_key, opts, replacements, "visible", timeout)
                path = self._screenshot_path(name)
                image = await locator.screenshot(path=str(path), timeout=timeout)
                if attach_to_allure:
                    attach_png(image, name)
                logger.debug(f"Element screenshot saved: {path}")
                return path
            except Exception as e:
                raise ErrorHandler.handle(e, ErrorType.IO, context=self._context(page_name, element_key)) from e

    # =========================================================================
    # JavaScript
    # =========================================================================

    async def execute_javascript(self, script: str, arg: Any = None) -> Any:
        """
        Evaluate a script in the current page and return its result.

        Args:
            script: JavaScript expression or function source
            arg: Optional argument passed to the function
        """
        try:
            return await self.page.evaluate(script, arg)
        except Exception as e:
            raise ErrorHandler.handle(e, ErrorType.JAVASCRIPT, context={"script": script[:200]}) from e

    # =========================================================================
    # CAPTCHA
    # =========================================================================

    async def solve_and_fill_captcha(
        self,
        image_page: str,
        image_key: str,
        input_page: str,
        input_key: str,
        solver: Optional[CaptchaSolver] = None,
        instructions: Optional[str] = None,
        image_replacements: Optional[Replacements] = None,
        input_replacements: Optional[Replacements] = None,
    ) -> bool:
        """
        Read the CAPTCHA image with the solver and type the answer.

        Without an explicit solver an LLMClient is built from settings
        (only when `captcha_solver_enabled`).

        Returns:
            True when a solution was filled, False otherwise (never raises)
        """
        if solver is not None:
            return await self._solve_captcha_with(
                solver, image_page, image_key, input_page, input_key,
                instructions, image_replacements, input_replacements,
            )

        if not self.settings.captcha_solver_enabled:
            logger.warning("CAPTCHA solver is disabled (CAPTCHA_SOLVER_ENABLED=false). Skipping.")
            return False

        from e2e_toolkit.llm import LLMClient

        try:
            async with LLMClient(self.settings) as client:
                return await self._solve_captcha_with(
                    client, image_page, image_key, input_page, input_key,
                    instructions, image_replacements, input_replacements,
                )
        except FrameworkError as e:
            logger.error(f"CAPTCHA solver could not be created: {e}")
            return False

    async def _solve_captcha_with(
        self,
        solver: CaptchaSolver,
        image_page: str,
        image_key: str,
        input_page: str,
        input_key: str,
        instructions: Optional[str],
        image_replacements: Optional[Replacements],
        input_replacements: Optional[Replacements],
    ) -> bool:
        try:
            adapter = CaptchaSolverAdapter(
                self,
                solver,
                max_retries=self.settings.captcha_max_retries,
                retry_delay=self.settings.captcha_retry_delay,
            )
        except FrameworkError as e:
            logger.error(f"CAPTCHA solver could not be created: {e}")
            return False
        with allure.step(f"Solve CAPTCHA: {image_page}.{image_key} -> {input_page}.{input_key}"):
            return await adapter.solve_and_fill(
                image_page,
                image_key,
                input_page,
                input_key,
                instructions=instructions,
                image_replacements=image_replacements,
                input_replacements=input_replacements,
            )


__all__ = [
    "BasePage",
    "PageBase",
    "InteractionOptions",
    "PREDICATE_TIMEOUT",
    "DIALOG_TIMEOUT",
]

# Backward-compatible alias (many Page Objects prefer PageBase naming)
PageBase = BasePage
