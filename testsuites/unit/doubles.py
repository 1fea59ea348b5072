"""
Browser-free stand-ins for the Playwright objects BasePage talks to.

Elements are registered on a FakePage by full selector string; selectors
inside a frame are keyed as "<frame selector> >> <selector>". Looking up a
selector that is not registered behaves like Playwright: the wait times out.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from testsuites.ui_testing.framework.locator_manager import LocatorStore


PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


def log_messages(records: List[Dict[str, Any]], level: str) -> List[str]:
    """Messages of the captured Loguru records at `level`."""
    return [r["message"] for r in records if r["level"].name == level]


def make_store(directory: Path, table: Dict[str, Dict[str, str]]) -> LocatorStore:
    """Write `table` as a locator file and return the loaded store."""
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "locators.json").write_text(json.dumps(table), encoding="utf-8")
    return LocatorStore(directory).load()


@dataclass
class FakeElement:
    text: str = ""
    visible: bool = True
    enabled: bool = True
    checked: bool = False
    count: int = 1
    attributes: Dict[str, str] = field(default_factory=dict)


class FakeDialog:
    def __init__(self, message: str, type: str = "alert"):
        self.message = message
        self.type = type
        self.handled: Optional[tuple] = None

    async def accept(self, prompt_text: Optional[str] = None) -> None:
        self.handled = ("accept", prompt_text)

    async def dismiss(self) -> None:
        self.handled = ("dismiss", None)


class FakeMouse:
    def __init__(self, page: "FakePage"):
        self.page = page

    async def down(self, button: str = "left") -> None:
        self.page.actions.append(("mouse.down", None, {"button": button}))

    async def up(self, button: str = "left") -> None:
        self.page.actions.append(("mouse.up", None, {"button": button}))


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str, has_text: Optional[str] = None, index: Optional[int] = None):
        self.page = page
        self.selector = selector
        self.has_text = has_text
        self.index = index

    def _element(self) -> Optional[FakeElement]:
        return self.page.elements.get(self.selector)

    def _timeout(self, timeout: Any) -> PlaywrightTimeoutError:
        return PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {self.selector}")

    def _act(self, verb: str, **kwargs: Any) -> FakeElement:
        element = self._element()
        self.page.actions.append((verb, self.selector, kwargs))
        if element is None:
            raise self._timeout(kwargs.get("timeout"))
        return element

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self.page, self.selector, self.has_text, index)

    @property
    def first(self) -> "FakeLocator":
        return self.nth(0)

    async def wait_for(self, state: str = "visible", timeout: Any = None) -> None:
        element = self._element()
        self.page.waits.append((self.selector, state, timeout))
        if state == "visible" and (element is None or not element.visible):
            raise self._timeout(timeout)
        if state == "attached" and element is None:
            raise self._timeout(timeout)
        if state == "hidden" and element is not None and element.visible:
            raise self._timeout(timeout)

    async def click(self, **kwargs: Any) -> None:
        self._act("click", **kwargs)

    async def dblclick(self, **kwargs: Any) -> None:
        self._act("dblclick", **kwargs)

    async def hover(self, **kwargs: Any) -> None:
        self._act("hover", **kwargs)

    async def fill(self, value: str, **kwargs: Any) -> None:
        self._act("fill", value=value, **kwargs)

    async def press_sequentially(self, text: str, **kwargs: Any) -> None:
        self._act("type", value=text, **kwargs)

    async def clear(self, **kwargs: Any) -> None:
        self._act("clear", **kwargs)

    async def press(self, key: str, **kwargs: Any) -> None:
        self._act("press", key=key, **kwargs)

    async def check(self, **kwargs: Any) -> None:
        self._act("check", **kwargs).checked = True

    async def uncheck(self, **kwargs: Any) -> None:
        self._act("uncheck", **kwargs).checked = False

    async def select_option(self, **kwargs: Any) -> List[str]:
        self._act("select_option", **kwargs)
        selected = kwargs.get("value") or kwargs.get("label") or str(kwargs.get("index"))
        return [selected]

    async def set_input_files(self, files: Any, **kwargs: Any) -> None:
        self._act("set_input_files", files=files, **kwargs)

    async def scroll_into_view_if_needed(self, **kwargs: Any) -> None:
        self._act("scroll_into_view", **kwargs)

    async def drag_to(self, target: "FakeLocator", **kwargs: Any) -> None:
        self._act("drag_to", target=target.selector, **kwargs)

    async def inner_text(self, **kwargs: Any) -> str:
        return self._act("inner_text", **kwargs).text

    async def get_attribute(self, name: str, **kwargs: Any) -> Optional[str]:
        return self._act("get_attribute", name=name, **kwargs).attributes.get(name)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self._act("evaluate", script=script)
        return []

    async def count(self) -> int:
        element = self._element()
        return element.count if element is not None else 0

    async def is_checked(self, **kwargs: Any) -> bool:
        return self._act("is_checked", **kwargs).checked

    async def is_enabled(self, **kwargs: Any) -> bool:
        return self._act("is_enabled", **kwargs).enabled

    async def screenshot(self, path: Optional[str] = None, **kwargs: Any) -> bytes:
        self._act("screenshot", **kwargs)
        if path:
            Path(path).write_bytes(PNG_BYTES)
        return PNG_BYTES


class FakeFrameLocator:
    def __init__(self, page: "FakePage", path: str):
        self.page = page
        self.path = path

    def locator(self, selector: str, has_text: Optional[str] = None) -> FakeLocator:
        return self.page.locator(f"{self.path} >> {selector}", has_text=has_text)

    def frame_locator(self, selector: str) -> "FakeFrameLocator":
        return FakeFrameLocator(self.page, f"{self.path} >> {selector}")


class FakeContext:
    def __init__(self) -> None:
        self.pages: List["FakePage"] = []


class FakePage:
    """Records actions and serves registered elements, dialogs and screenshots."""

    def __init__(
        self,
        elements: Optional[Dict[str, FakeElement]] = None,
        url: str = "about:blank",
        title: str = "Fake Page",
        context: Optional[FakeContext] = None,
    ):
        self.elements: Dict[str, FakeElement] = dict(elements or {})
        self.url = url
        self._title = title
        self.actions: List[tuple] = []
        self.waits: List[tuple] = []
        self.locators: List[FakeLocator] = []
        self.dialogs: List[FakeDialog] = []
        self.handlers: List[tuple] = []
        self.unreachable: List[str] = []
        self.screenshot_error: Optional[Exception] = None
        self.screenshot_calls = 0
        self.closed = False
        self.mouse = FakeMouse(self)
        self.context = context or FakeContext()
        self.context.pages.append(self)

    def locator(self, selector: str, has_text: Optional[str] = None) -> FakeLocator:
        locator = FakeLocator(self, selector, has_text)
        self.locators.append(locator)
        return locator

    def frame_locator(self, selector: str) -> FakeFrameLocator:
        return FakeFrameLocator(self, selector)

    async def goto(self, url: str, wait_until: str = "load", timeout: Any = None) -> None:
        self.actions.append(("goto", url, {"wait_until": wait_until, "timeout": timeout}))
        if url in self.unreachable:
            raise PlaywrightError(f"net::ERR_CONNECTION_REFUSED at {url}")
        self.url = url

    async def title(self) -> str:
        return self._title

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.actions.append(("evaluate", script, {"arg": arg}))
        if "throw" in script:
            raise PlaywrightError("Error: boom")
        return arg

    async def screenshot(self, path: Optional[str] = None, full_page: bool = False) -> bytes:
        self.screenshot_calls += 1
        if self.screenshot_error is not None:
            raise self.screenshot_error
        if path:
            Path(path).write_bytes(PNG_BYTES)
        return PNG_BYTES

    async def wait_for_event(self, event: str, timeout: Any = None) -> Any:
        if event == "dialog" and self.dialogs:
            return self.dialogs.pop(0)
        raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded while waiting for event \"{event}\"")

    def once(self, event: str, handler: Any) -> None:
        self.handlers.append((event, handler))

    async def bring_to_front(self) -> None:
        pass

    async def wait_for_load_state(self, state: str = "load", timeout: Any = None) -> None:
        pass

    async def close(self) -> None:
        self.closed = True
        self.context.pages.remove(self)


__all__ = [
    "FakeContext",
    "FakeDialog",
    "FakeElement",
    "FakeFrameLocator",
    "FakeLocator",
    "FakePage",
    "PNG_BYTES",
    "log_messages",
    "make_store",
]
