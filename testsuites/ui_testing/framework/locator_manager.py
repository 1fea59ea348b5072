"""
================================================================================
Locator Store
================================================================================

Named selector definitions loaded from files.

Locator files live in one directory (JSON or YAML, one mapping per file):

    {
        "LoginPage": {
            "usernameInput": "#username",
            "menuItem": "nav a[data-item='${itemName}']"
        }
    }

Top-level keys are page names, nested keys are element names, values are
Playwright selector strings. Files are merged in sorted file-name order;
when a later file redefines an element of the same page, the later selector
wins and a warning is logged.

The table is immutable once loaded and safe to share between scenarios.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from loguru import logger
from playwright.async_api import FrameLocator, Locator, Page

from e2e_toolkit.common.errors import ErrorHandler, ErrorType


LOCATOR_FILE_SUFFIXES = (".json", ".yaml", ".yml")

Replacements = Mapping[str, Union[str, int, float]]
LocatorRoot = Union[Page, FrameLocator]


class LocatorNotFoundError(LookupError):
    """Raised when a page or element key is not defined in the locator table."""

    def __init__(self, page_name: str, element_name: Optional[str] = None):
        self.page_name = page_name
        self.element_name = element_name
        if element_name is None:
            message = (
                f'Locators for page "{page_name}" not found. Ensure it is defined in a '
                f"locator file and the root key matches the page name."
            )
        else:
            message = f'Locator "{element_name}" not found on page "{page_name}".'
        super().__init__(message)

    def __str__(self) -> str:
        return self.args[0]


class LocatorStore:
    """
    In-memory table of page -> element -> selector.

    Usage:
        >>> store = LocatorStore("testsuites/ui_testing/locators")
        >>> store.load()
        >>> store.get_selector("LoginPage", "usernameInput")
        '#username'
        >>> locator = store.resolve(page, "LoginPage", "menuItem", {"itemName": "docs"})
    """

    def __init__(self, locators_dir: Union[str, Path]):
        """
        Args:
            locators_dir: Directory containing locator definition files
        """
        self.locators_dir = Path(locators_dir)
        self._table: Mapping[str, Mapping[str, str]] = MappingProxyType({})
        self._sources: Dict[str, Dict[str, str]] = {}
        self._loaded = False

    # =========================================================================
    # Loading
    # =========================================================================

    def load(self) -> "LocatorStore":
        """
        Read every definition file once.

        Idempotent: later calls are no-ops.

        Raises:
            ConfigurationError: When the directory cannot be read
        """
        if self._loaded:
            logger.debug("Locators already loaded. Skipping reload.")
            return self

        logger.info(f"Loading locators from: {self.locators_dir}")
        try:
            files = sorted(
                p for p in self.locators_dir.iterdir()
                if p.is_file() and p.suffix.lower() in LOCATOR_FILE_SUFFIXES
            )
        except OSError as e:
            raise ErrorHandler.new_error(
                "A critical error occurred while trying to read locator files.",
                ErrorType.CONFIG,
                cause=e,
                context={"locators_dir": str(self.locators_dir)},
            ) from e

        merged: Dict[str, Dict[str, str]] = {}
        for file_path in files:
            page_locators = self._read_file(file_path)
            if page_locators is None:
                continue
            self._merge(merged, page_locators, file_path.name)
            logger.debug(f"Loaded locators from {file_path.name}")

        self._table = MappingProxyType(
            {page: MappingProxyType(dict(elements)) for page, elements in merged.items()}
        )
        self._loaded = True
        logger.info(
            f"Finished loading locators: {len(self._table)} pages, "
            f"{sum(len(e) for e in self._table.values())} elements"
        )
        return self

    def _read_file(self, file_path: Path) -> Optional[Dict[str, Dict[str, str]]]:
        """Parse and validate one file; malformed files are logged and skipped."""
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                if file_path.suffix.lower() == ".json":
                    content = json.load(f)
                else:
                    content = yaml.safe_load(f)
            return self._validate(content, file_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            ErrorHandler.new_error(
                f"Failed to parse locator file: {file_path.name}",
                ErrorType.CONFIG,
                cause=e,
                context={"file_path": str(file_path)},
            )
            return None

    @staticmethod
    def _validate(content: Any, file_path: Path) -> Dict[str, Dict[str, str]]:
        if not isinstance(content, dict):
            raise ValueError(f"{file_path.name}: root must be a mapping of page names")
        for page_name, elements in content.items():
            if not isinstance(elements, dict):
                raise ValueError(f"{file_path.name}: page '{page_name}' must map element names to selectors")
            for element_name, selector in elements.items():
                if not isinstance(selector, str) or not selector.strip():
                    raise ValueError(
                        f"{file_path.name}: selector for '{page_name}.{element_name}' must be a non-empty string"
                    )
        return {str(page): {str(k): v for k, v in elements.items()} for page, elements in content.items()}

    def _merge(self, merged: Dict[str, Dict[str, str]], page_locators: Dict[str, Dict[str, str]], source: str) -> None:
        for page_name, elements in page_locators.items():
            page_table = merged.setdefault(page_name, {})
            page_sources = self._sources.setdefault(page_name, {})
            for element_name, selector in elements.items():
                if element_name in page_table:
                    logger.warning(
                        f"Locator '{page_name}.{element_name}' from {page_sources[element_name]} "
                        f"is overridden by {source}"
                    )
                page_table[element_name] = selector
                page_sources[element_name] = source

    # =========================================================================
    # Lookup
    # =========================================================================

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    @property
    def pages(self) -> List[str]:
        self._ensure_loaded()
        return sorted(self._table)

    def elements(self, page_name: str) -> Mapping[str, str]:
        """Return the read-only element table of a page."""
        self._ensure_loaded()
        page = self._table.get(page_name)
        if page is None:
            raise LocatorNotFoundError(page_name)
        return page

    def has(self, page_name: str, element_name: str) -> bool:
        self._ensure_loaded()
        return element_name in self._table.get(page_name, {})

    def source_of(self, page_name: str, element_name: str) -> Optional[str]:
        """File name that supplied the effective selector."""
        return self._sources.get(page_name, {}).get(element_name)

    def get_selector(self, page_name: str, element_name: str) -> str:
        """
        Look up a raw selector string.

        Raises:
            LocatorNotFoundError: When the page or element is not defined
        """
        page = self.elements(page_name)
        selector = page.get(element_name)
        if selector is None:
            raise LocatorNotFoundError(page_name, element_name)
        return selector

    @staticmethod
    def substitute(selector: str, replacements: Optional[Replacements] = None) -> str:
        """
        Replace every `${key}` token for each key in `replacements`.

        Tokens without a replacement are left verbatim.
        """
        if not replacements:
            return selector
        for key, value in replacements.items():
            selector = selector.replace(f"${{{key}}}", str(value))
        if "${" in selector:
            logger.debug(f"Selector still contains unresolved placeholders: {selector}")
        return selector

    def resolve(
        self,
        root: LocatorRoot,
        page_name: str,
        element_name: str,
        replacements: Optional[Replacements] = None,
        nth: Optional[int] = None,
        has_text: Optional[str] = None,
    ) -> Locator:
        """
        Build a live Playwright locator for a named element.

        Args:
            root: Page or FrameLocator to search in
            page_name: Page key in the locator table
            element_name: Element key within the page
            replacements: Values for `${name}` placeholders
            nth: Zero-based index when the selector matches several elements
            has_text: Narrow the match to elements containing this text

        Returns:
            Playwright Locator (not yet awaited)

        Raises:
            LocatorNotFoundError: When the page or element is not defined
        """
        selector = self.substitute(self.get_selector(page_name, element_name), replacements)
        if has_text is not None:
            locator = root.locator(selector, has_text=has_text)
        else:
            locator = root.locator(selector)
        if nth is not None:
            locator = locator.nth(nth)
        return locator

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._table)

    def __contains__(self, page_name: object) -> bool:
        self._ensure_loaded()
        return page_name in self._table


__all__ = [
    "LocatorStore",
    "LocatorNotFoundError",
    "Replacements",
]
