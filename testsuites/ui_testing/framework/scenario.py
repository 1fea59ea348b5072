"""
================================================================================
Scenario Glue
================================================================================

Runs human-readable Given/When/Then scenarios against page objects.

Pieces:
    - StepRegistry / step: phrase patterns bound to async step functions
    - ScenarioLoader: reads YAML feature files into Scenario objects
    - ScenarioWorld: per-scenario state handed to every step function
    - ScenarioRunner: executes a scenario's steps in order
    - capture_failure_screenshot: one screenshot per failed scenario

Feature file format:

    feature: Demo form
    tags: [ui, smoke]
    scenarios:
      - name: Submit the form
        tags: [critical]
        steps:
          - Given I navigate to "/form"
          - step: When I click "menuItem" on the "DemoForm" page
            replacements: {itemName: docs}
            options: {timeout: 2000}
          - Then the current URL should be "/done"

Step patterns use {string} (double-quoted), {int}, {float} and {word}
placeholders. Step functions receive the world followed by the converted
placeholder values; the step's options/replacements/table are available as
`world.options`, `world.replacements` and `world.table`.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import inspect
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import allure
import yaml
from loguru import logger
from playwright.async_api import BrowserContext, Page

from e2e_toolkit.common.errors import ErrorHandler, ErrorType, StepDefinitionError
from e2e_toolkit.common.settings import Settings
from e2e_toolkit.report_tools.allure_utils import attach_png

from .locator_manager import LocatorStore
from .page_base import BasePage


STEP_KEYWORDS = ("Given", "When", "Then", "And", "But", "*")
SCENARIO_FILE_SUFFIXES = (".yaml", ".yml")

# placeholder -> (regex, converter)
PARAMETER_TYPES: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "string": (r'"([^"]*)"', str),
    "int": (r"(-?\d+)", int),
    "float": (r"(-?\d+(?:\.\d+)?)", float),
    "word": (r"([^\s\"]+)", str),
}
_PLACEHOLDER = re.compile(r"\{(" + "|".join(PARAMETER_TYPES) + r")\}")


# =============================================================================
# Step Definitions
# =============================================================================

@dataclass
class StepDefinition:
    """A phrase pattern bound to a step function."""

    pattern: str
    func: Callable[..., Any]
    regex: "re.Pattern[str]"
    converters: List[Callable[[str], Any]]

    @classmethod
    def compile(cls, pattern: str, func: Callable[..., Any]) -> "StepDefinition":
        parts: List[str] = []
        converters: List[Callable[[str], Any]] = []
        position = 0
        for match in _PLACEHOLDER.finditer(pattern):
            parts.append(re.escape(pattern[position:match.start()]))
            regex, converter = PARAMETER_TYPES[match.group(1)]
            parts.append(regex)
            converters.append(converter)
            position = match.end()
        parts.append(re.escape(pattern[position:]))
        return cls(pattern, func, re.compile("^" + "".join(parts) + "$"), converters)

    def match(self, text: str) -> Optional[List[Any]]:
        found = self.regex.match(text)
        if found is None:
            return None
        return [convert(value) for convert, value in zip(self.converters, found.groups())]


class StepRegistry:
    """
    Collection of step definitions.

    Usage:
        >>> registry = StepRegistry()
        >>> @registry.step('I navigate to {string}')
        ... async def navigate(world, url):
        ...     await world.base_page.navigate_to(url)
    """

    def __init__(self) -> None:
        self._definitions: List[StepDefinition] = []

    def register(self, pattern: str, func: Callable[..., Any]) -> StepDefinition:
        """
        Raises:
            StepDefinitionError: When the pattern is already registered
        """
        if any(d.pattern == pattern for d in self._definitions):
            raise StepDefinitionError(f"Step pattern already registered: '{pattern}'", context={"pattern": pattern})
        definition = StepDefinition.compile(pattern, func)
        self._definitions.append(definition)
        return definition

    def step(self, pattern: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator registering a step function under `pattern`."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.register(pattern, func)
            return func

        return decorator

    def find(self, text: str) -> Tuple[StepDefinition, List[Any]]:
        """
        Find the single definition matching a step phrase.

        Args:
            text: Step phrase (a leading Given/When/Then/And/But is ignored)

        Raises:
            StepDefinitionError: When no definition or several definitions match
        """
        _, phrase = split_keyword(text)
        matches = []
        for definition in self._definitions:
            args = definition.match(phrase)
            if args is not None:
                matches.append((definition, args))

        if not matches:
            raise StepDefinitionError(f"Undefined step: '{phrase}'", context={"step": phrase})
        if len(matches) > 1:
            raise StepDefinitionError(
                f"Ambiguous step: '{phrase}' matches {len(matches)} definitions",
                context={"step": phrase, "patterns": [d.pattern for d, _ in matches]},
            )
        return matches[0]

    @property
    def patterns(self) -> List[str]:
        return [d.pattern for d in self._definitions]

    def __len__(self) -> int:
        return len(self._definitions)


def split_keyword(text: str) -> Tuple[str, str]:
    """Split "When I click ..." into ("When", "I click ...")."""
    text = text.strip()
    head, _, rest = text.partition(" ")
    if head in STEP_KEYWORDS and rest:
        return head, rest.strip()
    return "", text


# Steps from testsuites.ui_testing.steps register here
default_registry = StepRegistry()
step = default_registry.step


# =============================================================================
# Scenario Model and Loading
# =============================================================================

@dataclass
class ScenarioStep:
    keyword: str
    text: str
    options: Dict[str, Any] = field(default_factory=dict)
    replacements: Dict[str, Any] = field(default_factory=dict)
    table: List[Any] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.keyword} {self.text}".strip()


@dataclass
class Scenario:
    name: str
    feature: str
    tags: List[str] = field(default_factory=list)
    steps: List[ScenarioStep] = field(default_factory=list)
    source: Optional[Path] = None

    @property
    def id(self) -> str:
        return f"{self.feature}::{self.name}"


class ScenarioLoader:
    """
    Reads every YAML feature file in a directory.

    Malformed files are logged and skipped.
    """

    def __init__(self, scenarios_dir: Union[str, Path]):
        self.scenarios_dir = Path(scenarios_dir)

    def load(self, tags: Optional[Sequence[str]] = None) -> List[Scenario]:
        """
        Load scenarios, optionally keeping only those carrying any of `tags`.

        Raises:
            ConfigurationError: When the directory cannot be read
        """
        try:
            files = sorted(
                p for p in self.scenarios_dir.iterdir()
                if p.is_file() and p.suffix.lower() in SCENARIO_FILE_SUFFIXES
            )
        except OSError as e:
            raise ErrorHandler.new_error(
                f"Cannot read scenario directory: {self.scenarios_dir}",
                ErrorType.CONFIG,
                cause=e,
                context={"scenarios_dir": str(self.scenarios_dir)},
            ) from e

        scenarios: List[Scenario] = []
        for file_path in files:
            try:
                scenarios.extend(self.load_file(file_path))
            except (OSError, ValueError, yaml.YAMLError) as e:
                ErrorHandler.new_error(
                    f"Failed to parse scenario file: {file_path.name}",
                    ErrorType.CONFIG,
                    cause=e,
                    context={"file_path": str(file_path)},
                )

        if tags:
            wanted = set(tags)
            scenarios = [s for s in scenarios if wanted.intersection(s.tags)]
        logger.info(f"Loaded {len(scenarios)} scenario(s) from {self.scenarios_dir}")
        return scenarios

    def load_file(self, file_path: Union[str, Path]) -> List[Scenario]:
        """
        Parse one feature file.

        Raises:
            ValueError: When the file does not have the feature-file shape
        """
        file_path = Path(file_path)
        with open(file_path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)

        if not isinstance(content, dict):
            raise ValueError(f"{file_path.name}: root must be a mapping")
        feature = str(content.get("feature") or file_path.stem)
        feature_tags = self._tags(content.get("tags"), file_path)
        raw_scenarios = content.get("scenarios")
        if not isinstance(raw_scenarios, list) or not raw_scenarios:
            raise ValueError(f"{file_path.name}: 'scenarios' must be a non-empty list")

        scenarios = []
        for index, raw in enumerate(raw_scenarios, start=1):
            if not isinstance(raw, dict) or not raw.get("name"):
                raise ValueError(f"{file_path.name}: scenario #{index} needs a name")
            raw_steps = raw.get("steps")
            if not isinstance(raw_steps, list) or not raw_steps:
                raise ValueError(f"{file_path.name}: scenario '{raw['name']}' has no steps")
            scenarios.append(
                Scenario(
                    name=str(raw["name"]),
                    feature=feature,
                    tags=feature_tags + self._tags(raw.get("tags"), file_path),
                    steps=[self._step(item, file_path) for item in raw_steps],
                    source=file_path,
                )
            )
        return scenarios

    @staticmethod
    def _tags(value: Any, file_path: Path) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split()
        if not isinstance(value, list):
            raise ValueError(f"{file_path.name}: tags must be a list")
        return [str(tag).lstrip("@") for tag in value]

    @staticmethod
    def _step(item: Any, file_path: Path) -> ScenarioStep:
        if isinstance(item, str):
            keyword, text = split_keyword(item)
            return ScenarioStep(keyword, text)
        if isinstance(item, dict) and isinstance(item.get("step"), str):
            keyword, text = split_keyword(item["step"])
            options = item.get("options") or {}
            replacements = item.get("replacements") or {}
            table = item.get("table") or []
            if not isinstance(options, dict) or not isinstance(replacements, dict) or not isinstance(table, list):
                raise ValueError(f"{file_path.name}: bad options/replacements/table for step '{text}'")
            return ScenarioStep(keyword, text, dict(options), dict(replacements), list(table))
        raise ValueError(f"{file_path.name}: step must be a string or a mapping with 'step': {item!r}")


# =============================================================================
# World and Runner
# =============================================================================

@dataclass
class ScenarioWorld:
    """
    Per-scenario state shared by step functions.

    `base_page` is the page object steps act on; opening a page object
    replaces it and carries the current Playwright page over.
    """

    settings: Settings
    locators: LocatorStore
    page: Optional[Page] = None
    context: Optional[BrowserContext] = None
    base_page: Optional[BasePage] = None
    llm: Any = None
    api: Any = None
    feature_name: Optional[str] = None
    scenario_name: Optional[str] = None
    variables: Dict[str, Any] = field(default_factory=dict)
    current_step: Optional[ScenarioStep] = None

    def __post_init__(self) -> None:
        if self.base_page is None and self.page is not None:
            self.base_page = BasePage(self.page, self.locators, self.settings)

    @property
    def active_page(self) -> Optional[Page]:
        """Page currently driven by the page object (follows page switching)."""
        if self.base_page is not None:
            return self.base_page.page
        return self.page

    @property
    def options(self) -> Optional[Dict[str, Any]]:
        if self.current_step is None or not self.current_step.options:
            return None
        return self.current_step.options

    @property
    def replacements(self) -> Optional[Dict[str, Any]]:
        if self.current_step is None or not self.current_step.replacements:
            return None
        return self.current_step.replacements

    @property
    def table(self) -> List[Any]:
        return self.current_step.table if self.current_step else []

    def use_page_object(self, page_object_cls: type) -> BasePage:
        """Swap `base_page` for a page object class on the current page."""
        page = self.active_page
        if page is None:
            raise RuntimeError("No browser page in the scenario world")
        self.base_page = page_object_cls(page, self.locators, self.settings)
        return self.base_page


class ScenarioRunner:
    """
    Executes scenarios step by step.

    The first failing step stops the scenario; its error propagates.
    """

    def __init__(self, registry: Optional[StepRegistry] = None):
        self.registry = registry if registry is not None else default_registry

    async def run(self, scenario: Scenario, world: ScenarioWorld) -> None:
        world.feature_name = scenario.feature
        world.scenario_name = scenario.name
        logger.info(f'Running scenario: "{scenario.name}" in feature: "{scenario.feature}"')

        for index, scenario_step in enumerate(scenario.steps, start=1):
            world.current_step = scenario_step
            with allure.step(str(scenario_step)):
                try:
                    definition, args = self.registry.find(scenario_step.text)
                    result = definition.func(world, *args)
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    logger.error(f"Step {index}/{len(scenario.steps)} failed: {scenario_step}")
                    raise
                finally:
                    world.current_step = None
            logger.debug(f"Step {index}/{len(scenario.steps)} passed: {scenario_step}")

        logger.info(f'Scenario passed: "{scenario.name}"')


async def capture_failure_screenshot(world: ScenarioWorld) -> Optional[Path]:
    """
    Take one full-page screenshot of a failed scenario and attach it.

    Saved as `<scenario_name>_failure_<epoch_ms>.png` under the screenshots
    directory. Screenshot problems are logged, never raised.

    Returns:
        Path of the screenshot, or None when it could not be taken
    """
    page = world.active_page
    if page is None:
        logger.warning(f'No page to screenshot for failed scenario: "{world.scenario_name}"')
        return None

    name = re.sub(r"[\s/\\]+", "_", world.scenario_name or "scenario")
    directory = world.settings.resolve_path(world.settings.screenshots_dir)
    path = directory / f"{name}_failure_{int(time.time() * 1000)}.png"
    try:
        directory.mkdir(parents=True, exist_ok=True)
        image = await page.screenshot(path=str(path), full_page=True)
        attach_png(image, f"{world.scenario_name} failure")
        logger.info(f'Screenshot taken for failed scenario: "{world.scenario_name}" ({path})')
        return path
    except Exception as e:
        ErrorHandler.handle(e, ErrorType.UI, context={"scenario": world.scenario_name, "path": str(path)})
        logger.error(f'Failed to take or attach screenshot for scenario: "{world.scenario_name}"')
        return None


__all__ = [
    "StepDefinition",
    "StepRegistry",
    "default_registry",
    "step",
    "split_keyword",
    "Scenario",
    "ScenarioStep",
    "ScenarioLoader",
    "ScenarioWorld",
    "ScenarioRunner",
    "capture_failure_screenshot",
]
