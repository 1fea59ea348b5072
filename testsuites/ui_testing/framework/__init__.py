"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based UI automation framework with LLM-assisted CAPTCHA solving.

Components:
    - locator_manager: Named selector store with ${placeholder} substitution
    - page_base: Base page object (wait / act / classify-error verbs)
    - captcha_solver: Screenshot -> solver -> fill adapter with retries
    - browser_manager: Browser lifecycle management
    - scenario: Step registry, YAML scenario loader and runner

Author: Automation Team
License: MIT
================================================================================
"""

from .locator_manager import LocatorStore, LocatorNotFoundError
from .captcha_solver import CaptchaSolver, CaptchaSolverAdapter, sanitize_solution
from .page_base import BasePage, InteractionOptions, PageBase
from .browser_manager import BrowserManager
from .scenario import (
    Scenario,
    ScenarioLoader,
    ScenarioRunner,
    ScenarioStep,
    ScenarioWorld,
    StepRegistry,
    capture_failure_screenshot,
    default_registry,
    step,
)

__all__ = [
    "LocatorStore",
    "LocatorNotFoundError",
    "CaptchaSolver",
    "CaptchaSolverAdapter",
    "sanitize_solution",
    "BasePage",
    "PageBase",
    "InteractionOptions",
    "BrowserManager",
    "Scenario",
    "ScenarioLoader",
    "ScenarioRunner",
    "ScenarioStep",
    "ScenarioWorld",
    "StepRegistry",
    "capture_failure_screenshot",
    "default_registry",
    "step",
]
