"""
================================================================================
Page Objects
================================================================================

Page Object Model implementations for application pages.

Each page class names its locator page key (PAGE_NAME) and wraps the
BasePage verbs into page-specific actions.

`PAGE_OBJECTS` maps the names used by scenario steps
("I open the {string} page") to page object classes.

Author: Automation Team
License: MIT
================================================================================
"""

from .demo_form_page import DemoFormPage
from .example_page import ExamplePage

PAGE_OBJECTS = {
    "DemoForm": DemoFormPage,
    "PlaywrightSite": ExamplePage,
}

__all__ = [
    "DemoFormPage",
    "ExamplePage",
    "PAGE_OBJECTS",
]
