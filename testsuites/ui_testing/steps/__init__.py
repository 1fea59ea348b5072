"""
================================================================================
Scenario Step Definitions
================================================================================

Importing this package registers every step phrase on
`testsuites.ui_testing.framework.scenario.default_registry`.

Modules:
    - base_steps: generic vocabulary mapped 1:1 onto BasePage verbs
    - example_steps: phrases for the playwright.dev example page

Author: Automation Team
License: MIT
================================================================================
"""

from . import base_steps, example_steps

__all__ = [
    "base_steps",
    "example_steps",
]
