"""
================================================================================
E2E Toolkit
================================================================================

Infrastructure shared by the UI framework and the test suites.

Modules:
    - common: Settings, logging setup and the error model
    - llm: LLM client (question answering, CAPTCHA reading)
    - api: Backend API client returning uniform envelopes
    - report_tools: Allure attachment helpers

Example:
    from e2e_toolkit.common import Settings, init_logger
    from e2e_toolkit.llm import LLMClient

    settings = Settings.load()
    init_logger(settings)
    llm = LLMClient(settings)

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "llm",
    "api",
    "report_tools",
]
