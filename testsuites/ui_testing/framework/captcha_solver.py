"""
================================================================================
CAPTCHA Solver Adapter
================================================================================

Screenshot -> solver -> sanitize -> fill, with a bounded retry loop.

Each attempt:
    1. Resolve the CAPTCHA image and wait for it to be visible
    2. Screenshot the element and base64-encode the PNG
    3. Ask the solver to read it
    4. Strip everything except ASCII letters and digits
    5. Fill the answer into the input element

A failed attempt (solver error, empty answer, any exception) is logged and
followed by a pause before the next one. After the last attempt the adapter
gives up and returns False; it never raises.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import base64
import re
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Protocol, runtime_checkable

from loguru import logger

from e2e_toolkit.common.errors import ErrorHandler, ErrorType

if TYPE_CHECKING:
    from e2e_toolkit.llm import LLMResponse

    from .locator_manager import Replacements
    from .page_base import BasePage


IMAGE_WAIT_TIMEOUT = 10000
INPUT_FILL_TIMEOUT = 5000

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")


@runtime_checkable
class CaptchaSolver(Protocol):
    """Anything that can read the text of a CAPTCHA image."""

    async def solve_captcha(self, image_base64: str, instructions: Optional[str] = None) -> "LLMResponse":
        ...


def sanitize_solution(raw: Optional[str]) -> str:
    """Keep only ASCII letters and digits ("A b!C-3" -> "AbC3")."""
    return _NON_ALPHANUMERIC.sub("", raw or "")


class CaptchaSolverAdapter:
    """
    Drives a CaptchaSolver against elements of a page object.

    Usage:
        >>> adapter = CaptchaSolverAdapter(base_page, llm_client, max_retries=3)
        >>> solved = await adapter.solve_and_fill(
        ...     "LoginPage", "captchaImage", "LoginPage", "captchaInput"
        ... )
    """

    def __init__(
        self,
        base_page: "BasePage",
        solver: CaptchaSolver,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            base_page: Page object used to resolve and fill elements
            solver: CAPTCHA reading capability (usually LLMClient)
            max_retries: Total number of attempts (at least 1)
            retry_delay: Pause between attempts in seconds
            sleep: Awaitable sleep function

        Raises:
            FrameworkError: VALIDATION kind when max_retries is below 1
        """
        if max_retries < 1:
            ErrorHandler.new_error(
                f"CAPTCHA max_retries must be at least 1, got {max_retries}",
                ErrorType.VALIDATION,
                context={"max_retries": max_retries},
                raise_error=True,
            )
        self.base_page = base_page
        self.solver = solver
        self.max_retries = int(max_retries)
        self.retry_delay = retry_delay
        self._sleep = sleep

    async def solve_and_fill(
        self,
        image_page: str,
        image_key: str,
        input_page: str,
        input_key: str,
        instructions: Optional[str] = None,
        image_replacements: Optional["Replacements"] = None,
        input_replacements: Optional["Replacements"] = None,
    ) -> bool:
        """
        Solve the CAPTCHA and fill the answer.

        Returns:
            True once an answer was filled, False after all attempts failed
        """
        for attempt in range(1, self.max_retries + 1):
            logger.info(f"Attempting to solve CAPTCHA (Attempt {attempt}/{self.max_retries})")
            try:
                if await self._attempt(
                    image_page, image_key, input_page, input_key,
                    instructions, image_replacements, input_replacements,
                ):
                    logger.info(f"CAPTCHA solved and filled on attempt {attempt}")
                    return True
            except Exception as e:
                ErrorHandler.handle(
                    e,
                    ErrorType.CAPTCHA,
                    context={"attempt": attempt, "image": f"{image_page}.{image_key}"},
                )

            if attempt < self.max_retries:
                logger.debug(f"Waiting {self.retry_delay}s before next CAPTCHA attempt")
                await self._sleep(self.retry_delay)

        ErrorHandler.new_error(
            f"Failed to solve CAPTCHA after {self.max_retries} attempts",
            ErrorType.CAPTCHA,
            context={"image": f"{image_page}.{image_key}", "input": f"{input_page}.{input_key}"},
        )
        return False

    async def _attempt(
        self,
        image_page: str,
        image_key: str,
        input_page: str,
        input_key: str,
        instructions: Optional[str],
        image_replacements: Optional["Replacements"],
        input_replacements: Optional["Replacements"],
    ) -> bool:
        image = self.base_page.get_element(image_page, image_key, replacements=image_replacements)
        await image.wait_for(state="visible", timeout=IMAGE_WAIT_TIMEOUT)
        png = await image.screenshot(timeout=IMAGE_WAIT_TIMEOUT)
        image_base64 = base64.b64encode(png).decode("ascii")

        result = await self.solver.solve_captcha(image_base64, instructions)
        if not result.success:
            logger.warning(f"CAPTCHA solver failed: {result.error}")
            return False

        solution = sanitize_solution(result.data)
        if not solution:
            logger.warning(f"CAPTCHA solver returned no usable characters: {result.data!r}")
            return False

        logger.info(f"CAPTCHA solved: {solution}")
        await self.base_page.fill_element(
            input_page,
            input_key,
            solution,
            options={"timeout": INPUT_FILL_TIMEOUT},
            replacements=input_replacements,
        )
        return True


__all__ = [
    "CaptchaSolver",
    "CaptchaSolverAdapter",
    "sanitize_solution",
]
