"""LLM collaborator used for CAPTCHA solving and free-form questions."""

from .llm_client import DEFAULT_CAPTCHA_PROMPT, LLMClient, LLMResponse

__all__ = [
    "DEFAULT_CAPTCHA_PROMPT",
    "LLMClient",
    "LLMResponse",
]
