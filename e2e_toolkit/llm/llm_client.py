"""
================================================================================
LLM Client
================================================================================

Thin async client for question answering and CAPTCHA image reading.

Two upstream shapes are normalized into one `LLMResponse` envelope:
    - "openai": hosted chat-completion API (choices[0].message.content)
    - "local":  Ollama-style completion API (response)

The provider is a static configuration value; there is no failover.
Failures never raise from the public methods: they are classified as
LLM errors, logged, and returned as `success=False`.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from e2e_toolkit.common.errors import ErrorHandler, ErrorType
from e2e_toolkit.common.settings import Settings


DEFAULT_CAPTCHA_PROMPT = "Extract the text from this image. Respond only with the characters you see."
DEFAULT_TIMEOUT_SECONDS = 60.0

SUPPORTED_PROVIDERS = ("openai", "local")
LOCAL_VISION_MODELS = ("llava", "bakllava")


@dataclass
class LLMResponse:
    """Uniform result envelope for LLM calls."""

    success: bool
    data: Optional[str] = None
    error: Optional[str] = None


class LLMClient:
    """
    LLM client implementing the `CaptchaSolver` capability.

    Usage:
        >>> async with LLMClient(settings) as llm:
        ...     result = await llm.solve_captcha(image_b64)
        ...     if result.success:
        ...         print(result.data)
    """

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize client from settings.

        Args:
            settings: Framework settings (provider, endpoint, key, model names)
            http_client: Optional pre-built httpx client (tests inject a mock transport)

        Raises:
            ConfigurationError: When no LLM endpoint is configured
        """
        self.provider = (settings.llm_provider or "local").lower()
        self.endpoint = settings.llm_endpoint or ""
        self.api_key = settings.llm_api_key

        if not self.endpoint:
            ErrorHandler.new_error(
                "LLM_ENDPOINT is not defined in the configuration. LLMClient cannot operate.",
                ErrorType.CONFIG,
                context={"provider": self.provider},
                raise_error=True,
            )

        if self.provider == "openai":
            self.model_name = settings.openai_model
        else:
            self.model_name = settings.local_llm_model

        headers = {"Content-Type": "application/json"}
        if self.provider == "openai" and self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(DEFAULT_TIMEOUT_SECONDS))
        self._headers = headers

    async def __aenter__(self) -> "LLMClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # Public API
    # =========================================================================

    async def question_answer(self, prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        """
        Ask a free-form question.

        Args:
            prompt: User prompt
            system_prompt: Optional system instructions

        Returns:
            LLMResponse with the answer text in `data`
        """
        logger.info(f"Sending prompt to LLM ({self.provider}, model: {self.model_name}) for question/answer")
        try:
            if self.provider == "openai":
                messages: List[Dict[str, Any]] = []
                if system_prompt:
                    messages.append({"role": "system", "content": system_prompt})
                messages.append({"role": "user", "content": prompt})
                body = await self._post({"model": self.model_name, "messages": messages})
                return self._from_chat_completion(body, "Q/A")

            if self.provider == "local":
                payload: Dict[str, Any] = {"model": self.model_name, "prompt": prompt, "stream": False}
                if system_prompt:
                    payload["system"] = system_prompt
                body = await self._post(payload)
                return self._from_local_completion(body, "Q/A")

            return self._unsupported("questionAnswer")
        except Exception as e:
            return self._handle_error(e)

    async def solve_captcha(self, image_base64: str, instructions: Optional[str] = None) -> LLMResponse:
        """
        Read the characters of a CAPTCHA image.

        Args:
            image_base64: Base64-encoded PNG of the CAPTCHA element
            instructions: Optional prompt overriding the default one

        Returns:
            LLMResponse with the raw (unsanitized) text in `data`
        """
        prompt_text = instructions or DEFAULT_CAPTCHA_PROMPT
        logger.info(f"Sending CAPTCHA image to LLM ({self.provider}, model: {self.model_name}) for solving")
        try:
            if self.provider == "openai":
                if "vision" not in self.model_name and "4o" not in self.model_name:
                    logger.warning(
                        f"OpenAI model {self.model_name} may not support vision. "
                        f"CAPTCHA solving might fail or produce incorrect results."
                    )
                body = await self._post({
                    "model": self.model_name,
                    "messages": [
                        {
                            "role": "user",
                            "content": [
                                {"type": "text", "text": prompt_text},
                                {
                                    "type": "image_url",
                                    "image_url": {
                                        "url": f"data:image/png;base64,{image_base64}",
                                        "detail": "low",
                                    },
                                },
                            ],
                        }
                    ],
                    "max_tokens": 100,
                })
                return self._from_chat_completion(body, "CAPTCHA")

            if self.provider == "local":
                if not any(m in self.model_name.lower() for m in LOCAL_VISION_MODELS):
                    logger.warning(
                        f"Local model {self.model_name} may not support vision. "
                        f"Use a multimodal model like LLaVA for CAPTCHA solving."
                    )
                body = await self._post({
                    "model": self.model_name,
                    "prompt": prompt_text,
                    "images": [image_base64],
                    "stream": False,
                })
                return self._from_local_completion(body, "CAPTCHA")

            return self._unsupported("solveCaptcha")
        except Exception as e:
            return self._handle_error(e)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._client.post(self.endpoint, json=payload, headers=self._headers)
        response.raise_for_status()
        return response.json()

    def _from_chat_completion(self, body: Dict[str, Any], purpose: str) -> LLMResponse:
        choices = body.get("choices") or []
        if not choices:
            logger.warning(f"No response choices from OpenAI for {purpose}")
            return LLMResponse(success=False, error=f"No response choices from OpenAI for {purpose}.")
        content = (choices[0].get("message") or {}).get("content") or ""
        logger.debug(f"OpenAI {purpose} response successful")
        return LLMResponse(success=True, data=content.strip())

    def _from_local_completion(self, body: Dict[str, Any], purpose: str) -> LLMResponse:
        logger.debug(f"Local LLM {purpose} response successful")
        return LLMResponse(success=True, data=(body.get("response") or "").strip())

    def _unsupported(self, operation: str) -> LLMResponse:
        error = ErrorHandler.new_error(
            f'Provider "{self.provider}" not supported yet for {operation}.',
            ErrorType.LLM,
            context={"provider": self.provider, "supported": list(SUPPORTED_PROVIDERS)},
        )
        return LLMResponse(success=False, error=error.message)

    def _handle_error(self, error: Exception) -> LLMResponse:
        handled = ErrorHandler.handle(
            error,
            ErrorType.LLM,
            context={"provider": self.provider, "model": self.model_name},
        )
        return LLMResponse(success=False, error=handled.message)


__all__ = [
    "LLMClient",
    "LLMResponse",
    "DEFAULT_CAPTCHA_PROMPT",
]
