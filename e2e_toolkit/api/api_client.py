"""
================================================================================
API Client
================================================================================

Small HTTP helper for scenario setup/teardown and backend checks.

Every call returns an `ApiResponse` envelope instead of raising:
    - success: True for 2xx responses
    - status:  HTTP status (0 when no response was received)
    - data:    Parsed JSON body, or raw text
    - error:   Classified error message on failure

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import allure
import httpx
from loguru import logger

from e2e_toolkit.common.errors import ErrorHandler, ErrorType
from e2e_toolkit.common.settings import Settings


MAX_LOGGED_BODY = 500


@dataclass
class ApiResponse:
    """Uniform result envelope for API calls."""

    success: bool
    status: int
    data: Any = None
    error: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)


class ApiClient:
    """
    HTTP client returning `ApiResponse` envelopes.

    Usage:
        >>> with ApiClient(settings=settings) as api:
        ...     api.set_auth_token("t-123")
        ...     resp = api.get("/users/me")
        ...     api.validate_response(resp, 200)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        settings: Optional[Settings] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize API client.

        Args:
            base_url: API base URL (defaults to settings.api_base_url)
            settings: Framework settings
            timeout: Request timeout in seconds (defaults to settings.default_timeout)
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        if base_url is None and settings is not None:
            base_url = settings.api_base_url
        if not base_url:
            logger.warning("API base URL is not configured. Relative paths will not resolve.")
        if timeout is None:
            timeout = (settings.default_timeout / 1000) if settings else 30.0

        self.base_url = base_url or ""
        self.timeout = timeout
        self._transport = transport
        self._auth_token: Optional[str] = None
        self.session: Optional[httpx.Client] = None

    def __enter__(self) -> "ApiClient":
        """Enter context manager - initialize HTTP session."""
        self.session = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            headers={"Content-Type": "application/json"},
            transport=self._transport,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - close HTTP session."""
        if self.session:
            self.session.close()
            self.session = None

    def set_auth_token(self, token: str) -> None:
        self._auth_token = token

    def clear_auth_token(self) -> None:
        self._auth_token = None

    def request(self, method: str, url: str, **kwargs: Any) -> ApiResponse:
        """
        Execute HTTP request and wrap the outcome.

        Args:
            method: HTTP method
            url: Request URL (relative to base_url)
            **kwargs: Additional arguments passed to httpx.Client.request

        Returns:
            ApiResponse envelope
        """
        if self.session is None:
            self.__enter__()

        headers = dict(kwargs.pop("headers", None) or {})
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"

        logger.info(f"API Request: {method.upper()} {self.base_url}{url}")
        try:
            with allure.step(f"{method.upper()} {url}"):
                response = self.session.request(method, url, headers=headers, **kwargs)
                logger.info(f"API Response: {response.status_code} {method.upper()} {url}")
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            handled = ErrorHandler.handle(e, ErrorType.API, context={"url": url, "method": method.upper()})
            return ApiResponse(
                success=False,
                status=e.response.status_code,
                data=self._parse_body(e.response),
                error=handled.message,
                headers=dict(e.response.headers),
            )
        except httpx.HTTPError as e:
            handled = ErrorHandler.handle(e, ErrorType.API, context={"url": url, "method": method.upper()})
            return ApiResponse(success=False, status=0, error=handled.message)

        return ApiResponse(
            success=True,
            status=response.status_code,
            data=self._parse_body(response),
            headers=dict(response.headers),
        )

    def get(self, url: str, **kwargs: Any) -> ApiResponse:
        """Execute GET request."""
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> ApiResponse:
        """Execute POST request."""
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> ApiResponse:
        """Execute PUT request."""
        return self.request("PUT", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> ApiResponse:
        """Execute PATCH request."""
        return self.request("PATCH", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> ApiResponse:
        """Execute DELETE request."""
        return self.request("DELETE", url, **kwargs)

    def validate_response(self, response: ApiResponse, expected_status: int) -> bool:
        """
        Check the response status.

        A mismatch is logged as an operational validation error.

        Returns:
            True when the status matches
        """
        if response.status != expected_status:
            ErrorHandler.new_error(
                f"Response validation failed: expected status {expected_status}, "
                f"got {response.status}. Error: {response.error}",
                ErrorType.VALIDATION,
                context={
                    "response_status": response.status,
                    "expected_status": expected_status,
                    "response_data": str(response.data)[:MAX_LOGGED_BODY],
                },
                is_operational=True,
            )
            return False
        logger.info(f"Response status {response.status} validated successfully")
        return True

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text or None


__all__ = [
    "ApiClient",
    "ApiResponse",
]
