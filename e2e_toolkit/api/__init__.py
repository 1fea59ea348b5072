"""Backend API helper used by scenarios."""

from .api_client import ApiClient, ApiResponse

__all__ = [
    "ApiClient",
    "ApiResponse",
]
