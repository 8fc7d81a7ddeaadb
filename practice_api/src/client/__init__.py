"""HTTP client for the practice management API."""

from practice_api.src.client.api_client import ApiClient, ApiError, TokenStore

__all__ = ["ApiClient", "ApiError", "TokenStore"]
