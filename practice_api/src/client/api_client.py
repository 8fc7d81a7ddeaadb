"""
Async HTTP client for the practice management API.

Provides:
- Bearer token injection from a TokenStore
- JSON request/response handling
- Typed ApiError for non-2xx responses and network failures
- Forced logout on 401 (token store cleared, unauthorized hook invoked)
"""

import asyncio
import inspect
import structlog
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import aiohttp

from practice_api.src.config import get_settings

logger = structlog.get_logger(__name__)

UnauthorizedHook = Callable[[str], Union[None, Awaitable[None]]]


class ApiError(Exception):
    """
    Error raised for any failed API call.

    Attributes:
        message: Server supplied message, or ``HTTP <status>``
        status: HTTP status code, 0 for network failures
        response: Decoded response body when there was one
    """

    def __init__(self, message: str, status: int, response: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.response = response

    @property
    def is_network_error(self) -> bool:
        return self.status == 0

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, message={self.message!r})"


@dataclass
class TokenStore:
    """In-process holder for the session's tokens and user profile."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    user: Optional[Dict[str, Any]] = field(default=None)

    def set_session(
        self,
        access_token: str,
        refresh_token: Optional[str] = None,
        user: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.user = user

    def clear(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.user = None

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None


def _error_message(body: Any, status: int) -> str:
    if isinstance(body, dict):
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {status}"


class ApiClient:
    """
    JSON API client built on aiohttp.

    Args:
        base_url: API root, e.g. ``http://localhost:8000/api``. Defaults to
            the ``VITE_API_URL`` / ``api_base_url`` setting.
        token_store: Where the bearer token is read from and cleared on 401
        on_unauthorized: Called with the login path after a 401
        timeout: Total request timeout in seconds
        session: Externally managed aiohttp session (not closed by the client)

    Example:
        >>> async with ApiClient() as client:
        ...     cases = await client.get("/cases", params={"page": 1})
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_store: Optional[TokenStore] = None,
        on_unauthorized: Optional[UnauthorizedHook] = None,
        timeout: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.token_store = token_store or TokenStore()
        self.on_unauthorized = on_unauthorized
        self.login_path = settings.login_path
        self._timeout = aiohttp.ClientTimeout(total=timeout or settings.api_client_timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token_store.access_token:
            headers["Authorization"] = f"Bearer {self.token_store.access_token}"
        return headers

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        if response.status == 204:
            return None
        text = await response.text()
        if not text:
            return None
        if response.content_type == "application/json":
            return await response.json(content_type=None)
        return text

    async def _handle_unauthorized(self) -> None:
        logger.warning("api_client_unauthorized", login_path=self.login_path)
        self.token_store.clear()
        if self.on_unauthorized is not None:
            result = self.on_unauthorized(self.login_path)
            if inspect.isawaitable(result):
                await result

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            ApiError: For non-2xx responses (with the response status) and
                for connection failures or timeouts (status 0)
        """
        url = f"{self.base_url}{path}"
        session = self._get_session()

        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(),
            ) as response:
                body = await self._read_body(response)
                status = response.status
        except aiohttp.ClientError as e:
            logger.warning("api_client_network_error", method=method, url=url, error=str(e))
            raise ApiError(str(e) or "Network error", 0) from e
        except asyncio.TimeoutError as e:
            logger.warning("api_client_timeout", method=method, url=url)
            raise ApiError("Request timed out", 0) from e

        if status == 401:
            await self._handle_unauthorized()

        if status >= 400:
            message = _error_message(body, status)
            logger.debug("api_client_error_response", method=method, url=url, status=status)
            raise ApiError(message, status, body)

        return body

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)
