"""Async HTTP client for the Checkpointer REST API.

Wraps an aiohttp.ClientSession with the API's conventions: paths are
joined onto the configured base URL, the session cookie authenticates
every request, and failures are converted into the typed error taxonomy
(NotFoundError, ForbiddenError, ServerError, NetworkError) carrying the
server's ``{error}`` message.

No request is retried: a failed call surfaces immediately and the caller
decides whether to try again.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from enum import Enum
from typing import Any

import aiohttp
from aiolimiter import AsyncLimiter

from checkpointer.config.models import ApiSettings
from checkpointer.shared.constants import ContentTypes, HTTPHeaders, HTTPStatusCodes
from checkpointer.shared.errors import (
    ErrorCode,
    MalformedResponseError,
    NetworkError,
    error_for_status,
)
from checkpointer.shared.logging import log_api_call

logger = logging.getLogger(__name__)


def _encode_params(params: Mapping[str, Any] | None) -> dict[str, str]:
    """Query string values as aiohttp accepts them.

    ``None`` values are left out, booleans become ``true``/``false``.
    """
    encoded: dict[str, str] = {}
    for name, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[name] = "true" if value else "false"
        elif isinstance(value, Enum):
            encoded[name] = str(value.value)
        else:
            encoded[name] = str(value)
    return encoded


class ApiClient:
    """Asynchronous Checkpointer API client using aiohttp.

    The aiohttp session is created lazily on first use unless one is
    injected; only a session created here is closed by ``close()``.

    Example:
        >>> async with ApiClient(ApiSettings(base_url="http://localhost:3000")) as api:
        ...     data = await api.get("/api/games/top-rated", params={"limit": 10})
    """

    def __init__(
        self,
        settings: ApiSettings | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: API settings; defaults to ``ApiSettings()``
            session: Optional pre-built session (tests inject fakes here)
        """
        self.settings = settings or ApiSettings()
        self._session = session
        self._owns_session = session is None
        self._session_lock = asyncio.Lock()

        # Concurrency limiting is always on, rate limiting only when configured
        self._concurrency_limiter = asyncio.Semaphore(self.settings.concurrent_requests)
        self._rate_limiter: AsyncLimiter | None = None
        if self.settings.rate_limit_rps:
            self._rate_limiter = AsyncLimiter(self.settings.rate_limit_rps, 1)

        self._request_count = 0

    @property
    def request_count(self) -> int:
        """Number of requests that reached the transport."""
        return self._request_count

    def _default_headers(self) -> dict[str, str]:
        headers = {
            HTTPHeaders.ACCEPT: ContentTypes.JSON,
            HTTPHeaders.USER_AGENT: self.settings.user_agent,
        }
        if self.settings.session_cookie:
            headers[HTTPHeaders.COOKIE] = self.settings.session_cookie
        return headers

    async def _get_session(self) -> aiohttp.ClientSession:
        async with self._session_lock:
            if self._session is None or (self._owns_session and self._session.closed):
                timeout = aiohttp.ClientTimeout(total=self.settings.timeout)
                self._session = aiohttp.ClientSession(timeout=timeout)
                self._owns_session = True
                logger.debug("aiohttp.ClientSession created for %s", self.settings.base_url)
            return self._session

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any | None = None,
        data: aiohttp.FormData | None = None,
    ) -> Any:
        """Make one HTTP request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: API path starting with ``/api``
            params: Query parameters (None values are dropped)
            json: JSON request body
            data: Multipart form body, instead of ``json``

        Returns:
            Decoded JSON body, or None for an empty 2xx response

        Raises:
            NotFoundError: 404
            ForbiddenError: 403
            ServerError: Any other non-2xx status
            MalformedResponseError: 2xx with a body that is not JSON
            NetworkError: Connection failure or transport timeout
        """
        session = await self._get_session()
        url = f"{self.settings.base_url}{path}"
        query = _encode_params(params)
        start_time = time.perf_counter()

        async with self._concurrency_limiter:
            if self._rate_limiter is not None:
                await self._rate_limiter.acquire()

            self._request_count += 1
            try:
                async with session.request(
                    method,
                    url,
                    params=query,
                    json=json,
                    data=data,
                    headers=self._default_headers(),
                ) as response:
                    status = response.status
                    duration_ms = (time.perf_counter() - start_time) * 1000
                    log_api_call(
                        logger,
                        path,
                        method=method,
                        status_code=status,
                        duration_ms=duration_ms,
                    )

                    if not HTTPStatusCodes.is_success(status):
                        message = await self._error_message(response)
                        raise error_for_status(status, message, endpoint=path)

                    if status == HTTPStatusCodes.NO_CONTENT:
                        return None

                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        raise MalformedResponseError(
                            f"{method} {path} returned a body that is not JSON",
                            endpoint=path,
                            status=status,
                            original_error=e,
                        ) from e

            except asyncio.TimeoutError as e:
                raise NetworkError(
                    f"{method} {path} timed out",
                    endpoint=path,
                    code=ErrorCode.API_TIMEOUT,
                    original_error=e,
                ) from e
            except aiohttp.ClientError as e:
                raise NetworkError(
                    f"{method} {path} failed: {e}",
                    endpoint=path,
                    original_error=e,
                ) from e

    @staticmethod
    async def _error_message(response: aiohttp.ClientResponse) -> str:
        """The server's ``error`` string, else a generic status message."""
        fallback = f"Request failed with status {response.status}"
        try:
            body = await response.json(content_type=None)
        except (ValueError, aiohttp.ClientError):
            return fallback
        if isinstance(body, dict):
            error = body.get("error") or body.get("message")
            if isinstance(error, str) and error:
                return error
        return fallback

    async def get(self, path: str, *, params: Mapping[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, *, json: Any | None = None) -> Any:
        return await self.request("POST", path, json=json)

    async def post_form(self, path: str, form: aiohttp.FormData) -> Any:
        """POST a multipart body (file uploads)."""
        return await self.request("POST", path, data=form)

    async def patch(self, path: str, *, json: Any | None = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str, *, json: Any | None = None) -> Any:
        return await self.request("DELETE", path, json=json)

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            logger.debug("aiohttp.ClientSession closed")
        self._session = None

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


__all__ = ["ApiClient"]
