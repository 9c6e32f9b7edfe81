"""Roblox HTTP client: session management, XSRF handling and status mapping."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional

import aiohttp

from roblox_inventory.config import config
from roblox_inventory.errors import (
    AccessDeniedError,
    MalformedResponseError,
    RateLimitedError,
    TransientUpstreamError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


class RobloxClient:
    """Async client for the public Roblox web APIs.

    Handles:
    - A lazily created, shared HTTP session
    - XSRF token refresh for POST endpoints
    - Mapping HTTP status codes onto the upstream error taxonomy
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        user_agent: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        """Initialize client with optional shared session."""
        self._session = session
        self._owns_session = session is None
        self._user_agent = user_agent or config.user_agent
        self._timeout_seconds = timeout_seconds or config.request_timeout_seconds
        self._xsrf_token: Optional[str] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout_seconds),
                headers={"User-Agent": self._user_agent},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if we own it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def get_json(
        self, url: str, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """GET ``url`` and decode the JSON body.

        Raises:
            RateLimitedError: on 429.
            AccessDeniedError: on 403.
            TransientUpstreamError: on 5xx, timeouts and connection errors.
            UpstreamError: on any other non-200 status.
            MalformedResponseError: if the body is not JSON.
        """
        session = await self._get_session()
        try:
            async with session.get(url, params=params) as response:
                return await self._read_json(response, url)
        except asyncio.TimeoutError as e:
            raise TransientUpstreamError(f"Request timed out: {url}", url=url) from e
        except aiohttp.ClientError as e:
            raise TransientUpstreamError(f"Client error: {e}", url=url) from e

    async def post_json(self, url: str, payload: Any) -> Any:
        """POST a JSON body, refreshing the XSRF token once on 403.

        Roblox answers a POST without a valid token with 403 and the fresh
        token in the ``x-csrf-token`` header.
        """
        session = await self._get_session()
        headers = {"Content-Type": "application/json"}
        if self._xsrf_token:
            headers["X-CSRF-TOKEN"] = self._xsrf_token

        try:
            async with session.post(url, json=payload, headers=headers) as response:
                new_token = response.headers.get("x-csrf-token")
                if response.status != 403 or not new_token:
                    return await self._read_json(response, url)

            self._xsrf_token = new_token
            logger.debug("XSRF token refreshed")
            headers["X-CSRF-TOKEN"] = new_token
            async with session.post(url, json=payload, headers=headers) as retry_response:
                return await self._read_json(retry_response, url)

        except asyncio.TimeoutError as e:
            raise TransientUpstreamError(f"Request timed out: {url}", url=url) from e
        except aiohttp.ClientError as e:
            raise TransientUpstreamError(f"Client error: {e}", url=url) from e

    async def _read_json(self, response: aiohttp.ClientResponse, url: str) -> Any:
        """Map the response status onto errors and decode the body."""
        status = response.status
        if status == 429:
            raise RateLimitedError("Rate limited by Roblox", status=status, url=url)
        if status == 403:
            raise AccessDeniedError(
                "Forbidden (inventory might be private)", status=status, url=url
            )
        if status >= 500:
            raise TransientUpstreamError(f"HTTP {status}", status=status, url=url)
        if status != 200:
            raise UpstreamError(f"HTTP {status}", status=status, url=url)

        try:
            return await response.json(content_type=None)
        except ValueError as e:
            raise MalformedResponseError(
                f"Invalid JSON body: {e}", status=status, url=url
            ) from e
