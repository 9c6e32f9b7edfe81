"""Exceptions raised at the upstream fetch boundary."""

from __future__ import annotations

from typing import Optional


class InventoryError(Exception):
    """Base error for the inventory service."""


class UpstreamError(InventoryError):
    """A Roblox endpoint answered with an unusable response."""

    def __init__(
        self, message: str, status: Optional[int] = None, url: str = ""
    ) -> None:
        super().__init__(message)
        self.status = status
        self.url = url


class RateLimitedError(UpstreamError):
    """HTTP 429. Retried with backoff."""


class TransientUpstreamError(UpstreamError):
    """5xx, timeout or connection failure. Retried with backoff."""


class AccessDeniedError(UpstreamError):
    """HTTP 403, usually a private inventory. Never retried."""


class MalformedResponseError(UpstreamError):
    """Body could not be decoded as JSON."""
