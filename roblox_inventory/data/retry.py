"""Retry-with-backoff wrapper shared by every upstream call site."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from roblox_inventory.config import config
from roblox_inventory.errors import RateLimitedError, TransientUpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]

RETRYABLE = (RateLimitedError, TransientUpstreamError)


async def call_with_retry(
    work: Callable[[], Awaitable[T]],
    *,
    max_attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
    sleep: SleepFunc = asyncio.sleep,
) -> T:
    """Run ``work`` until it succeeds or attempts run out.

    Only rate limiting and transient failures are retried; the wait before
    retry ``n`` (0-based) is ``base_delay * 2**n``, capped at ``max_delay``.
    The last error is re-raised once attempts are exhausted.

    Args:
        work: Zero-argument coroutine function performing one request.
        max_attempts: Total attempts including the first. Uses config if None.
        base_delay: Initial backoff in seconds. Uses config if None.
        max_delay: Upper bound for a single wait. Uses config if None.
        sleep: Awaitable sleep, injectable for tests.
    """
    attempts = config.max_attempts if max_attempts is None else max_attempts
    retrying = AsyncRetrying(
        sleep=sleep,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(
            multiplier=config.base_delay_seconds if base_delay is None else base_delay,
            max=config.max_delay_seconds if max_delay is None else max_delay,
        ),
        retry=retry_if_exception_type(RETRYABLE),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await work()
