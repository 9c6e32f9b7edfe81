"""Cursor-based page walker for the Roblox inventory endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from roblox_inventory.config import config
from roblox_inventory.data.endpoints import Endpoint
from roblox_inventory.data.models import FetchStatus, RawRecord, SourceResult
from roblox_inventory.data.retry import SleepFunc, call_with_retry
from roblox_inventory.data.roblox_client import RobloxClient
from roblox_inventory.errors import AccessDeniedError, UpstreamError

logger = logging.getLogger(__name__)


class PaginatedFetcher:
    """Walks every page of one endpoint for one user.

    Each page is retried on its own (429 and transient errors back off
    exponentially). A 403 ends the walk as PRIVATE, any other failure ends
    it as FAILED with the records gathered so far. The walk never raises
    for upstream errors.
    """

    def __init__(
        self,
        client: RobloxClient,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        page_delay: Optional[float] = None,
        max_pages: Optional[int] = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """Initialize fetcher.

        Args:
            client: Roblox HTTP client.
            max_attempts: Attempts per page. Uses config if None.
            base_delay: Backoff base in seconds. Uses config if None.
            page_delay: Pause between successful pages. Uses config if None.
            max_pages: Page cap, 0 for none. Uses config if None.
            sleep: Awaitable sleep, injectable for tests.
        """
        self.client = client
        self.max_attempts = (
            config.max_attempts if max_attempts is None else max_attempts
        )
        self.base_delay = config.base_delay_seconds if base_delay is None else base_delay
        self.page_delay = config.page_delay_seconds if page_delay is None else page_delay
        self.max_pages = config.max_pages if max_pages is None else max_pages
        self._sleep = sleep

    async def fetch_all_pages(self, endpoint: Endpoint, user_id: int) -> SourceResult:
        """Fetch every page of ``endpoint`` for ``user_id``.

        Returns:
            SourceResult tagged with how the walk ended.
        """
        records: list[RawRecord] = []
        cursor = ""
        pages = 0

        while True:
            if self.max_pages and pages >= self.max_pages:
                logger.warning(
                    f"[{endpoint.label}] page cap {self.max_pages} reached for user {user_id}"
                )
                return self._result(endpoint, FetchStatus.TRUNCATED, records, pages)

            url = endpoint.build_url(user_id, cursor)
            logger.debug(f"Fetching: {url[:100]}...")

            try:
                payload = await call_with_retry(
                    lambda: self.client.get_json(url),
                    max_attempts=self.max_attempts,
                    base_delay=self.base_delay,
                    sleep=self._sleep,
                )
            except AccessDeniedError:
                logger.info(
                    f"[{endpoint.label}] forbidden for user {user_id} (inventory might be private)"
                )
                return self._result(endpoint, FetchStatus.PRIVATE, records, pages)
            except UpstreamError as e:
                logger.error(f"[{endpoint.label}] giving up after page {pages}: {e}")
                return self._result(
                    endpoint, FetchStatus.FAILED, records, pages, error=str(e)
                )

            pages += 1
            data, cursor = _parse_page(payload)
            records.extend(RawRecord(endpoint.source, entry) for entry in data)
            logger.debug(f"[{endpoint.label}] page {pages}: {len(data)} items")

            if not cursor:
                return self._result(endpoint, FetchStatus.COMPLETE, records, pages)
            await self._sleep(self.page_delay)

    @staticmethod
    def _result(
        endpoint: Endpoint,
        status: FetchStatus,
        records: list[RawRecord],
        pages: int,
        error: Optional[str] = None,
    ) -> SourceResult:
        logger.info(
            f"[{endpoint.label}] {status.value}: {len(records)} items over {pages} pages"
        )
        return SourceResult(
            source=endpoint.source,
            label=endpoint.label,
            status=status,
            records=tuple(records),
            pages=pages,
            error=error,
        )


def _parse_page(payload: object) -> tuple[list[dict], str]:
    """Return (entries, next cursor); missing or mistyped fields mean empty."""
    if not isinstance(payload, dict):
        return [], ""
    data = payload.get("data")
    entries = [e for e in data if isinstance(e, dict)] if isinstance(data, list) else []
    cursor = payload.get("nextPageCursor")
    return entries, cursor if isinstance(cursor, str) else ""
