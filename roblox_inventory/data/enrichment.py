"""Batched enrichment: catalog details and thumbnails keyed by asset id."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Generic, Iterable, Optional, TypeVar

from roblox_inventory.config import config
from roblox_inventory.data.models import CatalogDetail, ThumbnailMap
from roblox_inventory.data.retry import SleepFunc, call_with_retry
from roblox_inventory.data.roblox_client import RobloxClient
from roblox_inventory.errors import UpstreamError

logger = logging.getLogger(__name__)

V = TypeVar("V")


def chunked(ids: list[int], size: int) -> list[list[int]]:
    """Split ``ids`` into consecutive batches of at most ``size``."""
    return [ids[i : i + size] for i in range(0, len(ids), size)]


class BatchEnricher(Generic[V]):
    """Fetches per-asset data in fixed-size batches.

    A failed batch is logged and contributes nothing; the remaining batches
    still run. Batches are separated by a fixed pause.
    """

    name = "enrichment"

    def __init__(
        self,
        client: RobloxClient,
        batch_size: int,
        batch_delay: float,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.client = client
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.max_attempts = (
            config.max_attempts if max_attempts is None else max_attempts
        )
        self.base_delay = config.base_delay_seconds if base_delay is None else base_delay
        self._sleep = sleep

    async def fetch_details(self, ids: Iterable[int]) -> dict[int, V]:
        """Fetch data for every id, de-duplicated, in batches.

        Returns:
            Mapping of asset id to detail for the ids the upstream knew.
        """
        unique_ids = list(dict.fromkeys(ids))
        if not unique_ids:
            return {}

        details: dict[int, V] = {}
        batches = chunked(unique_ids, self.batch_size)
        for index, batch in enumerate(batches):
            if index:
                await self._sleep(self.batch_delay)
            try:
                payload = await call_with_retry(
                    lambda: self._request(batch),
                    max_attempts=self.max_attempts,
                    base_delay=self.base_delay,
                    sleep=self._sleep,
                )
                parsed = self._parse(payload)
            except UpstreamError as e:
                logger.error(
                    f"Error fetching {self.name} batch {index + 1}/{len(batches)}: {e}"
                )
                continue
            except (TypeError, ValueError, ArithmeticError) as e:
                logger.error(
                    f"Malformed {self.name} batch {index + 1}/{len(batches)}: {e}"
                )
                continue
            details.update(parsed)

        logger.info(f"Fetched {self.name} for {len(details)}/{len(unique_ids)} items")
        return details

    async def _request(self, batch: list[int]) -> Any:
        raise NotImplementedError

    def _parse(self, payload: Any) -> dict[int, V]:
        raise NotImplementedError


def _entries(payload: Any) -> list[dict]:
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
        return []
    return [e for e in payload["data"] if isinstance(e, dict)]


class CatalogEnricher(BatchEnricher[CatalogDetail]):
    """Name, prices and restrictions from the catalog details endpoint."""

    name = "catalog details"

    def __init__(
        self,
        client: RobloxClient,
        batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None,
        base_url: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            client,
            batch_size=batch_size or config.catalog_batch_size,
            batch_delay=(
                config.catalog_batch_delay_seconds if batch_delay is None else batch_delay
            ),
            **kwargs,
        )
        self.url = f"{base_url or config.roblox_catalog_url}/v1/catalog/items/details"

    async def _request(self, batch: list[int]) -> Any:
        body = {"items": [{"itemType": "Asset", "id": asset_id} for asset_id in batch]}
        return await self.client.post_json(self.url, body)

    def _parse(self, payload: Any) -> dict[int, CatalogDetail]:
        details = {}
        for entry in _entries(payload):
            detail = CatalogDetail.from_payload(entry)
            if detail is not None:
                details[detail.asset_id] = detail
        return details


class ThumbnailEnricher(BatchEnricher[str]):
    """Image URLs from the asset thumbnails endpoint."""

    name = "thumbnails"

    def __init__(
        self,
        client: RobloxClient,
        batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None,
        base_url: Optional[str] = None,
        size: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            client,
            batch_size=batch_size or config.thumbnail_batch_size,
            batch_delay=(
                config.thumbnail_batch_delay_seconds
                if batch_delay is None
                else batch_delay
            ),
            **kwargs,
        )
        self.url = f"{base_url or config.roblox_thumbnails_url}/v1/assets"
        self.size = size or config.thumbnail_size

    async def _request(self, batch: list[int]) -> Any:
        params = {
            "assetIds": ",".join(str(asset_id) for asset_id in batch),
            "size": self.size,
            "format": "Png",
            "isCircular": "false",
        }
        return await self.client.get_json(self.url, params=params)

    def _parse(self, payload: Any) -> ThumbnailMap:
        thumbnails = {}
        for entry in _entries(payload):
            try:
                asset_id = int(entry.get("targetId") or entry.get("assetId"))
            except (TypeError, ValueError):
                continue
            image_url = entry.get("imageUrl")
            if asset_id > 0 and isinstance(image_url, str) and image_url:
                thumbnails[asset_id] = image_url
        return thumbnails
