"""Aggregation pipeline - fetch, merge, classify, enrich a user's inventory."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional, Sequence

from roblox_inventory.analysis.classifier import is_sellable
from roblox_inventory.config import ClassifyPolicy, config
from roblox_inventory.data.endpoints import Endpoint, default_endpoints
from roblox_inventory.data.enrichment import CatalogEnricher, ThumbnailEnricher
from roblox_inventory.data.fetcher import PaginatedFetcher
from roblox_inventory.data.models import (
    UNKNOWN_ITEM_NAME,
    UNKNOWN_SALE_STATUS,
    CatalogDetail,
    FetchStatus,
    InventoryItem,
    InventoryReport,
    SourceResult,
)
from roblox_inventory.data.retry import SleepFunc
from roblox_inventory.data.roblox_client import RobloxClient

logger = logging.getLogger(__name__)

# Fields back-filled from a discarded duplicate when the kept record lacks them
_BACKFILL_FIELDS = (
    "name",
    "recent_average_price",
    "sale_status",
    "asset_type",
    "created",
    "updated",
    "serial_number",
)


def merge_records(results: Iterable[SourceResult]) -> list[InventoryItem]:
    """Merge every source's records into one list, unique by asset id.

    The record from the highest priority source wins (collectibles, then
    assets, then inventory; first seen within a source). Empty fields of
    the winner are filled from the duplicates it replaced, and limited
    flags are OR-ed across all copies. Output order is source priority,
    then upstream order.
    """
    ordered = sorted(
        (record for result in results for record in result.records),
        key=lambda record: record.source.priority,
    )
    merged: dict[int, InventoryItem] = {}
    for record in ordered:
        item = InventoryItem.from_record(record)
        if item is None:
            continue
        kept = merged.get(item.asset_id)
        if kept is None:
            merged[item.asset_id] = item
            continue
        for name in _BACKFILL_FIELDS:
            if not getattr(kept, name) and getattr(item, name):
                setattr(kept, name, getattr(item, name))
        kept.is_limited = kept.is_limited or item.is_limited
        kept.is_limited_unique = kept.is_limited_unique or item.is_limited_unique
    return list(merged.values())


def normalize_item(
    item: InventoryItem,
    catalog: Optional[CatalogDetail] = None,
    image_url: str = "",
) -> InventoryItem:
    """Fold catalog and thumbnail data into a new item.

    Price priority: market average > catalog lowest resale > catalog list
    price > 0.
    """
    catalog = catalog or CatalogDetail(asset_id=item.asset_id)
    return InventoryItem(
        asset_id=item.asset_id,
        name=item.name or catalog.name or UNKNOWN_ITEM_NAME,
        recent_average_price=(
            item.recent_average_price or catalog.lowest_price or catalog.price or 0
        ),
        is_limited=item.is_limited or catalog.is_limited,
        is_limited_unique=item.is_limited_unique or catalog.is_limited_unique,
        sale_status=item.sale_status or catalog.price_status or UNKNOWN_SALE_STATUS,
        source=item.source,
        asset_type=item.asset_type,
        created=item.created,
        updated=item.updated,
        image_url=image_url or item.image_url,
        serial_number=item.serial_number,
        item_restrictions=list(catalog.item_restrictions or item.item_restrictions),
        collectible_item_id=catalog.collectible_item_id or item.collectible_item_id,
        units_available=catalog.units_available,
    )


def total_value(items: Iterable[InventoryItem]) -> int:
    """Sum of prices over items with a positive price."""
    return sum(item.price for item in items if item.price > 0)


def most_expensive(items: Sequence[InventoryItem]) -> Optional[InventoryItem]:
    """Highest priced item, first seen on ties; the first item if none is priced."""
    top = None
    for item in items:
        if top is None or item.price > top.price:
            top = item
    return top


class InventoryPipeline:
    """Builds an InventoryReport for a user.

    The pipeline:
    1. Walks every source endpoint concurrently
    2. Merges and de-duplicates records by asset id
    3. Fetches catalog details and classifies sellability
    4. Fetches thumbnails for sellable items
    5. Normalizes each sellable item
    """

    def __init__(
        self,
        client: Optional[RobloxClient] = None,
        fetcher: Optional[PaginatedFetcher] = None,
        catalog: Optional[CatalogEnricher] = None,
        thumbnails: Optional[ThumbnailEnricher] = None,
        endpoints: Optional[list[Endpoint]] = None,
        policy: Optional[ClassifyPolicy] = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """Initialize the pipeline.

        Args:
            client: Roblox HTTP client shared by the default collaborators.
            fetcher: Page walker.
            catalog: Catalog details enricher.
            thumbnails: Thumbnail enricher.
            endpoints: Source endpoints to walk. Uses config groups if None.
            policy: Classification ordering. Uses config if None.
            sleep: Awaitable sleep passed to default collaborators.
        """
        self.client = client or RobloxClient()
        self.fetcher = fetcher or PaginatedFetcher(self.client, sleep=sleep)
        self.catalog = catalog or CatalogEnricher(self.client, sleep=sleep)
        self.thumbnails = thumbnails or ThumbnailEnricher(self.client, sleep=sleep)
        self.endpoints = endpoints if endpoints is not None else default_endpoints()
        self.policy = policy or config.classify_policy

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()

    async def _fetch_source(self, endpoint: Endpoint, user_id: int) -> SourceResult:
        """Run one endpoint walk, turning any crash into a FAILED result."""
        try:
            return await self.fetcher.fetch_all_pages(endpoint, user_id)
        except Exception as e:
            logger.exception(f"[{endpoint.label}] fetch crashed for user {user_id}")
            return SourceResult(
                source=endpoint.source,
                label=endpoint.label,
                status=FetchStatus.FAILED,
                error=str(e) or type(e).__name__,
            )

    async def get_inventory(self, user_id: int) -> InventoryReport:
        """Fetch, merge, classify and enrich the inventory of ``user_id``."""
        logger.info(f"Fetching comprehensive inventory for user {user_id}")

        results = list(
            await asyncio.gather(
                *(self._fetch_source(endpoint, user_id) for endpoint in self.endpoints)
            )
        )
        for result in results:
            logger.info(f"- {result.label}: {len(result.records)} ({result.status.value})")

        unique = merge_records(results)
        fetched = sum(len(result.records) for result in results)
        logger.info(f"Total unique items: {len(unique)} (of {fetched} fetched)")

        if self.policy is ClassifyPolicy.CLASSIFY_FIRST:
            candidates = [item for item in unique if is_sellable(item)]
        else:
            candidates = unique

        catalog = await self.catalog.fetch_details(item.asset_id for item in candidates)
        sellable = [
            item for item in candidates if is_sellable(item, catalog.get(item.asset_id))
        ]
        logger.info(f"Sellable items found: {len(sellable)}")

        thumbnails = await self.thumbnails.fetch_details(item.asset_id for item in sellable)
        items = [
            normalize_item(
                item, catalog.get(item.asset_id), thumbnails.get(item.asset_id, "")
            )
            for item in sellable
        ]

        return InventoryReport(
            user_id=user_id,
            items=items,
            sources=results,
            fetched_count=fetched,
            unique_count=len(unique),
        )
