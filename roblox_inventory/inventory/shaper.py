"""Filter, sort and page an inventory report into the API response shape."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional

from roblox_inventory.config import config
from roblox_inventory.data.models import InventoryItem, InventoryReport
from roblox_inventory.inventory.pipeline import most_expensive, total_value

RESELLABLE_STATUS = "Resellable"


class ItemFilter(Enum):
    """Item subsets selectable with ``filter=``."""

    ALL = "all"
    LIMITED = "limited"
    LIMITED_UNIQUE = "limitedUnique"
    TRADEABLE = "tradeable"

    @classmethod
    def parse(cls, raw: Optional[str]) -> ItemFilter:
        aliases = {
            "limitedu": cls.LIMITED_UNIQUE,
            "limitedunique": cls.LIMITED_UNIQUE,
            "limited": cls.LIMITED,
            "tradeable": cls.TRADEABLE,
            "valuable": cls.TRADEABLE,
        }
        return aliases.get((raw or "").strip().lower(), cls.ALL)

    def matches(self, item: InventoryItem) -> bool:
        if self is ItemFilter.LIMITED:
            return item.is_limited
        if self is ItemFilter.LIMITED_UNIQUE:
            return item.is_limited_unique
        if self is ItemFilter.TRADEABLE:
            return (
                item.is_limited
                or item.is_limited_unique
                or item.sale_status == RESELLABLE_STATUS
                or item.price > 0
            )
        return True


class SortKey(Enum):
    """Orderings selectable with ``sortBy=``."""

    VALUE = "value"
    NAME = "name"
    CREATED = "created"

    @classmethod
    def parse(cls, raw: Optional[str]) -> SortKey:
        aliases = {
            "value": cls.VALUE,
            "price": cls.VALUE,
            "name": cls.NAME,
            "created": cls.CREATED,
        }
        return aliases.get((raw or "").strip().lower(), cls.VALUE)


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _created_key(item: InventoryItem) -> datetime:
    created = item.created
    if created is None:
        return _EPOCH
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created


def sort_items(items: list[InventoryItem], sort_by: SortKey) -> list[InventoryItem]:
    """Stable sort: value and created descending, name ascending."""
    if sort_by is SortKey.NAME:
        return sorted(items, key=lambda i: (i.name.casefold(), i.name))
    if sort_by is SortKey.CREATED:
        return sorted(items, key=_created_key, reverse=True)
    return sorted(items, key=lambda i: i.price, reverse=True)


def _parse_int(raw: Any, default: int) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class InventoryQuery:
    """Caller supplied filter, sort and paging parameters."""

    item_filter: ItemFilter = ItemFilter.ALL
    sort_by: SortKey = SortKey.VALUE
    page: int = 1
    limit: int = 50
    min_value: int = 0

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, str],
        default_limit: Optional[int] = None,
        max_limit: Optional[int] = None,
    ) -> InventoryQuery:
        """Parse query string values, falling back to defaults on bad input."""
        default_limit = default_limit or config.default_page_limit
        max_limit = max_limit or config.max_page_limit

        page = _parse_int(params.get("page"), 1)
        limit = _parse_int(params.get("limit"), default_limit)
        return cls(
            item_filter=ItemFilter.parse(params.get("filter")),
            sort_by=SortKey.parse(params.get("sortBy")),
            page=page if page >= 1 else 1,
            limit=min(limit, max_limit) if limit >= 1 else default_limit,
            min_value=max(_parse_int(params.get("minValue"), 0), 0),
        )

    def apply_filter(self, items: list[InventoryItem]) -> list[InventoryItem]:
        return [
            item
            for item in items
            if self.item_filter.matches(item) and item.price >= self.min_value
        ]

    def total_pages(self, count: int) -> int:
        return math.ceil(count / self.limit)

    def paginate(self, items: list[InventoryItem]) -> list[InventoryItem]:
        """1-indexed page slice; empty past the last page."""
        start = (self.page - 1) * self.limit
        return items[start : start + self.limit]


def empty_response(query: InventoryQuery, message: str, debug: Any) -> dict[str, Any]:
    """Zeroed response used when no sellable items exist."""
    return {
        "success": True,
        "message": message,
        "debug": debug,
        "TotalCount": 0,
        "TotalValue": 0,
        "ItemsWithValue": 0,
        "MostExpensiveName": "N/A",
        "MostExpensiveImage": "",
        "MostExpensiveValue": 0,
        "Page": query.page,
        "Limit": query.limit,
        "TotalPages": 0,
        "SortBy": query.sort_by.value,
        "Filter": query.item_filter.value,
        "Items": [],
    }


def error_response(message: str) -> dict[str, Any]:
    """Zeroed body for unexpected failures."""
    return {
        "success": False,
        "error": "Internal server error",
        "message": message,
        "TotalCount": 0,
        "TotalValue": 0,
        "Items": [],
    }


def shape(report: InventoryReport, query: InventoryQuery) -> dict[str, Any]:
    """Build the ``/inventory`` response.

    Totals and the most expensive item are computed over the filtered set,
    not the full report.
    """
    if not report.items:
        if report.all_private:
            debug = "The inventory is private; every source answered 403"
        elif report.failed_sources:
            labels = ", ".join(r.label for r in report.failed_sources)
            debug = f"Some sources failed ({labels}); the result may be incomplete"
        else:
            debug = "This could mean the inventory is private or the user has no sellable items"
        return empty_response(query, "No sellable items found", debug)

    filtered = query.apply_filter(report.items)
    priced = [item for item in filtered if item.price > 0]
    top = most_expensive(filtered)
    page_items = query.paginate(sort_items(filtered, query.sort_by))

    return {
        "success": True,
        "message": "Inventory fetched successfully",
        "debug": {
            "totalFetched": report.fetched_count,
            "uniqueItems": report.unique_count,
            "sellableItems": len(report.items),
            "limitedItems": sum(1 for i in report.items if i.is_limited),
            "limitedUniqueItems": sum(1 for i in report.items if i.is_limited_unique),
            "sourceBreakdown": report.source_counts,
            "sourceStatus": report.source_status,
            "filterApplied": query.item_filter.value,
        },
        "TotalCount": len(filtered),
        "TotalValue": round(total_value(filtered)),
        "ItemsWithValue": len(priced),
        "MostExpensiveName": top.name if top else "N/A",
        "MostExpensiveImage": top.image_url if top else "",
        "MostExpensiveValue": top.price if top else 0,
        "Page": query.page,
        "Limit": query.limit,
        "TotalPages": query.total_pages(len(filtered)),
        "SortBy": query.sort_by.value,
        "Filter": query.item_filter.value,
        "Items": [item.to_dict() for item in page_items],
    }


def shape_sellable(report: InventoryReport, query: InventoryQuery) -> dict[str, Any]:
    """Build the simplified ``/sellable`` response."""
    items = sort_items(report.items, SortKey.VALUE)
    return {
        "TotalCount": len(items),
        "TotalValue": total_value(items),
        "Page": query.page,
        "Limit": query.limit,
        "TotalPages": query.total_pages(len(items)),
        "Items": [_legacy_item(item) for item in query.paginate(items)],
    }


def _legacy_item(item: InventoryItem) -> dict[str, Any]:
    return {
        "assetId": item.asset_id,
        "name": item.name,
        "recentAveragePrice": item.price,
        "imageUrl": item.image_url,
    }
