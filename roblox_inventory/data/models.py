"""Data models for the inventory API."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

UNKNOWN_SALE_STATUS = "Unknown"
UNKNOWN_ITEM_NAME = "Unknown Item"

_FRACTION = re.compile(r"\.(\d+)")


class Source(Enum):
    """Upstream endpoint that produced a record."""

    COLLECTIBLES = "collectibles"
    ASSETS = "assets"
    INVENTORY = "inventory"

    @property
    def priority(self) -> int:
        """Lower wins when the same asset shows up under several sources."""
        order = {
            "collectibles": 0,
            "assets": 1,
            "inventory": 2,
        }
        return order[self.value]


class FetchStatus(Enum):
    """Outcome of walking one paginated endpoint."""

    COMPLETE = "complete"
    TRUNCATED = "truncated"  # Page cap reached
    PRIVATE = "private"  # 403, inventory hidden
    FAILED = "failed"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a Roblox ISO-8601 timestamp, tolerating any fraction length."""
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value) if value > 0 else 0
    return 0


def _to_optional_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def _asset_type_name(value: Any) -> Optional[str]:
    if isinstance(value, Mapping):
        name = value.get("name")
        return str(name) if name else None
    if isinstance(value, str) and value:
        return value
    return None


@dataclass(frozen=True)
class RawRecord:
    """One upstream inventory record tagged with its source endpoint."""

    source: Source
    payload: Mapping[str, Any]

    @property
    def asset_id(self) -> Optional[int]:
        value = self.payload.get("assetId") or self.payload.get("id")
        try:
            return int(value) if value else None
        except (TypeError, ValueError):
            return None


@dataclass(frozen=True)
class SourceResult:
    """Tagged result of one endpoint walk.

    ``records`` may be non-empty even when ``status`` is FAILED: whatever
    was accumulated before the failing page is kept.
    """

    source: Source
    label: str
    status: FetchStatus
    records: tuple[RawRecord, ...] = ()
    pages: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (FetchStatus.COMPLETE, FetchStatus.TRUNCATED)


@dataclass
class CatalogDetail:
    """Catalog data for one asset, from the batch details endpoint."""

    asset_id: int
    name: str = ""
    price: int = 0
    lowest_price: int = 0
    price_status: str = ""
    item_restrictions: list[str] = field(default_factory=list)
    collectible_item_id: Optional[str] = None
    units_available: Optional[int] = None
    has_price_configuration: bool = False

    @property
    def is_limited(self) -> bool:
        return "Limited" in self.item_restrictions

    @property
    def is_limited_unique(self) -> bool:
        return "LimitedUnique" in self.item_restrictions

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Optional[CatalogDetail]:
        """Build from a catalog ``data`` entry, or None without an id."""
        try:
            asset_id = int(payload["id"])
        except (KeyError, TypeError, ValueError):
            return None
        restrictions = payload.get("itemRestrictions")
        if not isinstance(restrictions, list):
            restrictions = []
        return cls(
            asset_id=asset_id,
            name=str(payload.get("name") or ""),
            price=_to_int(payload.get("price")),
            lowest_price=_to_int(payload.get("lowestPrice")),
            price_status=str(payload.get("priceStatus") or ""),
            item_restrictions=[str(r) for r in restrictions],
            collectible_item_id=str(payload.get("collectibleItemId") or "") or None,
            units_available=_to_optional_int(
                payload.get("unitsAvailableForConsumption")
            ),
            has_price_configuration=bool(payload.get("priceConfiguration")),
        )


# Asset id -> image URL
ThumbnailMap = dict[int, str]


@dataclass
class InventoryItem:
    """An item in a user's inventory, normalized across sources."""

    asset_id: int
    name: str = ""
    recent_average_price: int = 0  # 0 = unknown / no market
    is_limited: bool = False
    is_limited_unique: bool = False
    sale_status: str = ""
    source: Source = Source.INVENTORY
    asset_type: Optional[str] = None
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    image_url: str = ""
    serial_number: Optional[int] = None
    item_restrictions: list[str] = field(default_factory=list)
    collectible_item_id: Optional[str] = None
    units_available: Optional[int] = None

    @classmethod
    def from_record(cls, record: RawRecord) -> Optional[InventoryItem]:
        """Build from a raw record, or None when it carries no asset id."""
        asset_id = record.asset_id
        if asset_id is None:
            return None
        data = record.payload
        return cls(
            asset_id=asset_id,
            name=data.get("name") or data.get("assetName") or "",
            recent_average_price=_to_int(data.get("recentAveragePrice")),
            is_limited=data.get("isLimited") is True,
            is_limited_unique=data.get("isLimitedUnique") is True,
            sale_status=data.get("saleStatus") or "",
            source=record.source,
            asset_type=_asset_type_name(data.get("assetType")),
            created=parse_timestamp(data.get("created")),
            updated=parse_timestamp(data.get("updated")),
            serial_number=_to_optional_int(data.get("serialNumber")),
        )

    @property
    def price(self) -> int:
        return self.recent_average_price

    def to_dict(self) -> dict[str, Any]:
        """JSON shape returned by the HTTP API."""
        return {
            "assetId": self.asset_id,
            "name": self.name,
            "recentAveragePrice": self.recent_average_price,
            "isLimited": self.is_limited,
            "isLimitedUnique": self.is_limited_unique,
            "saleStatus": self.sale_status or UNKNOWN_SALE_STATUS,
            "assetType": self.asset_type,
            "created": self.created.isoformat() if self.created else None,
            "updated": self.updated.isoformat() if self.updated else None,
            "imageUrl": self.image_url,
            "source": self.source.value,
            "serialNumber": self.serial_number,
            "catalogInfo": {
                "itemRestrictions": list(self.item_restrictions),
                "collectibleItemId": self.collectible_item_id,
                "unitsAvailable": self.units_available,
            },
        }


@dataclass
class InventoryReport:
    """Result of one aggregation run for a user."""

    user_id: int
    items: list[InventoryItem] = field(default_factory=list)
    sources: list[SourceResult] = field(default_factory=list)
    fetched_count: int = 0  # Records before de-duplication
    unique_count: int = 0  # Records after de-duplication

    @property
    def source_counts(self) -> dict[str, int]:
        """Final items per originating source."""
        counts: dict[str, int] = {}
        for item in self.items:
            counts[item.source.value] = counts.get(item.source.value, 0) + 1
        return counts

    @property
    def source_status(self) -> dict[str, str]:
        return {result.label: result.status.value for result in self.sources}

    @property
    def all_private(self) -> bool:
        """Every source answered 403."""
        return bool(self.sources) and all(
            result.status is FetchStatus.PRIVATE for result in self.sources
        )

    @property
    def failed_sources(self) -> list[SourceResult]:
        return [r for r in self.sources if r.status is FetchStatus.FAILED]
