"""Data layer - Roblox API client, fetchers and models."""

from roblox_inventory.data.models import (
    CatalogDetail,
    FetchStatus,
    InventoryItem,
    InventoryReport,
    RawRecord,
    Source,
    SourceResult,
)

__all__ = [
    "CatalogDetail",
    "FetchStatus",
    "InventoryItem",
    "InventoryReport",
    "RawRecord",
    "Source",
    "SourceResult",
]
