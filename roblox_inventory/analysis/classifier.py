"""Sellability classifier.

An item is sellable when any independent signal says it has resale value
or market eligibility. The classifier is pure: catalog data has to be
fetched beforehand and passed in.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from roblox_inventory.data.models import CatalogDetail, InventoryItem, Source

SELLABLE_SALE_STATUSES = frozenset({"ForSale", "Resellable", "OnSale"})


class SellSignal(Enum):
    """Reasons an item counts as sellable."""

    LIMITED = "limited"
    SALE_STATUS = "sale_status"
    PRICED = "priced"
    COLLECTIBLE = "collectible"

    @property
    def description(self) -> str:
        """Human-readable description of the signal."""
        descriptions = {
            "limited": "Marked Limited or LimitedUnique",
            "sale_status": "Sale status allows resale",
            "priced": "Has a positive market or catalog price",
            "collectible": "Carries a collectible id or came from the collectibles listing",
        }
        return descriptions.get(self.value, "Unknown signal")


def sellable_signals(
    item: InventoryItem, catalog: Optional[CatalogDetail] = None
) -> set[SellSignal]:
    """Return every signal that holds for ``item``."""
    signals = set()

    limited = item.is_limited or item.is_limited_unique
    if catalog is not None:
        limited = limited or catalog.is_limited or catalog.is_limited_unique
    if limited:
        signals.add(SellSignal.LIMITED)

    if item.sale_status in SELLABLE_SALE_STATUSES:
        signals.add(SellSignal.SALE_STATUS)

    priced = item.recent_average_price > 0
    if catalog is not None:
        priced = priced or catalog.lowest_price > 0 or catalog.price > 0
    if priced:
        signals.add(SellSignal.PRICED)

    collectible = item.source is Source.COLLECTIBLES or bool(item.collectible_item_id)
    if catalog is not None:
        collectible = (
            collectible
            or bool(catalog.collectible_item_id)
            or catalog.has_price_configuration
        )
    if collectible:
        signals.add(SellSignal.COLLECTIBLE)

    return signals


def is_sellable(item: InventoryItem, catalog: Optional[CatalogDetail] = None) -> bool:
    """True if any sellability signal holds."""
    return bool(sellable_signals(item, catalog))
