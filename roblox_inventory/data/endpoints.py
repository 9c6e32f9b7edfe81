"""URL builders for the paginated Roblox inventory endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import urlencode

from roblox_inventory.config import config
from roblox_inventory.data.models import Source

# (user_id, cursor) -> url
UrlBuilder = Callable[[int, str], str]


@dataclass(frozen=True)
class Endpoint:
    """One paginated source endpoint."""

    source: Source
    label: str
    build_url: UrlBuilder


def _query(cursor: str, page_size: int, **extra: str) -> str:
    params = {"limit": str(page_size), "cursor": cursor, **extra}
    return urlencode(params)


def collectibles_endpoint(
    base_url: Optional[str] = None, page_size: Optional[int] = None
) -> Endpoint:
    """Limited and LimitedUnique items the user owns."""
    base = base_url or config.roblox_inventory_url
    size = page_size or config.page_size

    def build(user_id: int, cursor: str) -> str:
        return f"{base}/v1/users/{user_id}/assets/collectibles?{_query(cursor, size)}"

    return Endpoint(Source.COLLECTIBLES, "collectibles", build)


def assets_endpoint(
    base_url: Optional[str] = None, page_size: Optional[int] = None
) -> Endpoint:
    """General asset listing."""
    base = base_url or config.roblox_inventory_url
    size = page_size or config.page_size

    def build(user_id: int, cursor: str) -> str:
        return f"{base}/v1/users/{user_id}/assets?{_query(cursor, size)}"

    return Endpoint(Source.ASSETS, "assets", build)


def inventory_endpoint(
    asset_types: str,
    base_url: Optional[str] = None,
    page_size: Optional[int] = None,
) -> Endpoint:
    """Inventory listing restricted to a comma separated asset type group."""
    base = base_url or config.roblox_inventory_url
    size = page_size or config.page_size

    def build(user_id: int, cursor: str) -> str:
        query = _query(cursor, size, assetTypes=asset_types)
        return f"{base}/v1/users/{user_id}/items/Asset?{query}"

    return Endpoint(Source.INVENTORY, f"inventory:{asset_types}", build)


def default_endpoints(asset_type_groups: Optional[list[str]] = None) -> list[Endpoint]:
    """Collectibles, assets, then one inventory endpoint per type group."""
    groups = config.asset_type_groups if asset_type_groups is None else asset_type_groups
    endpoints = [collectibles_endpoint(), assets_endpoint()]
    endpoints.extend(inventory_endpoint(group) for group in groups)
    return endpoints
