"""HTTP API."""

from roblox_inventory.api.server import create_app

__all__ = ["create_app"]
