"""Inventory aggregation and response shaping."""

from roblox_inventory.inventory.pipeline import InventoryPipeline
from roblox_inventory.inventory.shaper import InventoryQuery, shape, shape_sellable

__all__ = ["InventoryPipeline", "InventoryQuery", "shape", "shape_sellable"]
