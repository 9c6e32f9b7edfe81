"""Item classification."""

from roblox_inventory.analysis.classifier import SellSignal, is_sellable, sellable_signals

__all__ = ["SellSignal", "is_sellable", "sellable_signals"]
