"""
Inventory input handling.

Resolves the snapshot shapes produced by the different collector and API
versions into one canonical (infra, vms) pair.
"""

from assessment_export.inventory.normalize import CanonicalInventory, normalize_inventory

__all__ = ["CanonicalInventory", "normalize_inventory"]
