"""Inventory handling for prune detection.

Submodules:
    differ -- old-minus-new identity subtraction producing deletion candidates.
    store  -- read-only loaders for a previously recorded inventory.
"""

from kubedrift.inventory.differ import diff_inventory
from kubedrift.inventory.store import inventory_from_status, load_inventory

__all__ = ["diff_inventory", "inventory_from_status", "load_inventory"]
