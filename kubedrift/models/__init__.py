"""Core data structures for kubedrift."""

from kubedrift.models.config import KubeDriftConfig
from kubedrift.models.inventory import Inventory, InventoryBuilder, InventoryEntry
from kubedrift.models.objects import (
    Action,
    ChangeRecord,
    DesiredObject,
    ObjectID,
    format_subject,
    sort_key,
)

__all__ = [
    "Action",
    "ChangeRecord",
    "DesiredObject",
    "Inventory",
    "InventoryBuilder",
    "InventoryEntry",
    "KubeDriftConfig",
    "ObjectID",
    "format_subject",
    "sort_key",
]
