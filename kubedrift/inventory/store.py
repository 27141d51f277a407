"""Read-only access to a previously recorded inventory.

The inventory is owned by the reconciling resource (a Flux Kustomization's
``status.inventory``). kubedrift only ever reads it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml

from kubedrift.errors import ManifestError
from kubedrift.models.inventory import Inventory, InventoryEntry

_log = structlog.get_logger(component="inventory.store")


def _parse_entries(block: dict[str, Any]) -> Inventory:
    raw_entries = block.get("entries") or []
    if not isinstance(raw_entries, list):
        raise ManifestError("inventory entries must be a list")

    entries = []
    for raw in raw_entries:
        if not isinstance(raw, dict) or "id" not in raw:
            raise ManifestError(f"invalid inventory entry: {raw!r}")
        entries.append(InventoryEntry(id=str(raw["id"]), version=str(raw.get("v", ""))))
    return Inventory.from_entries(entries)


def inventory_from_status(document: dict[str, Any]) -> Inventory | None:
    """Extract ``status.inventory`` from a Kustomization document.

    Returns None when the object has never recorded an inventory.
    """
    status = document.get("status") or {}
    block = status.get("inventory")
    if block is None:
        return None
    return _parse_entries(block)


def load_inventory(path: str | Path) -> Inventory | None:
    """Load an inventory from a Kustomization YAML or a bare ``{entries: [...]}`` file."""
    text = Path(path).read_text(encoding="utf-8")
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ManifestError(f"failed to parse inventory file {path}: {exc}") from exc

    if document is None:
        return None
    if not isinstance(document, dict):
        raise ManifestError(f"inventory file {path} must contain a mapping")

    if "kind" in document:
        inventory = inventory_from_status(document)
    else:
        inventory = _parse_entries(document)

    _log.info("inventory_loaded", path=str(path), entries=0 if inventory is None else len(inventory))
    return inventory
