"""Inventory of the objects a managed application is responsible for."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from kubedrift.models.objects import ChangeRecord, ObjectID


@dataclass(frozen=True)
class InventoryEntry:
    """One managed object: its encoded identity and applied version (``v1``, without the group)."""

    id: str
    version: str

    def object_id(self) -> ObjectID:
        """Parse the identity string; raises IdentityParseError."""
        return ObjectID.parse(self.id)


@dataclass(frozen=True)
class Inventory:
    """Immutable, ordered snapshot of inventory entries, unique by identity."""

    entries: tuple[InventoryEntry, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for entry in self.entries:
            if entry.id in seen:
                raise ValueError(f"duplicate inventory entry: {entry.id}")
            seen.add(entry.id)

    def __iter__(self) -> Iterator[InventoryEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def version_of(self, object_id: ObjectID) -> str:
        """Return the applied version recorded for *object_id*, or ``""``."""
        key = str(object_id)
        for entry in self.entries:
            if entry.id == key:
                return entry.version
        return ""

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the ``{entries: [{id, v}]}`` status layout."""
        return {"entries": [{"id": e.id, "v": e.version} for e in self.entries]}

    @classmethod
    def from_entries(cls, entries: Iterable[InventoryEntry]) -> Inventory:
        builder = InventoryBuilder()
        for entry in entries:
            builder.add_entry(entry)
        return builder.build()


@dataclass
class InventoryBuilder:
    """Accumulates entries during a run and is finalised with ``build()``.

    Adding an identity that is already present is a no-op, so the built
    snapshot always satisfies the uniqueness invariant.
    """

    _entries: list[InventoryEntry] = field(default_factory=list)
    _ids: set[str] = field(default_factory=set)

    def add(self, record: ChangeRecord) -> None:
        self.add_entry(InventoryEntry(id=str(record.object_id), version=record.applied_version))

    def add_entry(self, entry: InventoryEntry) -> None:
        if entry.id in self._ids:
            return
        self._ids.add(entry.id)
        self._entries.append(entry)

    def build(self) -> Inventory:
        return Inventory(entries=tuple(self._entries))
