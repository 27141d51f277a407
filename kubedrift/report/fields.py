"""Recursive document diff producing FieldChange lists.

Paths use JSONPath-style notation (``spec.template.spec.containers[0].image``).
Lists whose items are all named mappings are matched by ``name``, the way
Kubernetes merges containers, ports and volumes; other lists are compared
by index.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

IGNORED_PATHS = frozenset(
    {
        "metadata.managedFields",
        "metadata.resourceVersion",
        "metadata.generation",
        "metadata.uid",
        "metadata.creationTimestamp",
        "status",
    }
)


class ChangeKind(StrEnum):
    """Kind of a single field-level change."""

    VALUE_CHANGE = "value change"
    MAP_ENTRY_ADDED = "map entry added"
    MAP_ENTRY_REMOVED = "map entry removed"
    LIST_ENTRY_ADDED = "list entry added"
    LIST_ENTRY_REMOVED = "list entry removed"


@dataclass(frozen=True)
class FieldChange:
    """A single difference between the live and merged documents.

    For map entry changes ``path`` is the enclosing mapping and ``key``
    names the entry; list entry changes point at the list itself.
    """

    path: str
    kind: ChangeKind
    old_value: Any = None
    new_value: Any = None
    key: str | None = None


def _join(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key


def _named_items(items: list[Any]) -> dict[str, Any] | None:
    """Index list items by ``name`` if every item is a uniquely named mapping."""
    index: dict[str, Any] = {}
    for item in items:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            return None
        if item["name"] in index:
            return None
        index[item["name"]] = item
    return index


def _compare(old: Any, new: Any, path: str, out: list[FieldChange]) -> None:
    if path in IGNORED_PATHS:
        return

    if isinstance(old, dict) and isinstance(new, dict):
        for key in old:
            if key not in new and _join(path, str(key)) not in IGNORED_PATHS:
                out.append(FieldChange(path, ChangeKind.MAP_ENTRY_REMOVED, old_value=old[key], key=str(key)))
        for key in new:
            child = _join(path, str(key))
            if key not in old:
                if child not in IGNORED_PATHS:
                    out.append(FieldChange(path, ChangeKind.MAP_ENTRY_ADDED, new_value=new[key], key=str(key)))
            else:
                _compare(old[key], new[key], child, out)
        return

    if isinstance(old, list) and isinstance(new, list):
        _compare_lists(old, new, path, out)
        return

    if old != new:
        out.append(FieldChange(path, ChangeKind.VALUE_CHANGE, old_value=old, new_value=new))


def _compare_lists(old: list[Any], new: list[Any], path: str, out: list[FieldChange]) -> None:
    old_named, new_named = _named_items(old), _named_items(new)
    if old_named is not None and new_named is not None and (old or new):
        for name, item in old_named.items():
            if name not in new_named:
                out.append(FieldChange(path, ChangeKind.LIST_ENTRY_REMOVED, old_value=item))
        for name, item in new_named.items():
            if name not in old_named:
                out.append(FieldChange(path, ChangeKind.LIST_ENTRY_ADDED, new_value=item))
            else:
                _compare(old_named[name], item, f"{path}.{name}", out)
        return

    for i in range(max(len(old), len(new))):
        item_path = f"{path}[{i}]"
        if i >= len(new):
            out.append(FieldChange(path, ChangeKind.LIST_ENTRY_REMOVED, old_value=old[i]))
        elif i >= len(old):
            out.append(FieldChange(path, ChangeKind.LIST_ENTRY_ADDED, new_value=new[i]))
        else:
            _compare(old[i], new[i], item_path, out)


def compare_documents(old: dict[str, Any], new: dict[str, Any]) -> list[FieldChange]:
    """Return every field-level change from *old* to *new*, in document order."""
    changes: list[FieldChange] = []
    _compare(old, new, "", changes)
    return changes
