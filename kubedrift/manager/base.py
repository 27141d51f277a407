"""Resource manager boundary.

The resource manager is authoritative for live cluster state and for the
server-side dry-run merge. kubedrift never computes a merge itself.

ResourceManager -- ABC every manager must implement.
DiffOptions     -- per-call options (exclusion annotations).
ManagerChange   -- the manager's raw answer for one object.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from kubedrift.models.objects import DesiredObject, ObjectID

RECONCILE_ANNOTATION = "kustomize.toolkit.fluxcd.io/reconcile"
RECONCILE_DISABLED = "disabled"


def default_exclusions() -> dict[str, str]:
    return {RECONCILE_ANNOTATION: RECONCILE_DISABLED}


@dataclass(frozen=True)
class DiffOptions:
    """Options for one dry-run comparison.

    Objects whose annotations match any ``exclusions`` key/value pair are
    skipped by the manager.
    """

    exclusions: dict[str, str] = field(default_factory=default_exclusions)

    def excludes(self, annotations: dict[str, str] | None) -> bool:
        if not annotations:
            return False
        return any(annotations.get(key) == value for key, value in self.exclusions.items())


@dataclass(frozen=True)
class ManagerChange:
    """Raw result of a dry-run comparison.

    ``action`` is the manager's own vocabulary (created, configured,
    unchanged, skipped); it is mapped onto ``Action`` by the orchestrator.
    ``live`` is None when the object does not exist in the cluster.
    """

    action: str
    subject: str
    object_id: ObjectID
    version: str
    live: dict[str, Any] | None = None
    merged: dict[str, Any] | None = None


class ResourceManager(ABC):
    """Abstract base class for resource managers.

    ``diff`` must not mutate cluster state. Any exception it raises is
    treated as a failure for that single object.
    """

    @abstractmethod
    async def diff(self, obj: DesiredObject, options: DiffOptions) -> ManagerChange:
        """Compare *obj* against the cluster using a dry-run server-side apply."""

    async def close(self) -> None:
        """Release any connection held by the manager."""
