"""Object identity, desired objects and per-object change records."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

import structlog

from kubedrift.errors import IdentityParseError

_log = structlog.get_logger(component="models.objects")

_FIELD_SEPARATOR = "_"
_COLON_TRANSCODED = "__"

# Apply order used for deterministic output. Kinds not listed sort after
# these, alphabetically.
KIND_ORDER: tuple[str, ...] = (
    "CustomResourceDefinition",
    "Namespace",
    "ClusterClass",
    "RuntimeClass",
    "PriorityClass",
    "StorageClass",
    "VolumeSnapshotClass",
    "IngressClass",
    "GatewayClass",
    "ResourceQuota",
    "ServiceAccount",
    "Role",
    "ClusterRole",
    "RoleBinding",
    "ClusterRoleBinding",
    "ConfigMap",
    "Secret",
    "Service",
    "LimitRange",
    "Deployment",
    "StatefulSet",
    "CronJob",
    "PodDisruptionBudget",
    "MutatingWebhookConfiguration",
    "ValidatingWebhookConfiguration",
)
_KIND_RANK = {kind: rank for rank, kind in enumerate(KIND_ORDER)}


def split_api_version(api_version: str) -> tuple[str, str]:
    """Split ``apps/v1`` into ``("apps", "v1")`` and ``v1`` into ``("", "v1")``."""
    group, sep, version = api_version.rpartition("/")
    if not sep:
        return "", api_version
    return group, version


def join_api_version(group: str, version: str) -> str:
    return f"{group}/{version}" if group else version


def format_subject(kind: str, namespace: str, name: str) -> str:
    """Human-readable identity: ``Kind/namespace/name`` or ``Kind/name``."""
    if namespace:
        return f"{kind}/{namespace}/{name}"
    return f"{kind}/{name}"


class Action(StrEnum):
    """Outcome of comparing one object against the cluster."""

    CREATED = "created"
    CONFIGURED = "configured"
    UNCHANGED = "unchanged"
    DELETED = "deleted"

    @classmethod
    def from_manager(cls, value: str) -> Action:
        """Map a resource manager's raw action string onto this enum.

        The mapping is total: ``skipped`` (exclusion marker present) and any
        unrecognised value are treated as unchanged.
        """
        normalized = (value or "").strip().lower()
        mapped = _MANAGER_ACTIONS.get(normalized)
        if mapped is None:
            _log.warning("unknown_manager_action", action=value)
            return cls.UNCHANGED
        return mapped


_MANAGER_ACTIONS: dict[str, Action] = {
    "created": Action.CREATED,
    "configured": Action.CONFIGURED,
    "unchanged": Action.UNCHANGED,
    "skipped": Action.UNCHANGED,
    "deleted": Action.DELETED,
}


@dataclass(frozen=True, order=True)
class ObjectID:
    """Identity of a Kubernetes object: group, kind, namespace and name.

    The API version is deliberately not part of the identity. The string
    form is the inventory encoding ``<namespace>_<name>_<group>_<kind>``,
    with ``:`` in names (RBAC objects) transcoded as ``__``.
    """

    group: str
    kind: str
    namespace: str
    name: str

    def __str__(self) -> str:
        name = self.name.replace(":", _COLON_TRANSCODED)
        return _FIELD_SEPARATOR.join((self.namespace, name, self.group, self.kind))

    @property
    def subject(self) -> str:
        return format_subject(self.kind, self.namespace, self.name)

    @classmethod
    def parse(cls, value: str) -> ObjectID:
        """Parse the inventory encoding produced by ``str(ObjectID)``.

        Raises:
            IdentityParseError: when a field is missing or the name contains
                a stray separator.
        """
        namespace, sep, rest = value.partition(_FIELD_SEPARATOR)
        if not sep:
            raise IdentityParseError(value)

        rest, sep, kind = rest.rpartition(_FIELD_SEPARATOR)
        if not sep:
            raise IdentityParseError(value)

        name, sep, group = rest.rpartition(_FIELD_SEPARATOR)
        if not sep:
            raise IdentityParseError(value)

        name = name.replace(_COLON_TRANSCODED, ":")
        if _FIELD_SEPARATOR in name:
            raise IdentityParseError(value, "too many fields in stored object metadata")
        if not kind or not name:
            raise IdentityParseError(value, "empty kind or name in stored object metadata")

        return cls(group=group, kind=kind, namespace=namespace, name=name)


def sort_key(kind: str, namespace: str, name: str) -> tuple[int, str, str, str]:
    """Canonical ordering: apply-order rank, then kind, namespace, name."""
    return (_KIND_RANK.get(kind, len(KIND_ORDER)), kind, namespace, name)


@dataclass(frozen=True)
class DesiredObject:
    """One fully rendered manifest entry, not yet applied.

    ``payload`` is the complete manifest document. Identity is derived from
    group/kind/namespace/name; the version is metadata only.
    """

    api_version: str
    kind: str
    name: str
    namespace: str = ""
    payload: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, doc: dict[str, Any]) -> DesiredObject:
        metadata = doc.get("metadata") or {}
        return cls(
            api_version=str(doc.get("apiVersion", "")),
            kind=str(doc.get("kind", "")),
            name=str(metadata.get("name", "")),
            namespace=str(metadata.get("namespace", "") or ""),
            payload=doc,
        )

    @classmethod
    def placeholder(cls, object_id: ObjectID, version: str) -> DesiredObject:
        """Minimal object used only to display an identity; never applied."""
        api_version = join_api_version(object_id.group, version)
        metadata: dict[str, Any] = {"name": object_id.name}
        if object_id.namespace:
            metadata["namespace"] = object_id.namespace
        return cls(
            api_version=api_version,
            kind=object_id.kind,
            name=object_id.name,
            namespace=object_id.namespace,
            payload={"apiVersion": api_version, "kind": object_id.kind, "metadata": metadata},
        )

    @property
    def group(self) -> str:
        return split_api_version(self.api_version)[0]

    @property
    def version(self) -> str:
        return split_api_version(self.api_version)[1]

    @property
    def object_id(self) -> ObjectID:
        return ObjectID(group=self.group, kind=self.kind, namespace=self.namespace, name=self.name)

    @property
    def subject(self) -> str:
        return format_subject(self.kind, self.namespace, self.name)

    @property
    def annotations(self) -> dict[str, str]:
        metadata = self.payload.get("metadata") or {}
        return dict(metadata.get("annotations") or {})

    def to_dict(self) -> dict[str, Any]:
        """Deep copy of the payload, safe to hand to a collaborator."""
        return copy.deepcopy(self.payload)

    def sort_key(self) -> tuple[int, str, str, str]:
        return sort_key(self.kind, self.namespace, self.name)


@dataclass(frozen=True)
class ChangeRecord:
    """Result of comparing one desired object against the cluster.

    ``live`` and ``merged`` are transient documents supplied by the resource
    manager for rendering the nested diff; they take no part in equality.
    """

    subject: str
    action: Action
    object_id: ObjectID
    applied_version: str
    live: dict[str, Any] | None = field(default=None, compare=False, repr=False)
    merged: dict[str, Any] | None = field(default=None, compare=False, repr=False)

    def downgraded(self) -> ChangeRecord:
        """Return this record as unchanged. Only ``configured`` is downgraded."""
        if self.action is not Action.CONFIGURED:
            return self
        return replace(self, action=Action.UNCHANGED)
