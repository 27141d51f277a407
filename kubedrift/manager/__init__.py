"""Resource manager collaborators.

Exposes:
    ResourceManager           -- ABC for dry-run comparisons.
    DiffOptions, ManagerChange -- call options and raw result.
    KubernetesResourceManager -- kubernetes-asyncio server-side apply implementation.
"""

from kubedrift.manager.base import (
    RECONCILE_ANNOTATION,
    RECONCILE_DISABLED,
    DiffOptions,
    ManagerChange,
    ResourceManager,
)
from kubedrift.manager.kubernetes import KubernetesResourceManager

__all__ = [
    "RECONCILE_ANNOTATION",
    "RECONCILE_DISABLED",
    "DiffOptions",
    "KubernetesResourceManager",
    "ManagerChange",
    "ResourceManager",
]
