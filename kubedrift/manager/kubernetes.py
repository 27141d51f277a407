"""Kubernetes resource manager backed by kubernetes-asyncio.

The merge is computed by the API server: every desired object is sent as a
server-side apply with ``dryRun=All``, so nothing is persisted. The live
object and the dry-run result are sanitised and compared to decide between
created, configured and unchanged.
"""

from __future__ import annotations

import copy
from typing import Any

import structlog

from kubedrift.manager.base import DiffOptions, ManagerChange, ResourceManager
from kubedrift.models.config import KubernetesConfig
from kubedrift.models.objects import DesiredObject

_log = structlog.get_logger(component="manager.kubernetes")

_MASK_DEFAULT = "***"
_MASK_BEFORE = "*** (before)"
_MASK_AFTER = "*** (after)"

# Server-populated metadata that never counts as drift.
_VOLATILE_METADATA = ("managedFields", "resourceVersion", "generation", "uid", "creationTimestamp", "selfLink")


def sanitize(document: dict[str, Any]) -> dict[str, Any]:
    """Return a copy without status and server-populated metadata."""
    cleaned = copy.deepcopy(document)
    cleaned.pop("status", None)
    metadata = cleaned.get("metadata")
    if isinstance(metadata, dict):
        for key in _VOLATILE_METADATA:
            metadata.pop(key, None)
        if not metadata.get("annotations"):
            metadata.pop("annotations", None)
    return cleaned


def mask_secret_data(live: dict[str, Any], merged: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Replace Secret values with markers that only reveal whether they changed."""
    live, merged = copy.deepcopy(live), copy.deepcopy(merged)
    for field_name in ("data", "stringData"):
        before = live.get(field_name) or {}
        after = merged.get(field_name) or {}
        if not before and not after:
            continue
        masked_before: dict[str, str] = {}
        masked_after: dict[str, str] = {}
        for key in before:
            same = key in after and after[key] == before[key]
            masked_before[key] = _MASK_DEFAULT if same else _MASK_BEFORE
        for key in after:
            same = key in before and before[key] == after[key]
            masked_after[key] = _MASK_DEFAULT if same else _MASK_AFTER
        if field_name in live:
            live[field_name] = masked_before
        if field_name in merged:
            merged[field_name] = masked_after
    return live, merged


class KubernetesResourceManager(ResourceManager):
    """Dry-run comparisons against a live cluster.

    Args:
        config: connection and field-manager settings.
        client: an already-initialised ``DynamicClient``; when omitted one
            is created lazily on the first ``diff`` call.
    """

    def __init__(self, config: KubernetesConfig | None = None, client: Any | None = None) -> None:
        self._config = config or KubernetesConfig()
        self._client = client
        self._api_client: Any | None = None

    async def _connect(self) -> Any:
        if self._client is not None:
            return self._client

        # Imported lazily; kubernetes-asyncio probes for cluster config on import.
        import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]
        from kubernetes_asyncio.client import ApiClient  # type: ignore[import-untyped]
        from kubernetes_asyncio.dynamic import DynamicClient  # type: ignore[import-untyped]

        if self._config.kubeconfig or self._config.context:
            await k8s_config.load_kube_config(
                config_file=self._config.kubeconfig or None,
                context=self._config.context or None,
            )
            _log.info("k8s client configured from kubeconfig", path=self._config.kubeconfig)
        else:
            try:
                k8s_config.load_incluster_config()
                _log.info("k8s client configured from in-cluster service account")
            except k8s_config.ConfigException:
                await k8s_config.load_kube_config()
                _log.info("k8s client configured from kubeconfig")

        self._api_client = ApiClient()
        self._client = await DynamicClient(self._api_client)
        return self._client

    async def close(self) -> None:
        if self._api_client is not None:
            await self._api_client.close()
            self._api_client = None
            self._client = None

    async def diff(self, obj: DesiredObject, options: DiffOptions) -> ManagerChange:
        from kubernetes_asyncio.dynamic.exceptions import NotFoundError  # type: ignore[import-untyped]

        if options.excludes(obj.annotations):
            return self._change("skipped", obj)

        client = await self._connect()
        resource = await client.resources.get(api_version=obj.api_version, kind=obj.kind)
        namespace = obj.namespace if resource.namespaced else None

        try:
            existing = await client.get(resource, name=obj.name, namespace=namespace)
            live: dict[str, Any] | None = existing.to_dict()
        except NotFoundError:
            live = None

        if live is not None:
            live_annotations = (live.get("metadata") or {}).get("annotations") or {}
            if options.excludes(live_annotations):
                return self._change("skipped", obj)

        merged_instance = await client.server_side_apply(
            resource,
            body=obj.to_dict(),
            name=obj.name,
            namespace=namespace,
            field_manager=self._config.field_manager,
            force_conflicts=True,
            dry_run="All",
        )
        merged = merged_instance.to_dict()

        if live is None:
            return self._change("created", obj)

        live_clean, merged_clean = sanitize(live), sanitize(merged)
        if live_clean == merged_clean:
            return self._change("unchanged", obj)

        if obj.kind == "Secret":
            live_clean, merged_clean = mask_secret_data(live_clean, merged_clean)
        return self._change("configured", obj, live_clean, merged_clean)

    @staticmethod
    def _change(
        action: str,
        obj: DesiredObject,
        live: dict[str, Any] | None = None,
        merged: dict[str, Any] | None = None,
    ) -> ManagerChange:
        return ManagerChange(
            action=action,
            subject=obj.subject,
            object_id=obj.object_id,
            version=obj.version,
            live=live,
            merged=merged,
        )
