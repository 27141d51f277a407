"""Parse a rendered multi-document YAML stream into desired objects.

Templating has already happened upstream; this module only decodes the
stream, validates each document and applies the defaults the API server
would otherwise add, so they do not show up as drift.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import IO, Any

import structlog
import yaml

from kubedrift.errors import ManifestError
from kubedrift.models.objects import DesiredObject
from kubedrift.redaction.sops import mask_sops_secret

_log = structlog.get_logger(component="manifests.reader")

_POD_TEMPLATE_KINDS = {"Deployment", "StatefulSet", "DaemonSet", "ReplicaSet", "Job"}
_DEFAULT_PROTOCOL = "TCP"


def _flatten(document: Any) -> Iterator[dict[str, Any]]:
    if document is None:
        return
    if not isinstance(document, dict):
        raise ManifestError(f"manifest document must be a mapping, got {type(document).__name__}")
    if document.get("kind") == "List" and isinstance(document.get("items"), list):
        for item in document["items"]:
            yield from _flatten(item)
        return
    yield document


def _validate(document: dict[str, Any]) -> None:
    metadata = document.get("metadata")
    missing = [key for key in ("apiVersion", "kind") if not document.get(key)]
    if not isinstance(metadata, dict) or not metadata.get("name"):
        missing.append("metadata.name")
    if missing:
        raise ManifestError(f"object is missing {', '.join(missing)}: {str(document)[:200]}")


def _default_ports(ports: Any) -> None:
    if not isinstance(ports, list):
        return
    for port in ports:
        if isinstance(port, dict) and "protocol" not in port:
            port["protocol"] = _DEFAULT_PROTOCOL


def _pod_spec(document: dict[str, Any]) -> dict[str, Any] | None:
    kind = document.get("kind")
    spec = document.get("spec") or {}
    if kind == "Pod":
        return spec
    if kind in _POD_TEMPLATE_KINDS:
        return (spec.get("template") or {}).get("spec")
    if kind == "CronJob":
        job_spec = (spec.get("jobTemplate") or {}).get("spec") or {}
        return (job_spec.get("template") or {}).get("spec")
    return None


def set_native_kinds_defaults(document: dict[str, Any]) -> dict[str, Any]:
    """Fill in port protocols the API server defaults to TCP. Mutates and returns *document*."""
    if document.get("kind") == "Service":
        _default_ports((document.get("spec") or {}).get("ports"))
        return document

    pod_spec = _pod_spec(document)
    if isinstance(pod_spec, dict):
        for key in ("initContainers", "containers"):
            for container in pod_spec.get(key) or []:
                if isinstance(container, dict):
                    _default_ports(container.get("ports"))
    return document


def read_objects(source: str | IO[str]) -> list[DesiredObject]:
    """Decode *source* into desired objects, preserving document order.

    Raises:
        ManifestError: on invalid YAML or a document that is not a usable object.
    """
    try:
        documents = list(yaml.safe_load_all(source))
    except yaml.YAMLError as exc:
        raise ManifestError(f"failed to decode manifests: {exc}") from exc

    objects: list[DesiredObject] = []
    for raw in documents:
        for document in _flatten(raw):
            _validate(document)
            document = mask_sops_secret(set_native_kinds_defaults(document))
            objects.append(DesiredObject.from_dict(document))

    _log.debug("manifests_read", objects=len(objects))
    return objects
