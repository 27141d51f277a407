"""Secret redaction for SOPS-encrypted payloads.

Encrypted Secret values must never be diffed in plaintext. When a rendered
Secret carries the SOPS mask marker, the comparison falls back to a
fingerprint of the data keys: live and merged are masked, and the object is
drifted only if the sorted key sets differ.

Note: the marker check looks for *any* masked value, then masks *all*
values. A Secret mixing encrypted and plain entries is treated as fully
redacted. Downstream tooling depends on this, so it is kept as is.
"""

from __future__ import annotations

import base64
import binascii
import copy
from dataclasses import dataclass
from typing import Any

import structlog

_log = structlog.get_logger(component="redaction.sops")

MASK = "**SOPS**"
MASKED_VALUE = "*****"
DATA_FIELD = "data"
STRING_DATA_FIELD = "stringData"
SECRET_KIND = "Secret"

_SOPS_ENVELOPE = "ENC["
_SOPS_METADATA_FIELD = "sops"
_MASK_B64 = base64.b64encode(MASK.encode()).decode()

Fingerprint = tuple[str, ...]


@dataclass(frozen=True)
class RedactionVerdict:
    """Outcome of a fingerprint comparison.

    ``live`` and ``merged`` are masked copies, safe to render.
    """

    changed: bool
    live: dict[str, Any]
    merged: dict[str, Any]
    live_keys: Fingerprint
    merged_keys: Fingerprint


def _data_map(document: dict[str, Any] | None) -> dict[str, Any]:
    if not document:
        return {}
    data = document.get(DATA_FIELD)
    return data if isinstance(data, dict) else {}


def _decode(value: str) -> bytes | None:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        _log.debug("secret_value_not_base64", error=str(exc))
        return None


def is_encrypted(payload: dict[str, Any]) -> bool:
    """True if any ``data`` value decodes to bytes containing the mask marker."""
    marker = MASK.encode()
    for value in _data_map(payload).values():
        if not isinstance(value, str):
            continue
        decoded = _decode(value)
        if decoded is not None and marker in decoded:
            return True
    return False


def fingerprint(document: dict[str, Any] | None) -> Fingerprint:
    """Sorted data keys of *document*; the comparability proxy for encrypted data."""
    return tuple(sorted(_data_map(document)))


def mask_values(document: dict[str, Any]) -> dict[str, Any]:
    """Deep copy of *document* with every data value replaced by a constant."""
    masked = copy.deepcopy(document)
    data = _data_map(masked)
    if data:
        masked[DATA_FIELD] = {key: MASKED_VALUE for key in data}
    return masked


def compare_secret(
    payload: dict[str, Any],
    live: dict[str, Any] | None,
    merged: dict[str, Any] | None,
) -> RedactionVerdict | None:
    """Compare an encrypted Secret by key set instead of by value.

    Returns None when no override applies: the desired payload has no
    encrypted values, or live or merged is absent.
    """
    if not is_encrypted(payload):
        return None
    if live is None or merged is None:
        return None

    live_keys, merged_keys = fingerprint(live), fingerprint(merged)
    return RedactionVerdict(
        changed=live_keys != merged_keys,
        live=mask_values(live),
        merged=mask_values(merged),
        live_keys=live_keys,
        merged_keys=merged_keys,
    )


def _is_sops_value(value: Any, *, encoded: bool) -> bool:
    if not isinstance(value, str):
        return False
    if not encoded:
        return value.startswith(_SOPS_ENVELOPE)
    decoded = _decode(value)
    return decoded is not None and decoded.startswith(_SOPS_ENVELOPE.encode())


def mask_sops_secret(payload: dict[str, Any]) -> dict[str, Any]:
    """Replace SOPS-encrypted Secret values with the base64 mask marker.

    A Secret carrying a top-level ``sops`` block is encrypted as a whole:
    all values are masked and the block is dropped. Otherwise only values
    holding an ``ENC[...]`` envelope are masked. Encrypted ``stringData``
    entries move into ``data`` so a single field is compared. Non-Secret
    payloads are returned unchanged.
    """
    if payload.get("kind") != SECRET_KIND:
        return payload

    whole = _SOPS_METADATA_FIELD in payload
    data = dict(_data_map(payload))
    string_data = payload.get(STRING_DATA_FIELD)
    string_data = dict(string_data) if isinstance(string_data, dict) else {}

    touched = whole
    for key, value in data.items():
        if whole or _is_sops_value(value, encoded=True):
            data[key] = _MASK_B64
            touched = True
    for key, value in list(string_data.items()):
        if whole or _is_sops_value(value, encoded=False):
            data[key] = _MASK_B64
            del string_data[key]
            touched = True

    if not touched:
        return payload

    masked = copy.deepcopy(payload)
    masked.pop(_SOPS_METADATA_FIELD, None)
    if data:
        masked[DATA_FIELD] = data
    if string_data:
        masked[STRING_DATA_FIELD] = string_data
    else:
        masked.pop(STRING_DATA_FIELD, None)
    _log.debug("sops_secret_masked", name=(payload.get("metadata") or {}).get("name", ""), keys=sorted(data))
    return masked
