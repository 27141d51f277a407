"""Redaction of encrypted Secret payloads.

Submodules:
    sops -- SOPS marker detection, key-set fingerprint comparison and masking.
"""

from kubedrift.redaction.sops import (
    MASK,
    MASKED_VALUE,
    RedactionVerdict,
    compare_secret,
    fingerprint,
    is_encrypted,
    mask_sops_secret,
    mask_values,
)

__all__ = [
    "MASK",
    "MASKED_VALUE",
    "RedactionVerdict",
    "compare_secret",
    "fingerprint",
    "is_encrypted",
    "mask_sops_secret",
    "mask_values",
]
