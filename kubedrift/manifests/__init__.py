"""Rendered manifest decoding."""

from kubedrift.manifests.reader import read_objects, set_native_kinds_defaults

__all__ = ["read_objects", "set_native_kinds_defaults"]
