"""Prune candidate detection by inventory set subtraction."""

from __future__ import annotations

import structlog

from kubedrift.models.inventory import Inventory
from kubedrift.models.objects import DesiredObject, ObjectID

_log = structlog.get_logger(component="inventory.differ")


def _identities(inventory: Inventory) -> dict[ObjectID, str]:
    """Parse every entry into identity -> recorded version, first entry wins.

    The first malformed identity aborts the call.
    """
    identities: dict[ObjectID, str] = {}
    for entry in inventory:
        identities.setdefault(entry.object_id(), entry.version)
    return identities


def diff_inventory(old: Inventory, new: Inventory) -> list[DesiredObject]:
    """Return placeholder objects for identities in *old* but not in *new*.

    The placeholders carry group/kind/version from the old entry and
    namespace/name from the identity. They exist for display only and are
    never applied. The result is sorted in canonical object order.

    Raises:
        IdentityParseError: if any entry of either inventory is malformed.
    """
    old_ids = _identities(old)
    new_ids = set(_identities(new))

    stale = [object_id for object_id in old_ids if object_id not in new_ids]
    if not stale:
        return []

    objects = []
    for object_id in stale:
        _, _, version = old_ids[object_id].rpartition("/")
        objects.append(DesiredObject.placeholder(object_id, version))

    objects.sort(key=DesiredObject.sort_key)
    _log.debug("inventory_diffed", old=len(old), new=len(new), stale=len(objects))
    return objects
