"""Shared fixtures for kubedrift integration tests.

The pipeline runs end to end from a YAML stream through the orchestrator
and report renderer, with an in-memory resource manager standing in for
the cluster.
"""

from __future__ import annotations

from typing import Any

import pytest

from kubedrift.models.inventory import Inventory, InventoryEntry
from kubedrift.models.objects import ObjectID

from tests.fakes import FakeResourceManager, b64, make_doc

# ---------------------------------------------------------------------------
# Rendered manifests
# ---------------------------------------------------------------------------

OBJ_A = """\
apiVersion: v1
kind: ConfigMap
metadata:
  name: obj-a
  namespace: apps
data:
  key: a
"""

OBJ_B = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: obj-b
  namespace: apps
spec:
  replicas: 2
"""

ENCRYPTED_SECRET = f"""\
apiVersion: v1
kind: Secret
metadata:
  name: creds
  namespace: apps
type: Opaque
data:
  username: {b64("ENC[AES256_GCM,data:dXNlcg==,type:str]")}
  password: {b64("ENC[AES256_GCM,data:cGFzcw==,type:str]")}
"""

A_ID = ObjectID("", "ConfigMap", "apps", "obj-a")
B_ID = ObjectID("apps", "Deployment", "apps", "obj-b")
SECRET_ID = ObjectID("", "Secret", "apps", "creds")


def join(*documents: str) -> str:
    return "---\n".join(documents)


def live_b() -> dict[str, Any]:
    return make_doc(kind="Deployment", name="obj-b", namespace="apps", api_version="apps/v1", spec={"replicas": 2})


def live_secret(**data: str) -> dict[str, Any]:
    values = {key: b64(value) for key, value in data.items()}
    return make_doc(kind="Secret", name="creds", namespace="apps", type="Opaque", data=values)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def cluster() -> FakeResourceManager:
    """Cluster holding obj-b exactly as rendered; obj-a does not exist."""
    return FakeResourceManager(live={B_ID: live_b()})


@pytest.fixture()
def previous_inventory() -> Inventory:
    """Inventory of the last apply, which contained obj-a and obj-b."""
    return Inventory(
        entries=(
            InventoryEntry(id=str(A_ID), version="v1"),
            InventoryEntry(id=str(B_ID), version="v1"),
        )
    )
