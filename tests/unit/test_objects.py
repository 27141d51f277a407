"""Tests for object identity, actions and change records."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from kubedrift.errors import IdentityParseError
from kubedrift.models.objects import (
    KIND_ORDER,
    Action,
    ChangeRecord,
    DesiredObject,
    ObjectID,
    sort_key,
    split_api_version,
)

from tests.fakes import make_doc, make_object

_namespaces = st.one_of(st.just(""), st.from_regex(r"[a-z0-9]([a-z0-9-]{0,10}[a-z0-9])?", fullmatch=True))
_names = st.from_regex(r"[a-z0-9]([a-z0-9.:-]{0,20}[a-z0-9])?", fullmatch=True)
_groups = st.one_of(st.just(""), st.from_regex(r"[a-z0-9]([a-z0-9.-]{0,12}[a-z0-9])?", fullmatch=True))
_kinds = st.from_regex(r"[A-Z][A-Za-z0-9]{0,15}", fullmatch=True)


class TestObjectIDEncoding:
    def test_namespaced_core_object(self) -> None:
        object_id = ObjectID(group="", kind="ConfigMap", namespace="default", name="app-config")
        assert str(object_id) == "default_app-config__ConfigMap"

    def test_cluster_scoped_group_object(self) -> None:
        object_id = ObjectID(group="rbac.authorization.k8s.io", kind="ClusterRole", namespace="", name="viewer")
        assert str(object_id) == "_viewer_rbac.authorization.k8s.io_ClusterRole"

    def test_colon_in_name_is_transcoded(self) -> None:
        object_id = ObjectID(group="rbac.authorization.k8s.io", kind="ClusterRole", namespace="", name="system:viewer")
        encoded = str(object_id)
        assert encoded == "_system__viewer_rbac.authorization.k8s.io_ClusterRole"
        assert ObjectID.parse(encoded) == object_id

    def test_parse_known_inventory_id(self) -> None:
        parsed = ObjectID.parse("apps_podinfo_apps_Deployment")
        assert parsed == ObjectID(group="apps", kind="Deployment", namespace="apps", name="podinfo")

    @given(namespace=_namespaces, name=_names, group=_groups, kind=_kinds)
    def test_round_trip_is_lossless(self, namespace: str, name: str, group: str, kind: str) -> None:
        object_id = ObjectID(group=group, kind=kind, namespace=namespace, name=name)
        assert ObjectID.parse(str(object_id)) == object_id

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "no-separators",
            "ns_name",
            "ns_name_with_extra_group_Kind",
            "ns__group_Kind",
            "ns_name_group_",
        ],
    )
    def test_malformed_ids_raise(self, value: str) -> None:
        with pytest.raises(IdentityParseError) as exc_info:
            ObjectID.parse(value)
        assert exc_info.value.value == value

    def test_identity_parse_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            ObjectID.parse("bad")


class TestSubjects:
    def test_namespaced_subject(self) -> None:
        assert ObjectID("apps", "Deployment", "default", "web").subject == "Deployment/default/web"

    def test_cluster_scoped_subject(self) -> None:
        assert ObjectID("", "Namespace", "", "apps").subject == "Namespace/apps"


class TestActionMapping:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("created", Action.CREATED),
            ("configured", Action.CONFIGURED),
            ("unchanged", Action.UNCHANGED),
            ("skipped", Action.UNCHANGED),
            ("deleted", Action.DELETED),
            ("Configured", Action.CONFIGURED),
            ("  created ", Action.CREATED),
        ],
    )
    def test_known_actions(self, raw: str, expected: Action) -> None:
        assert Action.from_manager(raw) is expected

    @given(st.text(max_size=20))
    def test_mapping_is_total(self, raw: str) -> None:
        assert isinstance(Action.from_manager(raw), Action)

    def test_unknown_action_is_unchanged(self) -> None:
        assert Action.from_manager("exploded") is Action.UNCHANGED


class TestDesiredObject:
    def test_from_dict_extracts_identity(self) -> None:
        obj = make_object(kind="Deployment", name="web", namespace="apps", api_version="apps/v1")
        assert obj.group == "apps"
        assert obj.version == "v1"
        assert obj.object_id == ObjectID("apps", "Deployment", "apps", "web")
        assert obj.subject == "Deployment/apps/web"

    def test_core_api_version(self) -> None:
        assert split_api_version("v1") == ("", "v1")
        assert split_api_version("networking.k8s.io/v1") == ("networking.k8s.io", "v1")

    def test_version_not_part_of_identity(self) -> None:
        v1 = make_object(kind="HorizontalPodAutoscaler", name="web", api_version="autoscaling/v1")
        v2 = make_object(kind="HorizontalPodAutoscaler", name="web", api_version="autoscaling/v2")
        assert v1.object_id == v2.object_id

    def test_annotations(self) -> None:
        obj = make_object(annotations={"team": "ops"})
        assert obj.annotations == {"team": "ops"}
        assert make_object().annotations == {}

    def test_to_dict_is_a_copy(self) -> None:
        obj = DesiredObject.from_dict(make_doc(data={"a": "1"}))
        copy = obj.to_dict()
        copy["data"]["a"] = "2"
        assert obj.payload["data"]["a"] == "1"

    def test_placeholder(self) -> None:
        placeholder = DesiredObject.placeholder(ObjectID("apps", "Deployment", "default", "web"), "v1")
        assert placeholder.api_version == "apps/v1"
        assert placeholder.payload["metadata"] == {"name": "web", "namespace": "default"}

    def test_cluster_scoped_placeholder_has_no_namespace(self) -> None:
        placeholder = DesiredObject.placeholder(ObjectID("", "Namespace", "", "apps"), "v1")
        assert placeholder.api_version == "v1"
        assert "namespace" not in placeholder.payload["metadata"]


class TestChangeRecord:
    def _record(self, action: Action) -> ChangeRecord:
        return ChangeRecord(
            subject="Secret/default/db",
            action=action,
            object_id=ObjectID("", "Secret", "default", "db"),
            applied_version="v1",
        )

    def test_downgrade_configured(self) -> None:
        assert self._record(Action.CONFIGURED).downgraded().action is Action.UNCHANGED

    @pytest.mark.parametrize("action", [Action.CREATED, Action.UNCHANGED, Action.DELETED])
    def test_downgrade_only_touches_configured(self, action: Action) -> None:
        assert self._record(action).downgraded().action is action

    def test_downgrade_is_idempotent(self) -> None:
        once = self._record(Action.CONFIGURED).downgraded()
        assert once.downgraded() == once

    def test_transient_documents_ignored_in_equality(self) -> None:
        a = self._record(Action.CREATED)
        b = ChangeRecord(a.subject, a.action, a.object_id, a.applied_version, live={"x": 1}, merged={"y": 2})
        assert a == b


class TestOrdering:
    def test_known_kinds_follow_apply_order(self) -> None:
        kinds = ["Deployment", "Namespace", "CustomResourceDefinition", "ConfigMap"]
        ordered = sorted(kinds, key=lambda k: sort_key(k, "", "x"))
        assert ordered == ["CustomResourceDefinition", "Namespace", "ConfigMap", "Deployment"]

    def test_unknown_kinds_sort_last_alphabetically(self) -> None:
        kinds = ["Widget", "Alert", KIND_ORDER[-1]]
        ordered = sorted(kinds, key=lambda k: sort_key(k, "", "x"))
        assert ordered == [KIND_ORDER[-1], "Alert", "Widget"]

    def test_same_kind_sorted_by_namespace_then_name(self) -> None:
        keys = [sort_key("Service", "b", "a"), sort_key("Service", "a", "z"), sort_key("Service", "a", "b")]
        assert sorted(keys) == [keys[2], keys[1], keys[0]]
