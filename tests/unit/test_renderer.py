"""Tests for report lines and nested diff rendering."""

from __future__ import annotations

import io
import tempfile
from pathlib import Path
from typing import Any

import click
import pytest

from kubedrift.errors import RenderWriteError
from kubedrift.models.objects import Action, ChangeRecord, DesiredObject, ObjectID
from kubedrift.report import renderer
from kubedrift.report.renderer import (
    ReportBuilder,
    format_line,
    materialize,
    nested_diff,
    render_report,
    write_report,
)

from tests.fakes import make_doc


def _record(action: Action, live: dict[str, Any] | None = None, merged: dict[str, Any] | None = None) -> ChangeRecord:
    object_id = ObjectID("apps", "Deployment", "default", "web")
    return ChangeRecord(
        subject=object_id.subject,
        action=action,
        object_id=object_id,
        applied_version="v1",
        live=live,
        merged=merged,
    )


def _deployment(replicas: int) -> dict[str, Any]:
    return make_doc(kind="Deployment", name="web", api_version="apps/v1", spec={"replicas": replicas})


class TestFormatLine:
    @pytest.mark.parametrize(
        ("action", "tag"),
        [(Action.CREATED, "created"), (Action.CONFIGURED, "drifted"), (Action.DELETED, "deleted")],
    )
    def test_tags(self, action: Action, tag: str) -> None:
        assert format_line("ConfigMap/default/app", action) == f"► ConfigMap/default/app {tag}\n"

    def test_color_wraps_line(self) -> None:
        line = format_line("ConfigMap/default/app", Action.CREATED, color=True)
        assert "\x1b[" in line
        assert click.unstyle(line) == "► ConfigMap/default/app created\n"

    def test_unchanged_has_no_tag(self) -> None:
        with pytest.raises(KeyError):
            format_line("x", Action.UNCHANGED)


class TestNestedDiff:
    def test_value_change_block(self) -> None:
        text = nested_diff(_record(Action.CONFIGURED, _deployment(2), _deployment(3)))
        assert "spec.replicas  (apps/v1/Deployment/default/web)" in text
        assert "± value change" in text
        assert "    - 2" in text
        assert "    + 3" in text

    def test_map_entry_added_block(self) -> None:
        live = make_doc(data={"a": "1"})
        merged = make_doc(data={"a": "1", "b": "2"})
        text = nested_diff(_record(Action.CONFIGURED, live, merged))
        assert "data  (v1/ConfigMap/default/app-config)" in text
        assert "+ one map entry added:" in text
        assert "    b: '2'" in text

    def test_temporary_directory_removed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        created: list[str] = []
        real = tempfile.TemporaryDirectory

        def _tracking(*args: Any, **kwargs: Any) -> tempfile.TemporaryDirectory:
            tmp = real(*args, **kwargs)
            created.append(tmp.name)
            return tmp

        monkeypatch.setattr(renderer.tempfile, "TemporaryDirectory", _tracking)
        nested_diff(_record(Action.CONFIGURED, _deployment(1), _deployment(2)))
        assert created
        assert not Path(created[0]).exists()

    def test_materialize_cleans_up_on_error(self) -> None:
        seen: list[Path] = []
        with pytest.raises(RuntimeError):
            with materialize({"a": 1}, {"a": 2}) as (live_file, merged_file):
                seen.extend([live_file, merged_file])
                assert live_file.read_text() == "a: 1\n"
                raise RuntimeError("boom")
        assert not seen[0].parent.exists()

    def test_write_failure_raises_render_write_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _fail(*args: Any, **kwargs: Any) -> int:
            raise OSError("disk full")

        monkeypatch.setattr(renderer.Path, "write_text", _fail)
        with pytest.raises(RenderWriteError) as exc_info:
            nested_diff(_record(Action.CONFIGURED, _deployment(1), _deployment(2)))
        assert exc_info.value.subject == "Deployment/default/web"


class TestReportBuilder:
    def test_unchanged_records_are_silent(self) -> None:
        text, errors = render_report([_record(Action.UNCHANGED)])
        assert text == ""
        assert errors == []

    def test_records_then_deletions(self) -> None:
        deletion = DesiredObject.placeholder(ObjectID("", "Service", "default", "old"), "v1")
        text, _ = render_report(
            [_record(Action.CREATED), _record(Action.CONFIGURED, _deployment(1), _deployment(2))],
            [deletion],
        )
        lines = [line for line in text.splitlines() if line.startswith("►")]
        assert lines == [
            "► Deployment/default/web created",
            "► Deployment/default/web drifted",
            "► Service/default/old deleted",
        ]
        assert text.index("spec.replicas") < text.index("► Service/default/old deleted")

    def test_render_error_does_not_abort(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _fail(record: ChangeRecord) -> str:
            raise RenderWriteError(record.subject, OSError("read-only"))

        monkeypatch.setattr(renderer, "nested_diff", _fail)
        builder = ReportBuilder()
        builder.add_record(_record(Action.CONFIGURED, _deployment(1), _deployment(2)))
        builder.add_record(_record(Action.CREATED))
        assert builder.build() == "► Deployment/default/web drifted\n► Deployment/default/web created\n"
        assert len(builder.errors) == 1

    def test_write_report(self) -> None:
        sink = io.StringIO()
        write_report(sink, "► x created\n")
        assert sink.getvalue() == "► x created\n"
