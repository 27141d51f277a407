"""Text report for a diff run.

Created, drifted and deleted objects get one tagged line each; unchanged
objects are silent. A drifted object is followed by a nested field-level
diff of its live and merged documents. Both documents are materialised as
YAML in a private temporary directory that is removed as soon as the
record has been rendered.
"""

from __future__ import annotations

import tempfile
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TextIO

import click
import structlog
import yaml

from kubedrift.errors import RenderWriteError
from kubedrift.models.objects import Action, ChangeRecord, DesiredObject
from kubedrift.report.fields import ChangeKind, FieldChange, compare_documents

_log = structlog.get_logger(component="report.renderer")

ACTION_MARKER = "►"

_TAGS: dict[Action, tuple[str, str]] = {
    Action.CREATED: ("created", "green"),
    Action.CONFIGURED: ("drifted", "bright_white"),
    Action.DELETED: ("deleted", "red"),
}

_INDENT = "  "


def format_line(subject: str, action: Action, color: bool = False) -> str:
    """Return the tagged summary line for *subject*, newline-terminated."""
    tag, fg = _TAGS[action]
    line = f"{ACTION_MARKER} {subject} {tag}"
    if color:
        line = click.style(line, fg=fg)
    return line + "\n"


@contextmanager
def materialize(live: dict[str, Any], merged: dict[str, Any]) -> Iterator[tuple[Path, Path]]:
    """Write *live* and *merged* as YAML files; the directory is always removed."""
    with tempfile.TemporaryDirectory(prefix="kubedrift-") as tmp_dir:
        live_file = Path(tmp_dir) / "live.yaml"
        merged_file = Path(tmp_dir) / "merged.yaml"
        live_file.write_text(yaml.safe_dump(live, sort_keys=False), encoding="utf-8")
        merged_file.write_text(yaml.safe_dump(merged, sort_keys=False), encoding="utf-8")
        yield live_file, merged_file


def _load(path: Path) -> dict[str, Any]:
    document = yaml.safe_load(path.read_text(encoding="utf-8"))
    return document if isinstance(document, dict) else {}


def _document_label(document: dict[str, Any]) -> str:
    metadata = document.get("metadata") or {}
    parts = [document.get("apiVersion", ""), document.get("kind", ""), metadata.get("namespace", ""), metadata.get("name", "")]
    return "/".join(str(p) for p in parts if p)


def _render_value(value: Any, prefix: str, depth: int) -> list[str]:
    indent = _INDENT * depth
    if isinstance(value, (dict, list)):
        text = yaml.safe_dump(value, sort_keys=False, default_flow_style=False).rstrip("\n")
    elif value is None:
        text = "<none>"
    elif isinstance(value, bool):
        text = str(value).lower()
    else:
        text = str(value)
    lines = text.splitlines() or [""]
    return [f"{indent}{prefix}{line}" if i == 0 else f"{indent}{' ' * len(prefix)}{line}" for i, line in enumerate(lines)]


def render_field_change(change: FieldChange, label: str) -> list[str]:
    """Render one change as a headed block, in dyff's human style."""
    lines = [f"{change.path or '(root level)'}  ({label})"]
    if change.kind is ChangeKind.VALUE_CHANGE:
        lines.append(f"{_INDENT}± {change.kind.value}")
        lines.extend(_render_value(change.old_value, "- ", 2))
        lines.extend(_render_value(change.new_value, "+ ", 2))
    elif change.kind is ChangeKind.MAP_ENTRY_ADDED:
        lines.append(f"{_INDENT}+ one {change.kind.value}:")
        lines.extend(_render_value({change.key: change.new_value}, "", 2))
    elif change.kind is ChangeKind.MAP_ENTRY_REMOVED:
        lines.append(f"{_INDENT}- one {change.kind.value}:")
        lines.extend(_render_value({change.key: change.old_value}, "", 2))
    elif change.kind is ChangeKind.LIST_ENTRY_ADDED:
        lines.append(f"{_INDENT}+ one {change.kind.value}:")
        lines.extend(_render_value([change.new_value], "", 2))
    else:
        lines.append(f"{_INDENT}- one {change.kind.value}:")
        lines.extend(_render_value([change.old_value], "", 2))
    return lines


def nested_diff(record: ChangeRecord) -> str:
    """Field-level diff block for a drifted record.

    Raises:
        RenderWriteError: if the temporary documents cannot be written or read.
    """
    live, merged = record.live or {}, record.merged or {}
    try:
        with materialize(live, merged) as (live_file, merged_file):
            before, after = _load(live_file), _load(merged_file)
    except (OSError, yaml.YAMLError) as exc:
        raise RenderWriteError(record.subject, exc) from exc

    label = _document_label(after) or _document_label(before) or record.subject
    blocks = [render_field_change(change, label) for change in compare_documents(before, after)]
    return "".join("\n" + "\n".join(block) + "\n" for block in blocks)


class ReportBuilder:
    """Accumulates report text for one run; finalised with ``build()``.

    Render failures of a nested diff are kept in ``errors`` and never abort
    the report.
    """

    def __init__(self, color: bool = False) -> None:
        self._color = color
        self._parts: list[str] = []
        self.errors: list[RenderWriteError] = []

    def add_record(self, record: ChangeRecord) -> None:
        if record.action is Action.UNCHANGED:
            return
        self._parts.append(format_line(record.subject, record.action, self._color))
        if record.action is not Action.CONFIGURED:
            return
        try:
            self._parts.append(nested_diff(record))
        except RenderWriteError as exc:
            _log.warning("nested_diff_failed", subject=record.subject, error=str(exc.cause))
            self.errors.append(exc)

    def add_deletion(self, obj: DesiredObject) -> None:
        self._parts.append(format_line(obj.subject, Action.DELETED, self._color))

    def build(self) -> str:
        return "".join(self._parts)


def render_report(
    records: Iterable[ChangeRecord],
    deletions: Iterable[DesiredObject] = (),
    color: bool = False,
) -> tuple[str, list[RenderWriteError]]:
    """Render change records, then deletion candidates, into one text block."""
    builder = ReportBuilder(color=color)
    for record in records:
        builder.add_record(record)
    for obj in deletions:
        builder.add_deletion(obj)
    return builder.build(), builder.errors


def write_report(sink: TextIO, text: str) -> None:
    sink.write(text)
    sink.flush()
