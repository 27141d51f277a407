"""Report rendering.

Submodules:
    fields   -- recursive document diff producing FieldChange lists.
    renderer -- tagged summary lines and nested field-level diff blocks.
"""

from kubedrift.report.fields import ChangeKind, FieldChange, compare_documents
from kubedrift.report.renderer import ReportBuilder, format_line, render_report, write_report

__all__ = [
    "ChangeKind",
    "FieldChange",
    "ReportBuilder",
    "compare_documents",
    "format_line",
    "render_report",
    "write_report",
]
