"""Entry point for `python -m kubedrift`.

Usage:
    python -m kubedrift diff rendered.yaml --inventory kustomization.yaml
"""

from __future__ import annotations

from kubedrift.cli import cli

cli(prog_name="kubedrift")
