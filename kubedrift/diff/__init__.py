"""Diff orchestration: change classification and prune detection."""

from kubedrift.diff.orchestrator import DiffOrchestrator, DiffResult, apply_secret_override, run_diff

__all__ = ["DiffOrchestrator", "DiffResult", "apply_secret_override", "run_diff"]
