"""Error hierarchy for kubedrift.

Per-object failures are collected by the orchestrator rather than raised
through the run; only the caller decides whether a non-empty error list is
fatal.
"""

from __future__ import annotations


class KubeDriftError(Exception):
    """Base class for every error raised by kubedrift."""


class ObjectComparisonError(KubeDriftError):
    """The resource manager could not compute a diff for one object."""

    def __init__(self, subject: str, cause: BaseException) -> None:
        super().__init__(f"{subject}: {cause}")
        self.subject = subject
        self.cause = cause


class DeadlineExceeded(ObjectComparisonError):
    """The run deadline elapsed before this object could be compared."""

    def __init__(self, subject: str, timeout: float) -> None:
        super().__init__(subject, TimeoutError(f"deadline of {timeout:g}s exceeded"))
        self.timeout = timeout


class IdentityParseError(KubeDriftError, ValueError):
    """An inventory identity string could not be parsed."""

    def __init__(self, value: str, reason: str = "unable to parse stored object metadata") -> None:
        super().__init__(f"{reason}: {value!r}")
        self.value = value


class RenderWriteError(KubeDriftError):
    """Writing or reading the temporary documents for a nested diff failed."""

    def __init__(self, subject: str, cause: BaseException) -> None:
        super().__init__(f"failed to render diff for {subject}: {cause}")
        self.subject = subject
        self.cause = cause


class ManifestError(KubeDriftError, ValueError):
    """A rendered manifest document is not a usable Kubernetes object."""
