"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_FIELD_MANAGER = "kustomize-controller"


@dataclass
class DiffConfig:
    """Diff run configuration."""

    timeout_seconds: float = 80.0
    prune: bool = True
    color: bool = False


@dataclass
class KubernetesConfig:
    """Cluster connection and server-side apply settings."""

    kubeconfig: str = ""
    context: str = ""
    field_manager: str = DEFAULT_FIELD_MANAGER


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "warning"


@dataclass
class KubeDriftConfig:
    """Top-level kubedrift configuration."""

    diff: DiffConfig = field(default_factory=DiffConfig)
    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)
    log: LogConfig = field(default_factory=LogConfig)
