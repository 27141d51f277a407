"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from kubedrift.models.config import (
    DEFAULT_FIELD_MANAGER,
    DiffConfig,
    KubeDriftConfig,
    KubernetesConfig,
    LogConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBEDRIFT_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_float(key: str, default: float, min_val: float | None = None, max_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> KubeDriftConfig:
    """Load configuration from KUBEDRIFT_* environment variables."""
    return KubeDriftConfig(
        diff=DiffConfig(
            timeout_seconds=_env_float("TIMEOUT", 80.0, min_val=1.0, max_val=3600.0),
            prune=_env_bool("PRUNE", True),
            color=_env_bool("COLOR", False),
        ),
        kubernetes=KubernetesConfig(
            kubeconfig=_env("KUBECONFIG", ""),
            context=_env("CONTEXT", ""),
            field_manager=_env("FIELD_MANAGER", DEFAULT_FIELD_MANAGER),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "warning")),
        ),
    )
