"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from kubestream.errors import ConfigError
from kubestream.models.config import KubeConfig, KubeStreamConfig, LogConfig, WatchOptions


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBESTREAM_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = _env(key, str(default))
    try:
        val = int(raw)
    except ValueError as exc:
        raise ConfigError(f"KUBESTREAM_{key} must be an integer, got {raw!r}") from exc
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float = 0.0) -> float:
    raw = _env(key, str(default))
    try:
        val = float(raw)
    except ValueError as exc:
        raise ConfigError(f"KUBESTREAM_{key} must be a number, got {raw!r}") from exc
    return max(val, min_val)


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ConfigError(f"Invalid log level: {value}. Must be one of {sorted(valid)}")
    return value.lower()


def load_config() -> KubeStreamConfig:
    """Load configuration from KUBESTREAM_* environment variables.

    ``READ_TIMEOUT=0`` disables the idle timeout and ``TIMEOUT_SECONDS=0``
    leaves the server-side watch timeout to the API server default.
    """
    read_timeout = _env_float("READ_TIMEOUT", 300.0)
    timeout_seconds = _env_int("TIMEOUT_SECONDS", 0, min_val=0)
    return KubeStreamConfig(
        kube=KubeConfig(
            config_file=_env("KUBECONFIG", ""),
            context=_env("CONTEXT", ""),
        ),
        watch=WatchOptions(
            read_timeout=read_timeout or None,
            connect_timeout=_env_float("CONNECT_TIMEOUT", 10.0, min_val=1.0),
            timeout_seconds=timeout_seconds or None,
            allow_bookmarks=_env_bool("ALLOW_BOOKMARKS", False),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
