"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from eventgraph.models.config import EventGraphConfig, KubeConfig, LogConfig


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"EVENTGRAPH_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_list(key: str, default: str) -> list[str]:
    return [item.strip() for item in _env(key, default).split(",") if item.strip()]


def _validate_namespaces(value: list[str]) -> list[str]:
    if not value:
        raise ValueError("EVENTGRAPH_NAMESPACES must name at least one namespace")
    return value


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_log_format(value: str) -> str:
    valid = {"json", "console"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log format: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> EventGraphConfig:
    """Load configuration from EVENTGRAPH_* environment variables."""
    return EventGraphConfig(
        namespaces=_validate_namespaces(_env_list("NAMESPACES", "default")),
        kube=KubeConfig(
            in_cluster=_env_bool("IN_CLUSTER", True),
            context=_env("KUBE_CONTEXT", ""),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
            format=_validate_log_format(_env("LOG_FORMAT", "json")),
        ),
    )
