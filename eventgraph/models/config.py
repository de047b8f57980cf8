"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class KubeConfig:
    """Kubernetes client configuration."""

    in_cluster: bool = True
    context: str = ""


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "json"


@dataclass
class EventGraphConfig:
    """Top-level eventgraph configuration."""

    namespaces: list[str] = field(default_factory=lambda: ["default"])
    kube: KubeConfig = field(default_factory=KubeConfig)
    log: LogConfig = field(default_factory=LogConfig)
