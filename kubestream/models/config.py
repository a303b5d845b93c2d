"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class WatchOptions:
    """Per-watch request and transport tuning.

    ``read_timeout`` is the idle timeout between body chunks; when it fires the
    watch is reopened from the same resource version.  None disables it.
    """

    label_selector: str = ""
    field_selector: str = ""
    read_timeout: float | None = 300.0
    connect_timeout: float = 10.0
    timeout_seconds: int | None = None
    allow_bookmarks: bool = False

    def query_params(self) -> dict[str, str]:
        """Selector parameters shared by the list and watch requests."""
        params: dict[str, str] = {}
        if self.label_selector:
            params["labelSelector"] = self.label_selector
        if self.field_selector:
            params["fieldSelector"] = self.field_selector
        return params

    def watch_params(self, resource_version: str) -> dict[str, str]:
        params = self.query_params()
        params["watch"] = "true"
        params["resourceVersion"] = resource_version
        if self.timeout_seconds:
            params["timeoutSeconds"] = str(self.timeout_seconds)
        if self.allow_bookmarks:
            params["allowWatchBookmarks"] = "true"
        return params


@dataclass
class KubeConfig:
    """Where to find cluster credentials.

    Empty values fall back to in-cluster config, then the default kubeconfig.
    """

    config_file: str = ""
    context: str = ""


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class KubeStreamConfig:
    """Top-level kubestream configuration."""

    kube: KubeConfig = field(default_factory=KubeConfig)
    watch: WatchOptions = field(default_factory=WatchOptions)
    log: LogConfig = field(default_factory=LogConfig)
