"""Resumable Kubernetes watch event streams."""

from kubestream.errors import BootstrapError, ConfigError, KubeStreamError, WatchOpenError
from kubestream.models import EventType, ResourceDescriptor, WatchEvent, WatchOptions
from kubestream.watch import EventStream, open_stream, watch

__version__ = "0.1.0"

__all__ = [
    "BootstrapError",
    "ConfigError",
    "EventStream",
    "EventType",
    "KubeStreamError",
    "ResourceDescriptor",
    "WatchEvent",
    "WatchOpenError",
    "WatchOptions",
    "__version__",
    "open_stream",
    "watch",
]
