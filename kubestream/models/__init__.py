"""Core data structures for kubestream."""

from kubestream.models.config import KubeConfig, KubeStreamConfig, LogConfig, WatchOptions
from kubestream.models.events import EventType, Mode, WatchEvent
from kubestream.models.resources import ResourceDescriptor

__all__ = [
    "EventType",
    "KubeConfig",
    "KubeStreamConfig",
    "LogConfig",
    "Mode",
    "ResourceDescriptor",
    "WatchEvent",
    "WatchOptions",
]
