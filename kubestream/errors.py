"""Exception hierarchy for kubestream.

Only the initial ``watch()`` call raises these to the caller.  Once an
EventStream is running, every failure is either recovered internally or
turned into end-of-stream (the reason is logged).
"""

from __future__ import annotations


class KubeStreamError(Exception):
    """Base class for all kubestream errors."""


class BootstrapError(KubeStreamError):
    """The starting resource version could not be discovered."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class WatchOpenError(KubeStreamError):
    """A watch exchange could not be started."""


class ConfigError(KubeStreamError):
    """Invalid configuration (environment variables or kubeconfig)."""
