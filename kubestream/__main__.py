"""Entry point for `python -m kubestream`.

Usage:
    python -m kubestream watch v1/pods -n default
    uv run python -m kubestream watch apps/v1/deployments
"""

from __future__ import annotations

from kubestream.cli import cli

cli()
