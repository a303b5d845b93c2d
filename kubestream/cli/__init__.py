"""kubestream command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``kubestream`` script).
"""

from kubestream.cli.main import cli

__all__ = ["cli"]
