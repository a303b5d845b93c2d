"""Cluster access: credentials, the httpx client, and resource-version bootstrap."""

from kubestream.client.bootstrap import ListBootstrap
from kubestream.client.connection import Connection, load_connection

__all__ = ["Connection", "ListBootstrap", "load_connection"]
