"""Click commands.

``kubestream watch v1/pods -n default`` prints one JSON line per event on
stdout until the stream ends or the process receives SIGINT/SIGTERM.
Logs go to stderr.
"""

from __future__ import annotations

import asyncio
import json
import signal
from dataclasses import replace

import click

from kubestream.client.connection import load_connection
from kubestream.config import load_config
from kubestream.errors import KubeStreamError
from kubestream.models.config import WatchOptions
from kubestream.models.resources import ResourceDescriptor
from kubestream.observability.logging import get_logger, setup_logging
from kubestream.watch.stream import watch


@click.group()
@click.version_option(package_name="kubestream")
def cli() -> None:
    """Resumable Kubernetes watch streams."""


@cli.command("watch")
@click.argument("resource")
@click.option("-n", "--namespace", default="", help="Namespace; all namespaces when omitted.")
@click.option("-l", "--selector", "label_selector", default="", help="Label selector.")
@click.option("--field-selector", default="", help="Field selector.")
@click.option("--context", default=None, help="Kubeconfig context.")
@click.option("--kubeconfig", default=None, help="Path to a kubeconfig file.")
@click.option("--read-timeout", type=float, default=None, help="Idle timeout in seconds (0 disables).")
@click.option("--bookmarks/--no-bookmarks", default=None, help="Request bookmark events.")
def watch_command(
    resource: str,
    namespace: str,
    label_selector: str,
    field_selector: str,
    context: str | None,
    kubeconfig: str | None,
    read_timeout: float | None,
    bookmarks: bool | None,
) -> None:
    """Watch RESOURCE (``v1/pods``, ``apps/v1/deployments``) and print events."""
    try:
        config = load_config()
        descriptor = ResourceDescriptor.parse(resource, namespace=namespace)
    except (KubeStreamError, ValueError) as exc:
        raise click.UsageError(str(exc)) from exc

    setup_logging(config.log.level)

    options = replace(
        config.watch,
        label_selector=label_selector,
        field_selector=field_selector,
    )
    if read_timeout is not None:
        options = replace(options, read_timeout=read_timeout or None)
    if bookmarks is not None:
        options = replace(options, allow_bookmarks=bookmarks)

    exit_code = asyncio.run(
        _run(
            descriptor,
            options,
            context=context if context is not None else config.kube.context,
            config_file=kubeconfig if kubeconfig is not None else config.kube.config_file,
        )
    )
    if exit_code:
        raise SystemExit(exit_code)


async def _run(
    resource: ResourceDescriptor,
    options: WatchOptions,
    context: str,
    config_file: str,
) -> int:
    """Stream events to stdout.  Returns the process exit code."""
    log = get_logger("cli")
    try:
        connection = await load_connection(context=context, config_file=config_file)
        stream = await watch(connection, resource, options)
    except KubeStreamError as exc:
        log.error("watch_failed_to_start", resource=str(resource), error=str(exc))
        click.echo(f"Error: {exc}", err=True)
        return 1

    task = asyncio.current_task()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, task.cancel)  # type: ignore[union-attr]

    try:
        async with stream:
            async for event in stream:
                click.echo(json.dumps(event.to_dict(), separators=(",", ":")))
    except asyncio.CancelledError:
        log.info("watch_interrupted", resource=str(resource))
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)

    log.info("watch_ended", resource=str(resource), resource_version=stream.resource_version)
    return 0
