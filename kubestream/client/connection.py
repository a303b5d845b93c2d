"""API server connection settings.

``load_connection()`` resolves credentials the same way kubectl-like tools
do: the in-cluster service account first, then the kubeconfig file.  The
kubernetes-asyncio config loaders do the parsing; only the resolved host,
token and TLS material are kept.
"""

from __future__ import annotations

import ssl
from dataclasses import dataclass

import httpx
import structlog

from kubestream.errors import ConfigError

_log = structlog.get_logger(component="client.connection")

_BEARER_PREFIX = "bearer "


@dataclass(frozen=True)
class Connection:
    """Everything needed to reach one API server.

    ``token`` is the bare bearer token (no ``Bearer`` prefix).
    """

    server: str
    token: str = ""
    ca_cert: str | None = None
    client_cert: str | None = None
    client_key: str | None = None
    verify: bool = True

    def __post_init__(self) -> None:
        if not self.server:
            raise ConfigError("Connection server must not be empty")

    def ssl_context(self) -> ssl.SSLContext | bool:
        """Build the TLS context for httpx, or False when verification is off."""
        if not self.verify and not self.client_cert:
            return False
        context = ssl.create_default_context(cafile=self.ca_cert)
        if not self.verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        if self.client_cert:
            context.load_cert_chain(self.client_cert, self.client_key)
        return context

    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def build_client(self, connect_timeout: float = 10.0) -> httpx.AsyncClient:
        """Create an AsyncClient rooted at the API server.

        Requests made through it (list and watch) set their own read timeout.
        """
        return httpx.AsyncClient(
            base_url=self.server,
            headers=self.headers(),
            verify=self.ssl_context(),
            timeout=httpx.Timeout(connect_timeout),
        )


async def load_connection(context: str = "", config_file: str = "") -> Connection:
    """Resolve a Connection from in-cluster config or a kubeconfig.

    In-cluster config is only tried when neither *context* nor *config_file*
    is given.

    Raises:
        ConfigError: if no usable configuration is found.
    """
    # Imported lazily: kubernetes-asyncio is heavy and only needed here.
    from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
    from kubernetes_asyncio import config as k8s_config  # type: ignore[import-untyped]

    configuration = k8s_client.Configuration()
    source = "kubeconfig"
    try:
        if not context and not config_file:
            try:
                k8s_config.load_incluster_config(client_configuration=configuration)
                source = "in-cluster"
            except k8s_config.ConfigException:
                await k8s_config.load_kube_config(client_configuration=configuration)
        else:
            await k8s_config.load_kube_config(
                config_file=config_file or None,
                context=context or None,
                client_configuration=configuration,
            )
    except (k8s_config.ConfigException, OSError) as exc:
        raise ConfigError(f"could not load cluster configuration: {exc}") from exc

    connection = connection_from_configuration(configuration)
    _log.info("connection_loaded", source=source, server=connection.server)
    return connection


def connection_from_configuration(configuration: object) -> Connection:
    """Extract a Connection from a kubernetes-asyncio ``Configuration``."""
    api_key: dict[str, str] = getattr(configuration, "api_key", None) or {}
    token = api_key.get("authorization") or api_key.get("BearerToken") or ""
    if token.lower().startswith(_BEARER_PREFIX):
        token = token[len(_BEARER_PREFIX) :]
    return Connection(
        server=str(getattr(configuration, "host", "") or ""),
        token=token.strip(),
        ca_cert=getattr(configuration, "ssl_ca_cert", None) or None,
        client_cert=getattr(configuration, "cert_file", None) or None,
        client_key=getattr(configuration, "key_file", None) or None,
        verify=bool(getattr(configuration, "verify_ssl", True)),
    )
