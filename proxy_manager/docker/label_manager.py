"""Container label discovery.

Lists running containers through the Docker or Podman CLI (via
python-on-whales) and turns the ones labelled for proxying into proxies.

Labels:
    proxy-manager.enable: must be "true" for the container to be considered
    proxy-manager.name: host name prefix (defaults to the container name)
    proxy-manager.port: published port to proxy to (defaults to the first one)
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional

from python_on_whales import ClientNotFoundError, DockerClient
from python_on_whales.exceptions import DockerException

from ..caddy.exceptions import DiscoveryUnavailable
from ..caddy.models import Proxy

logger = logging.getLogger(__name__)

LABEL_ENABLE = "proxy-manager.enable"
LABEL_NAME = "proxy-manager.name"
LABEL_PORT = "proxy-manager.port"

# Global executor for container runtime calls
executor = ThreadPoolExecutor(max_workers=2)


def _labels(container) -> Dict[str, str]:
    config = getattr(container, 'config', None)
    return dict(getattr(config, 'labels', None) or {})


def _primary_name(container) -> str:
    return (container.name or '').lstrip('/')


def _host_ports(container) -> List[int]:
    """Published host ports in the order the runtime reports them."""
    settings = getattr(container, 'network_settings', None)
    ports = getattr(settings, 'ports', None) or {}
    host_ports = []
    for bindings in ports.values():
        for binding in bindings or []:
            host_port = binding.get('HostPort') if isinstance(binding, dict) else None
            if host_port:
                try:
                    host_ports.append(int(host_port))
                except ValueError:
                    continue
    return host_ports


class LabelManager:
    """Projects labelled containers into proxies."""

    def __init__(
        self,
        domain: str,
        client: Optional[Any] = None,
        host: Optional[str] = None,
        runtime: str = "podman",
    ):
        """Initialize the label manager.

        Args:
            domain: Base domain appended to container names
            client: Preconfigured DockerClient (built from host/runtime if None)
            host: Runtime socket URI, e.g. ``unix:///run/podman/podman.sock``
            runtime: ``podman`` or ``docker``
        """
        self.domain = domain
        self.host = host
        self.runtime = runtime
        self.client = client or DockerClient(host=host, client_call=[runtime])

    def connect(self) -> None:
        """Check that the container runtime answers.

        Raises:
            DiscoveryUnavailable: If the runtime cannot be reached
        """
        try:
            self.client.version()
        except (ClientNotFoundError, DockerException, OSError) as e:
            raise DiscoveryUnavailable(f"Cannot reach {self.runtime} at {self.host or 'default socket'}: {e}") from e
        logger.info(f"Connected to {self.runtime} at {self.host or 'default socket'}")

    def _list_containers(self) -> list:
        try:
            return self.client.container.list()
        except (ClientNotFoundError, DockerException, OSError) as e:
            raise DiscoveryUnavailable(f"Failed to list containers: {e}") from e

    async def get_container_proxies(self) -> List[Proxy]:
        """Proxies declared by the labels of running containers.

        Raises:
            DiscoveryUnavailable: If the runtime cannot be queried
        """
        loop = asyncio.get_running_loop()
        containers = await loop.run_in_executor(executor, self._list_containers)
        return self.project(containers)

    def project(self, containers: Iterable) -> List[Proxy]:
        """Turn container metadata into proxies, skipping unusable containers."""
        proxies = []
        for container in containers:
            proxy = self._container_proxy(container)
            if proxy is not None:
                proxies.append(proxy)
        return proxies

    def _container_proxy(self, container) -> Optional[Proxy]:
        labels = _labels(container)

        if labels.get(LABEL_ENABLE) != "true":
            return None

        name = labels.get(LABEL_NAME) or _primary_name(container)

        port = None
        port_label = labels.get(LABEL_PORT)
        if port_label is not None:
            try:
                port = int(port_label)
            except ValueError:
                logger.warning(f"Invalid port number for container {name}: {port_label!r}")

        if port is None:
            host_ports = _host_ports(container)
            if not host_ports:
                logger.warning(f"Container {name} has no ports exposed, skipping")
                return None
            port = host_ports[0]

        return Proxy(upstream=f"localhost:{port}", match=f"{name}.{self.domain}")
