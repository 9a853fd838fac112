"""Async client for the Caddy admin API.

The client is the single owner of the local mirror of one named Caddy
server. All reads and writes of the mirror go through ``_lock``; network
calls are made outside it so a slow control plane never blocks readers for
longer than a list copy. Route additions are serialized by ``_write_lock``
so the existence check and the write act as one step.
"""

import asyncio
import json
import logging
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from .exceptions import (
    ConfigCorrupt,
    ControlPlaneUnreachable,
    DecodeError,
    RemoteStatusError,
    RouteAlreadyExists,
    TransportError,
)
from .models import BASE_CONFIG, Proxy, Route, Server, default_server
from ..shared import log_levels  # noqa: F401  registers Logger.trace

logger = logging.getLogger(__name__)


class CaddyClient:
    """Manages the routes of one Caddy server through the admin API."""

    def __init__(
        self,
        server_name: str,
        address: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            server_name: Name of the server under ``apps.http.servers``
            address: Base URL of the admin API, e.g. ``http://localhost:2019``
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.server_name = server_name
        self.address = address.rstrip('/')
        self._http = httpx.AsyncClient(base_url=self.address, timeout=timeout, transport=transport)
        self._server = Server()
        self._lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()

    async def __aenter__(self) -> 'CaddyClient':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    @property
    def server_path(self) -> str:
        return f"config/apps/http/servers/{self.server_name}"

    async def _request(self, method: str, path: str, body: Optional[Any] = None) -> httpx.Response:
        """Send one request to the admin API, mapping network failures to TransportError."""
        kwargs = {}
        if body is not None:
            kwargs['content'] = json.dumps(body)
            kwargs['headers'] = {'Content-Type': 'application/json'}
        try:
            return await self._http.request(method, f"/{path}", **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {self.address}/{path} failed: {e}") from e

    async def initialize(self) -> None:
        """Make sure the base config and the named server exist, then load the mirror.

        Raises:
            ControlPlaneUnreachable: If the admin API cannot be reached
            ConfigCorrupt: If the server config cannot be decoded
            RemoteStatusError: If bootstrapping is rejected by Caddy
        """
        try:
            await self.load_base_config()
            await self.load_server()
        except ControlPlaneUnreachable:
            raise
        except TransportError as e:
            raise ControlPlaneUnreachable(str(e)) from e
        except ConfigCorrupt:
            raise
        except DecodeError as e:
            raise ConfigCorrupt(str(e)) from e

        logger.info(f"Caddy client initialized for server {self.server_name} at {self.address} "
                    f"({len(self._server.routes)} routes)")

    async def load_base_config(self) -> None:
        """Post the base http app skeleton if the servers section is absent."""
        resp = await self._request("GET", "config/apps/http/servers")
        if resp.status_code == 200:
            return

        logger.info("No http app configured in Caddy, loading base config")
        await self.set_object("POST", "config/", BASE_CONFIG)

    async def load_server(self) -> None:
        """Load the named server into the mirror, creating it if it does not exist."""
        resp = await self._request("GET", self.server_path)

        if resp.status_code != 200 or resp.text.startswith("null"):
            server = default_server()
            logger.info(f"Server {self.server_name} not found in Caddy, creating it")
            await self.set_object("POST", self.server_path, server.to_json())
        else:
            try:
                server = Server.model_validate_json(resp.content)
            except ValidationError as e:
                raise ConfigCorrupt(f"Cannot decode server {self.server_name}: {e}") from e

        async with self._lock:
            self._server = server

        logger.trace(f"Loaded server {self.server_name}: {len(server.routes)} routes")

    async def refresh(self) -> None:
        """Replace the mirror with the server's current state in Caddy."""
        await self.load_server()

    async def list_proxies(self) -> List[Proxy]:
        """Proxies represented by the mirror; never touches the network."""
        async with self._lock:
            routes = list(self._server.routes)

        proxies = []
        for route in routes:
            proxy = route.to_proxy()
            if proxy is not None:
                proxies.append(proxy)
        return proxies

    async def get_server(self) -> Server:
        """Copy of the mirror."""
        async with self._lock:
            return self._server.model_copy(deep=True)

    async def object_exists(self, path: str) -> bool:
        """Check whether an object exists in the Caddy config.

        Any failure counts as absent: callers only use this to avoid
        duplicate writes.
        """
        try:
            resp = await self._request("GET", path)
        except TransportError as e:
            logger.debug(f"Existence check for {path} failed, assuming absent: {e}")
            return False

        return resp.status_code == 200 and resp.text.strip() != "null"

    async def set_object(self, method: str, path: str, obj: Any) -> None:
        """Write a JSON object to a config path.

        Raises:
            TransportError: If the request could not be sent
            RemoteStatusError: If Caddy rejected the write
        """
        resp = await self._request(method, path, obj)
        if not resp.is_success:
            raise RemoteStatusError(method, path, resp.status_code, resp.text)

    async def add_route(self, route: Route) -> None:
        """Append a route to the server, refusing duplicates by id.

        The mirror is only updated once Caddy has accepted the route.

        Raises:
            RouteAlreadyExists: If a route with the same id is already configured
        """
        async with self._write_lock:
            if await self.object_exists(f"id/{route.id}"):
                raise RouteAlreadyExists(route.id)

            await self.set_object("POST", f"{self.server_path}/routes", route.to_json())

            async with self._lock:
                self._server.routes.append(route)

        logger.info(f"Added route {route.id} to server {self.server_name}")

    async def delete_object(self, path: str) -> None:
        """Delete an object by config path.

        The mirror is left alone; the next refresh reflects the deletion.
        Deleting an object that is already gone is not an error.
        """
        resp = await self._request("DELETE", path)
        if resp.status_code == 404:
            logger.debug(f"Delete of {path}: object not found in Caddy")
            return
        if not resp.is_success:
            raise RemoteStatusError("DELETE", path, resp.status_code, resp.text)

    async def delete_route(self, route_id: str) -> None:
        await self.delete_object(f"id/{route_id}")
        logger.info(f"Deleted route {route_id}")
