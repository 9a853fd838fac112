"""Pytest configuration: an in-memory Caddy admin API and shared fixtures."""

import json
from types import SimpleNamespace
from typing import Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio

from proxy_manager.api.server import create_api_app
from proxy_manager.caddy.client import CaddyClient
from proxy_manager.shared.config import Config

SERVER_NAME = "srv0"
CADDY_URL = "http://caddy.test"
API_KEY = "test-key"


class FakeCaddy:
    """Just enough of the Caddy admin API to exercise the client.

    Every request is recorded in ``requests`` as ``(method, path)``.
    ``failures`` maps ``(method, path)`` to a status code to answer with,
    and ``unreachable`` makes every request fail at the transport level.
    """

    def __init__(self, config: Optional[dict] = None):
        self.config = config
        self.requests: List[Tuple[str, str]] = []
        self.failures: Dict[Tuple[str, str], int] = {}
        self.unreachable = False
        self.raw_server_body: Optional[bytes] = None

    @property
    def servers(self) -> Optional[dict]:
        if self.config is None:
            return None
        return self.config.get("apps", {}).get("http", {}).get("servers")

    def server(self, name: str = SERVER_NAME) -> Optional[dict]:
        servers = self.servers
        return None if servers is None else servers.get(name)

    def routes(self, name: str = SERVER_NAME) -> List[dict]:
        server = self.server(name)
        return [] if server is None else server.setdefault("routes", [])

    def add_route(self, route: dict, name: str = SERVER_NAME) -> None:
        """Simulate a change made directly against Caddy."""
        self.routes(name).append(route)

    def calls(self, method: str, path: Optional[str] = None) -> List[Tuple[str, str]]:
        return [r for r in self.requests if r[0] == method and (path is None or r[1] == path)]

    def _find(self, route_id: str) -> Optional[Tuple[list, dict]]:
        for server in (self.servers or {}).values():
            for route in server.get("routes", []):
                if route.get("@id") == route_id:
                    return server["routes"], route
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)

        method, path = request.method, request.url.path
        self.requests.append((method, path))

        if (method, path) in self.failures:
            return httpx.Response(self.failures[(method, path)], json={"error": "injected failure"})

        body = json.loads(request.content) if request.content else None
        parts = [p for p in path.split("/") if p]

        if parts[:1] == ["id"] and len(parts) == 2:
            found = self._find(parts[1])
            if found is None:
                return httpx.Response(404, json={"error": f"unknown object ID '{parts[1]}'"})
            routes, route = found
            if method == "GET":
                return httpx.Response(200, json=route)
            if method == "DELETE":
                routes.remove(route)
                return httpx.Response(200)

        if path == "/config/" and method == "POST":
            self.config = body
            return httpx.Response(200)

        if parts[:4] == ["config", "apps", "http", "servers"]:
            if self.servers is None:
                return httpx.Response(404, json={"error": "invalid traversal path"})
            if len(parts) == 4 and method == "GET":
                return httpx.Response(200, json=self.servers)
            if len(parts) == 5 and method == "GET":
                if self.raw_server_body is not None:
                    return httpx.Response(200, content=self.raw_server_body)
                return httpx.Response(200, content=json.dumps(self.server(parts[4])).encode() + b"\n")
            if len(parts) == 5 and method == "POST":
                self.servers[parts[4]] = body
                return httpx.Response(200)
            if len(parts) == 6 and parts[5] == "routes" and method == "POST":
                if self.server(parts[4]) is None:
                    return httpx.Response(404, json={"error": "invalid traversal path"})
                self.routes(parts[4]).append(body)
                return httpx.Response(200)

        return httpx.Response(404, json={"error": f"unhandled {method} {path}"})


def route_json(route_id: str, match: str, upstream: str) -> dict:
    return {
        "@id": route_id,
        "handle": [{"handler": "reverse_proxy", "upstreams": [{"dial": upstream}]}],
        "match": [{"host": [match]}],
    }


def container(name: str, labels: Optional[dict] = None, ports: Optional[dict] = None):
    """A stand-in for a python-on-whales Container."""
    return SimpleNamespace(
        name=name,
        config=SimpleNamespace(labels=labels or {}),
        network_settings=SimpleNamespace(ports=ports or {}),
    )


def published(*host_ports: int) -> dict:
    """Port bindings in the shape the runtime reports them."""
    return {
        f"{8000 + i}/tcp": [{"HostIp": "0.0.0.0", "HostPort": str(port)}]
        for i, port in enumerate(host_ports)
    }


class FakeLabelManager:
    """Discovery that returns a fixed list or raises a fixed error."""

    def __init__(self, proxies=None, error: Optional[Exception] = None):
        self.proxies = proxies or []
        self.error = error
        self.calls = 0

    async def get_container_proxies(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.proxies)


@pytest.fixture
def fake_caddy() -> FakeCaddy:
    """Caddy with an http app but no named server yet."""
    return FakeCaddy({"apps": {"http": {"servers": {}}}})


@pytest.fixture
def make_client(fake_caddy):
    """Factory for clients wired to the fake admin API."""
    def _make(fake: Optional[FakeCaddy] = None) -> CaddyClient:
        fake = fake or fake_caddy
        return CaddyClient(SERVER_NAME, CADDY_URL, transport=httpx.MockTransport(fake.handler))
    return _make


@pytest_asyncio.fixture
async def caddy_client(make_client):
    """Initialized client against the default fake."""
    client = make_client()
    await client.initialize()
    yield client
    await client.close()


@pytest.fixture
def config(monkeypatch) -> Config:
    monkeypatch.setenv("PROXY_MANAGER_KEY", API_KEY)
    monkeypatch.delenv("STATIC_DIR", raising=False)
    return Config()


@pytest.fixture
def make_app(config, caddy_client):
    def _make(label_manager=None, reconciler=None):
        return create_api_app(config, caddy_client, label_manager, reconciler)
    return _make


@pytest_asyncio.fixture
async def api(make_app):
    """HTTP client for the management API without discovery."""
    app = make_app()
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client
