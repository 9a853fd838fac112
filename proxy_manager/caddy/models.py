"""Caddy route models and the proxy intent they are derived from."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

REVERSE_PROXY_HANDLER = "reverse_proxy"

FNV64_OFFSET_BASIS = 0xcbf29ce484222325
FNV64_PRIME = 0x100000001b3
FNV64_MASK = 0xffffffffffffffff


def generate_id(match: str) -> str:
    """Derive a route id from a host match.

    64-bit FNV-1a over the UTF-8 bytes of ``match``, rendered as hex. The id
    depends on the host match only, so the same host always maps to the same
    route whatever its upstream.
    """
    h = FNV64_OFFSET_BASIS
    for byte in match.encode('utf-8'):
        h ^= byte
        h = (h * FNV64_PRIME) & FNV64_MASK
    return format(h, 'x')


class Upstream(BaseModel):
    """A single dial target of a reverse proxy handler."""
    model_config = ConfigDict(extra='ignore')

    dial: str


class Handle(BaseModel):
    """One handler in a route's handler chain."""
    model_config = ConfigDict(extra='ignore')

    handler: str
    upstreams: List[Upstream] = Field(default_factory=list)


class Match(BaseModel):
    """Request matcher set; only host matching is modelled."""
    model_config = ConfigDict(extra='ignore')

    host: List[str] = Field(default_factory=list)


class Route(BaseModel):
    """A Caddy routing rule as stored under ``apps.http.servers.<name>.routes``."""
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    id: str = Field("", alias="@id")
    handle: List[Handle] = Field(default_factory=list)
    match: List[Match] = Field(default_factory=list)

    def to_json(self) -> dict:
        """Wire representation with the ``@id`` key."""
        return self.model_dump(by_alias=True)

    def to_proxy(self) -> Optional['Proxy']:
        """Project the route back into a proxy intent.

        Only routes whose first handler is a reverse proxy are representable.
        When a route carries several matchers or upstreams, only the first
        host and the first upstream are surfaced.
        """
        if not self.handle or self.handle[0].handler != REVERSE_PROXY_HANDLER:
            return None
        upstreams = self.handle[0].upstreams
        if not upstreams or not self.match or not self.match[0].host:
            return None
        return Proxy(
            id=self.id,
            upstream=upstreams[0].dial,
            match=self.match[0].host[0],
        )


class Server(BaseModel):
    """A named HTTP server: listen addresses and its ordered routes."""
    model_config = ConfigDict(extra='ignore')

    listen: List[str] = Field(default_factory=list)
    routes: List[Route] = Field(default_factory=list)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class Proxy(BaseModel):
    """A desired host to upstream mapping."""

    id: str = ""
    upstream: str
    match: str

    def to_route(self) -> Route:
        """Convert into a reverse proxy route keyed by the derived id."""
        return new_route(generate_id(self.match), self.match, self.upstream)


def new_route(route_id: str, match: str, upstream: str) -> Route:
    """Build a single-host reverse proxy route with an explicit id."""
    return Route(
        id=route_id,
        handle=[Handle(handler=REVERSE_PROXY_HANDLER, upstreams=[Upstream(dial=upstream)])],
        match=[Match(host=[match])],
    )


# Skeleton posted to /config/ when the control plane has no http app yet
BASE_CONFIG = {
    "apps": {
        "http": {
            "servers": {}
        }
    }
}


def default_server() -> Server:
    """Server created when the named server does not exist remotely."""
    return Server(listen=[":443"], routes=[])
