"""Caddy control-plane component."""

from .client import CaddyClient
from .exceptions import (
    ConfigCorrupt,
    ConfigInvalid,
    ControlPlaneUnreachable,
    DecodeError,
    DiscoveryDisabled,
    DiscoveryUnavailable,
    ProxyManagerError,
    RemoteStatusError,
    RouteAlreadyExists,
    TransportError,
    Unauthorized,
)
from .models import Proxy, Route, Server, generate_id, new_route

__all__ = [
    'CaddyClient',
    'Proxy',
    'Route',
    'Server',
    'generate_id',
    'new_route',
    'ProxyManagerError',
    'TransportError',
    'ControlPlaneUnreachable',
    'RemoteStatusError',
    'DecodeError',
    'ConfigCorrupt',
    'RouteAlreadyExists',
    'DiscoveryUnavailable',
    'DiscoveryDisabled',
    'ConfigInvalid',
    'Unauthorized',
]
