"""Error taxonomy for the route synchronization engine.

Every error carries the HTTP status the management API answers with, so
handlers can turn any engine failure into a JSON error envelope.
"""

from typing import Optional


class ProxyManagerError(Exception):
    """Base class for all proxy manager errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(ProxyManagerError):
    """Network or connection failure talking to the control plane or runtime."""


class ControlPlaneUnreachable(TransportError):
    """The control plane could not be reached during initialization."""


class RemoteStatusError(ProxyManagerError):
    """The control plane answered with a non-success status code."""

    def __init__(self, method: str, path: str, status: int, body: str = ""):
        detail = body.strip()
        message = f"{method} /{path} returned {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.method = method
        self.path = path
        self.status = status
        self.body = body


class DecodeError(ProxyManagerError):
    """The control plane returned a payload that is not the expected JSON."""


class ConfigCorrupt(DecodeError):
    """The server configuration loaded from the control plane cannot be decoded."""


class RouteAlreadyExists(ProxyManagerError):
    """A route with the same derived id is already present remotely."""

    def __init__(self, route_id: str):
        super().__init__(f"route already exists: {route_id}")
        self.route_id = route_id


class DiscoveryUnavailable(ProxyManagerError):
    """The container runtime could not be queried."""


class DiscoveryDisabled(ProxyManagerError):
    """Container discovery is not enabled for this process."""

    status_code = 501

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Container discovery not enabled")


class ConfigInvalid(ProxyManagerError):
    """A request body could not be parsed into a proxy."""

    status_code = 400

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Invalid request body")


class Unauthorized(ProxyManagerError):
    """The shared-secret header is missing or wrong."""

    status_code = 401

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Invalid API key")
