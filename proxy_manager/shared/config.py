"""Centralized configuration management for Proxy Manager."""

import os
from typing import Optional, Tuple
from functools import lru_cache


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_float(name: str, default: float) -> Optional[float]:
    """Read a number; None if set but unparseable (reported by validate)."""
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return None


def parse_address(address: str) -> Tuple[str, int]:
    """Split a ``host:port`` listen address; an empty host means all interfaces.

    Raises:
        ValueError: If the port part is missing or not a valid port
    """
    host, sep, port = address.rpartition(':')
    if not sep:
        raise ValueError(f"Address must be in host:port form, got {address!r}")
    port_num = int(port)
    if not (1 <= port_num <= 65535):
        raise ValueError(f"Port must be between 1 and 65535, got {port_num}")
    return host.strip('[]') or '0.0.0.0', port_num


class Config:
    """Configuration class with all environment variables.

    Values are read when the instance is created, so tests can patch the
    environment and build a fresh ``Config()``.
    """

    def __init__(self):
        # Management API
        self.ADDRESS: str = os.getenv('PROXY_MANAGER_ADDRESS', ':8080')
        self.API_KEY: str = os.getenv('PROXY_MANAGER_KEY', 'secret')
        self.STATIC_DIR: Optional[str] = os.getenv('STATIC_DIR') or None

        # Workload discovery
        self.DISCOVERY_ENABLED: bool = _env_bool('PROXY_MANAGER_DISCOVERY')
        self.DOMAIN: str = os.getenv('PROXY_MANAGER_DOMAIN', 'example.com')
        self.CONTAINER_RUNTIME: str = os.getenv('CONTAINER_RUNTIME', 'podman').lower()
        self.CONTAINER_HOST: Optional[str] = os.getenv(
            'CONTAINER_HOST', 'unix:///run/user/1000/podman/podman.sock') or None

        # Caddy control plane
        self.CADDY_ADMIN_URL: str = os.getenv('CADDY_ADMIN_URL', 'http://localhost:2019').rstrip('/')
        self.CADDY_SERVER_NAME: str = os.getenv('CADDY_SERVER_NAME', 'srv0')
        self.CADDY_REQUEST_TIMEOUT: Optional[float] = _env_float('CADDY_REQUEST_TIMEOUT', 10)

        # Reconciliation
        self.REFRESH_INTERVAL: Optional[float] = _env_float('REFRESH_INTERVAL', 5)

        # Logging
        self.LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO').upper()

    def validate(self) -> None:
        """Validate configuration values."""
        errors = []

        if not self.API_KEY:
            errors.append("PROXY_MANAGER_KEY must not be empty")

        if not self.CADDY_SERVER_NAME:
            errors.append("CADDY_SERVER_NAME is required")

        if not self.CADDY_ADMIN_URL.startswith(('http://', 'https://')):
            errors.append(f"CADDY_ADMIN_URL must be an http(s) URL, got {self.CADDY_ADMIN_URL}")

        try:
            parse_address(self.ADDRESS)
        except ValueError as e:
            errors.append(f"PROXY_MANAGER_ADDRESS is invalid: {e}")

        for name in ('REFRESH_INTERVAL', 'CADDY_REQUEST_TIMEOUT'):
            value = getattr(self, name)
            if value is None:
                errors.append(f"{name} must be a number, got {os.getenv(name)!r}")
            elif not value > 0:
                errors.append(f"{name} must be positive, got {value}")

        if self.CONTAINER_RUNTIME not in ('podman', 'docker'):
            errors.append(f"CONTAINER_RUNTIME must be 'podman' or 'docker', got {self.CONTAINER_RUNTIME}")

        if errors:
            raise ValueError(f"Configuration errors: {'; '.join(errors)}")

    @property
    def listen(self) -> Tuple[str, int]:
        """Management API bind host and port."""
        return parse_address(self.ADDRESS)


@lru_cache()
def get_config() -> Config:
    """Get validated configuration instance."""
    config = Config()
    config.validate()
    return config
