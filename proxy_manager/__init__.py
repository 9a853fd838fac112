"""Proxy Manager - keeps a Caddy route table in sync with declared and discovered proxies."""

__version__ = "1.0.0"
