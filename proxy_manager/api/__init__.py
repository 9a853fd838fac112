"""Management API for Proxy Manager."""
