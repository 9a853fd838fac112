"""API request and response models."""

from typing import Optional

from pydantic import BaseModel, field_validator

from ..caddy.models import Proxy


class ProxyCreateRequest(BaseModel):
    """Body of POST /proxies."""
    upstream: str
    match: str

    @field_validator('upstream', 'match')
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('must not be empty')
        return v

    def to_proxy(self) -> Proxy:
        return Proxy(upstream=self.upstream, match=self.match)


class ErrorResponse(BaseModel):
    error: str


class HealthStatus(BaseModel):
    """Health check response."""
    status: str
    server: str
    routes: int
    discovery: bool
    reconciler: bool
    last_refresh_ok: Optional[bool] = None
