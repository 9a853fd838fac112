"""Shared-secret authentication for mutating endpoints."""

import secrets
from typing import Optional

from fastapi import Header, Request

from ..caddy.exceptions import Unauthorized

API_KEY_HEADER = "X-Key"


def is_valid_key(expected: str, provided: Optional[str]) -> bool:
    """Constant-time comparison of the configured key and the header value."""
    if not expected or provided is None:
        return False
    return secrets.compare_digest(expected.encode(), provided.encode())


async def require_api_key(
    request: Request,
    x_key: Optional[str] = Header(None, alias=API_KEY_HEADER),
) -> None:
    """Reject the request unless the X-Key header matches the configured key."""
    if not is_valid_key(request.app.state.config.API_KEY, x_key):
        raise Unauthorized()
