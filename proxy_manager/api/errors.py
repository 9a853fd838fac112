"""JSON error envelope for engine errors.

Every ``ProxyManagerError`` raised from an endpoint or dependency is
rendered as ``{"error": "<message>"}`` with the status code carried by the
exception class.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from ..caddy.exceptions import ProxyManagerError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def proxy_manager_error_handler(request: Request, exc: ProxyManagerError) -> JSONResponse:
    if exc.status_code == 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc.status_code, exc.message)
