"""Proxy management endpoints.

Reads are served from the Caddy client's mirror; writes go to Caddy
through the same client the reconciler uses.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError

from ..auth import require_api_key
from ..models import ErrorResponse, ProxyCreateRequest
from ...caddy.client import CaddyClient
from ...caddy.exceptions import ConfigInvalid, DiscoveryDisabled
from ...caddy.models import Proxy
from ...docker.label_manager import LabelManager

logger = logging.getLogger(__name__)


def get_client(request: Request) -> CaddyClient:
    return request.app.state.caddy_client


def get_label_manager(request: Request) -> Optional[LabelManager]:
    return request.app.state.label_manager


def create_router() -> APIRouter:
    """Create the proxies router."""
    router = APIRouter(tags=["proxies"], responses={500: {"model": ErrorResponse}})
    protected = {401: {"model": ErrorResponse}}

    @router.get("/proxies", response_model=List[Proxy])
    async def list_proxies(client: CaddyClient = Depends(get_client)):
        """List proxies currently configured in Caddy."""
        return await client.list_proxies()

    @router.get("/container-proxies", response_model=List[Proxy], responses={501: {"model": ErrorResponse}})
    async def list_container_proxies(label_manager: Optional[LabelManager] = Depends(get_label_manager)):
        """List proxies declared by running containers."""
        if label_manager is None:
            raise DiscoveryDisabled()
        return await label_manager.get_container_proxies()

    @router.post("/proxies", status_code=201, dependencies=[Depends(require_api_key)],
                 responses={**protected, 400: {"model": ErrorResponse}})
    async def create_proxy(request: Request, client: CaddyClient = Depends(get_client)):
        """Add a proxy; fails if a proxy for the same host already exists."""
        try:
            body = ProxyCreateRequest.model_validate_json(await request.body())
        except ValidationError:
            raise ConfigInvalid()

        proxy = body.to_proxy()
        await client.add_route(proxy.to_route())
        logger.info(f"Created proxy {proxy.match} -> {proxy.upstream}")
        return Response(status_code=201, content="null", media_type="application/json")

    @router.delete("/proxies/{proxy_id}", dependencies=[Depends(require_api_key)], responses=protected)
    async def delete_proxy(proxy_id: str, client: CaddyClient = Depends(get_client)):
        """Delete a proxy by id and refresh the mirror."""
        logger.info(f"Deleting proxy {proxy_id}")
        await client.delete_route(proxy_id)

        try:
            await client.refresh()
        except Exception as e:
            logger.error(f"Failed to refresh Caddy configuration after delete: {e}")

        return Response(status_code=200, content="null", media_type="application/json")

    return router
