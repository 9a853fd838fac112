"""FastAPI server setup for the management API."""

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .errors import proxy_manager_error_handler
from .models import HealthStatus
from .routers.proxies import create_router
from ..caddy.client import CaddyClient
from ..caddy.exceptions import ProxyManagerError
from ..docker.label_manager import LabelManager
from ..orchestrator.reconciler import RouteReconciler
from ..shared.config import Config

logger = logging.getLogger(__name__)


def create_api_app(
    config: Config,
    caddy_client: Optional[CaddyClient] = None,
    label_manager: Optional[LabelManager] = None,
    reconciler: Optional[RouteReconciler] = None,
    lifespan=None,
) -> FastAPI:
    """Create the FastAPI application.

    Components may be attached later through ``app.state`` (the ASGI
    deployment does so from its lifespan).
    """
    app = FastAPI(
        title="Proxy Manager API",
        description="Caddy reverse proxy route management",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.caddy_client = caddy_client
    app.state.label_manager = label_manager
    app.state.reconciler = reconciler

    app.add_exception_handler(ProxyManagerError, proxy_manager_error_handler)

    # Preflights are answered by CORSMiddleware; any other OPTIONS ends here
    @app.middleware("http")
    async def short_circuit_options(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=200)
        return await call_next(request)

    # Added last so it wraps the OPTIONS short-circuit too
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthStatus)
    async def health_check(request: Request):
        """Report mirror size, discovery and reconciler state."""
        state = request.app.state
        routes = len(await state.caddy_client.list_proxies()) if state.caddy_client else 0
        last = state.reconciler.last_result if state.reconciler else None
        return HealthStatus(
            status="healthy" if state.caddy_client else "starting",
            server=config.CADDY_SERVER_NAME,
            routes=routes,
            discovery=state.label_manager is not None,
            reconciler=bool(state.reconciler and state.reconciler.is_running()),
            last_refresh_ok=last.refreshed if last else None,
        )

    app.include_router(create_router())

    # Frontend last so it does not shadow API paths
    if config.STATIC_DIR:
        if os.path.isdir(config.STATIC_DIR):
            app.mount("/", StaticFiles(directory=config.STATIC_DIR, html=True), name="frontend")
            logger.info(f"Serving frontend from {config.STATIC_DIR}")
        else:
            logger.warning(f"STATIC_DIR {config.STATIC_DIR} does not exist, frontend disabled")

    return app
