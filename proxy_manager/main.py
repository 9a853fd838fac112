"""Main entry point for Proxy Manager."""

import asyncio
import logging
import signal
import sys
from contextlib import asynccontextmanager
from typing import Optional, Tuple

from fastapi import FastAPI

from .api.server import create_api_app
from .caddy.client import CaddyClient
from .docker.label_manager import LabelManager
from .orchestrator.reconciler import RouteReconciler
from .shared.config import Config, get_config
from .shared.python_logger_config import setup_python_logging, silence_noisy_loggers

logger = logging.getLogger(__name__)


async def initialize_components(config: Config) -> Tuple[CaddyClient, Optional[LabelManager], RouteReconciler]:
    """Initialize the Caddy client, optional discovery and the reconciler.

    Any failure here is fatal: the process cannot manage routes without a
    reachable control plane.

    Returns:
        Tuple of (caddy_client, label_manager, reconciler)
    """
    client = CaddyClient(
        config.CADDY_SERVER_NAME,
        config.CADDY_ADMIN_URL,
        timeout=config.CADDY_REQUEST_TIMEOUT,
    )
    try:
        await client.initialize()

        label_manager = None
        if config.DISCOVERY_ENABLED:
            label_manager = LabelManager(
                config.DOMAIN,
                host=config.CONTAINER_HOST,
                runtime=config.CONTAINER_RUNTIME,
            )
            await asyncio.get_running_loop().run_in_executor(None, label_manager.connect)
    except Exception:
        await client.close()
        raise

    reconciler = RouteReconciler(client, label_manager, interval=config.REFRESH_INTERVAL)

    logger.info("All components initialized successfully")
    return client, label_manager, reconciler


async def shutdown_components(client: CaddyClient, reconciler: RouteReconciler) -> None:
    """Stop reconciling, remove container routes and close the client."""
    reconciler.stop()
    await reconciler.cleanup()
    await client.close()


def create_asgi_app(config: Optional[Config] = None) -> FastAPI:
    """Create the ASGI app for deployment under an external ASGI server.

    Components are initialized in the lifespan, so a startup failure aborts
    the server.
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client, label_manager, reconciler = await initialize_components(config)
        app.state.caddy_client = client
        app.state.label_manager = label_manager
        app.state.reconciler = reconciler
        reconciler.start()
        yield
        logger.info("Shutting down")
        await shutdown_components(client, reconciler)

    return create_api_app(config, lifespan=lifespan)


async def run_server(config: Config) -> None:
    """Run the management API and the reconciler until SIGINT or SIGTERM."""
    from hypercorn.asyncio import serve
    from hypercorn.config import Config as HypercornConfig

    client, label_manager, reconciler = await initialize_components(config)
    app = create_api_app(config, client, label_manager, reconciler)

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_event.set)

    host, port = config.listen
    api_config = HypercornConfig()
    api_config.bind = [f"{host}:{port}"]
    api_config.loglevel = config.LOG_LEVEL if config.LOG_LEVEL != 'TRACE' else 'DEBUG'

    reconciler.start()
    try:
        logger.info(f"Listening on {host}:{port}")
        await serve(app, api_config, shutdown_trigger=shutdown_event.wait)
    finally:
        logger.info("Shutting down")
        await shutdown_components(client, reconciler)


def main() -> None:
    """Main entry point for CLI execution."""
    setup_python_logging()
    silence_noisy_loggers()

    try:
        config = get_config()
        logger.info(f"Starting Proxy Manager: caddy={config.CADDY_ADMIN_URL} server={config.CADDY_SERVER_NAME} "
                    f"address={config.ADDRESS} discovery={config.DISCOVERY_ENABLED}")
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        logger.info("Shutting down Proxy Manager (interrupted)")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Failed to start Proxy Manager: {e}")
        print(f"ERROR: Failed to start Proxy Manager: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
