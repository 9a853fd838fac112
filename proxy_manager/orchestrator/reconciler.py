"""Periodic reconciliation of discovered proxies with Caddy.

Every tick discovers container proxies, adds the ones Caddy does not have
yet and refreshes the client's mirror. The scheduler runs at most one tick
at a time; a tick that is still running when the next one is due causes
that next run to be skipped and coalesced.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..caddy.client import CaddyClient
from ..caddy.exceptions import RouteAlreadyExists
from ..caddy.models import Proxy
from ..docker.label_manager import LabelManager

logger = logging.getLogger(__name__)

JOB_ID = 'reconcile'


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation tick."""
    discovered: int = 0
    added: int = 0
    skipped: int = 0
    failed: int = 0
    discovery_error: Optional[str] = None
    refreshed: bool = False


class RouteReconciler:
    """Keeps Caddy converged with container-declared proxies."""

    def __init__(self, client: CaddyClient, label_manager: Optional[LabelManager] = None,
                 interval: float = 5.0):
        """Initialize reconciler.

        Args:
            client: Caddy client shared with the management API
            label_manager: Container discovery, or None when discovery is disabled
            interval: Seconds between ticks
        """
        self.client = client
        self.label_manager = label_manager
        self.interval = interval
        self.last_result: Optional[ReconcileResult] = None
        self.scheduler = AsyncIOScheduler(
            jobstores={
                'default': MemoryJobStore()
            },
            executors={
                'default': AsyncIOExecutor()
            },
            job_defaults={
                'coalesce': True,
                'max_instances': 1
            }
        )

    @property
    def discovery_enabled(self) -> bool:
        return self.label_manager is not None

    def start(self):
        """Start the periodic reconciliation job. Must be called from a running event loop."""
        if not self.scheduler.running:
            self.scheduler.start()
            self.scheduler.add_job(
                self.tick,
                'interval',
                seconds=self.interval,
                id=JOB_ID,
                replace_existing=True,
                misfire_grace_time=None
            )
            logger.info(f"Reconciler started with interval: {self.interval}s "
                        f"(discovery {'enabled' if self.discovery_enabled else 'disabled'})")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Reconciler stopped")

    def is_running(self) -> bool:
        return self.scheduler.running

    async def tick(self) -> ReconcileResult:
        """Run discover, converge and refresh once. Never raises."""
        result = ReconcileResult()

        proxies: List[Proxy] = []
        if self.label_manager is not None:
            try:
                proxies = await self.label_manager.get_container_proxies()
                result.discovered = len(proxies)
            except Exception as e:
                result.discovery_error = str(e)
                logger.error(f"Failed to get container proxies: {e}")

        for proxy in proxies:
            await self._converge(proxy, result)

        try:
            await self.client.refresh()
            result.refreshed = True
        except Exception as e:
            logger.error(f"Failed to refresh Caddy configuration: {e}")

        self.last_result = result
        return result

    async def _converge(self, proxy: Proxy, result: ReconcileResult) -> None:
        route = proxy.to_route()

        # Checked here too so steady-state ticks do not log duplicate errors
        if await self.client.object_exists(f"id/{route.id}"):
            result.skipped += 1
            return

        try:
            await self.client.add_route(route)
            result.added += 1
            logger.info(f"Added container route {proxy.match} -> {proxy.upstream}")
        except RouteAlreadyExists:
            result.skipped += 1
            logger.debug(f"Container route {route.id} appeared concurrently")
        except Exception as e:
            result.failed += 1
            logger.error(f"Failed to add container route {proxy.match}: {e}")

    async def cleanup(self) -> int:
        """Delete container-originated routes before shutdown.

        Returns:
            Number of routes deleted
        """
        if self.label_manager is None:
            return 0

        try:
            proxies = await self.label_manager.get_container_proxies()
        except Exception as e:
            logger.error(f"Failed to get container proxies for cleanup: {e}")
            return 0

        deleted = 0
        for proxy in proxies:
            route_id = proxy.to_route().id
            try:
                await self.client.delete_route(route_id)
                deleted += 1
            except Exception as e:
                logger.error(f"Failed to delete container route {route_id}: {e}")

        logger.info(f"Removed {deleted} container routes on shutdown")
        return deleted
