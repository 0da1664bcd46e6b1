"""
HTTP endpoint scraped by Prometheus.

Every ``GET /metrics`` reads a fresh snapshot; nothing is cached
between scrapes. Concurrent scrapes each take their own snapshot.
"""

import asyncio

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST

from ..const import STOP_GRACE_PERIOD
from ..logging import get_logger
from ..sensors.models import SnapshotSource
from .exposition import render
from .relay import PushgatewayRelay


logger = get_logger("prometheus.server")


class PrometheusServer:
    """aiohttp listener exposing sensor readings, with an optional relay."""

    def __init__(
        self,
        source: SnapshotSource,
        host: str,
        port: int,
        relay: PushgatewayRelay | None = None,
    ):
        self.source = source
        # "*" means every interface
        self.host = None if host in ("*", "+", "") else host
        self.port = port
        self.relay = relay

        self.app = web.Application()
        self.app.router.add_get("/metrics", self.handle_metrics)
        self._runner: web.AppRunner | None = None

    async def handle_metrics(self, request: web.Request) -> web.Response:
        try:
            snapshot = await asyncio.to_thread(self.source.sample)
            body = render(snapshot)
        except Exception as e:
            logger.error(f"Unable to collect metrics for {request.remote}: {e}")
            raise web.HTTPInternalServerError(text=f"Unable to collect metrics: {e}")

        return web.Response(body=body, headers={"Content-Type": CONTENT_TYPE_LATEST})

    async def start(self) -> None:
        """Bind the listener, then start the relay if configured."""
        # In-flight scrapes get STOP_GRACE_PERIOD to finish on cleanup
        self._runner = web.AppRunner(self.app, shutdown_timeout=STOP_GRACE_PERIOD)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info(f"Serving Prometheus metrics on {self.host or '*'}:{self.port}/metrics")

        if self.relay is not None:
            await self.relay.start()

    async def stop(self) -> None:
        """Stop the relay, then the listener."""
        if self.relay is not None:
            await self.relay.stop()

        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("Prometheus listener stopped")
