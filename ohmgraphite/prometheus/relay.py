"""
Pushgateway relay.

Re-scrapes the local ``/metrics`` endpoint and forwards the body to a
Pushgateway on the export interval. A failed cycle is logged and
dropped; the next one still waits a full interval.
"""

import asyncio

import aiohttp

from ..const import HTTP_TIMEOUT
from ..logging import get_logger


logger = get_logger("prometheus.relay")


def push_url(gateway_url: str, job: str, instance: str) -> str:
    """Pushgateway URL for a job/instance grouping key."""
    return f"{gateway_url.rstrip('/')}/metrics/job/{job}/instance/{instance}"


class PushgatewayRelay:
    """Background loop: wait, scrape locally, push upstream."""

    def __init__(
        self,
        metrics_url: str,
        gateway_url: str,
        job: str,
        instance: str,
        interval: float,
    ):
        self.metrics_url = metrics_url
        self.push_url = push_url(gateway_url, job, instance)
        self.interval = interval

        self._session: aiohttp.ClientSession | None = None
        self._task: asyncio.Task | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def push_once(self) -> None:
        """Scrape the local endpoint and forward the payload."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=HTTP_TIMEOUT))

        async with self._session.get(self.metrics_url) as response:
            response.raise_for_status()
            body = await response.read()

        async with self._session.post(
            self.push_url,
            data=body,
            headers={"Content-Type": "text/plain; charset=utf-8"},
        ) as response:
            response.raise_for_status()

        logger.debug(f"Pushed {len(body)} bytes to {self.push_url}")

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
                return
            except asyncio.TimeoutError:
                pass

            try:
                await self.push_once()
            except Exception as e:
                logger.warning(f"Failed to send metrics to {self.push_url}: {e}")

    async def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Pushgateway url: {self.push_url}, interval: {self.interval}s")

    async def stop(self) -> None:
        self._stopping.set()
        if self._task is not None:
            try:
                await asyncio.wait_for(self._task, timeout=HTTP_TIMEOUT)
            except asyncio.TimeoutError:
                pass
            self._task = None

        if self._session is not None:
            await self._session.close()
            self._session = None
