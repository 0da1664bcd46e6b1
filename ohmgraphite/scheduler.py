"""
Periodic collection for push-style backends.

Every tick takes one snapshot and hands it to the writer. Ticks never
overlap: the next one is due ``interval`` seconds after the previous
one started, or right after it finished if it ran long.
"""

import asyncio

from .const import STOP_GRACE_PERIOD
from .logging import get_logger
from .sensors.models import SnapshotSource
from .writers.base import MetricWriter


logger = get_logger("scheduler")


class MetricTimer:
    """Drives a MetricWriter from a SnapshotSource at a fixed interval."""

    def __init__(
        self,
        interval: float,
        source: SnapshotSource,
        writer: MetricWriter,
        stop_grace: float = STOP_GRACE_PERIOD,
    ):
        self.interval = interval
        self.source = source
        self.writer = writer
        self.stop_grace = stop_grace

        self._task: asyncio.Task | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> bool:
        """
        Run one collection cycle.

        Returns:
            True if the snapshot was written, False if the cycle failed
        """
        try:
            snapshot = await asyncio.to_thread(self.source.sample)
            await self.writer.write(snapshot)
        except Exception as e:
            logger.error(f"Unable to send metrics via {self.writer.BACKEND}: {e}")
            return False

        logger.debug(f"Exported {len(snapshot)} readings via {self.writer.BACKEND}")
        return True

    async def _wait(self, delay: float) -> bool:
        """Sleep up to ``delay`` seconds; True if stop was requested meanwhile."""
        if self._stopping.is_set():
            return True
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=max(delay, 0.0))
            return True
        except asyncio.TimeoutError:
            return False

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        due = loop.time() + self.interval

        while not await self._wait(due - loop.time()):
            started = loop.time()
            await self.tick()
            due = started + self.interval

    async def start(self) -> None:
        """Start ticking in the background."""
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Exporting via {self.writer.BACKEND} every {self.interval}s")

    async def stop(self) -> None:
        """Stop ticking and release the writer's connection."""
        self._stopping.set()

        if self._task is not None:
            try:
                # Let an in-flight write finish
                await asyncio.wait_for(asyncio.shield(self._task), timeout=self.stop_grace)
            except asyncio.TimeoutError:
                logger.warning("Collection still running at shutdown, cancelling it")
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass
            self._task = None

        await self.writer.close()
        logger.info(f"Stopped exporting via {self.writer.BACKEND}")
