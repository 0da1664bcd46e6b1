"""
Graphite plaintext protocol writer.

Each reading becomes one ``<path> <value> <epoch>`` line sent over a
persistent TCP connection. With tags enabled, Graphite 1.1 tag syntax
is appended to the path.
"""

import asyncio
import re

from ..const import SOCKET_TIMEOUT
from ..logging import get_logger
from ..sensors.models import Reading, Snapshot
from .base import MetricWriter


logger = get_logger("writers.graphite")

_UNSAFE = re.compile(r"[\s;~=]")


def normalize(identifier: str) -> str:
    """Convert a sensor identifier path into dotted Graphite notation."""
    return identifier.strip("/").replace("/", ".")


def _tag_value(value: str) -> str:
    return _UNSAFE.sub("_", value)


def format_line(reading: Reading, hostname: str, epoch: int, tags: bool = False) -> str:
    """Format a reading as a Graphite plaintext line (without newline)."""
    sensor_type = str(reading.sensor_type)
    if not tags:
        return f"ohm.{hostname}.{normalize(reading.identifier)}.{sensor_type} {reading.value} {epoch}"

    path = f"ohm.{hostname}.{reading.hardware_type}.{normalize(reading.identifier)}.{sensor_type}"
    tag_str = (
        f";host={_tag_value(hostname)}"
        f";app=ohm"
        f";hardware={_tag_value(reading.hardware)}"
        f";hardware_type={reading.hardware_type}"
        f";sensor_type={sensor_type}"
        f";sensor_index={reading.index}"
        f";raw_name={_tag_value(reading.sensor)}"
    )
    return f"{path}{tag_str} {reading.value} {epoch}"


class GraphiteWriter(MetricWriter):
    """Writer for Graphite/Carbon plaintext receivers."""

    BACKEND = "graphite"

    def __init__(
        self,
        host: str,
        port: int,
        hostname: str,
        tags: bool = False,
        timeout: float = SOCKET_TIMEOUT,
    ):
        self.host = host
        self.port = port
        self.hostname = hostname
        self.tags = tags
        self.timeout = timeout
        self._writer: asyncio.StreamWriter | None = None

    async def _connect(self) -> asyncio.StreamWriter:
        if self._writer is None or self._writer.is_closing():
            logger.debug(f"Connecting to Graphite at {self.host}:{self.port}")
            _reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port), timeout=self.timeout
            )
            logger.info(f"Connected to Graphite at {self.host}:{self.port}")
        return self._writer

    def _abort(self) -> None:
        if self._writer is not None:
            writer, self._writer = self._writer, None
            writer.transport.abort()

    async def write(self, snapshot: Snapshot) -> None:
        epoch = snapshot.epoch
        payload = "".join(
            f"{format_line(reading, self.hostname, epoch, self.tags)}\n" for reading in snapshot
        )

        writer = await self._connect()
        try:
            writer.write(payload.encode("utf-8"))
            # A receiver that stops reading must not stall the tick
            await asyncio.wait_for(writer.drain(), timeout=self.timeout)
        except Exception:
            # Drop unsent data and reconnect on next write
            self._abort()
            raise

        logger.debug(f"Sent {len(snapshot)} readings to Graphite")

    async def close(self) -> None:
        if self._writer is None:
            return
        writer, self._writer = self._writer, None
        writer.close()
        try:
            await asyncio.wait_for(writer.wait_closed(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Graphite connection did not flush in time, aborting it")
            writer.transport.abort()
        except (ConnectionError, OSError):
            pass
