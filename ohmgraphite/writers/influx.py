"""
InfluxDB writers (1.x and 2.x) using the line protocol over HTTP.

Point layout:
    <sensor type>,host=..,app=ohm,hardware=..,hardware_type=..,identifier=..,sensor=..,sensor_index=.. value=<v> <epoch>
"""

from abc import abstractmethod

import aiohttp

from ..config.schema import Influx2Config, InfluxConfig
from ..const import HTTP_TIMEOUT
from ..logging import get_logger
from ..sensors.models import Reading, Snapshot
from .base import MetricWriter


logger = get_logger("writers.influx")


def _escape_measurement(value: str) -> str:
    return value.replace("\\", "\\\\").replace(",", "\\,").replace(" ", "\\ ")


def _escape_tag(value: str) -> str:
    return _escape_measurement(value).replace("=", "\\=")


def format_point(reading: Reading, hostname: str, epoch: int) -> str:
    """Format a reading as one InfluxDB line protocol point."""
    tags = {
        "host": hostname,
        "app": "ohm",
        "hardware": reading.hardware,
        "hardware_type": str(reading.hardware_type),
        "identifier": reading.identifier,
        "sensor": reading.sensor,
        "sensor_index": str(reading.index),
    }
    tag_str = ",".join(f"{key}={_escape_tag(value)}" for key, value in tags.items() if value)
    return (
        f"{_escape_measurement(str(reading.sensor_type))},{tag_str} "
        f"value={float(reading.value)!r} {epoch}"
    )


def format_points(snapshot: Snapshot, hostname: str) -> str:
    """Format a whole snapshot as a line protocol body."""
    epoch = snapshot.epoch
    return "\n".join(format_point(reading, hostname, epoch) for reading in snapshot)


class HttpLineWriter(MetricWriter):
    """Shared HTTP plumbing for the InfluxDB writers."""

    def __init__(self, hostname: str):
        self.hostname = hostname
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=HTTP_TIMEOUT),
                auth=self._auth(),
                headers=self._headers(),
            )
        return self._session

    def _auth(self) -> aiohttp.BasicAuth | None:
        return None

    def _headers(self) -> dict[str, str]:
        return {}

    @abstractmethod
    def _write_url(self) -> str:
        """Endpoint the line protocol body is posted to."""

    def _params(self) -> dict[str, str]:
        return {}

    async def write(self, snapshot: Snapshot) -> None:
        if not len(snapshot):
            return

        body = format_points(snapshot, self.hostname)
        session = self._get_session()
        async with session.post(
            self._write_url(),
            params=self._params(),
            data=body.encode("utf-8"),
            headers={"Content-Type": "text/plain; charset=utf-8"},
        ) as response:
            if response.status >= 300:
                detail = await response.text()
                raise RuntimeError(f"{self.BACKEND} write failed ({response.status}): {detail.strip()}")

        logger.debug(f"Sent {len(snapshot)} points to {self.BACKEND}")

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None


class InfluxWriter(HttpLineWriter):
    """Writer for InfluxDB 1.x ``/write`` endpoint."""

    BACKEND = "influx"

    def __init__(self, config: InfluxConfig, hostname: str):
        super().__init__(hostname)
        self.config = config

    def _auth(self) -> aiohttp.BasicAuth | None:
        if self.config.user:
            return aiohttp.BasicAuth(self.config.user, self.config.password or "")
        return None

    def _write_url(self) -> str:
        return f"{self.config.address.rstrip('/')}/write"

    def _params(self) -> dict[str, str]:
        return {"db": self.config.db, "precision": "s"}


class Influx2Writer(HttpLineWriter):
    """Writer for InfluxDB 2.x ``/api/v2/write`` endpoint."""

    BACKEND = "influx2"

    def __init__(self, config: Influx2Config, hostname: str):
        super().__init__(hostname)
        self.config = config

    def _headers(self) -> dict[str, str]:
        if self.config.token:
            return {"Authorization": f"Token {self.config.token}"}
        return {}

    def _write_url(self) -> str:
        return f"{self.config.url.rstrip('/')}/api/v2/write"

    def _params(self) -> dict[str, str]:
        return {"org": self.config.org, "bucket": self.config.bucket, "precision": "s"}
