"""
TimescaleDB writer.

Inserts one row per reading into ``ohm_stats`` with psycopg2. The
blocking database calls run in a worker thread so the event loop keeps
serving other work while a write is in flight.
"""

import asyncio

import psycopg2
import psycopg2.extensions
import psycopg2.extras

from ..const import DB_CONNECT_TIMEOUT
from ..logging import get_logger
from ..sensors.models import Snapshot
from .base import MetricWriter


logger = get_logger("writers.timescale")

CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS ohm_stats (
    time TIMESTAMPTZ NOT NULL,
    host TEXT,
    hardware TEXT,
    hardware_type TEXT,
    identifier TEXT,
    sensor TEXT,
    sensor_type TEXT,
    sensor_index INT,
    value REAL
)
"""

CREATE_HYPERTABLE = "SELECT create_hypertable('ohm_stats', 'time', if_not_exists => TRUE)"

INSERT_ROWS = """
INSERT INTO ohm_stats (
    time, host, hardware, hardware_type, identifier, sensor, sensor_type, sensor_index, value
) VALUES %s
"""


def snapshot_rows(snapshot: Snapshot, hostname: str) -> list[tuple]:
    """Build insert rows for a snapshot."""
    return [
        (
            snapshot.timestamp,
            hostname,
            reading.hardware,
            str(reading.hardware_type),
            reading.identifier,
            reading.sensor,
            str(reading.sensor_type),
            reading.index,
            reading.value,
        )
        for reading in snapshot
    ]


class TimescaleWriter(MetricWriter):
    """Writer for TimescaleDB / PostgreSQL."""

    BACKEND = "timescale"

    def __init__(self, connection: str, setup_table: bool, hostname: str):
        self.connection = connection
        self.setup_table = setup_table
        self.hostname = hostname
        self._conn = None

    def _connect_options(self) -> dict:
        """Default ``connect_timeout`` unless the connection string sets one."""
        if "connect_timeout" in psycopg2.extensions.parse_dsn(self.connection):
            return {}
        return {"connect_timeout": DB_CONNECT_TIMEOUT}

    def _connect(self):
        if self._conn is None or self._conn.closed:
            logger.debug("Connecting to TimescaleDB")
            conn = psycopg2.connect(self.connection, **self._connect_options())
            if self.setup_table:
                try:
                    with conn.cursor() as cur:
                        cur.execute(CREATE_TABLE)
                        cur.execute(CREATE_HYPERTABLE)
                    conn.commit()
                except Exception:
                    conn.close()
                    raise
            self._conn = conn
            logger.info("Connected to TimescaleDB")
        return self._conn

    def _write_sync(self, rows: list[tuple]) -> None:
        conn = self._connect()
        try:
            with conn.cursor() as cur:
                psycopg2.extras.execute_values(cur, INSERT_ROWS, rows)
            conn.commit()
        except Exception:
            self._close_sync()
            raise

    def _close_sync(self) -> None:
        if self._conn is not None:
            conn, self._conn = self._conn, None
            try:
                conn.close()
            except psycopg2.Error as e:
                logger.debug(f"Error closing TimescaleDB connection: {e}")

    async def write(self, snapshot: Snapshot) -> None:
        rows = snapshot_rows(snapshot, self.hostname)
        if not rows:
            return
        await asyncio.to_thread(self._write_sync, rows)
        logger.debug(f"Inserted {len(rows)} rows into TimescaleDB")

    async def close(self) -> None:
        await asyncio.to_thread(self._close_sync)
