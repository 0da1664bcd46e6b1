"""
Backend selection.

Turns the resolved configuration into the single exporter that runs
for the lifetime of the process: a MetricTimer driving a push writer,
or a PrometheusServer (optionally with a Pushgateway relay).
"""

from typing import Protocol

from .config.loader import ConfigError
from .config.schema import (
    Config,
    GraphiteConfig,
    Influx2Config,
    InfluxConfig,
    PrometheusConfig,
    TimescaleConfig,
)
from .logging import get_logger
from .prometheus.relay import PushgatewayRelay
from .prometheus.server import PrometheusServer
from .scheduler import MetricTimer
from .sensors.models import SnapshotSource
from .writers.graphite import GraphiteWriter
from .writers.influx import Influx2Writer, InfluxWriter
from .writers.timescale import TimescaleWriter


logger = get_logger("app.manager")


class Manager(Protocol):
    """Lifecycle shared by every exporter."""

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...


def create_manager(config: Config, source: SnapshotSource) -> Manager:
    """
    Build the exporter for the configured backend.

    Raises:
        ConfigError: If the backend is not one of the supported kinds
    """
    hostname = config.lookup_name()
    backend = config.backend

    if isinstance(backend, GraphiteConfig):
        logger.info(
            f"Graphite host: {backend.host} port: {backend.port} "
            f"interval: {config.interval} tags: {backend.tags}"
        )
        writer = GraphiteWriter(backend.host, backend.port, hostname, backend.tags)
        return MetricTimer(config.interval, source, writer)

    if isinstance(backend, PrometheusConfig):
        logger.info(f"Prometheus host: {backend.host} port: {backend.port}")
        relay = None
        if backend.pushgateway_url:
            relay = PushgatewayRelay(
                metrics_url=f"http://127.0.0.1:{backend.port}/metrics",
                gateway_url=backend.pushgateway_url,
                job=backend.job,
                instance=hostname,
                interval=config.interval,
            )
        return PrometheusServer(source, backend.host, backend.port, relay=relay)

    if isinstance(backend, TimescaleConfig):
        logger.info(f"Timescale setup table: {backend.setup_table} interval: {config.interval}")
        writer = TimescaleWriter(backend.connection, backend.setup_table, hostname)
        return MetricTimer(config.interval, source, writer)

    if isinstance(backend, InfluxConfig):
        logger.info(f"Influxdb address: {backend.address} db: {backend.db}")
        return MetricTimer(config.interval, source, InfluxWriter(backend, hostname))

    if isinstance(backend, Influx2Config):
        logger.info(f"Influx2 address: {backend.url} bucket: {backend.bucket}")
        return MetricTimer(config.interval, source, Influx2Writer(backend, hostname))

    raise ConfigError(f"Unsupported backend configuration: {backend!r}")
