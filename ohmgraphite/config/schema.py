"""
Configuration schema with dataclasses for validation and type safety.

The exporter writes to exactly one backend. Each backend has its own
dataclass and the resolved ``Config.backend`` holds one of them.
"""

import platform
import socket
from dataclasses import dataclass, field
from typing import Any

from ..const import (
    DEFAULT_GRAPHITE_PORT,
    DEFAULT_INTERVAL,
    DEFAULT_PROMETHEUS_HOST,
    DEFAULT_PROMETHEUS_PORT,
    DEFAULT_PUSHGATEWAY_JOB,
)
from .parser import Block, ConfigDocument


def _require(block: Block, name: str) -> Any:
    """Get a mandatory directive value from a backend block."""
    value = block.get_value(name)
    if value is None:
        raise ValueError(f"'{block.type}' block requires '{name}'")
    return value


@dataclass
class GraphiteConfig:
    """Graphite plaintext protocol target."""
    host: str
    port: int = DEFAULT_GRAPHITE_PORT
    tags: bool = False

    @classmethod
    def from_block(cls, block: Block) -> "GraphiteConfig":
        return cls(
            host=str(_require(block, "host")),
            port=int(block.get_value("port", DEFAULT_GRAPHITE_PORT)),
            tags=bool(block.get_value("tags", False)),
        )


@dataclass
class PrometheusConfig:
    """Prometheus scrape endpoint with optional Pushgateway relay."""
    port: int = DEFAULT_PROMETHEUS_PORT
    host: str = DEFAULT_PROMETHEUS_HOST
    pushgateway_url: str | None = None
    job: str = DEFAULT_PUSHGATEWAY_JOB

    @classmethod
    def from_block(cls, block: Block) -> "PrometheusConfig":
        return cls(
            port=int(block.get_value("port", DEFAULT_PROMETHEUS_PORT)),
            host=str(block.get_value("host", DEFAULT_PROMETHEUS_HOST)),
            pushgateway_url=block.get_value("pushgateway_url"),
            job=str(block.get_value("job", DEFAULT_PUSHGATEWAY_JOB)),
        )


@dataclass
class TimescaleConfig:
    """TimescaleDB (PostgreSQL) target."""
    connection: str
    setup_table: bool = True

    @classmethod
    def from_block(cls, block: Block) -> "TimescaleConfig":
        return cls(
            connection=str(_require(block, "connection")),
            setup_table=bool(block.get_value("setup_table", True)),
        )


@dataclass
class InfluxConfig:
    """InfluxDB 1.x target."""
    address: str
    db: str
    user: str | None = None
    password: str | None = None

    @classmethod
    def from_block(cls, block: Block) -> "InfluxConfig":
        return cls(
            address=str(_require(block, "address")),
            db=str(_require(block, "db")),
            user=block.get_value("user"),
            password=block.get_value("password"),
        )


@dataclass
class Influx2Config:
    """InfluxDB 2.x target."""
    url: str
    org: str
    bucket: str
    token: str | None = None

    @classmethod
    def from_block(cls, block: Block) -> "Influx2Config":
        return cls(
            url=str(_require(block, "url")),
            org=str(_require(block, "org")),
            bucket=str(_require(block, "bucket")),
            token=block.get_value("token"),
        )


Backend = GraphiteConfig | PrometheusConfig | TimescaleConfig | InfluxConfig | Influx2Config

# Block name -> backend class, in selection priority order
BACKEND_BLOCKS: dict[str, type] = {
    "graphite": GraphiteConfig,
    "prometheus": PrometheusConfig,
    "timescale": TimescaleConfig,
    "influx": InfluxConfig,
    "influx2": Influx2Config,
}


@dataclass
class HardwareConfig:
    """Which hardware groups are sampled."""
    cpu: bool = True
    gpu: bool = True
    motherboard: bool = True
    ram: bool = True
    network: bool = True
    storage: bool = True
    battery: bool = True

    @classmethod
    def from_block(cls, block: Block | None) -> "HardwareConfig":
        if block is None:
            return cls()
        return cls(
            cpu=bool(block.get_value("cpu", True)),
            gpu=bool(block.get_value("gpu", True)),
            motherboard=bool(block.get_value("motherboard", True)),
            ram=bool(block.get_value("ram", True)),
            network=bool(block.get_value("network", True)),
            storage=bool(block.get_value("storage", True)),
            battery=bool(block.get_value("battery", True)),
        )


@dataclass
class SensorsConfig:
    """Sensor visibility and naming overrides."""
    hide: list[str] = field(default_factory=list)  # glob patterns on identifiers
    rename: dict[str, str] = field(default_factory=dict)  # identifier -> name

    @classmethod
    def from_block(cls, block: Block | None) -> "SensorsConfig":
        if block is None:
            return cls()

        rename: dict[str, str] = {}
        for directive in block.get_directives("rename"):
            if len(directive.values) != 2:
                raise ValueError(
                    f"'rename' expects an identifier and a name (line {directive.line})"
                )
            rename[str(directive.values[0])] = str(directive.values[1])

        return cls(
            hide=[str(v) for v in block.get_all_values("hide")],
            rename=rename,
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "info"  # debug, info, warning, error
    file: str | None = None  # Log file path
    file_level: str = "debug"  # File log level
    file_max_size: int = 10  # Max file size in MB
    file_keep: int = 5  # Number of backup files to keep
    colors: bool = True  # Colored console output
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    @classmethod
    def from_block(cls, block: Block | None) -> "LoggingConfig":
        """Create LoggingConfig from a parsed 'logging' block."""
        if block is None:
            return cls()

        return cls(
            level=str(block.get_value("level", "info")),
            file=block.get_value("file"),
            file_level=str(block.get_value("file_level", "debug")),
            file_max_size=int(block.get_value("file_max_size", 10)),
            file_keep=int(block.get_value("file_keep", 5)),
            colors=bool(block.get_value("colors", True)),
            format=block.get_value("format", "%(asctime)s [%(levelname)s] %(name)s: %(message)s"),
        )


@dataclass
class Config:
    """Complete application configuration."""
    backend: Backend
    interval: float = DEFAULT_INTERVAL  # seconds
    name: str = "netbios"
    hardware: HardwareConfig = field(default_factory=HardwareConfig)
    sensors: SensorsConfig = field(default_factory=SensorsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def lookup_name(self) -> str:
        """
        Resolve the host label attached to every exported metric.

        ``netbios`` gives the short machine name, ``dns`` the fully
        qualified domain name; anything else is used as-is.
        """
        if self.name.lower() == "netbios":
            return (socket.gethostname() or platform.node()).split(".")[0]
        if self.name.lower() == "dns":
            return socket.getfqdn()
        return self.name

    @classmethod
    def from_document(cls, doc: ConfigDocument) -> "Config":
        """Create Config from a parsed ConfigDocument."""
        present = [name for name in BACKEND_BLOCKS if doc.get_blocks(name)]
        if not present:
            raise ValueError(
                f"No backend configured; expected one of: {', '.join(BACKEND_BLOCKS)}"
            )
        if len(present) > 1 or len(doc.get_blocks(present[0])) > 1:
            raise ValueError(f"Exactly one backend block allowed, found: {', '.join(present)}")

        backend_name = present[0]
        backend = BACKEND_BLOCKS[backend_name].from_block(doc.get_block(backend_name))

        interval = doc.get_value("interval", DEFAULT_INTERVAL)
        if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0:
            raise ValueError(f"'interval' must be a positive duration, got {interval!r}")

        return cls(
            backend=backend,
            interval=float(interval),
            name=str(doc.get_value("name", "netbios")),
            hardware=HardwareConfig.from_block(doc.get_block("hardware")),
            sensors=SensorsConfig.from_block(doc.get_block("sensors")),
            logging=LoggingConfig.from_block(doc.get_block("logging")),
        )
