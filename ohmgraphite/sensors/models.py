"""
Sensor readings and point-in-time snapshots.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol


class SensorType(Enum):
    """Kind of a reading, with the unit its value is expressed in."""

    TEMPERATURE = ("temperature", "°C")
    FAN = ("fan", "RPM")
    VOLTAGE = ("voltage", "V")
    LOAD = ("load", "%")
    CLOCK = ("clock", "MHz")
    POWER = ("power", "W")
    DATA = ("data", "GB")
    THROUGHPUT = ("throughput", "B/s")
    LEVEL = ("level", "%")

    def __init__(self, label: str, unit: str):
        self.label = label
        self.unit = unit

    def __str__(self) -> str:
        return self.label


class HardwareType(Enum):
    """Hardware group a reading belongs to."""

    CPU = "cpu"
    GPU = "gpu"
    MOTHERBOARD = "motherboard"
    RAM = "ram"
    NETWORK = "network"
    STORAGE = "storage"
    BATTERY = "battery"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Reading:
    """A single sensor value."""

    identifier: str  # hardware path, e.g. /cpu/0/load/1
    hardware: str
    hardware_type: HardwareType
    sensor: str
    sensor_type: SensorType
    index: int
    value: float

    @property
    def identity(self) -> tuple[str, SensorType]:
        """Key that must be unique within a snapshot."""
        return (self.identifier, self.sensor_type)


@dataclass(frozen=True)
class Snapshot:
    """Readings captured at one instant."""

    readings: tuple[Reading, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        seen: set[tuple[str, SensorType]] = set()
        for reading in self.readings:
            if reading.identity in seen:
                raise ValueError(f"Duplicate sensor in snapshot: {reading.identifier}")
            seen.add(reading.identity)

    def __iter__(self):
        return iter(self.readings)

    def __len__(self) -> int:
        return len(self.readings)

    @property
    def epoch(self) -> int:
        """Capture time in whole seconds since the Unix epoch."""
        return int(self.timestamp.timestamp())


class SnapshotSource(Protocol):
    """Anything that can produce a fresh snapshot on demand."""

    def sample(self) -> Snapshot:
        ...
