"""
Pytest configuration and fixtures.
"""

import threading
import time

import pytest

from ohmgraphite.sensors.models import HardwareType, Reading, SensorType, Snapshot


def make_reading(
    identifier: str = "/cpu/0/temperature/0",
    value: float = 42.0,
    sensor: str = "CPU Package",
    hardware: str = "Intel Core i7",
    hardware_type: HardwareType = HardwareType.CPU,
    sensor_type: SensorType = SensorType.TEMPERATURE,
    index: int = 0,
) -> Reading:
    return Reading(
        identifier=identifier,
        hardware=hardware,
        hardware_type=hardware_type,
        sensor=sensor,
        sensor_type=sensor_type,
        index=index,
        value=value,
    )


def two_sensor_snapshot() -> Snapshot:
    return Snapshot(
        readings=(
            make_reading("/cpu/0/temperature/0", 55.5, "CPU Package"),
            make_reading(
                "/lpc/nct6798d/fan/0",
                1200.0,
                "Fan #1",
                hardware="nct6798d",
                hardware_type=HardwareType.MOTHERBOARD,
                sensor_type=SensorType.FAN,
            ),
        )
    )


class StaticSource:
    """Snapshot source returning the same readings every time."""

    def __init__(self, snapshot: Snapshot | None = None):
        self.snapshot = snapshot or two_sensor_snapshot()
        self.calls = 0

    def sample(self) -> Snapshot:
        self.calls += 1
        return Snapshot(readings=self.snapshot.readings)


class CountingSource:
    """Snapshot source whose single reading increases on every call."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self._lock = threading.Lock()
        self._counter = 0

    @property
    def current(self) -> int:
        with self._lock:
            return self._counter

    def sample(self) -> Snapshot:
        with self._lock:
            self._counter += 1
            value = self._counter
        if self.delay:
            time.sleep(self.delay)
        return Snapshot(readings=(make_reading(value=float(value), sensor="Counter"),))


class FailingSource:
    """Snapshot source that always raises."""

    def sample(self) -> Snapshot:
        raise OSError("sensor bus unavailable")


@pytest.fixture
def snapshot() -> Snapshot:
    return two_sensor_snapshot()


@pytest.fixture
def static_source() -> StaticSource:
    return StaticSource()
