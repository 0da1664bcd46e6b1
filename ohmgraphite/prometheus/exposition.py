"""
Prometheus text exposition of a snapshot.

Each (hardware type, sensor type) pair becomes one gauge family, e.g.
``ohm_cpu_celsius{hardware="CPU",sensor="Core 0",sensor_index="0"}``.
"""

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily

from ..sensors.models import Reading, SensorType, Snapshot


# Sensor type -> (metric suffix, scale to base unit)
METRIC_UNITS: dict[SensorType, tuple[str, float]] = {
    SensorType.TEMPERATURE: ("celsius", 1.0),
    SensorType.FAN: ("rpm", 1.0),
    SensorType.VOLTAGE: ("volts", 1.0),
    SensorType.LOAD: ("load_percent", 1.0),
    SensorType.CLOCK: ("hertz", 1e6),
    SensorType.POWER: ("watts", 1.0),
    SensorType.DATA: ("bytes", 1024.0 ** 3),
    SensorType.THROUGHPUT: ("bytes_per_second", 1.0),
    SensorType.LEVEL: ("level_percent", 1.0),
}

LABELS = ["hardware", "sensor", "sensor_index"]


def metric_name(reading: Reading) -> str:
    suffix, _scale = METRIC_UNITS[reading.sensor_type]
    return f"ohm_{reading.hardware_type}_{suffix}"


class SnapshotCollector:
    """prometheus_client custom collector exposing one snapshot."""

    def __init__(self, snapshot: Snapshot):
        self.snapshot = snapshot

    def collect(self):
        families: dict[str, GaugeMetricFamily] = {}

        for reading in self.snapshot:
            name = metric_name(reading)
            family = families.get(name)
            if family is None:
                family = GaugeMetricFamily(
                    name,
                    f"Metric reported by open hardware sensor ({reading.sensor_type.unit})",
                    labels=LABELS,
                )
                families[name] = family

            _suffix, scale = METRIC_UNITS[reading.sensor_type]
            family.add_metric(
                [reading.hardware, reading.sensor, str(reading.index)],
                reading.value * scale,
            )

        return iter(families.values())


def render(snapshot: Snapshot) -> bytes:
    """Render a snapshot in the Prometheus text exposition format."""
    registry = CollectorRegistry(auto_describe=False)
    registry.register(SnapshotCollector(snapshot))
    return generate_latest(registry)
