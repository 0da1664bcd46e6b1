"""
Hardware sensor collector backed by psutil.

Produces a fresh Snapshot on every call to ``sample()``. Readings are
grouped by hardware type:

- cpu: total and per-core load, clock, package/core temperatures
- gpu: temperatures and fans of amdgpu/nouveau/radeon chips
- motherboard: remaining hwmon temperatures and fans
- ram: load, used and available memory
- network: uploaded/downloaded data per interface
- storage: used space per partition, drive temperatures
- battery: charge level
"""

import fnmatch
import os

import psutil

from ..config.schema import HardwareConfig, SensorsConfig
from ..logging import get_logger
from .models import HardwareType, Reading, SensorType, Snapshot


logger = get_logger("sensors")

CPU_CHIPS = {"coretemp", "k10temp", "zenpower", "cpu_thermal", "cpu-thermal"}
GPU_CHIPS = {"amdgpu", "nouveau", "radeon"}
STORAGE_CHIPS = {"nvme", "drivetemp"}

GIB = 1024 ** 3


def sanitize_key(value: str) -> str:
    """Turn a chip/device/interface name into an identifier path segment."""
    chars = [c if c.isalnum() else "_" for c in value.lower()]
    key = "".join(chars)
    while "__" in key:
        key = key.replace("__", "_")
    return key.strip("_") or "0"


def _chip_hardware(chip: str) -> HardwareType:
    if chip in CPU_CHIPS:
        return HardwareType.CPU
    if chip in GPU_CHIPS:
        return HardwareType.GPU
    if chip in STORAGE_CHIPS:
        return HardwareType.STORAGE
    return HardwareType.MOTHERBOARD


class SnapshotBuilder:
    """Accumulates readings, assigning per-sensor-type indexes."""

    def __init__(self, sensors: SensorsConfig):
        self.sensors = sensors
        self._readings: list[Reading] = []
        self._indexes: dict[tuple[HardwareType, str, SensorType], int] = {}

    def add(
        self,
        hardware_type: HardwareType,
        key: str,
        hardware: str,
        sensor_type: SensorType,
        name: str,
        value: float,
    ) -> None:
        slot = (hardware_type, key, sensor_type)
        index = self._indexes.get(slot, 0)
        self._indexes[slot] = index + 1

        identifier = f"/{hardware_type}/{key}/{sensor_type}/{index}"
        if any(fnmatch.fnmatchcase(identifier, pattern) for pattern in self.sensors.hide):
            return

        self._readings.append(
            Reading(
                identifier=identifier,
                hardware=hardware,
                hardware_type=hardware_type,
                sensor=self.sensors.rename.get(identifier, name),
                sensor_type=sensor_type,
                index=index,
                value=float(value),
            )
        )

    def build(self) -> Snapshot:
        return Snapshot(readings=tuple(self._readings))


class SensorCollector:
    """
    Snapshot source reading hardware sensors through psutil.

    Safe to call from several threads at once; no state is shared
    between calls apart from psutil's own CPU usage counters.
    """

    def __init__(self, hardware: HardwareConfig | None = None, sensors: SensorsConfig | None = None):
        self.hardware = hardware or HardwareConfig()
        self.sensors = sensors or SensorsConfig()
        # Prime the CPU counters so the first sample is meaningful
        psutil.cpu_percent(percpu=True)

    def sample(self) -> Snapshot:
        """Read every enabled hardware group."""
        builder = SnapshotBuilder(self.sensors)
        hw = self.hardware

        if hw.cpu:
            self._sample_cpu(builder)
        if hw.cpu or hw.gpu or hw.motherboard or hw.storage:
            self._sample_hwmon(builder)
        if hw.ram:
            self._sample_ram(builder)
        if hw.network:
            self._sample_network(builder)
        if hw.storage:
            self._sample_storage(builder)
        if hw.battery:
            self._sample_battery(builder)

        return builder.build()

    def _enabled(self, hardware_type: HardwareType) -> bool:
        return bool(getattr(self.hardware, hardware_type.value))

    def _sample_cpu(self, builder: SnapshotBuilder) -> None:
        name = "CPU"
        loads = psutil.cpu_percent(percpu=True)
        if loads:
            builder.add(HardwareType.CPU, "0", name, SensorType.LOAD, "CPU Total", sum(loads) / len(loads))
            for core, load in enumerate(loads, start=1):
                builder.add(HardwareType.CPU, "0", name, SensorType.LOAD, f"CPU Core #{core}", load)

        freq = psutil.cpu_freq()
        if freq is not None:
            builder.add(HardwareType.CPU, "0", name, SensorType.CLOCK, "CPU Clock", freq.current)

    def _sample_hwmon(self, builder: SnapshotBuilder) -> None:
        temps = psutil.sensors_temperatures() if hasattr(psutil, "sensors_temperatures") else {}
        fans = psutil.sensors_fans() if hasattr(psutil, "sensors_fans") else {}

        for chip, entries in sorted(temps.items()):
            hardware_type = _chip_hardware(chip)
            if not self._enabled(hardware_type):
                continue
            key = "0" if hardware_type == HardwareType.CPU else sanitize_key(chip)
            for i, entry in enumerate(entries):
                label = entry.label or f"{chip} #{i + 1}"
                builder.add(hardware_type, key, chip, SensorType.TEMPERATURE, label, entry.current)

        for chip, entries in sorted(fans.items()):
            hardware_type = HardwareType.GPU if chip in GPU_CHIPS else HardwareType.MOTHERBOARD
            if not self._enabled(hardware_type):
                continue
            for i, entry in enumerate(entries):
                label = entry.label or f"Fan #{i + 1}"
                builder.add(hardware_type, sanitize_key(chip), chip, SensorType.FAN, label, entry.current)

    def _sample_ram(self, builder: SnapshotBuilder) -> None:
        mem = psutil.virtual_memory()
        name = "Generic Memory"
        builder.add(HardwareType.RAM, "0", name, SensorType.LOAD, "Memory", mem.percent)
        builder.add(HardwareType.RAM, "0", name, SensorType.DATA, "Memory Used", mem.used / GIB)
        builder.add(HardwareType.RAM, "0", name, SensorType.DATA, "Memory Available", mem.available / GIB)

    def _sample_network(self, builder: SnapshotBuilder) -> None:
        counters = psutil.net_io_counters(pernic=True)
        for nic, io in sorted(counters.items()):
            if nic == "lo":
                continue
            key = sanitize_key(nic)
            builder.add(HardwareType.NETWORK, key, nic, SensorType.DATA, "Data Uploaded", io.bytes_sent / GIB)
            builder.add(HardwareType.NETWORK, key, nic, SensorType.DATA, "Data Downloaded", io.bytes_recv / GIB)

    def _sample_storage(self, builder: SnapshotBuilder) -> None:
        for part in psutil.disk_partitions(all=False):
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except OSError as e:
                logger.debug(f"Skipping {part.mountpoint}: {e}")
                continue
            device = os.path.basename(part.device) or part.mountpoint
            builder.add(
                HardwareType.STORAGE,
                sanitize_key(device),
                device,
                SensorType.LOAD,
                "Used Space",
                usage.percent,
            )

    def _sample_battery(self, builder: SnapshotBuilder) -> None:
        if not hasattr(psutil, "sensors_battery"):
            return
        battery = psutil.sensors_battery()
        if battery is not None:
            builder.add(HardwareType.BATTERY, "0", "Battery", SensorType.LEVEL, "Charge Level", battery.percent)
