"""
Hardware sensor readings and the psutil-backed snapshot source.
"""

from .collector import SensorCollector
from .models import HardwareType, Reading, SensorType, Snapshot, SnapshotSource

__all__ = [
    "HardwareType",
    "Reading",
    "SensorCollector",
    "SensorType",
    "Snapshot",
    "SnapshotSource",
]
