"""
Backend writers for push-style exporters.
"""

from .base import MetricWriter
from .graphite import GraphiteWriter
from .influx import Influx2Writer, InfluxWriter
from .timescale import TimescaleWriter

__all__ = [
    "MetricWriter",
    "GraphiteWriter",
    "InfluxWriter",
    "Influx2Writer",
    "TimescaleWriter",
]
