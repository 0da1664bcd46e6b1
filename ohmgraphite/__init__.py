"""
OhmGraphite - hardware sensor exporter for Graphite, Prometheus,
TimescaleDB and InfluxDB.
"""

from .const import APP_VERSION

__version__ = APP_VERSION
