"""
Tests for constants.
"""

from ohmgraphite import __version__
from ohmgraphite.const import (
    APP_NAME,
    APP_VERSION,
    DEFAULT_GRAPHITE_PORT,
    DEFAULT_INTERVAL,
    DEFAULT_PROMETHEUS_PORT,
    DEFAULT_PUSHGATEWAY_JOB,
)


def test_constants():
    """Test that constants are defined."""
    assert APP_NAME == "OhmGraphite"
    assert APP_VERSION == "0.1.0"
    assert __version__ == APP_VERSION


def test_defaults():
    assert DEFAULT_INTERVAL == 5.0
    assert DEFAULT_GRAPHITE_PORT == 2003
    assert DEFAULT_PROMETHEUS_PORT == 4445
    assert DEFAULT_PUSHGATEWAY_JOB == "ohmgraphite"
