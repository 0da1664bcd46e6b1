"""
Prometheus pull endpoint and Pushgateway relay.
"""

from .exposition import render
from .relay import PushgatewayRelay
from .server import PrometheusServer

__all__ = [
    "PrometheusServer",
    "PushgatewayRelay",
    "render",
]
