"""
Application constants and metadata.
"""

# Application info
APP_NAME = "OhmGraphite"
APP_VERSION = "0.1.0"

# Default values
DEFAULT_INTERVAL = 5.0
DEFAULT_GRAPHITE_PORT = 2003
DEFAULT_PROMETHEUS_HOST = "*"
DEFAULT_PROMETHEUS_PORT = 4445
DEFAULT_PUSHGATEWAY_JOB = "ohmgraphite"

# Seconds allowed for an HTTP round trip (writers and relay)
HTTP_TIMEOUT = 10.0

# Seconds an in-flight tick may take to finish on shutdown
STOP_GRACE_PERIOD = 5.0

# Seconds a Graphite connect, send or close may take
SOCKET_TIMEOUT = 10.0

# Default libpq connect_timeout when the connection string sets none
DB_CONNECT_TIMEOUT = 10
