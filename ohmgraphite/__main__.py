"""
Entry point for OhmGraphite.

Usage:
    python -m ohmgraphite /path/to/ohmgraphite.conf
    python -m ohmgraphite --help
"""

import argparse
import asyncio
import sys
from pathlib import Path

from . import __version__
from .app import run_app
from .config.loader import ConfigError, ConfigLoader
from .config.schema import PrometheusConfig
from .logging import LogConfig, get_logger, setup_logging


logger = get_logger("main")


def validate_config(config_path: str) -> int:
    """Validate configuration file and print warnings."""
    try:
        loader = ConfigLoader()
        config = loader.load_file(config_path)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    warnings = loader.validate(config)
    if warnings:
        print(f"Configuration warnings ({len(warnings)}):")
        for warning in warnings:
            print(f"  - {warning}")

    backend = config.backend
    print("\nConfiguration summary:")
    print(f"  Backend: {type(backend).__name__}")
    print(f"  Interval: {config.interval}s")
    print(f"  Host name: {config.lookup_name()}")
    if isinstance(backend, PrometheusConfig):
        print(f"  Pushgateway: {backend.pushgateway_url or 'disabled'}")

    print("\nConfiguration is valid!")
    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="ohmgraphite",
        description="Export hardware sensor data to Graphite, Prometheus, TimescaleDB or InfluxDB",
    )
    parser.add_argument(
        "config",
        nargs="?",
        default="/etc/ohmgraphite/ohmgraphite.conf",
        help="Path to configuration file (default: /etc/ohmgraphite/ohmgraphite.conf)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging (INFO level)")
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging (DEBUG level)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Quiet mode (only errors)")
    parser.add_argument("--log-file", metavar="PATH", help="Write logs to file")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--validate", action="store_true", help="Validate configuration and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args()

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Configuration file not found: {config_path}", file=sys.stderr)
        return 1

    if args.validate:
        return validate_config(str(config_path))

    # Without any flag the logging block of the config file decides
    log_config: LogConfig | None = None
    if args.debug or args.verbose or args.quiet or args.no_color or args.log_file:
        log_config = LogConfig()
        if args.debug:
            log_config.console_level = "debug"
        elif args.verbose:
            log_config.console_level = "info"
        elif args.quiet:
            log_config.console_level = "error"
        if args.no_color:
            log_config.console_colors = False
        if args.log_file:
            log_config.file_enabled = True
            log_config.file_path = args.log_file
        setup_logging(log_config)
    else:
        setup_logging()

    try:
        asyncio.run(run_app(str(config_path), cli_log_config=log_config))
        return 0
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
