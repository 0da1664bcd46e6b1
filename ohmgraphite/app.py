"""
Main application orchestrator.

Handles:
- Configuration loading
- Exporter selection and lifecycle
- Graceful shutdown
"""

import asyncio
import signal

from .config.loader import ConfigLoader
from .config.schema import Config
from .logging import LogConfig, get_logger, setup_logging
from .manager import Manager, create_manager
from .sensors.collector import SensorCollector
from .sensors.models import SnapshotSource


logger = get_logger("app")


class Application:
    """
    Main application class.

    Owns the snapshot source and the exporter chosen for the configured
    backend, and runs them until a shutdown signal arrives.
    """

    def __init__(self, config: Config, source: SnapshotSource | None = None):
        self.config = config
        self.source = source or SensorCollector(config.hardware, config.sensors)
        self.manager: Manager = create_manager(config, self.source)
        self._shutdown_event = asyncio.Event()

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self._signal_handler)
            except NotImplementedError:
                # Windows event loops have no signal handler support
                pass

    def _signal_handler(self) -> None:
        """Handle shutdown signals."""
        logger.info("Received shutdown signal")
        self.shutdown()

    def shutdown(self) -> None:
        """Request a graceful stop."""
        self._shutdown_event.set()

    async def start(self) -> None:
        """Start exporting and block until shutdown."""
        logger.info(f"Starting OhmGraphite as '{self.config.lookup_name()}'")

        await self.manager.start()
        self._setup_signal_handlers()
        logger.info("OhmGraphite started successfully")

        await self._shutdown_event.wait()
        await self.stop()

    async def stop(self) -> None:
        """Stop the exporter."""
        logger.info("Stopping OhmGraphite")
        await self.manager.stop()
        logger.info("OhmGraphite stopped")

    async def run(self) -> None:
        """Run the application until shutdown."""
        try:
            await self.start()
        except Exception as e:
            logger.error(f"Application error: {e}")
            raise


def _log_config_from(config: Config) -> LogConfig:
    return LogConfig(
        console_level=config.logging.level,
        console_colors=config.logging.colors,
        file_enabled=config.logging.file is not None,
        file_path=config.logging.file or "/var/log/ohmgraphite/ohmgraphite.log",
        file_level=config.logging.file_level,
        file_max_bytes=config.logging.file_max_size * 1024 * 1024,
        file_backup_count=config.logging.file_keep,
        format=config.logging.format,
    )


async def run_app(config_path: str, cli_log_config: LogConfig | None = None) -> None:
    """
    Load configuration and run the application.

    Args:
        config_path: Path to configuration file
        cli_log_config: Logging config from CLI args (overrides file config)
    """
    loader = ConfigLoader()
    config = loader.load_file(config_path)

    if cli_log_config is None:
        setup_logging(_log_config_from(config))
    else:
        # CLI args override file config, but keep the file's log file if CLI has none
        if not cli_log_config.file_enabled and config.logging.file:
            file_config = _log_config_from(config)
            cli_log_config.file_enabled = True
            cli_log_config.file_path = file_config.file_path
            cli_log_config.file_level = file_config.file_level
            cli_log_config.file_max_bytes = file_config.file_max_bytes
            cli_log_config.file_backup_count = file_config.file_backup_count
        setup_logging(cli_log_config)

    logger.info(f"Loaded configuration from {config_path}")

    for warning in loader.validate(config):
        logger.warning(f"Config warning: {warning}")

    app = Application(config)
    await app.run()
