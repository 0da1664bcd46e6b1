"""
Configuration loader with file reading and validation.
"""

from pathlib import Path

from .lexer import LexerError
from .parser import Block, ConfigDocument, ParseError, parse_config, parse_config_file
from .schema import Config, PrometheusConfig


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


class ConfigLoader:
    """
    Loads and validates configuration from files or strings.

    Usage:
        loader = ConfigLoader()
        config = loader.load_file("/etc/ohmgraphite/ohmgraphite.conf")
        # or
        config = loader.load_string(config_text)
    """

    # Known top-level directives (not in blocks)
    KNOWN_TOP_LEVEL = {"interval", "name"}

    # Known directives for each block type
    KNOWN_DIRECTIVES = {
        "graphite": {"host", "port", "tags"},
        "prometheus": {"host", "port", "pushgateway_url", "job"},
        "timescale": {"connection", "setup_table"},
        "influx": {"address", "db", "user", "password"},
        "influx2": {"url", "org", "bucket", "token"},
        "hardware": {"cpu", "gpu", "motherboard", "ram", "network", "storage", "battery"},
        "sensors": {"hide", "rename"},
        "logging": {
            "level",
            "file",
            "file_level",
            "file_max_size",
            "file_keep",
            "colors",
            "format",
        },
    }

    def __init__(self):
        self.last_document: ConfigDocument | None = None

    def load_file(self, path: str | Path) -> Config:
        """
        Load configuration from a file.

        Raises:
            ConfigError: If file cannot be read or parsed
        """
        path = Path(path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.is_file():
            raise ConfigError(f"Not a file: {path}")

        try:
            document = parse_config_file(path)
        except (LexerError, ParseError) as e:
            raise ConfigError(f"Failed to parse configuration: {e}") from e

        return self._build(document)

    def load_string(
        self,
        source: str,
        filename: str = "<string>",
        base_path: str | Path | None = None,
    ) -> Config:
        """
        Load configuration from a string.

        Raises:
            ConfigError: If configuration cannot be parsed
        """
        try:
            document = parse_config(source, filename, Path(base_path) if base_path else None)
        except (LexerError, ParseError) as e:
            raise ConfigError(f"Failed to parse configuration: {e}") from e

        return self._build(document)

    def _build(self, document: ConfigDocument) -> Config:
        self.last_document = document
        try:
            return Config.from_document(document)
        except Exception as e:
            raise ConfigError(f"Failed to load configuration: {e}") from e

    def validate(self, config: Config) -> list[str]:
        """
        Validate configuration and return list of warnings.

        Args:
            config: Configuration to validate

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []

        if self.last_document:
            warnings.extend(self._check_unknown_directives(self.last_document))

        backend = config.backend
        if isinstance(backend, PrometheusConfig):
            if backend.pushgateway_url and not backend.pushgateway_url.startswith(
                ("http://", "https://")
            ):
                warnings.append(
                    f"Pushgateway url '{backend.pushgateway_url}' has no http(s) scheme"
                )
        elif config.interval < 1.0:
            warnings.append(f"Interval of {config.interval}s may overload the backend")

        for identifier in config.sensors.rename:
            if not identifier.startswith("/"):
                warnings.append(f"Renamed sensor '{identifier}' is not a sensor identifier")

        return warnings

    def _check_unknown_directives(self, document: ConfigDocument) -> list[str]:
        """Check for unknown directives in parsed document."""
        warnings = []

        def check_block(block: Block) -> None:
            known = self.KNOWN_DIRECTIVES.get(block.type)
            if known is None:
                warnings.append(f"Unknown block '{block.type}' (line {block.line})")
                return
            for directive in block.directives:
                if directive.name not in known:
                    warnings.append(
                        f"Unknown directive '{directive.name}' in {block.type} block (line {directive.line})"
                    )
            for nested in block.blocks:
                warnings.append(
                    f"Unexpected block '{nested.type}' in {block.type} block (line {nested.line})"
                )

        for block in document.blocks:
            check_block(block)

        for directive in document.directives:
            if directive.name not in self.KNOWN_TOP_LEVEL:
                warnings.append(
                    f"Unknown top-level directive '{directive.name}' (line {directive.line})"
                )

        return warnings


def load_config(path: str | Path) -> Config:
    """Convenience function to load configuration from a file."""
    return ConfigLoader().load_file(path)
