"""
Configuration parsing module with nginx-like syntax support.
"""

from .lexer import Lexer, LexerError, Token, TokenType
from .loader import ConfigError, ConfigLoader, load_config
from .parser import ConfigParser, ParseError
from .schema import (
    Backend,
    Config,
    GraphiteConfig,
    HardwareConfig,
    Influx2Config,
    InfluxConfig,
    PrometheusConfig,
    SensorsConfig,
    TimescaleConfig,
)

__all__ = [
    "Lexer",
    "LexerError",
    "Token",
    "TokenType",
    "ConfigParser",
    "ParseError",
    "ConfigError",
    "ConfigLoader",
    "load_config",
    "Backend",
    "Config",
    "GraphiteConfig",
    "HardwareConfig",
    "Influx2Config",
    "InfluxConfig",
    "PrometheusConfig",
    "SensorsConfig",
    "TimescaleConfig",
]
