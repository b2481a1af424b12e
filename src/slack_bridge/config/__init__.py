"""Configuration loading and validation."""

from .loader import load_config
from .schema import (
    DEFAULT_MESSAGE_SUBTYPES,
    BridgeConfig,
    FileLoggingConfig,
    LoggingConfig,
    RuntimeConfig,
    SlackConfig,
)

__all__ = [
    # Loader
    "load_config",
    # Root config
    "BridgeConfig",
    # Sections
    "SlackConfig",
    "LoggingConfig",
    "FileLoggingConfig",
    "RuntimeConfig",
    "DEFAULT_MESSAGE_SUBTYPES",
]
