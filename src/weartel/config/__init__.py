"""Configuration module for weartel.

This module provides:
- Pydantic models for configuration validation
- YAML config file loading and discovery
- Default configuration values
- Environment variable expansion
- Clear error messages for config issues
"""

from weartel.config.defaults import DEFAULT_CONFIG
from weartel.config.loader import (
    ChannelConfig,
    ChannelsConfig,
    Config,
    ConfigError,
    ConfigKeyError,
    ConfigSyntaxError,
    ConfigValidationError,
    LoggingConfig,
    SentryConfig,
    SinkConfig,
    get_config_path,
    load_config,
)

__all__ = [
    "ChannelConfig",
    "ChannelsConfig",
    "Config",
    "ConfigError",
    "ConfigKeyError",
    "ConfigSyntaxError",
    "ConfigValidationError",
    "DEFAULT_CONFIG",
    "LoggingConfig",
    "SentryConfig",
    "SinkConfig",
    "get_config_path",
    "load_config",
]
