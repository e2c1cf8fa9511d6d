"""Default configuration values for weartel.

This module defines the default configuration used when no config file exists
or when config values are not specified.

Environment Variables:
    WEARTEL_CONFIG_PATH: Override default config file path
    Any config value can reference environment variables using ${VAR} syntax

Config File Locations (in order of precedence):
    1. Path specified via --config CLI flag
    2. Path specified via WEARTEL_CONFIG_PATH environment variable
    3. ~/.config/weartel/config.yaml (XDG default)
    4. ~/.weartel/config.yaml (legacy location)
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "flush_interval_millis": 1000,  # Tick cadence for flush-and-publish
    # Per-channel collection settings
    "channels": {
        "heart_rate": {
            "enabled": True,
            "rate_hz": 1.0,  # Simulated sensor rate
        },
        "gyroscope": {
            "enabled": True,
            "rate_hz": 50.0,
        },
        "accelerometer": {
            "enabled": True,
            "rate_hz": 50.0,
        },
    },
    # Where aggregate records go
    "sink": {
        "type": "console",  # "console" or "jsonl"
        "path": "~/.weartel/wear_data.jsonl",  # Output file for jsonl
        "root_key": "wear_data",  # Root node records are keyed under
        "pretty_print": False,
    },
    "logging": {
        "enabled": False,
        "level": "INFO",  # DEBUG, INFO, WARNING, ERROR
        "file": None,  # Optional log file in addition to stderr
    },
    # Error reporting
    "sentry": {
        "enabled": False,
        "dsn": "${WEARTEL_SENTRY_DSN:-}",
        "environment": "${WEARTEL_ENV:-production}",
        "traces_sample_rate": 0.0,
    },
}
