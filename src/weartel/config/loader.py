"""Configuration loading and validation for weartel.

This module provides:
- Pydantic models for configuration validation
- YAML config file discovery and loading
- Environment variable expansion in config values
- Merging of config file with defaults and CLI overrides
- Clear, user-friendly error messages for config issues
"""

from difflib import get_close_matches
import os
from pathlib import Path
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import yaml

from weartel.config.defaults import DEFAULT_CONFIG
from weartel.models.base import Channel


class ConfigError(Exception):
    """Base exception for configuration errors.

    Attributes:
        message: The main error message
        file_path: Path to the config file (if applicable)
        line_number: Line number where the error occurred (if known)
        column: Column where the error occurred (if known)
        suggestion: Helpful suggestion for fixing the error
        context_lines: Offending source lines shown under the message
    """

    def __init__(
        self,
        message: str,
        *,
        file_path: str | None = None,
        line_number: int | None = None,
        column: int | None = None,
        suggestion: str | None = None,
        context_lines: list[str] | None = None,
    ) -> None:
        self.message = message
        self.file_path = file_path
        self.line_number = line_number
        self.column = column
        self.suggestion = suggestion
        self.context_lines = context_lines
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with location, context and suggestion."""
        if self.file_path:
            header = f"Error in {self.file_path}"
            if self.line_number:
                header += f" line {self.line_number}"
            parts = [header + ":"]
        else:
            parts = ["Configuration error:"]

        parts.append(f"  {self.message}")

        if self.context_lines and self.column:
            parts.append("")
            parts.extend(f"    {line}" for line in self.context_lines)
            parts.append(" " * (self.column + 3) + "^")

        if self.suggestion:
            parts.append("")
            parts.append(f"  Suggestion: {self.suggestion}")

        return "\n".join(parts)


class ConfigSyntaxError(ConfigError):
    """Error for YAML syntax issues."""

    pass


class ConfigValidationError(ConfigError):
    """Error for configuration value validation failures."""

    pass


class ConfigKeyError(ConfigError):
    """Error for unknown or invalid configuration keys."""

    pass


# Known valid keys per section, used for "did you mean" suggestions
VALID_KEYS: dict[tuple[str, ...], set[str]] = {
    (): {"flush_interval_millis", "channels", "sink", "logging", "sentry"},
    ("channels",): {channel.value for channel in Channel},
    ("sink",): {"type", "path", "root_key", "pretty_print"},
    ("logging",): {"enabled", "level", "file"},
    ("sentry",): {"enabled", "dsn", "environment", "traces_sample_rate"},
}

VALID_CHANNEL_KEYS = {"enabled", "rate_hz"}

# Environment variable pattern: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def _suggest_key(unknown_key: str, valid_keys: set[str]) -> str | None:
    """Suggest a similar valid key for an unknown key.

    Args:
        unknown_key: The key that was not recognized
        valid_keys: Set of valid key names

    Returns:
        A suggestion message, or None if no good match found
    """
    matches = get_close_matches(unknown_key, sorted(valid_keys), n=1, cutoff=0.6)
    if matches:
        return f"Did you mean '{matches[0]}'?"
    return None


def _describe(value: Any) -> str:
    """Get a human-readable type description for a value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return f'string "{value}"'
    if isinstance(value, list):
        return "list"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _lookup(config_data: Any, loc: tuple[Any, ...]) -> Any:
    """Follow a pydantic error location into the raw config data."""
    value = config_data
    for key in loc:
        if isinstance(value, dict):
            value = value.get(key)
        else:
            return None
    return value


def _format_pydantic_error(
    error: ValidationError,
    config_data: dict[str, Any],
    file_path: str | None = None,
) -> ConfigError:
    """Convert a Pydantic ValidationError to a user-friendly ConfigError.

    Unknown keys become ConfigKeyError, everything else ConfigValidationError.

    Args:
        error: The Pydantic validation error
        config_data: The merged config data for context
        file_path: Path to the config file

    Returns:
        A ConfigError with helpful message and suggestion
    """
    errors = error.errors()
    if not errors:
        return ConfigValidationError("Configuration validation failed", file_path=file_path)

    first = errors[0]
    loc = tuple(first.get("loc", ()))
    error_type = first.get("type", "")
    ctx = first.get("ctx", {}) or {}
    path = ".".join(str(part) for part in loc)
    actual = _lookup(config_data, loc)
    suggestion = None

    if error_type == "extra_forbidden":
        unknown_key = str(loc[-1]) if loc else "unknown"
        parent = loc[:-1]
        if len(parent) == 2 and parent[0] == "channels":
            valid = VALID_CHANNEL_KEYS
        else:
            valid = VALID_KEYS.get(tuple(str(p) for p in parent), set())
        suggestion = _suggest_key(unknown_key, valid)
        return ConfigKeyError(
            f"Unknown configuration key '{path}'",
            file_path=file_path,
            suggestion=suggestion or "Check the documentation for valid configuration options",
        )

    if error_type in ("literal_error", "enum"):
        message = f"Invalid value for '{path}': got {_describe(actual)}"
        suggestion = f"Expected one of: {ctx.get('expected', '')}"
    elif error_type in ("greater_than", "greater_than_equal", "less_than", "less_than_equal"):
        message = f"Value for '{path}' is out of range: {actual}"
        if error_type.startswith("greater"):
            suggestion = f"Value must be at least {ctx.get('ge', ctx.get('gt'))}"
        else:
            suggestion = f"Value must be at most {ctx.get('le', ctx.get('lt'))}"
    elif error_type in ("int_parsing", "float_parsing", "int_from_float"):
        message = f"Invalid number for '{path}': got {_describe(actual)}"
        suggestion = "Please provide a valid number"
    elif error_type in ("bool_type", "bool_parsing"):
        message = f"Expected boolean for '{path}': got {_describe(actual)}"
        suggestion = "Use 'true' or 'false'"
    elif error_type == "string_type":
        message = f"Expected string for '{path}': got {_describe(actual)}"
        suggestion = "Please provide a text value"
    else:
        message = f"Invalid value for '{path}': {first.get('msg', 'Invalid value')}"

    return ConfigValidationError(message, file_path=file_path, suggestion=suggestion)


def _format_yaml_error(
    error: yaml.YAMLError,
    file_path: str | None = None,
    content: str | None = None,
) -> ConfigSyntaxError:
    """Convert a YAML error to a user-friendly ConfigSyntaxError.

    Args:
        error: The YAML error
        file_path: Path to the config file
        content: The file content for context

    Returns:
        A ConfigSyntaxError with position, context line and suggestion
    """
    line_number = None
    column = None
    context_lines = None

    mark = getattr(error, "problem_mark", None)
    if mark is not None:
        line_number = mark.line + 1
        column = mark.column + 1
        if content:
            lines = content.splitlines()
            if 0 <= mark.line < len(lines):
                context_lines = [lines[mark.line]]

    error_str = str(error).lower()
    suggestion = None
    if "could not find expected ':'" in error_str:
        suggestion = "Check for missing colons after keys (e.g., 'key: value')"
    elif "found character" in error_str and "tab" in error_str:
        suggestion = "Use spaces instead of tabs for indentation"
    elif "mapping values are not allowed" in error_str:
        suggestion = "Check your indentation - make sure nested keys are properly indented"

    problem = getattr(error, "problem", None)
    message = f"YAML syntax error: {problem}" if problem else "Invalid YAML syntax"

    return ConfigSyntaxError(
        message,
        file_path=file_path,
        line_number=line_number,
        column=column,
        context_lines=context_lines,
        suggestion=suggestion,
    )


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and ${VAR:-default} syntax. Unset variables without
    a default are left as written.

    Args:
        value: The value to expand (string, dict, list, or other)

    Returns:
        The value with environment variables expanded
    """
    if isinstance(value, str):

        def replace_env_var(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            if match.group(2) is not None:
                return match.group(2)
            return match.group(0)

        return ENV_VAR_PATTERN.sub(replace_env_var, value)
    if isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence.

    Args:
        base: Base dictionary with defaults
        override: Dictionary with overriding values

    Returns:
        Merged dictionary (inputs are not modified)
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


# Pydantic Configuration Models


class ChannelConfig(BaseModel):
    """Collection settings for one sensor channel."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    rate_hz: float = Field(default=1.0, gt=0, le=1000)


class ChannelsConfig(BaseModel):
    """Per-channel settings."""

    model_config = ConfigDict(extra="forbid")

    heart_rate: ChannelConfig = Field(default_factory=lambda: ChannelConfig(rate_hz=1.0))
    gyroscope: ChannelConfig = Field(default_factory=lambda: ChannelConfig(rate_hz=50.0))
    accelerometer: ChannelConfig = Field(default_factory=lambda: ChannelConfig(rate_hz=50.0))

    def get(self, channel: Channel) -> ChannelConfig:
        """Get the settings for a channel."""
        return getattr(self, channel.value)

    def enabled_channels(self) -> list[Channel]:
        """List the channels that are enabled, in channel order."""
        return [channel for channel in Channel if self.get(channel).enabled]


class SinkConfig(BaseModel):
    """Record sink configuration."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["console", "jsonl"] = "console"
    path: str = "~/.weartel/wear_data.jsonl"
    root_key: str = Field(default="wear_data", min_length=1)
    pretty_print: bool = False


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    file: str | None = None

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Accept lowercase level names."""
        return v.upper() if isinstance(v, str) else v


class SentryConfig(BaseModel):
    """Error reporting configuration."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    dsn: str = ""
    environment: str = "production"
    traces_sample_rate: float = Field(default=0.0, ge=0.0, le=1.0)


class Config(BaseModel):
    """Main configuration model for weartel.

    Loaded from YAML files and optionally overridden by CLI flags.
    """

    model_config = ConfigDict(extra="forbid")

    flush_interval_millis: int = Field(default=1000, ge=10, le=3_600_000)

    channels: ChannelsConfig = Field(default_factory=ChannelsConfig)
    sink: SinkConfig = Field(default_factory=SinkConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    sentry: SentryConfig = Field(default_factory=SentryConfig)


def get_config_path(custom_path: str | None = None) -> Path | None:
    """Determine the configuration file path.

    Checks locations in this order:
    1. Custom path (if provided via --config flag)
    2. WEARTEL_CONFIG_PATH environment variable
    3. ~/.config/weartel/config.yaml (XDG standard)
    4. ~/.weartel/config.yaml (legacy location)

    Args:
        custom_path: Optional custom config path from CLI

    Returns:
        Path to config file if found, None otherwise

    Raises:
        FileNotFoundError: If custom_path is given but does not exist
    """
    if custom_path:
        path = Path(custom_path).expanduser()
        if path.exists():
            return path
        raise FileNotFoundError(f"Config file not found: {custom_path}")

    env_path = os.environ.get("WEARTEL_CONFIG_PATH")
    if env_path:
        path = Path(env_path).expanduser()
        return path if path.exists() else None

    xdg_path = Path.home() / ".config" / "weartel" / "config.yaml"
    if xdg_path.exists():
        return xdg_path

    legacy_path = Path.home() / ".weartel" / "config.yaml"
    if legacy_path.exists():
        return legacy_path

    return None


def load_config(
    config_path: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
    raise_on_error: bool = True,
) -> Config:
    """Load and validate configuration.

    Configuration is merged in this order (later overrides earlier):
    1. Default configuration
    2. Config file (if found)
    3. CLI overrides (if provided)

    Args:
        config_path: Optional custom config file path
        cli_overrides: Optional dict of CLI argument overrides
        raise_on_error: If True, raise ConfigError on issues; if False,
            fall back to defaults

    Returns:
        Validated Config object

    Raises:
        FileNotFoundError: If custom config path doesn't exist
        ConfigSyntaxError: If config file has invalid YAML syntax
        ConfigKeyError: If config file has unknown keys
        ConfigValidationError: If config values are invalid
    """
    config_data: dict[str, Any] = DEFAULT_CONFIG.copy()
    resolved_path: Path | None = None

    path = get_config_path(config_path)
    if path:
        resolved_path = path
        file_content = path.read_text(encoding="utf-8")
        try:
            file_config = yaml.safe_load(file_content) or {}
        except yaml.YAMLError as e:
            if raise_on_error:
                raise _format_yaml_error(e, str(path), file_content) from e
            file_config = {}

        if not isinstance(file_config, dict):
            if raise_on_error:
                raise ConfigSyntaxError(
                    "Top level of the config file must be a mapping",
                    file_path=str(path),
                    suggestion="Start the file with keys such as 'flush_interval_millis: 1000'",
                )
            file_config = {}

        config_data = deep_merge(config_data, file_config)

    if cli_overrides:
        config_data = deep_merge(config_data, cli_overrides)

    config_data = expand_env_vars(config_data)

    try:
        return Config(**config_data)
    except ValidationError as e:
        if raise_on_error:
            raise _format_pydantic_error(
                e,
                config_data,
                str(resolved_path) if resolved_path else None,
            ) from e
        return Config(**expand_env_vars(DEFAULT_CONFIG))
