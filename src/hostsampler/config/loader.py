"""Configuration loading and validation for hostsampler.

This module provides:
- Pydantic models for configuration validation
- YAML/JSON config file loading
- Environment variable expansion in config values
- Merging of config file with defaults and CLI overrides
- Clear, user-friendly error messages for config issues
"""

from __future__ import annotations

import copy
from difflib import get_close_matches
import json
import logging
import os
from pathlib import Path
import re
from typing import Annotated, Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
import yaml

from hostsampler.collectors.metrics import MEMORY_SPECS
from hostsampler.config.defaults import DEFAULT_CONFIG
from hostsampler.errors import HostSamplerError

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "HOSTSAMPLER_CONFIG"


class ConfigError(HostSamplerError):
    """Base exception for configuration errors.

    Provides user-friendly error messages with context about what went wrong
    and suggestions for how to fix it.

    Attributes:
        message: The main error message
        file_path: Path to the config file (if applicable)
        line_number: Line number where the error occurred (if known)
        suggestion: Helpful suggestion for fixing the error
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
        """Format the error message with context and suggestions."""
        parts = []

        if self.file_path:
            location = f"Error in {self.file_path}"
            if self.line_number:
                location += f" line {self.line_number}"
            parts.append(location + ":")
        else:
            parts.append("Configuration error:")

        parts.append(f"  {self.message}")

        if self.context_lines and self.column:
            parts.append("")
            for line in self.context_lines:
                parts.append(f"    {line}")
            parts.append(" " * (self.column + 3) + "^")

        if self.suggestion:
            parts.append("")
            parts.append(f"  Suggestion: {self.suggestion}")

        return "\n".join(parts)


class ConfigSyntaxError(ConfigError):
    """Error for YAML/JSON syntax issues."""

    pass


class ConfigValidationError(ConfigError):
    """Error for configuration value validation failures."""

    pass


# Known valid configuration keys at each level for suggestions
VALID_KEYS: dict[tuple[str, ...], set[str]] = {
    (): {"settings", "metrics", "outputs", "logging", "sentry"},
    ("settings",): {"period", "proc_root"},
    ("logging",): {"level", "file"},
    ("sentry",): {"dsn", "environment"},
    ("metrics",): {"type", "ids", "spec", "specs"},
    ("outputs",): {"type", "path"},
}

METRIC_TYPES = ("cpu", "memory")
OUTPUT_TYPES = ("console", "file")

# Environment variable pattern: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def _suggest(unknown: str, valid: set[str] | tuple[str, ...]) -> str | None:
    """Suggest a similar valid name for an unknown one."""
    matches = get_close_matches(unknown, list(valid), n=1, cutoff=0.6)
    if matches:
        return f"Did you mean '{matches[0]}'?"
    return None


def _get_type_description(value: Any) -> str:
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


def _locate(config_data: Any, loc: tuple[Any, ...]) -> tuple[list[str], Any]:
    """Resolve a pydantic error location against the raw config data.

    Union tags that pydantic inserts into the location (``metrics.0.cpu``)
    have no counterpart in the data and are dropped from the path.

    Returns:
        Tuple of (path parts as written by the user, value at that path)
    """
    parts: list[str] = []
    value = config_data
    for key in loc:
        if isinstance(value, dict):
            if key in value:
                value = value[key]
                parts.append(str(key))
            elif isinstance(key, str) and key in (*METRIC_TYPES, *OUTPUT_TYPES):
                continue
            else:
                parts.append(str(key))
                value = None
        elif isinstance(value, list) and isinstance(key, int):
            value = value[key] if key < len(value) else None
            parts.append(str(key))
        else:
            parts.append(str(key))
            value = None
    return parts, value


def _format_pydantic_error(
    error: ValidationError,
    config_data: dict[str, Any],
    file_path: str | None = None,
) -> ConfigValidationError:
    """Convert a Pydantic ValidationError to a user-friendly ConfigValidationError.

    Args:
        error: The Pydantic validation error
        config_data: The merged config data for context
        file_path: Path to the config file

    Returns:
        A ConfigValidationError with helpful message and suggestions
    """
    errors = error.errors()
    if not errors:
        return ConfigValidationError("Configuration validation failed", file_path=file_path)

    first_error = errors[0]
    error_type = first_error.get("type", "")
    msg = first_error.get("msg", "Invalid value")
    ctx = first_error.get("ctx", {}) or {}

    parts, actual_value = _locate(config_data, tuple(first_error.get("loc", ())))
    path = ".".join(parts)
    # Section keys of list items are looked up without the index
    section = tuple(p for p in parts[:-1] if not p.isdigit())

    suggestion = None

    if error_type == "missing":
        message = f"Missing required key '{path}'"
        if path == "settings.period":
            suggestion = "Set the sampling period in seconds, e.g. 'settings: {period: 1}'"

    elif error_type in ("union_tag_invalid", "union_tag_not_found"):
        kind = parts[0] if parts else "entry"
        valid = METRIC_TYPES if kind == "metrics" else OUTPUT_TYPES
        if error_type == "union_tag_not_found":
            message = f"Missing 'type' in '{path}'"
        else:
            tag = actual_value.get("type") if isinstance(actual_value, dict) else actual_value
            message = f"Unknown {kind} type in '{path}': {_get_type_description(tag)}"
            if isinstance(tag, str):
                suggestion = _suggest(tag, valid)
        suggestion = suggestion or f"Expected one of: {', '.join(valid)}"

    elif error_type == "literal_error":
        expected = ctx.get("expected", "")
        message = f"Invalid value for '{path}': got {_get_type_description(actual_value)}"
        suggestion = f"Expected one of: {expected}"

    elif error_type in ("greater_than", "greater_than_equal", "less_than_equal"):
        message = f"Value for '{path}' is out of range: {actual_value}"
        if error_type == "greater_than":
            suggestion = f"Value must be greater than {ctx.get('gt')}"
        elif error_type == "greater_than_equal":
            suggestion = f"Value must be at least {ctx.get('ge')}"
        else:
            suggestion = f"Value must be at most {ctx.get('le')}"

    elif error_type in ("int_parsing", "int_type", "int_from_float", "float_parsing"):
        message = f"Invalid number for '{path}': got {_get_type_description(actual_value)}"
        suggestion = "Please provide a whole number"

    elif error_type in ("string_type", "string_too_short"):
        message = f"Expected text for '{path}': got {_get_type_description(actual_value)}"
        suggestion = "Please provide a non-empty text value"

    elif error_type == "list_type":
        message = f"Expected list for '{path}': got {_get_type_description(actual_value)}"
        suggestion = "Please provide a list (e.g., [0, 1])"

    elif error_type in ("model_type", "dict_type", "model_attributes_type"):
        message = f"Expected a mapping for '{path}': got {_get_type_description(actual_value)}"

    elif error_type == "extra_forbidden":
        unknown_key = parts[-1] if parts else "unknown"
        message = f"Unknown configuration key '{path}'"
        suggestion = _suggest(unknown_key, VALID_KEYS.get(section, set()))
        if not suggestion:
            suggestion = f"Valid keys here: {', '.join(sorted(VALID_KEYS.get(section, set())))}"

    elif error_type == "value_error":
        message = f"Invalid value for '{path}': {ctx.get('error', msg)}"

    else:
        message = f"Invalid value for '{path}': {msg}"

    return ConfigValidationError(message, file_path=file_path, suggestion=suggestion)


def _format_yaml_error(
    error: yaml.YAMLError,
    file_path: str | None = None,
    content: str | None = None,
) -> ConfigSyntaxError:
    """Convert a YAML error to a user-friendly ConfigSyntaxError."""
    line_number = None
    column = None
    context_lines = None
    suggestion = None

    mark = getattr(error, "problem_mark", None)
    if mark is not None:
        line_number = mark.line + 1
        column = mark.column + 1
        if content:
            lines = content.splitlines()
            if 0 <= mark.line < len(lines):
                context_lines = [lines[mark.line]]

    error_str = str(error).lower()

    if "could not find expected ':'" in error_str:
        suggestion = "Check for missing colons after keys (e.g., 'key: value')"
    elif "found character" in error_str and "tab" in error_str:
        suggestion = "Use spaces instead of tabs for indentation"
    elif "mapping values are not allowed" in error_str:
        suggestion = "Check your indentation - make sure nested keys are properly indented"

    message = "Invalid YAML syntax"
    problem = getattr(error, "problem", None)
    if problem:
        message = f"YAML syntax error: {problem}"

    return ConfigSyntaxError(
        message,
        file_path=file_path,
        line_number=line_number,
        column=column,
        context_lines=context_lines,
        suggestion=suggestion,
    )


def _format_json_error(
    error: json.JSONDecodeError,
    file_path: str | None = None,
) -> ConfigSyntaxError:
    """Convert a JSON decode error to a user-friendly ConfigSyntaxError."""
    lines = error.doc.splitlines()
    context_lines = [lines[error.lineno - 1]] if 0 < error.lineno <= len(lines) else None
    suggestion = None
    if "delimiter" in error.msg:
        suggestion = "Check for a missing or trailing comma"
    return ConfigSyntaxError(
        f"JSON syntax error: {error.msg}",
        file_path=file_path,
        line_number=error.lineno,
        column=error.colno,
        context_lines=context_lines,
        suggestion=suggestion,
    )


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and ${VAR:-default} syntax.
    """
    if isinstance(value, str):

        def replace_env_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            env_value = os.environ.get(var_name)
            if env_value is not None:
                return env_value
            if default_value is not None:
                return default_value
            return match.group(0)  # Keep original if not found and no default

        return ENV_VAR_PATTERN.sub(replace_env_var, value)
    if isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence.

    Lists are replaced, not concatenated.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


# Pydantic Configuration Models


class Settings(BaseModel):
    """Sampling loop settings."""

    model_config = ConfigDict(extra="forbid")

    period: int = Field(..., gt=0, le=86400, description="Seconds between samples")
    proc_root: str = "/proc"


def _drop_keys(data: Any, keys: tuple[str, ...]) -> Any:
    """Remove entry keys that are valid in the section but unused by this type."""
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if k not in keys}
    return data


class CpuMetricConfig(BaseModel):
    """CPU metric request: the aggregate plus the listed cores.

    Memory keys (``spec``) on a cpu entry are accepted and ignored.
    """

    model_config = ConfigDict(extra="forbid")

    type: Literal["cpu"]
    ids: list[Annotated[int, Field(ge=0)]] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def ignore_memory_keys(cls, data: Any) -> Any:
        return _drop_keys(data, ("spec", "specs"))


class MemoryMetricConfig(BaseModel):
    """Memory metric request: the listed specs.

    Unknown spec names are logged and dropped. CPU keys (``ids``) on a
    memory entry are accepted and ignored.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    type: Literal["memory"]
    spec: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("spec", "specs"),
    )

    @model_validator(mode="before")
    @classmethod
    def ignore_cpu_keys(cls, data: Any) -> Any:
        return _drop_keys(data, ("ids",))

    @field_validator("spec")
    @classmethod
    def drop_unknown_specs(cls, v: list[str]) -> list[str]:
        """Warn about spec names the collector does not know and drop them."""
        known = []
        for name in v:
            if name in MEMORY_SPECS:
                known.append(name)
                continue
            suggestion = _suggest(name, tuple(MEMORY_SPECS)) or (
                f"Valid specs: {', '.join(MEMORY_SPECS)}"
            )
            logger.warning("Ignoring unknown memory spec '%s'. %s", name, suggestion)
        return known


MetricConfig = Annotated[CpuMetricConfig | MemoryMetricConfig, Field(discriminator="type")]


class ConsoleOutputConfig(BaseModel):
    """Console sink. A ``path`` key is accepted and ignored."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["console"]

    @model_validator(mode="before")
    @classmethod
    def ignore_path(cls, data: Any) -> Any:
        return _drop_keys(data, ("path",))


class FileOutputConfig(BaseModel):
    """CSV file sink."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["file"]
    path: str = Field(..., min_length=1)


OutputConfig = Annotated[ConsoleOutputConfig | FileOutputConfig, Field(discriminator="type")]


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    file: str | None = None


class SentryConfig(BaseModel):
    """Error reporting configuration."""

    model_config = ConfigDict(extra="forbid")

    dsn: str | None = None
    environment: str = "production"


class Config(BaseModel):
    """Main configuration model for hostsampler.

    Loaded from a YAML or JSON file; CLI flags may override values.
    """

    model_config = ConfigDict(extra="forbid")

    settings: Settings
    metrics: list[MetricConfig] = Field(default_factory=list)
    outputs: list[OutputConfig] = Field(default_factory=list)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    sentry: SentryConfig = Field(default_factory=SentryConfig)

    @field_validator("metrics", "outputs", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        """An empty YAML key (null) means an empty list."""
        return [] if v is None else v

    @property
    def period(self) -> int:
        """Seconds between samples."""
        return self.settings.period

    def cpu_core_ids(self) -> list[int] | None:
        """Core ids requested by all cpu entries, in order, without repeats.

        Returns:
            None if no cpu metric is configured
        """
        entries = [m for m in self.metrics if isinstance(m, CpuMetricConfig)]
        if not entries:
            return None
        return list(dict.fromkeys(core for m in entries for core in m.ids))

    def memory_specs(self) -> list[str] | None:
        """Specs requested by all memory entries, in order, without repeats.

        Returns:
            None if no memory metric is configured
        """
        entries = [m for m in self.metrics if isinstance(m, MemoryMetricConfig)]
        if not entries:
            return None
        return list(dict.fromkeys(spec for m in entries for spec in m.spec))


def get_config_path(custom_path: str | None = None) -> Path:
    """Determine the configuration file path.

    Checks, in order:
    1. Custom path (from the command line)
    2. HOSTSAMPLER_CONFIG environment variable

    Raises:
        ConfigError: If no path is given or the file does not exist
    """
    raw = custom_path or os.environ.get(CONFIG_PATH_ENV)
    if not raw:
        raise ConfigError(
            "No configuration file given",
            suggestion=f"Pass the config path as an argument or set {CONFIG_PATH_ENV}",
        )

    path = Path(raw).expanduser()
    if not path.is_file():
        raise ConfigError(
            f"Config file not found: {raw}",
            suggestion="Check the path and file permissions",
        )
    return path


def _parse_file(path: Path) -> Any:
    """Read and parse a config file as JSON (``.json``) or YAML."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config file: {e}", file_path=str(path)) from e

    if path.suffix.lower() == ".json":
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise _format_json_error(e, str(path)) from e

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise _format_yaml_error(e, str(path), content) from e


def load_config(
    config_path: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> Config:
    """Load and validate configuration.

    Configuration is merged in this order (later overrides earlier):
    1. Default configuration
    2. Config file
    3. CLI overrides (if provided)

    Environment variables in config values are expanded using ${VAR} syntax.

    Args:
        config_path: Config file path (HOSTSAMPLER_CONFIG if not given)
        overrides: Optional dict of CLI argument overrides

    Returns:
        Validated Config object

    Raises:
        ConfigError: If the file is missing or unreadable
        ConfigSyntaxError: If the file is not valid YAML/JSON
        ConfigValidationError: If config values are invalid
    """
    path = get_config_path(config_path)
    file_config = _parse_file(path)

    if file_config is None:
        file_config = {}
    if not isinstance(file_config, dict):
        raise ConfigValidationError(
            f"Configuration must be a mapping, got {_get_type_description(file_config)}",
            file_path=str(path),
        )

    config_data = deep_merge(copy.deepcopy(DEFAULT_CONFIG), file_config)
    if overrides:
        config_data = deep_merge(config_data, overrides)

    config_data = expand_env_vars(config_data)

    try:
        return Config.model_validate(config_data)
    except ValidationError as e:
        raise _format_pydantic_error(e, config_data, str(path)) from e
