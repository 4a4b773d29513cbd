"""Configuration module for hostsampler.

This module provides:
- Pydantic models for configuration validation
- YAML/JSON config file loading
- Default configuration values
- Environment variable expansion
- Clear error messages for config issues
"""

from hostsampler.config.defaults import DEFAULT_CONFIG
from hostsampler.config.loader import (
    Config,
    ConfigError,
    ConfigSyntaxError,
    ConfigValidationError,
    ConsoleOutputConfig,
    CpuMetricConfig,
    FileOutputConfig,
    LoggingConfig,
    MemoryMetricConfig,
    SentryConfig,
    Settings,
    get_config_path,
    load_config,
)

__all__ = [
    "DEFAULT_CONFIG",
    "Config",
    "ConfigError",
    "ConfigSyntaxError",
    "ConfigValidationError",
    "ConsoleOutputConfig",
    "CpuMetricConfig",
    "FileOutputConfig",
    "LoggingConfig",
    "MemoryMetricConfig",
    "SentryConfig",
    "Settings",
    "get_config_path",
    "load_config",
]
