"""Configuration module."""

from riftwatch.core.config.settings import (
    ConfigManager,
    LoggingConfig,
    RiftwatchConfig,
    StorageConfig,
    UpstreamConfig,
    load_config_from_env,
)

__all__ = [
    "ConfigManager",
    "LoggingConfig",
    "RiftwatchConfig",
    "StorageConfig",
    "UpstreamConfig",
    "load_config_from_env",
]
