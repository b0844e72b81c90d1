"""Configuration management for riftwatch.

Values come from three layers, later layers winning: dataclass defaults,
``~/.riftwatch/config.toml`` and ``RIFTWATCH_*`` environment variables.
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from riftwatch.core.exceptions import ConfigError
from riftwatch.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.justtcg.com/v1"
DEFAULT_GAME = "riftbound-league-of-legends-trading-card-game"


@dataclass
class UpstreamConfig:
    """Upstream price source settings."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None
    game: str = DEFAULT_GAME
    page_size: int = 20  # source maximum
    max_pages: int = 500
    requests_per_minute: int = 10
    inter_page_delay: float = 6.5
    timeout: float = 30.0
    condition: str | None = "Near Mint"
    sealed: bool | None = None

    def validate(self) -> None:
        if self.page_size <= 0:
            raise ConfigError("page_size must be positive", {"page_size": self.page_size})
        if self.max_pages <= 0:
            raise ConfigError("max_pages must be positive", {"max_pages": self.max_pages})
        if self.requests_per_minute <= 0:
            raise ConfigError(
                "requests_per_minute must be positive",
                {"requests_per_minute": self.requests_per_minute},
            )
        if self.inter_page_delay < 0:
            raise ConfigError(
                "inter_page_delay must be non-negative",
                {"inter_page_delay": self.inter_page_delay},
            )
        if self.inter_page_delay < self.min_delay:
            raise ConfigError(
                f"inter_page_delay {self.inter_page_delay}s is shorter than the "
                f"{self.min_delay:.2f}s required by {self.requests_per_minute} requests/minute",
                {"inter_page_delay": self.inter_page_delay, "min_delay": self.min_delay},
            )

    @property
    def min_delay(self) -> float:
        """Smallest delay between pages that honours the rate ceiling."""
        return 60.0 / self.requests_per_minute


@dataclass
class StorageConfig:
    """DuckDB storage settings."""

    database: str = "riftwatch.duckdb"
    threads: int = 1


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "INFO"
    file: str | None = None


@dataclass
class RiftwatchConfig:
    """Top-level riftwatch configuration."""

    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "RiftwatchConfig":
        """Build a configuration from a nested dictionary."""
        try:
            return cls(
                upstream=UpstreamConfig(**config_dict.get("upstream", {})),
                storage=StorageConfig(**config_dict.get("storage", {})),
                logging=LoggingConfig(**config_dict.get("logging", {})),
            )
        except TypeError as exc:
            raise ConfigError(f"Unknown configuration key: {exc}") from exc


def _deep_update(d: dict[str, Any], u: dict[str, Any]) -> dict[str, Any]:
    for k, v in u.items():
        if isinstance(v, dict):
            d[k] = _deep_update(d.get(k, {}), v)
        else:
            d[k] = v
    return d


class ConfigManager:
    """Loads configuration from a TOML file with environment overrides."""

    def __init__(self, config_path: Path | None = None, environ: dict[str, str] | None = None):
        """Initialise the manager.

        Args:
            config_path: TOML file to read; defaults to ``~/.riftwatch/config.toml``.
            environ: Environment mapping; defaults to ``os.environ``.
        """
        self.config_path = config_path or Path.home() / ".riftwatch" / "config.toml"
        self._environ = os.environ if environ is None else environ
        self.config = self._load_config()

    def _load_config(self) -> RiftwatchConfig:
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    config_dict = tomllib.load(f)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(
                    f"Failed to parse config file {self.config_path}: {exc}",
                    {"path": str(self.config_path)},
                ) from exc
            logger.debug("Loaded configuration file {}", self.config_path)

        _deep_update(config_dict, load_config_from_env(self._environ))
        return RiftwatchConfig.from_dict(config_dict)

    def get_config(self) -> RiftwatchConfig:
        return self.config


def load_config_from_env(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Read ``RIFTWATCH_*`` overrides from the environment."""
    env = os.environ if environ is None else environ
    config: dict[str, Any] = {}

    upstream: dict[str, Any] = {}
    api_key = env.get("RIFTWATCH_API_KEY") or env.get("JUSTTCG_API_KEY")
    if api_key:
        upstream["api_key"] = api_key
    max_pages = env.get("RIFTWATCH_MAX_PAGES")
    if max_pages is not None:
        upstream["max_pages"] = _parse_number(int, "RIFTWATCH_MAX_PAGES", max_pages)
    page_delay = env.get("RIFTWATCH_PAGE_DELAY")
    if page_delay is not None:
        upstream["inter_page_delay"] = _parse_number(float, "RIFTWATCH_PAGE_DELAY", page_delay)
    if upstream:
        config["upstream"] = upstream

    database = env.get("RIFTWATCH_DATABASE")
    if database:
        config["storage"] = {"database": database}

    log_level = env.get("RIFTWATCH_LOG_LEVEL")
    if log_level:
        config["logging"] = {"level": log_level}

    return config


def _parse_number(kind: type, name: str, raw: str) -> Any:
    try:
        return kind(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}", {"variable": name}) from exc
