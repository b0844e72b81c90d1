"""Tests for layered configuration: defaults, TOML file and environment."""

from pathlib import Path

import pytest

from riftwatch.core.config import (
    ConfigManager,
    RiftwatchConfig,
    UpstreamConfig,
    load_config_from_env,
)
from riftwatch.core.exceptions import ConfigError


class TestUpstreamConfig:
    """Test UpstreamConfig defaults and validation."""

    def test_defaults(self):
        config = UpstreamConfig()

        assert config.base_url == "https://api.justtcg.com/v1"
        assert config.game == "riftbound-league-of-legends-trading-card-game"
        assert config.page_size == 20
        assert config.max_pages == 500
        assert config.requests_per_minute == 10
        assert config.inter_page_delay == 6.5
        assert config.condition == "Near Mint"
        assert config.api_key is None
        config.validate()

    def test_min_delay_follows_rate_ceiling(self):
        assert UpstreamConfig(requests_per_minute=10).min_delay == 6.0
        assert UpstreamConfig(requests_per_minute=60).min_delay == 1.0

    @pytest.mark.parametrize(
        "overrides",
        [
            {"page_size": 0},
            {"max_pages": 0},
            {"requests_per_minute": 0},
            {"inter_page_delay": -1},
            {"inter_page_delay": 5.0},
        ],
    )
    def test_invalid_values_are_rejected(self, overrides):
        with pytest.raises(ConfigError) as excinfo:
            UpstreamConfig(**overrides).validate()

        assert excinfo.value.error_code == "CONFIG_ERROR"


class TestRiftwatchConfig:
    """Test dictionary round trips."""

    def test_from_dict_fills_missing_sections(self):
        config = RiftwatchConfig.from_dict({"storage": {"database": "prices.duckdb"}})

        assert config.storage.database == "prices.duckdb"
        assert config.upstream == UpstreamConfig()
        assert config.logging.level == "INFO"

    def test_unknown_key_raises_config_error(self):
        with pytest.raises(ConfigError):
            RiftwatchConfig.from_dict({"upstream": {"retries": 3}})

    def test_from_dict_reads_every_section(self):
        config = RiftwatchConfig.from_dict(
            {
                "upstream": {"api_key": "k", "sealed": True},
                "storage": {"threads": 4},
                "logging": {"level": "DEBUG", "file": "logs/riftwatch.jsonl"},
            }
        )

        assert config.upstream.api_key == "k"
        assert config.upstream.sealed is True
        assert config.storage.threads == 4
        assert config.logging.file == "logs/riftwatch.jsonl"


class TestEnvironment:
    """Test environment overrides."""

    def test_api_key_prefers_riftwatch_variable(self):
        env = {"RIFTWATCH_API_KEY": "primary", "JUSTTCG_API_KEY": "fallback"}

        assert load_config_from_env(env)["upstream"]["api_key"] == "primary"
        assert load_config_from_env({"JUSTTCG_API_KEY": "fallback"})["upstream"]["api_key"] == "fallback"

    def test_numeric_and_storage_overrides(self):
        env = {
            "RIFTWATCH_MAX_PAGES": "3",
            "RIFTWATCH_PAGE_DELAY": "7.5",
            "RIFTWATCH_DATABASE": "/tmp/prices.duckdb",
            "RIFTWATCH_LOG_LEVEL": "DEBUG",
        }

        overrides = load_config_from_env(env)

        assert overrides == {
            "upstream": {"max_pages": 3, "inter_page_delay": 7.5},
            "storage": {"database": "/tmp/prices.duckdb"},
            "logging": {"level": "DEBUG"},
        }

    def test_non_numeric_value_raises(self):
        with pytest.raises(ConfigError) as excinfo:
            load_config_from_env({"RIFTWATCH_MAX_PAGES": "lots"})

        assert excinfo.value.details["variable"] == "RIFTWATCH_MAX_PAGES"

    def test_empty_environment_has_no_overrides(self):
        assert load_config_from_env({}) == {}


class TestConfigManager:
    """Test file loading and layering."""

    def test_missing_file_uses_defaults(self, tmp_path: Path):
        manager = ConfigManager(tmp_path / "absent.toml", environ={})

        assert manager.get_config() == RiftwatchConfig()

    def test_environment_overrides_file(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text(
            '[upstream]\napi_key = "from-file"\nmax_pages = 10\n\n[storage]\ndatabase = "file.duckdb"\n',
            encoding="utf-8",
        )

        config = ConfigManager(path, environ={"RIFTWATCH_API_KEY": "from-env"}).get_config()

        assert config.upstream.api_key == "from-env"
        assert config.upstream.max_pages == 10
        assert config.storage.database == "file.duckdb"

    def test_malformed_file_raises_config_error(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text("[upstream\napi_key = ", encoding="utf-8")

        with pytest.raises(ConfigError) as excinfo:
            ConfigManager(path, environ={})

        assert excinfo.value.details["path"] == str(path)

