"""Tests for service configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from zipweather_core.config import (
    DEFAULT_DIRECTORY_BASE_URL,
    DEFAULT_WEATHER_BASE_URL,
    ServiceConfig,
)
from zipweather_core.errors import ConfigError


class TestFromEnv:
    """Tests for ServiceConfig.from_env()."""

    def test_defaults(self) -> None:
        config = ServiceConfig.from_env({"WEATHER_API_KEY": "k"})
        assert config.weather_api_key == "k"
        assert config.directory_base_url == DEFAULT_DIRECTORY_BASE_URL
        assert config.weather_base_url == DEFAULT_WEATHER_BASE_URL
        assert config.request_timeout == 10.0
        assert config.temperature_service_url == "http://localhost:9090/temperature"
        assert not config.trace.enabled

    def test_missing_api_key(self) -> None:
        with pytest.raises(ConfigError, match="WEATHER_API_KEY"):
            ServiceConfig.from_env({})

    def test_api_key_optional_for_gateway(self) -> None:
        config = ServiceConfig.from_env({}, require_api_key=False)
        assert config.weather_api_key == ""

    def test_prefixed_values(self) -> None:
        config = ServiceConfig.from_env(
            {
                "ZIPWEATHER_WEATHER_API_KEY": "prefixed",
                "ZIPWEATHER_DIRECTORY_BASE_URL": "http://dir.local/ws",
                "ZIPWEATHER_WEATHER_BASE_URL": "http://weather.local",
                "ZIPWEATHER_REQUEST_TIMEOUT": "2.5",
                "ZIPWEATHER_PORT": "9191",
                "ZIPWEATHER_GATEWAY_PORT": "8181",
                "ZIPWEATHER_TRACE_ENABLED": "true",
                "ZIPWEATHER_TRACE_SAMPLE_RATE": "0.25",
            }
        )
        assert config.weather_api_key == "prefixed"
        assert config.directory_base_url == "http://dir.local/ws"
        assert config.weather_base_url == "http://weather.local"
        assert config.request_timeout == 2.5
        assert config.port == 9191
        assert config.gateway_port == 8181
        assert config.trace.enabled
        assert config.trace.sample_rate == 0.25

    def test_url_temp_host_fallback(self) -> None:
        config = ServiceConfig.from_env({"URL_TEMP": "tempservice"}, require_api_key=False)
        assert config.temperature_service_url == "http://tempservice:9090/temperature"

    def test_explicit_temperature_url_wins(self) -> None:
        config = ServiceConfig.from_env(
            {
                "URL_TEMP": "tempservice",
                "ZIPWEATHER_TEMPERATURE_SERVICE_URL": "http://other/temperature",
            },
            require_api_key=False,
        )
        assert config.temperature_service_url == "http://other/temperature"

    def test_timeout_can_be_disabled(self) -> None:
        config = ServiceConfig.from_env(
            {"WEATHER_API_KEY": "k", "ZIPWEATHER_REQUEST_TIMEOUT": "none"}
        )
        assert config.request_timeout is None

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("ZIPWEATHER_PORT", "http"),
            ("ZIPWEATHER_REQUEST_TIMEOUT", "soon"),
            ("ZIPWEATHER_REQUEST_TIMEOUT", "-1"),
            ("ZIPWEATHER_TRACE_SAMPLE_RATE", "2"),
        ],
    )
    def test_malformed_values(self, name: str, value: str) -> None:
        with pytest.raises(ConfigError):
            ServiceConfig.from_env({"WEATHER_API_KEY": "k", name: value})

    def test_api_key_not_in_repr(self) -> None:
        config = ServiceConfig.from_env({"WEATHER_API_KEY": "super-secret"})
        assert "super-secret" not in repr(config)


class TestFromYaml:
    """Tests for ServiceConfig.from_yaml()."""

    def test_load(self, tmp_path: Path) -> None:
        path = tmp_path / "zipweather.yaml"
        path.write_text(
            "weather_api_key: yaml-key\n"
            "request_timeout: 3\n"
            "port: 9999\n"
            "trace:\n"
            "  enabled: true\n"
            "  sample_rate: 0.5\n",
            encoding="utf-8",
        )

        config = ServiceConfig.from_yaml(path)

        assert config.weather_api_key == "yaml-key"
        assert config.request_timeout == 3
        assert config.port == 9999
        assert config.trace.enabled
        assert config.trace.sample_rate == 0.5

    def test_missing_api_key(self, tmp_path: Path) -> None:
        path = tmp_path / "zipweather.yaml"
        path.write_text("port: 9999\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="weather_api_key"):
            ServiceConfig.from_yaml(path)

    def test_unknown_key(self, tmp_path: Path) -> None:
        path = tmp_path / "zipweather.yaml"
        path.write_text("weather_api_key: k\ncache_ttl: 30\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="cache_ttl"):
            ServiceConfig.from_yaml(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "zipweather.yaml"
        path.write_text("weather_api_key: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            ServiceConfig.from_yaml(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read"):
            ServiceConfig.from_yaml(tmp_path / "absent.yaml")


def test_with_overrides() -> None:
    config = ServiceConfig(weather_api_key="k")
    changed = config.with_overrides(directory_base_url="http://stub")
    assert changed.directory_base_url == "http://stub"
    assert config.directory_base_url == DEFAULT_DIRECTORY_BASE_URL
