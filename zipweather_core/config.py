"""Service configuration.

Configuration is built once at start-up, from the environment or a YAML
file, and passed explicitly to the resolvers and web applications.

Environment variables:
    WEATHER_API_KEY / ZIPWEATHER_WEATHER_API_KEY: weather provider credential
    ZIPWEATHER_DIRECTORY_BASE_URL: postal code directory base URL
    ZIPWEATHER_WEATHER_BASE_URL: weather provider current conditions URL
    ZIPWEATHER_REQUEST_TIMEOUT: overall request deadline (seconds)
    ZIPWEATHER_TEMPERATURE_SERVICE_URL: temperature service URL (gateway)
    URL_TEMP: temperature service host, used when the URL above is unset
    ZIPWEATHER_HOST / ZIPWEATHER_PORT / ZIPWEATHER_GATEWAY_PORT: listeners
    ZIPWEATHER_TRACE_ENABLED / ZIPWEATHER_TRACE_SAMPLE_RATE: span emission
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .trace_emitter import TraceConfig

DEFAULT_DIRECTORY_BASE_URL = "http://viacep.com.br/ws"
DEFAULT_WEATHER_BASE_URL = "http://api.weatherapi.com/v1/current.json"
DEFAULT_TEMPERATURE_PORT = 9090
DEFAULT_GATEWAY_PORT = 8080

_ENV_PREFIX = "ZIPWEATHER_"
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class ServiceConfig:
    """Configuration shared by the lookup core and both web services.

    Attributes:
        weather_api_key: Weather provider credential, sent as the key
            query parameter. Never logged.
        directory_base_url: Postal code directory base URL.
        weather_base_url: Weather provider current conditions URL.
        request_timeout: Overall deadline for one request (seconds), or
            None for no deadline.
        temperature_service_url: Where the gateway forwards postal codes.
        host: Listen address for both services.
        port: Temperature service port.
        gateway_port: Gateway service port.
        trace: Span emission settings.
    """

    weather_api_key: str = field(repr=False)
    directory_base_url: str = DEFAULT_DIRECTORY_BASE_URL
    weather_base_url: str = DEFAULT_WEATHER_BASE_URL
    request_timeout: float | None = 10.0
    temperature_service_url: str = f"http://localhost:{DEFAULT_TEMPERATURE_PORT}/temperature"
    host: str = "0.0.0.0"
    port: int = DEFAULT_TEMPERATURE_PORT
    gateway_port: int = DEFAULT_GATEWAY_PORT
    trace: TraceConfig = field(default_factory=TraceConfig)

    def __post_init__(self) -> None:
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")
        if not 0.0 <= self.trace.sample_rate <= 1.0:
            raise ConfigError("trace sample_rate must be between 0 and 1")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        require_api_key: bool = True,
    ) -> ServiceConfig:
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ.
            require_api_key: The gateway never calls the weather provider
                and may run without a credential.

        Raises:
            ConfigError: If a value is missing or malformed.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(_ENV_PREFIX + name)
            return value if value else None

        api_key = get("WEATHER_API_KEY") or env.get("WEATHER_API_KEY") or ""
        if require_api_key and not api_key:
            raise ConfigError("WEATHER_API_KEY is not set")

        values: dict[str, Any] = {"weather_api_key": api_key}
        if url := get("DIRECTORY_BASE_URL"):
            values["directory_base_url"] = url
        if url := get("WEATHER_BASE_URL"):
            values["weather_base_url"] = url
        if timeout := get("REQUEST_TIMEOUT"):
            values["request_timeout"] = _parse_timeout(timeout)
        if url := get("TEMPERATURE_SERVICE_URL"):
            values["temperature_service_url"] = url
        elif temp_host := env.get("URL_TEMP"):
            values["temperature_service_url"] = (
                f"http://{temp_host}:{DEFAULT_TEMPERATURE_PORT}/temperature"
            )
        if host := get("HOST"):
            values["host"] = host
        if port := get("PORT"):
            values["port"] = _parse_int("ZIPWEATHER_PORT", port)
        if port := get("GATEWAY_PORT"):
            values["gateway_port"] = _parse_int("ZIPWEATHER_GATEWAY_PORT", port)

        trace = TraceConfig()
        if enabled := get("TRACE_ENABLED"):
            trace.enabled = enabled.strip().lower() in _TRUE_VALUES
        if rate := get("TRACE_SAMPLE_RATE"):
            trace.sample_rate = _parse_float("ZIPWEATHER_TRACE_SAMPLE_RATE", rate)
        values["trace"] = trace
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Path, *, require_api_key: bool = True) -> ServiceConfig:
        """Build configuration from a YAML file.

        Keys match the attribute names; the trace section holds
        ``enabled`` and ``sample_rate``.
        """
        data = _load_yaml(path)
        trace_data = data.pop("trace", None) or {}
        if not isinstance(trace_data, dict):
            raise ConfigError(f"{path}: trace must be a mapping")

        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"{path}: unknown configuration keys: {', '.join(unknown)}")

        if require_api_key and not data.get("weather_api_key"):
            raise ConfigError(f"{path}: weather_api_key is not set")
        data.setdefault("weather_api_key", "")
        try:
            trace = TraceConfig(**trace_data)
            return cls(trace=trace, **data)
        except TypeError as err:
            raise ConfigError(f"{path}: {err}") from err

    def with_overrides(self, **changes: Any) -> ServiceConfig:
        """Return a copy with some values replaced."""
        return dataclasses.replace(self, **changes)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML mapping from a file."""
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as err:
        raise ConfigError(f"Cannot read config file {path}: {err}") from err
    except yaml.YAMLError as err:
        raise ConfigError(f"Invalid YAML in {path}: {err}") from err
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return data


def _parse_timeout(value: str) -> float | None:
    if value.strip().lower() in {"none", "0"}:
        return None
    return _parse_float("ZIPWEATHER_REQUEST_TIMEOUT", value)


def _parse_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as err:
        raise ConfigError(f"{name} must be a number, got {value!r}") from err


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as err:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from err
