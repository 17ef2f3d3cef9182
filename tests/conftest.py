"""Pytest configuration and fixtures for zipweather tests."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from zipweather_core.config import ServiceConfig
from zipweather_core.models import Location, WeatherReading


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


@pytest.fixture
def config() -> ServiceConfig:
    return ServiceConfig(
        weather_api_key="test-key",
        directory_base_url="http://directory.test/ws",
        weather_base_url="http://weather.test/v1/current.json",
    )


def create_mock_response(
    status: int = 200,
    json_data: Any = None,
    read_data: bytes | None = None,
) -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        json_data: Value serialized as the body returned by read()
        read_data: Raw body returned by read(), used when json_data is None

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status

    if json_data is not None:
        response.read.return_value = json.dumps(json_data).encode()
    elif read_data is not None:
        response.read.return_value = read_data

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


class StubLocationResolver:
    """Location resolver returning a fixed result and counting calls."""

    def __init__(self, result: Location | None = None, error: Exception | None = None) -> None:
        self.result = result or Location(name="São Paulo")
        self.error = error
        self.calls: list[str] = []
        self.trace_ids: list[str] = []

    async def resolve(self, ctx: Any, zipcode: str) -> Location:
        self.calls.append(zipcode)
        self.trace_ids.append(ctx.trace_id)
        if self.error is not None:
            raise self.error
        return self.result


class StubWeatherResolver:
    """Weather resolver returning a fixed reading and counting calls."""

    def __init__(self, result: WeatherReading | None = None, error: Exception | None = None) -> None:
        self.result = result or WeatherReading(celsius=25.3)
        self.error = error
        self.calls: list[Location] = []

    async def resolve(self, ctx: Any, location: Location) -> WeatherReading:
        self.calls.append(location)
        if self.error is not None:
            raise self.error
        return self.result
