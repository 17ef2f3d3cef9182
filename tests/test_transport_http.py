"""Tests for the gateway's temperature service client."""

from __future__ import annotations

from unittest.mock import MagicMock

import aiohttp
import pytest

from zipweather_core.context import CORRELATION_HEADER, RequestContext
from zipweather_core.errors import TransportError, TransportTimeout
from zipweather_transport.http import ForwardedResponse, TemperatureServiceClient

from .conftest import create_mock_response


class TestFetchTemperature:
    """Tests for TemperatureServiceClient.fetch_temperature()."""

    async def test_relays_response(self, mock_session: MagicMock) -> None:
        client = TemperatureServiceClient(mock_session, "http://temp.test:9090/temperature/")
        response = create_mock_response(status=404, read_data=b"can not find zipcode")
        response.content_type = "text/plain"
        response.charset = "utf-8"
        mock_session.get.return_value = response
        ctx = RequestContext.with_timeout(5.0)

        forwarded = await client.fetch_temperature(ctx, "99999999")

        assert forwarded == ForwardedResponse(
            status=404,
            body=b"can not find zipcode",
            content_type="text/plain",
            charset="utf-8",
        )
        call_args = mock_session.get.call_args
        assert call_args.args[0] == "http://temp.test:9090/temperature/99999999"
        assert call_args.kwargs["headers"] == {CORRELATION_HEADER: ctx.trace_id}

    async def test_client_error(self, mock_session: MagicMock) -> None:
        client = TemperatureServiceClient(mock_session, "http://temp.test")
        mock_session.get.side_effect = aiohttp.ClientError("Connection refused")

        with pytest.raises(TransportError, match="Temperature request failed"):
            await client.fetch_temperature(RequestContext.with_timeout(5.0), "01001000")

    async def test_timeout(self, mock_session: MagicMock) -> None:
        client = TemperatureServiceClient(mock_session, "http://temp.test")
        mock_session.get.side_effect = TimeoutError("Request timed out")

        with pytest.raises(TransportTimeout, match="timed out"):
            await client.fetch_temperature(RequestContext.with_timeout(5.0), "01001000")
