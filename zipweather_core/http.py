"""HTTP clients for the postal code directory and the weather provider."""

from __future__ import annotations

import json
import logging
import math
from typing import Any

import aiohttp

from .context import CORRELATION_HEADER, RequestContext
from .errors import (
    DecodeError,
    NotFoundError,
    ResponseStatusError,
    TransportError,
    TransportTimeout,
)
from .models import Location, WeatherReading

_LOGGER = logging.getLogger(__name__)

# Directory marker for a well-formed code with no record ({"erro": true}).
_DIRECTORY_NOT_FOUND_VALUES = (True, "true")


class _JsonHttpClient:
    """Single-attempt JSON GET bound to a request context."""

    service_name = "upstream"

    def __init__(self, session: aiohttp.ClientSession, base_url: str) -> None:
        self._session = session
        self._base_url = base_url

    async def _get_json(
        self,
        ctx: RequestContext,
        url: str,
        *,
        params: dict[str, str] | None = None,
    ) -> Any:
        """GET url and decode the JSON body.

        The response is released before returning, on every path.

        Raises:
            TransportTimeout: Deadline passed or context cancelled
            TransportError: Request could not be completed
            ResponseStatusError: Non-200 response
            DecodeError: Body is not valid JSON
        """
        headers = {CORRELATION_HEADER: ctx.trace_id}
        try:
            async with ctx.scope():
                async with self._session.get(
                    url,
                    params=params,
                    headers=headers,
                ) as resp:
                    if resp.status != 200:
                        raise ResponseStatusError(
                            resp.status,
                            f"{self.service_name} returned HTTP {resp.status}",
                        )
                    body = await resp.read()
        except TimeoutError as err:
            reason = "cancelled" if ctx.cancelled else "timed out"
            raise TransportTimeout(f"{self.service_name} request {reason}") from err
        except aiohttp.ClientError as err:
            raise TransportError(f"{self.service_name} request failed") from err

        try:
            return json.loads(body)
        except ValueError as err:
            _LOGGER.warning(
                "[%s] Invalid JSON from %s: %.200r", ctx.trace_id, self.service_name, body
            )
            raise DecodeError(f"{self.service_name} returned invalid JSON") from err


class LocationResolver(_JsonHttpClient):
    """Resolve a postal code to a locality through the directory service."""

    service_name = "postal code directory"

    def _url(self, zipcode: str) -> str:
        return f"{self._base_url.rstrip('/')}/{zipcode}/json/"

    async def resolve(self, ctx: RequestContext, zipcode: str) -> Location:
        """Fetch the locality for a validated postal code.

        Raises:
            NotFoundError: Directory has no locality for the code
            DecodeError: Payload lacks a string ``localidade`` field
            TransportError: Request could not be completed
            ResponseStatusError: Non-200 response
        """
        _LOGGER.debug("[%s] Resolving location for %s", ctx.trace_id, zipcode)
        data = await self._get_json(ctx, self._url(zipcode))
        if not isinstance(data, dict):
            raise DecodeError("postal code directory returned a non-object payload")

        if data.get("erro") in _DIRECTORY_NOT_FOUND_VALUES:
            raise NotFoundError(f"no locality for postal code {zipcode}")

        locality = data.get("localidade")
        if not isinstance(locality, str):
            raise DecodeError("postal code directory payload has no localidade field")
        if not locality.strip():
            raise NotFoundError(f"empty locality for postal code {zipcode}")
        return Location(name=locality)


class WeatherResolver(_JsonHttpClient):
    """Fetch current conditions for a locality from the weather provider."""

    service_name = "weather provider"

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        *,
        api_key: str,
    ) -> None:
        super().__init__(session, base_url)
        self._api_key = api_key

    async def resolve(self, ctx: RequestContext, location: Location) -> WeatherReading:
        """Fetch the current temperature for a location.

        Raises:
            DecodeError: Payload lacks a numeric ``current.temp_c``
            TransportError: Request could not be completed
            ResponseStatusError: Non-200 response
        """
        _LOGGER.debug("[%s] Resolving weather for %s", ctx.trace_id, location.name)
        params = {
            "key": self._api_key,
            "q": location.name,
            "aqi": "no",
        }
        data = await self._get_json(ctx, self._base_url, params=params)

        current = data.get("current") if isinstance(data, dict) else None
        if not isinstance(current, dict):
            raise DecodeError("weather payload has no current conditions")

        celsius = _number(current.get("temp_c"))
        if celsius is None:
            raise DecodeError("weather payload has no numeric current.temp_c")
        return WeatherReading(
            celsius=celsius,
            fahrenheit=_number(current.get("temp_f")),
        )


def _number(value: object) -> float | None:
    """Return value as float if it is a finite JSON number, else None.

    json.loads accepts NaN, Infinity and overflowing literals such as 1e400.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None
