"""HTTP client the gateway uses to reach the temperature service."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import aiohttp

from zipweather_core.context import CORRELATION_HEADER, RequestContext
from zipweather_core.errors import TransportError, TransportTimeout

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForwardedResponse:
    """Temperature service response relayed back to the gateway caller."""

    status: int
    body: bytes
    content_type: str
    charset: str | None = None


class TemperatureServiceClient:
    """HTTP client wrapper for the temperature service."""

    def __init__(self, session: aiohttp.ClientSession, base_url: str) -> None:
        self._session = session
        self._base_url = base_url

    def _url(self, zipcode: str) -> str:
        return f"{self._base_url.rstrip('/')}/{zipcode}"

    async def fetch_temperature(self, ctx: RequestContext, zipcode: str) -> ForwardedResponse:
        """Fetch the temperature for a postal code, whatever the status.

        Raises:
            TransportTimeout: Deadline passed or context cancelled
            TransportError: Request could not be completed
        """
        url = self._url(zipcode)
        try:
            async with ctx.scope():
                async with self._session.get(
                    url,
                    headers={CORRELATION_HEADER: ctx.trace_id},
                ) as resp:
                    body = await resp.read()
                    _LOGGER.debug(
                        "[%s] Temperature service answered %s for %s",
                        ctx.trace_id,
                        resp.status,
                        zipcode,
                    )
                    return ForwardedResponse(
                        status=resp.status,
                        body=body,
                        content_type=resp.content_type,
                        charset=resp.charset,
                    )
        except TimeoutError as err:
            reason = "cancelled" if ctx.cancelled else "timed out"
            raise TransportTimeout(f"Temperature request {reason}") from err
        except aiohttp.ClientError as err:
            raise TransportError("Temperature request failed") from err
