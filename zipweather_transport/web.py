"""aiohttp web applications for the temperature service and the gateway.

The temperature service runs the lookup pipeline behind
``GET /temperature/{zipcode}``. The gateway accepts ``POST /`` with a
``{"cep": "..."}`` body, rejects malformed postal codes itself and
forwards the rest to the temperature service.
"""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import AsyncIterator
from typing import Any, Final

import aiohttp
from aiohttp import web

from zipweather_core.config import ServiceConfig
from zipweather_core.context import CORRELATION_HEADER, RequestContext
from zipweather_core.errors import (
    LookupFailure,
    TransportError,
    UnprocessableZipcode,
    UpstreamDecodeFailure,
    ZipcodeNotFound,
)
from zipweather_core.pipeline import LookupPipeline
from zipweather_core.trace_emitter import Tracer
from zipweather_core.validation import is_valid_zipcode

from .http import TemperatureServiceClient

_LOGGER = logging.getLogger(__name__)

_MAX_TRACE_ID_LENGTH = 128

_dumps = functools.partial(json.dumps, ensure_ascii=False)

# Cancel the handler, and with it any outbound call, when the client disconnects.
SERVER_OPTIONS: Final[dict[str, Any]] = {"handler_cancellation": True}


def failure_status(err: LookupFailure) -> tuple[int, str]:
    """Map a pipeline failure to an HTTP status and message."""
    if isinstance(err, UnprocessableZipcode):
        return web.HTTPUnprocessableEntity.status_code, "invalid zipcode"
    if isinstance(err, ZipcodeNotFound):
        return web.HTTPNotFound.status_code, "can not find zipcode"
    if isinstance(err, UpstreamDecodeFailure):
        return web.HTTPBadGateway.status_code, "invalid upstream response"
    return web.HTTPInternalServerError.status_code, "could not get weather"


def request_context(request: web.Request, tracer: Tracer, timeout: float | None) -> RequestContext:
    """Create the root context for an inbound request.

    An inbound correlation header is reused as the trace id so both
    services log under the same id.
    """
    trace_id = request.headers.get(CORRELATION_HEADER, "").strip()
    if not trace_id.isprintable() or len(trace_id) > _MAX_TRACE_ID_LENGTH:
        trace_id = ""
    return tracer.new_context(timeout, trace_id=trace_id or None)


def _text(ctx: RequestContext, status: int, message: str) -> web.Response:
    return web.Response(text=message, status=status, headers={CORRELATION_HEADER: ctx.trace_id})


class TemperatureService:
    """Request handlers for the temperature service."""

    def __init__(
        self,
        config: ServiceConfig,
        *,
        pipeline: LookupPipeline | None = None,
        tracer: Tracer | None = None,
    ) -> None:
        self._config = config
        self._tracer = tracer or Tracer(config.trace)
        self._pipeline = pipeline

    async def client_session_ctx(self, app: web.Application) -> AsyncIterator[None]:
        """Own the outbound ClientSession for the application's lifetime."""
        if self._pipeline is not None:
            yield
            return
        async with aiohttp.ClientSession() as session:
            self._pipeline = LookupPipeline.from_config(session, self._config, tracer=self._tracer)
            yield
            self._pipeline = None

    async def handle_temperature(self, request: web.Request) -> web.Response:
        """GET /temperature/{zipcode}."""
        ctx = request_context(request, self._tracer, self._config.request_timeout)
        zipcode = request.match_info.get("zipcode", "")
        if self._pipeline is None:
            raise web.HTTPServiceUnavailable(text="service is starting")
        try:
            result = await self._pipeline.lookup(ctx, zipcode)
        except LookupFailure as err:
            status, message = failure_status(err)
            return _text(ctx, status, message)
        return web.json_response(
            result.to_dict(),
            headers={CORRELATION_HEADER: ctx.trace_id},
            dumps=_dumps,
        )


class GatewayService:
    """Request handlers for the gateway service."""

    def __init__(
        self,
        config: ServiceConfig,
        *,
        client: TemperatureServiceClient | None = None,
        tracer: Tracer | None = None,
    ) -> None:
        self._config = config
        self._tracer = tracer or Tracer(config.trace)
        self._client = client

    async def client_session_ctx(self, app: web.Application) -> AsyncIterator[None]:
        """Own the outbound ClientSession for the application's lifetime."""
        if self._client is not None:
            yield
            return
        async with aiohttp.ClientSession() as session:
            self._client = TemperatureServiceClient(session, self._config.temperature_service_url)
            yield
            self._client = None

    async def handle_zipcode(self, request: web.Request) -> web.Response:
        """POST / with a JSON ``{"cep": "..."}`` body."""
        ctx = request_context(request, self._tracer, self._config.request_timeout)
        try:
            payload = await request.json()
        except ValueError as err:
            _LOGGER.info("[%s] Unable to decode request body: %s", ctx.trace_id, err)
            return _text(ctx, web.HTTPBadRequest.status_code, "invalid request body")
        if not isinstance(payload, dict):
            return _text(ctx, web.HTTPBadRequest.status_code, "invalid request body")

        zipcode = payload.get("cep")
        if not is_valid_zipcode(zipcode):
            _LOGGER.info("[%s] Rejected invalid zipcode %r", ctx.trace_id, zipcode)
            return _text(ctx, web.HTTPUnprocessableEntity.status_code, "invalid zipcode")

        if self._client is None:
            raise web.HTTPServiceUnavailable(text="service is starting")
        with self._tracer.span(ctx, "forward_temperature", zipcode=zipcode) as span:
            try:
                forwarded = await self._client.fetch_temperature(ctx.child(span.span_id), zipcode)
            except TransportError as err:
                span.record_error(err)
                _LOGGER.error(
                    "[%s] Unable to fetch temperature for %s: %s", ctx.trace_id, zipcode, err
                )
                return _text(
                    ctx,
                    web.HTTPInternalServerError.status_code,
                    "unable to fetch temperature by zipcode",
                )
            span.set_attribute("status", forwarded.status)

        return web.Response(
            body=forwarded.body,
            status=forwarded.status,
            content_type=forwarded.content_type,
            charset=forwarded.charset,
            headers={CORRELATION_HEADER: ctx.trace_id},
        )


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


def create_temperature_app(
    config: ServiceConfig,
    *,
    pipeline: LookupPipeline | None = None,
    tracer: Tracer | None = None,
) -> web.Application:
    """Build the temperature service application."""
    service = TemperatureService(config, pipeline=pipeline, tracer=tracer)
    app = web.Application()
    app.cleanup_ctx.append(service.client_session_ctx)
    app.router.add_get("/temperature/{zipcode}", service.handle_temperature)
    app.router.add_get("/temperature/", service.handle_temperature)
    app.router.add_get("/healthz", handle_health)
    return app


def create_gateway_app(
    config: ServiceConfig,
    *,
    client: TemperatureServiceClient | None = None,
    tracer: Tracer | None = None,
) -> web.Application:
    """Build the gateway application."""
    service = GatewayService(config, client=client, tracer=tracer)
    app = web.Application()
    app.cleanup_ctx.append(service.client_session_ctx)
    app.router.add_post("/", service.handle_zipcode)
    app.router.add_get("/healthz", handle_health)
    return app
