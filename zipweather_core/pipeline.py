"""Postal code to temperature lookup pipeline.

Stages run strictly in sequence, each consuming the previous stage's
output:

    RECEIVED -> VALIDATED -> LOCATION_RESOLVED -> WEATHER_RESOLVED
             -> CONVERTED -> COMPLETED

Any failure moves the run to ERROR and is raised immediately as a
LookupFailure subclass. There is no partial result and no recovery.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

import aiohttp

from .config import ServiceConfig
from .context import RequestContext
from .errors import (
    DecodeError,
    LookupFailure,
    NotFoundError,
    ResolverError,
    UnprocessableZipcode,
    UpstreamDecodeFailure,
    UpstreamFailure,
    ZipcodeNotFound,
)
from .http import LocationResolver, WeatherResolver
from .models import Location, TemperatureResult, WeatherReading
from .trace_emitter import Tracer
from .validation import is_valid_zipcode

_LOGGER = logging.getLogger(__name__)


class PipelineStage(Enum):
    """Lookup pipeline states."""

    RECEIVED = "received"
    VALIDATED = "validated"
    LOCATION_RESOLVED = "location_resolved"
    WEATHER_RESOLVED = "weather_resolved"
    CONVERTED = "converted"
    COMPLETED = "completed"
    ERROR = "error"


class LocationSource(Protocol):
    async def resolve(self, ctx: RequestContext, zipcode: str) -> Location: ...


class WeatherSource(Protocol):
    async def resolve(self, ctx: RequestContext, location: Location) -> WeatherReading: ...


class LookupPipeline:
    """Resolve a postal code into a temperature result.

    Usage:
        pipeline = LookupPipeline(LocationResolver(...), WeatherResolver(...))
        result = await pipeline.lookup(ctx, "01001000")
    """

    def __init__(
        self,
        locations: LocationSource,
        weather: WeatherSource,
        *,
        tracer: Tracer | None = None,
    ) -> None:
        self._locations = locations
        self._weather = weather
        self._tracer = tracer or Tracer()

    @classmethod
    def from_config(
        cls,
        session: aiohttp.ClientSession,
        config: ServiceConfig,
        *,
        tracer: Tracer | None = None,
    ) -> LookupPipeline:
        """Build a pipeline wired to the configured upstream services."""
        return cls(
            LocationResolver(session, config.directory_base_url),
            WeatherResolver(
                session,
                config.weather_base_url,
                api_key=config.weather_api_key,
            ),
            tracer=tracer,
        )

    async def lookup(self, ctx: RequestContext, zipcode: str) -> TemperatureResult:
        """Run every stage for one postal code.

        Raises:
            UnprocessableZipcode: Code failed validation (no network call)
            ZipcodeNotFound: Directory has no locality for the code
            UpstreamDecodeFailure: A resolver got an undecodable payload
            UpstreamFailure: Any other resolver failure
        """
        with self._tracer.span(ctx, "lookup", zipcode=zipcode) as root:
            ctx = ctx.child(root.span_id)
            try:
                result = await self._run(ctx, zipcode)
            except LookupFailure as err:
                root.set_attribute("stage", PipelineStage.ERROR.value)
                root.set_attribute("failed_after", err.stage.value)
                raise
            root.set_attribute("stage", PipelineStage.COMPLETED.value)
            _LOGGER.debug("[%s] Lookup for %s completed: %s", ctx.trace_id, zipcode, result.city)
            return result

    async def _run(self, ctx: RequestContext, zipcode: str) -> TemperatureResult:
        """Advance from RECEIVED to CONVERTED; failures carry the last stage reached."""
        stage = PipelineStage.RECEIVED

        if not is_valid_zipcode(zipcode):
            _LOGGER.info(
                "[%s] Lookup for %r failed at stage %s: invalid zipcode",
                ctx.trace_id,
                zipcode,
                stage.value,
            )
            raise UnprocessableZipcode("invalid zipcode", stage=stage, zipcode=zipcode)
        stage = PipelineStage.VALIDATED

        with self._tracer.span(ctx, "resolve_location", zipcode=zipcode) as span:
            try:
                location = await self._locations.resolve(ctx.child(span.span_id), zipcode)
            except ResolverError as err:
                raise self._failure(ctx, stage, zipcode, err) from err
            span.set_attribute("city", location.name)
        stage = PipelineStage.LOCATION_RESOLVED

        with self._tracer.span(ctx, "resolve_weather", city=location.name) as span:
            try:
                reading = await self._weather.resolve(ctx.child(span.span_id), location)
            except ResolverError as err:
                raise self._failure(ctx, stage, zipcode, err) from err
            span.set_attribute("temp_c", reading.celsius)
        stage = PipelineStage.WEATHER_RESOLVED

        # Conversion and assembly are pure and cannot fail.
        result = TemperatureResult.from_reading(location, reading)
        stage = PipelineStage.CONVERTED
        _LOGGER.debug("[%s] Lookup for %s reached stage %s", ctx.trace_id, zipcode, stage.value)
        return result

    @staticmethod
    def _failure(
        ctx: RequestContext,
        stage: PipelineStage,
        zipcode: str,
        err: ResolverError,
    ) -> LookupFailure:
        """Classify a resolver error raised after the given stage."""
        failure: LookupFailure
        if isinstance(err, NotFoundError) and stage is PipelineStage.VALIDATED:
            failure = ZipcodeNotFound("can not find zipcode", stage=stage, zipcode=zipcode)
        elif isinstance(err, DecodeError):
            failure = UpstreamDecodeFailure(str(err), stage=stage, zipcode=zipcode)
        else:
            failure = UpstreamFailure(str(err), stage=stage, zipcode=zipcode)

        if isinstance(failure, ZipcodeNotFound):
            _LOGGER.info("[%s] Zipcode %s not found: %s", ctx.trace_id, zipcode, err)
        else:
            _LOGGER.error(
                "[%s] Lookup for %s failed after stage %s: %s",
                ctx.trace_id,
                zipcode,
                stage.value,
                err,
            )
        return failure
