"""Core lookup pipeline: postal code to current temperature."""

__version__ = "0.1.0"

from .config import ServiceConfig
from .context import CORRELATION_HEADER, RequestContext
from .convert import celsius_to_fahrenheit, celsius_to_kelvin, format_temperature
from .errors import (
    ConfigError,
    DecodeError,
    LookupFailure,
    NotFoundError,
    ResolverError,
    ResponseStatusError,
    TransportError,
    TransportTimeout,
    UnprocessableZipcode,
    UpstreamDecodeFailure,
    UpstreamFailure,
    ZipcodeNotFound,
    ZipWeatherError,
)
from .http import LocationResolver, WeatherResolver
from .models import Location, TemperatureResult, WeatherReading
from .pipeline import LookupPipeline, PipelineStage
from .trace_emitter import TraceConfig, Tracer
from .validation import is_valid_zipcode

__all__ = [
    "CORRELATION_HEADER",
    "ConfigError",
    "DecodeError",
    "Location",
    "LocationResolver",
    "LookupFailure",
    "LookupPipeline",
    "NotFoundError",
    "PipelineStage",
    "RequestContext",
    "ResolverError",
    "ResponseStatusError",
    "ServiceConfig",
    "TemperatureResult",
    "TraceConfig",
    "Tracer",
    "TransportError",
    "TransportTimeout",
    "UnprocessableZipcode",
    "UpstreamDecodeFailure",
    "UpstreamFailure",
    "WeatherReading",
    "WeatherResolver",
    "ZipWeatherError",
    "ZipcodeNotFound",
    "__version__",
    "celsius_to_fahrenheit",
    "celsius_to_kelvin",
    "format_temperature",
    "is_valid_zipcode",
]
