"""Error types for postal code and weather lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pipeline import PipelineStage


class ZipWeatherError(Exception):
    """Base error for zipweather failures."""


class ConfigError(ZipWeatherError):
    """Service configuration is missing or invalid."""


class ResolverError(ZipWeatherError):
    """Base error for upstream resolver failures."""


class TransportError(ResolverError):
    """The upstream call could not be completed."""


class TransportTimeout(TransportError):
    """The request deadline passed or the request was cancelled."""


class ResponseStatusError(ResolverError):
    """Upstream answered with an unexpected HTTP status."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status


class DecodeError(ResolverError):
    """Upstream payload could not be decoded."""


class NotFoundError(ResolverError):
    """The postal code is well formed but matches no known locality."""


class LookupFailure(ZipWeatherError):
    """A lookup pipeline run ended in the error state."""

    def __init__(self, message: str, *, stage: PipelineStage, zipcode: str) -> None:
        super().__init__(message)
        self.stage = stage
        self.zipcode = zipcode


class UnprocessableZipcode(LookupFailure):
    """The postal code failed validation; no upstream call was made."""


class ZipcodeNotFound(LookupFailure):
    """The directory has no locality for the postal code."""


class UpstreamFailure(LookupFailure):
    """A resolver stage failed for reasons other than not-found."""


class UpstreamDecodeFailure(UpstreamFailure):
    """A resolver stage received a payload it could not decode."""
