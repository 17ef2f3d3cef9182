"""Web services and CLI hosting the zipweather lookup pipeline."""

from .http import ForwardedResponse, TemperatureServiceClient
from .web import (
    GatewayService,
    TemperatureService,
    create_gateway_app,
    create_temperature_app,
    failure_status,
)

__all__ = [
    "ForwardedResponse",
    "GatewayService",
    "TemperatureService",
    "TemperatureServiceClient",
    "create_gateway_app",
    "create_temperature_app",
    "failure_status",
]
