"""Data structures passed between lookup stages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .convert import celsius_to_fahrenheit, celsius_to_kelvin, format_temperature


@dataclass(frozen=True)
class Location:
    """Locality resolved from a postal code.

    Attributes:
        name: Locality name (e.g., "São Paulo"), never empty.
    """

    name: str


@dataclass(frozen=True)
class WeatherReading:
    """Current conditions reported by the weather provider.

    Attributes:
        celsius: Current temperature in Celsius.
        fahrenheit: Provider's own Fahrenheit reading, if it sent one.
            Informational only; TemperatureResult always derives Fahrenheit
            from celsius so the three scales agree.
    """

    celsius: float
    fahrenheit: float | None = None


@dataclass(frozen=True)
class TemperatureResult:
    """Temperature reading returned to the caller.

    All temperatures are formatted with one decimal place.
    """

    city: str
    celsius: str
    fahrenheit: str
    kelvin: str

    @classmethod
    def from_reading(cls, location: Location, reading: WeatherReading) -> TemperatureResult:
        """Build a result, deriving Fahrenheit and Kelvin from Celsius."""
        return cls(
            city=location.name,
            celsius=format_temperature(reading.celsius),
            fahrenheit=format_temperature(celsius_to_fahrenheit(reading.celsius)),
            kelvin=format_temperature(celsius_to_kelvin(reading.celsius)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for wire format."""
        return {
            "city": self.city,
            "temp_C": self.celsius,
            "temp_F": self.fahrenheit,
            "temp_K": self.kelvin,
        }
