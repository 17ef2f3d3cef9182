"""Temperature unit conversion."""

from __future__ import annotations

KELVIN_OFFSET = 273


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 1.8 + 32


def celsius_to_kelvin(celsius: float) -> float:
    # Upstream consumers expect the integer offset, not 273.15.
    return celsius + KELVIN_OFFSET


def format_temperature(value: float) -> str:
    """Format a temperature with one decimal place."""
    return f"{value:.1f}"
