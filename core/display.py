"""Render-time formatting for the weather card and history list.

Stored temperatures are always Celsius; conversion to the selected ``Unit``
happens here and never mutates the snapshot or history entries.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from core.models import HistoryEntry, Unit, WeatherSnapshot


def to_fahrenheit(celsius: float) -> float:
    """Convert a Celsius value to Fahrenheit."""
    return celsius * 9 / 5 + 32


def convert(celsius: float, unit: Unit) -> float:
    """Return *celsius* expressed in *unit*."""
    if unit is Unit.FAHRENHEIT:
        return to_fahrenheit(celsius)
    return celsius


def format_temperature(celsius: float, unit: Unit) -> str:
    """Format a temperature for display, rounded half-up to a whole degree.

    Examples:
        >>> format_temperature(21.5, Unit.CELSIUS)
        '22°C'
        >>> format_temperature(0, Unit.FAHRENHEIT)
        '32°F'
    """
    value = math.floor(convert(celsius, unit) + 0.5)
    return f"{value}°{unit.value}"


def weather_card(snapshot: WeatherSnapshot, unit: Unit) -> dict:
    """Build the display fields for the current weather card."""
    return {
        "city": snapshot.city,
        "condition": snapshot.condition,
        "description": snapshot.description,
        "temperature": format_temperature(snapshot.temperature, unit),
        "feels_like": format_temperature(snapshot.feels_like, unit),
        "high": format_temperature(snapshot.high, unit),
        "low": format_temperature(snapshot.low, unit),
        "humidity": f"{math.floor(snapshot.humidity + 0.5)}%",
        "wind_speed": f"{snapshot.wind_speed:g} km/h",
        "timestamp": snapshot.timestamp,
        "ai_insights": snapshot.ai_insights,
        "sources": [source.model_dump() for source in snapshot.sources],
    }


def history_items(history: Sequence[HistoryEntry], unit: Unit) -> list[dict]:
    """Build the display rows for the history list, in stored order."""
    return [
        {
            "city": entry.city,
            "temp": format_temperature(entry.temp, unit),
            "condition": entry.condition,
        }
        for entry in history
    ]
