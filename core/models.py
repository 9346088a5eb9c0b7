"""
Pydantic models and enums shared across the SkySense core.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Unit(str, Enum):
    """Temperature unit selected for display."""

    CELSIUS = "C"
    FAHRENHEIT = "F"


class Theme(str, Enum):
    """Visual theme derived from the current weather condition."""

    SUNNY = "sunny"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    SNOWY = "snowy"
    STORMY = "stormy"
    NIGHT = "night"
    DEFAULT = "default"


class Status(str, Enum):
    """Observable state of the application controller."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class SourceRef(BaseModel):
    """A single web source cited by the weather insights."""

    model_config = ConfigDict(frozen=True)

    title: str
    uri: str


class WeatherReport(BaseModel):
    """Structured weather data extracted by the model (temperatures in °C)."""

    city: str
    temperature: float
    condition: str
    humidity: float
    wind_speed: float
    feels_like: float
    high: float
    low: float
    description: str
    ai_insights: str


class WeatherSnapshot(WeatherReport):
    """One successful weather query, immutable once received."""

    model_config = ConfigDict(frozen=True)

    timestamp: str
    sources: tuple[SourceRef, ...] = ()


class HistoryEntry(BaseModel):
    """A past search kept after its full snapshot has been replaced.

    Field names match the persisted JSON shape ``{city, temp, condition}``.
    """

    model_config = ConfigDict(frozen=True)

    city: str
    temp: float
    condition: str

    @classmethod
    def from_snapshot(cls, snapshot: WeatherSnapshot) -> HistoryEntry:
        return cls(
            city=snapshot.city,
            temp=snapshot.temperature,
            condition=snapshot.condition,
        )
