"""Shared fixtures: a scripted gateway and an isolated history DB."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from core.gateway import WeatherUnavailableError
from core.models import WeatherSnapshot


def make_snapshot(city: str, temperature: float = 20.0, condition: str = "Sunny") -> WeatherSnapshot:
    return WeatherSnapshot(
        city=city,
        temperature=temperature,
        condition=condition,
        humidity=50,
        wind_speed=10,
        feels_like=temperature - 1,
        high=temperature + 3,
        low=temperature - 4,
        description=f"{condition} in {city}.",
        ai_insights=f"A fine day to explore {city}.",
        timestamp="2026-10-18 09:00",
    )


class FakeGateway:
    """Returns canned snapshots by city; unknown cities fail."""

    def __init__(self, snapshots: dict[str, WeatherSnapshot] | None = None) -> None:
        self.snapshots = dict(snapshots or {})
        self.calls: list[str] = []

    def fetch_weather(self, city: str) -> WeatherSnapshot:
        self.calls.append(city)
        try:
            return self.snapshots[city.strip()]
        except KeyError:
            raise WeatherUnavailableError(city) from None


@pytest.fixture(autouse=True)
def temp_db(tmp_path, monkeypatch):
    """Point DB_PATH to a fresh temp file for each test."""
    monkeypatch.setenv("DB_PATH", str(tmp_path / "skysense.db"))
    yield


@pytest.fixture
def settings():
    s = MagicMock()
    s.default_city = "London"
    return s


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway(
        {
            "London": make_snapshot("London", 14, "Light rain"),
            "Paris": make_snapshot("Paris", 18, "Partly cloudy"),
            "Rome": make_snapshot("Rome", 26, "Sunny"),
        }
    )
