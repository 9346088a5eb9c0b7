"""
Tests for core/gateway.py

Run with: pytest tests/test_gateway.py
"""

from unittest.mock import MagicMock, patch

import anthropic
import httpx
import pytest
from pydantic import ValidationError

from core.gateway import WeatherGateway, WeatherUnavailableError
from core.models import SourceRef, WeatherReport, WeatherSnapshot


def make_settings(**overrides):
    """Return a minimal Settings-like object for testing."""
    settings = MagicMock()
    settings.anthropic_api_key = "test-key"
    settings.research_model = "claude-haiku-4-5"
    settings.structure_model = "claude-haiku-4-5"
    settings.max_web_searches = 2
    for k, v in overrides.items():
        setattr(settings, k, v)
    return settings


@pytest.fixture
def sample_report() -> WeatherReport:
    return WeatherReport(
        city="London",
        temperature=14.0,
        condition="Light rain",
        humidity=88,
        wind_speed=19,
        feels_like=12.5,
        high=16,
        low=9,
        description="Showers through the afternoon.",
        ai_insights="Take an umbrella; it clears up by evening.",
    )


def text_event(text: str) -> MagicMock:
    event = MagicMock()
    event.type = "content_block_delta"
    delta = MagicMock()
    delta.type = "text_delta"
    delta.text = text
    event.delta = delta
    return event


def search_event(*results: tuple[str, str]) -> MagicMock:
    items = []
    for title, url in results:
        item = MagicMock()
        item.type = "web_search_result"
        item.title = title
        item.url = url
        items.append(item)
    block = MagicMock()
    block.type = "web_search_tool_result"
    block.content = items
    event = MagicMock()
    event.type = "content_block_start"
    event.content_block = block
    return event


def fake_stream(events: list) -> MagicMock:
    stream = MagicMock()
    stream.__iter__ = MagicMock(return_value=iter(events))
    stream.__enter__ = MagicMock(return_value=stream)
    stream.__exit__ = MagicMock(return_value=False)
    return stream


def make_client(events: list, parsed=None) -> MagicMock:
    client = MagicMock()
    client.beta.messages.stream.return_value = fake_stream(events)
    response = MagicMock()
    response.parsed_output = parsed
    client.messages.parse.return_value = response
    return client


class TestFetchWeather:
    def test_blank_city_raises(self):
        gateway = WeatherGateway(make_settings())
        with pytest.raises(ValueError, match="empty"):
            gateway.fetch_weather("   ")

    @patch("core.gateway.anthropic.Anthropic")
    def test_returns_snapshot(self, mock_cls, sample_report):
        mock_cls.return_value = make_client([text_event("Rainy in London")], sample_report)

        snapshot = WeatherGateway(make_settings()).fetch_weather("London")

        assert isinstance(snapshot, WeatherSnapshot)
        assert snapshot.city == "London"
        assert snapshot.condition == "Light rain"
        assert snapshot.ai_insights.startswith("Take an umbrella")
        assert snapshot.timestamp
        assert snapshot.sources == ()

    @patch("core.gateway.anthropic.Anthropic")
    def test_collects_sources_in_order_without_duplicates(self, mock_cls, sample_report):
        events = [
            search_event(("BBC Weather", "https://bbc.co.uk/weather"), ("Met Office", "https://metoffice.gov.uk")),
            search_event(("BBC Weather again", "https://bbc.co.uk/weather")),
            text_event("Report"),
        ]
        mock_cls.return_value = make_client(events, sample_report)

        snapshot = WeatherGateway(make_settings()).fetch_weather("London")

        assert snapshot.sources == (
            SourceRef(title="BBC Weather", uri="https://bbc.co.uk/weather"),
            SourceRef(title="Met Office", uri="https://metoffice.gov.uk"),
        )

    @patch("core.gateway.anthropic.Anthropic")
    def test_strips_city_before_querying(self, mock_cls, sample_report):
        client = make_client([text_event("Report")], sample_report)
        mock_cls.return_value = client

        WeatherGateway(make_settings()).fetch_weather("  London  ")

        messages = client.beta.messages.stream.call_args.kwargs["messages"]
        assert messages[0]["content"].endswith("London")

    @patch("core.gateway.anthropic.Anthropic")
    def test_web_search_uses_configured_max_uses(self, mock_cls, sample_report):
        client = make_client([text_event("Report")], sample_report)
        mock_cls.return_value = client

        WeatherGateway(make_settings(max_web_searches=4)).fetch_weather("London")

        tools = client.beta.messages.stream.call_args.kwargs["tools"]
        assert tools[0]["max_uses"] == 4


class TestFailures:
    @patch("core.gateway.anthropic.Anthropic")
    def test_api_error_collapses_to_unavailable(self, mock_cls):
        client = MagicMock()
        client.beta.messages.stream.side_effect = anthropic.APIConnectionError(
            request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        )
        mock_cls.return_value = client

        with pytest.raises(WeatherUnavailableError):
            WeatherGateway(make_settings()).fetch_weather("London")

    @patch("core.gateway.anthropic.Anthropic")
    def test_empty_report_is_unavailable(self, mock_cls, sample_report):
        client = make_client([], sample_report)
        mock_cls.return_value = client

        with pytest.raises(WeatherUnavailableError):
            WeatherGateway(make_settings()).fetch_weather("Atlantis")
        client.messages.parse.assert_not_called()

    @patch("core.gateway.anthropic.Anthropic")
    def test_missing_parsed_output_is_unavailable(self, mock_cls):
        mock_cls.return_value = make_client([text_event("Report")], None)

        with pytest.raises(WeatherUnavailableError):
            WeatherGateway(make_settings()).fetch_weather("London")

    @patch("core.gateway.anthropic.Anthropic")
    def test_validation_error_is_unavailable(self, mock_cls):
        client = make_client([text_event("Report")])
        try:
            WeatherReport.model_validate({"city": "London"})
        except ValidationError as exc:
            client.messages.parse.side_effect = exc
        mock_cls.return_value = client

        with pytest.raises(WeatherUnavailableError):
            WeatherGateway(make_settings()).fetch_weather("London")
