"""
Weather query gateway for SkySense.

Turns a city name into a ``WeatherSnapshot`` using Claude with the built-in
web_search tool, in two passes:

Flow
────
1. _research(city)
     → streams a Claude session that looks up the current conditions
     → captures cited web sources from web_search_tool_result blocks
     → returns the assembled report text and the sources

2. _structure(city, raw_text)
     → second Claude call (non-streaming) that parses the report into a
       validated WeatherReport via Pydantic

Any failure along the way surfaces as ``WeatherUnavailableError``: callers
cannot tell an unknown city from an unavailable service.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

import anthropic
from pydantic import ValidationError

from core.models import SourceRef, WeatherReport, WeatherSnapshot

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

WEB_SEARCH_BETA = "web-search-2025-03-05"
WEB_SEARCH_TOOL = {"type": "web_search_20250305", "name": "web_search"}

RESEARCH_SYSTEM = (
    "You are a meteorologist. Search the web for the current weather in the "
    "requested city. Report: the resolved city name, current temperature, "
    "feels-like temperature, today's high and low (all in Celsius), humidity "
    "in percent, wind speed in km/h, a short condition label (e.g. 'Partly "
    "Cloudy'), a one-sentence description, and 2-3 sentences of practical "
    "insight (what to wear, outdoor plans, notable changes). If the city "
    "cannot be found, say so plainly."
)

STRUCTURE_SYSTEM = (
    "Extract structured weather data from the report into the JSON schema "
    "provided. Temperatures in Celsius, humidity in percent, wind speed in "
    "km/h. Put the practical insight text in ai_insights. Return only JSON, "
    "no commentary."
)


class WeatherUnavailableError(Exception):
    """The city could not be found or the weather service is unavailable."""


class WeatherGateway:
    """Fetches weather snapshots through the Claude ``web_search`` tool.

    The Anthropic client is lazy-initialised so the gateway can be
    instantiated in tests without a live API key.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._client: object = None  # Lazy-initialised anthropic.Anthropic

    @property
    def client(self) -> object:
        """Lazy-initialise and return the Anthropic SDK client."""
        if self._client is None:
            self._client = anthropic.Anthropic(
                api_key=self.settings.anthropic_api_key,
                max_retries=2,
            )
        return self._client

    def fetch_weather(self, city: str) -> WeatherSnapshot:
        """Return the current weather and AI insights for *city*.

        Args:
            city: Free-text city name.

        Returns:
            A fully populated ``WeatherSnapshot``.

        Raises:
            ValueError: If *city* is blank.
            WeatherUnavailableError: On any API, parsing or lookup failure.
        """
        city = city.strip()
        if not city:
            raise ValueError("City must not be empty.")

        logger.info("Fetching weather for city=%r", city)
        try:
            raw_text, sources = self._research(city)
            if not raw_text.strip():
                logger.warning("Empty weather report for city=%r", city)
                raise WeatherUnavailableError(city)
            report = self._structure(city, raw_text)
        except anthropic.APIError as exc:
            logger.warning("Weather API call failed for city=%r: %s", city, exc)
            raise WeatherUnavailableError(city) from exc
        except ValidationError as exc:
            logger.warning("Unparseable weather report for city=%r: %s", city, exc)
            raise WeatherUnavailableError(city) from exc

        if report is None:
            logger.warning("No structured weather report for city=%r", city)
            raise WeatherUnavailableError(city)

        snapshot = WeatherSnapshot(
            **report.model_dump(),
            timestamp=datetime.now().strftime("%Y-%m-%d %H:%M"),
            sources=tuple(sources),
        )
        logger.info(
            "Weather for %s: %s, %.1f°C (%d sources)",
            snapshot.city, snapshot.condition, snapshot.temperature, len(sources),
        )
        return snapshot

    # ── Research pass ──────────────────────────────────────────────────────

    def _research(self, city: str) -> tuple[str, list[SourceRef]]:
        """Stream a web-search session and return ``(text, sources)``."""
        sources: list[SourceRef] = []
        seen: set[str] = set()
        text_parts: list[str] = []
        tool = {**WEB_SEARCH_TOOL, "max_uses": self.settings.max_web_searches}

        with self.client.beta.messages.stream(
            model=self.settings.research_model,
            max_tokens=800,
            betas=[WEB_SEARCH_BETA],
            tools=[tool],
            system=RESEARCH_SYSTEM,
            messages=[{"role": "user", "content": f"Current weather in: {city}"}],
        ) as stream:
            for event in stream:
                event_type = getattr(event, "type", None)

                # ── Capture sources from web_search_result blocks ──────────
                if event_type == "content_block_start":
                    block = getattr(event, "content_block", None)
                    if block and getattr(block, "type", None) == "web_search_tool_result":
                        for result in getattr(block, "content", []) or []:
                            if getattr(result, "type", None) != "web_search_result":
                                continue
                            uri = getattr(result, "url", "") or ""
                            if not uri or uri in seen:
                                continue
                            seen.add(uri)
                            sources.append(
                                SourceRef(title=getattr(result, "title", "") or uri, uri=uri)
                            )

                # ── Collect the report text ────────────────────────────────
                elif event_type == "content_block_delta":
                    delta = getattr(event, "delta", None)
                    if delta and getattr(delta, "type", None) == "text_delta":
                        text_parts.append(delta.text)

        return "".join(text_parts), sources

    # ── Structuring pass ───────────────────────────────────────────────────

    def _structure(self, city: str, raw_text: str) -> WeatherReport | None:
        """Parse the free-form report into a ``WeatherReport``."""
        truncated = raw_text[:2000]
        response = self.client.messages.parse(
            model=self.settings.structure_model,
            max_tokens=700,
            system=STRUCTURE_SYSTEM,
            messages=[
                {"role": "user", "content": f"City: {city}\n\nReport:\n{truncated}"}
            ],
            output_format=WeatherReport,
        )
        return response.parsed_output
