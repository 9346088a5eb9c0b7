"""Application controller — owns all mutable SkySense state.

State
─────
city_input  last text submitted through the search box
weather     current WeatherSnapshot (or None)
loading     True while a gateway call is in flight
error       user-facing error message (or None)
unit        display unit (Unit.CELSIUS / Unit.FAHRENHEIT)
history     recent searches, most recent first (persisted)
theme       Theme derived from weather.condition

Overlapping searches are not cancelled; whichever finishes last determines
the displayed state.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from typing import TYPE_CHECKING

from core import display
from core import history as hist
from core.gateway import WeatherUnavailableError
from core.models import HistoryEntry, Status, Theme, Unit, WeatherSnapshot
from core.theme import classify

if TYPE_CHECKING:
    from config.settings import Settings
    from core.gateway import WeatherGateway

logger = logging.getLogger(__name__)

ERROR_MESSAGE = (
    "We couldn't find that city or the service is temporarily unavailable. "
    "Please try again."
)


class WeatherController:
    """Coordinates searches between the gateway, history store and views."""

    def __init__(self, gateway: WeatherGateway, settings: Settings) -> None:
        self.gateway = gateway
        self.settings = settings

        self.city_input: str = ""
        self.weather: WeatherSnapshot | None = None
        self.loading: bool = False
        self.error: str | None = None
        self.unit: Unit = Unit.CELSIUS
        self.history: list[HistoryEntry] = []
        self.theme: Theme = Theme.DEFAULT

        self._lock = threading.Lock()

    @property
    def status(self) -> Status:
        if self.loading:
            return Status.LOADING
        if self.error:
            return Status.ERROR
        if self.weather is not None:
            return Status.SUCCESS
        return Status.IDLE

    def start(self) -> None:
        """Hydrate history from the store, then load the default city."""
        self.history = hist.load()
        logger.info("Loaded %d history entries", len(self.history))
        self.search(self.settings.default_city)

    # ── Actions ────────────────────────────────────────────────────────────

    def search(self, city: str) -> None:
        """Fetch weather for *city* and update state.

        Blank input is ignored. On failure the previous snapshot and theme
        stay on screen and only the error message is set.
        """
        if not city or not city.strip():
            return

        self.loading = True
        self.error = None
        try:
            snapshot = self.gateway.fetch_weather(city)
        except WeatherUnavailableError:
            logger.warning("Search failed for city=%r", city)
            self.error = ERROR_MESSAGE
        else:
            self._apply(snapshot)
        finally:
            self.loading = False

    def select_history(self, city: str) -> None:
        """Re-run a search for a city picked from the history list."""
        self.search(city)

    def clear_history(self) -> None:
        """Empty the in-memory history and the persisted copy."""
        with self._lock:
            self.history = []
            try:
                hist.clear()
            except sqlite3.Error:
                logger.exception("Could not clear persisted history")

    def set_unit(self, unit: Unit | str) -> None:
        """Switch the display unit.

        Raises:
            ValueError: If *unit* is not ``"C"`` or ``"F"``.
        """
        self.unit = Unit(unit)

    def _apply(self, snapshot: WeatherSnapshot) -> None:
        with self._lock:
            self.weather = snapshot
            self.theme = classify(snapshot.condition)
            self.history = hist.merge(self.history, HistoryEntry.from_snapshot(snapshot))
            try:
                hist.save(self.history)
            except sqlite3.Error:
                logger.exception("Could not persist history after %s", snapshot.city)
        logger.info("Displaying %s (theme=%s)", snapshot.city, self.theme.value)

    # ── Views ──────────────────────────────────────────────────────────────

    def view(self) -> dict:
        """Describe which parts of the page to render.

        ``main`` is one of ``content`` (a snapshot is held), ``loading``
        (first load in flight), ``welcome`` (nothing yet) or ``empty``
        (failed with nothing to show).
        """
        if self.weather is not None:
            main = "content"
        elif self.loading:
            main = "loading"
        elif not self.error:
            main = "welcome"
        else:
            main = "empty"
        return {"show_error": self.error is not None, "main": main}

    def to_dict(self) -> dict:
        """Return the full controller state, formatted for the current unit."""
        return {
            "status": self.status.value,
            "city_input": self.city_input,
            "loading": self.loading,
            "error": self.error,
            "unit": self.unit.value,
            "theme": self.theme.value,
            "weather": (
                display.weather_card(self.weather, self.unit) if self.weather else None
            ),
            "history": display.history_items(self.history, self.unit),
            "view": self.view(),
        }
