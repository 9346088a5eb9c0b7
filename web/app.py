"""
Flask web server for SkySense.

Routes
──────
GET    /                   Single-page UI
POST   /search             Form: search a city (field ``city``)
POST   /history/select     Form: re-run a search from history (field ``city``)
POST   /history/clear      Form: clear search history
POST   /unit               Form: switch display unit (field ``unit``: C | F)
GET    /api/state          Full controller state (JSON)
POST   /api/search         JSON ``{"city": "..."}`` → state
POST   /api/unit           JSON ``{"unit": "C" | "F"}`` → state
DELETE /api/history        Clear history → state
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv
from flask import Flask, jsonify, redirect, render_template, request, url_for

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

from config.settings import Settings
from core.controller import WeatherController
from core.gateway import WeatherGateway

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, gateway=None) -> Flask:
    """Build the Flask app and bootstrap its controller.

    Args:
        settings: Configuration; read from the environment when omitted.
        gateway: Weather gateway; a live ``WeatherGateway`` when omitted
            (requires ``ANTHROPIC_API_KEY``).
    """
    settings = settings or Settings()
    if gateway is None:
        settings.validate()
        gateway = WeatherGateway(settings)

    controller = WeatherController(gateway, settings)
    controller.start()

    app = Flask(__name__)
    app.config["CONTROLLER"] = controller

    # ── UI ─────────────────────────────────────────────────────────────────

    @app.route("/")
    def index():
        return render_template("index.html", state=controller.to_dict())

    @app.route("/search", methods=["POST"])
    def search():
        city = request.form.get("city", "")
        controller.city_input = city
        controller.search(city)
        return redirect(url_for("index"))

    @app.route("/history/select", methods=["POST"])
    def select_history():
        controller.select_history(request.form.get("city", ""))
        return redirect(url_for("index"))

    @app.route("/history/clear", methods=["POST"])
    def clear_history():
        controller.clear_history()
        return redirect(url_for("index"))

    @app.route("/unit", methods=["POST"])
    def set_unit():
        try:
            controller.set_unit(request.form.get("unit", ""))
        except ValueError:
            logger.debug("Ignoring invalid unit %r", request.form.get("unit"))
        return redirect(url_for("index"))

    # ── JSON API ───────────────────────────────────────────────────────────

    @app.route("/api/state")
    def api_state():
        return jsonify(controller.to_dict())

    @app.route("/api/search", methods=["POST"])
    def api_search():
        """Search a city; blank input leaves the state untouched."""
        payload = request.get_json(silent=True) or {}
        city = str(payload.get("city", ""))
        controller.city_input = city
        controller.search(city)
        return jsonify(controller.to_dict())

    @app.route("/api/unit", methods=["POST"])
    def api_unit():
        payload = request.get_json(silent=True) or {}
        try:
            controller.set_unit(payload.get("unit", ""))
        except ValueError:
            return jsonify({"error": "unit must be 'C' or 'F'"}), 400
        return jsonify(controller.to_dict())

    @app.route("/api/history", methods=["DELETE"])
    def api_clear_history():
        controller.clear_history()
        return jsonify(controller.to_dict())

    return app


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    settings = Settings()
    create_app(settings).run(debug=settings.debug, host="0.0.0.0", port=settings.port)
