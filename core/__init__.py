"""
SkySense core package.

Modules
───────
models      — Pydantic data models and enums (WeatherSnapshot, HistoryEntry, Theme, Unit)
gateway     — Claude + web_search tool: city name → WeatherSnapshot
theme       — condition text → display Theme
history     — SQLite key/value store holding the five most recent searches
controller  — application state and search orchestration
display     — render-time unit conversion and view formatting
"""
