"""
SQLite-backed persistent history for SkySense.

The database is used as a plain key/value medium; the recent-search list is
stored as one JSON array under ``HISTORY_KEY``.

Schema
──────
table: kv
  key   TEXT PRIMARY KEY
  value TEXT NOT NULL  (JSON array of {city, temp, condition})
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from collections.abc import Sequence
from contextlib import contextmanager
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from core.models import HistoryEntry

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "skysense.db"

HISTORY_KEY = "skysense_history"
HISTORY_LIMIT = 5

_entries_adapter = TypeAdapter(list[HistoryEntry])

_CREATE_TABLE = "CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)"


def _db_path() -> Path:
    """Return the database file path, honouring a DB_PATH env var if set."""
    env = os.getenv("DB_PATH")
    return Path(env) if env else DEFAULT_DB_PATH


@contextmanager
def _connect():
    """Yield a connected sqlite3.Connection, creating the file, dir and kv table if needed."""
    path = _db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    try:
        conn.execute(_CREATE_TABLE)
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


# ── Key/value medium ───────────────────────────────────────────────────────

def get_value(key: str) -> str | None:
    """Return the value stored under *key*, or None if absent."""
    with _connect() as conn:
        row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
    return row[0] if row else None


def set_value(key: str, value: str) -> None:
    """Store *value* under *key*, replacing any prior value."""
    with _connect() as conn:
        conn.execute(
            "INSERT INTO kv (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
        )


def delete_value(key: str) -> None:
    """Remove *key* entirely. Missing keys are ignored."""
    with _connect() as conn:
        conn.execute("DELETE FROM kv WHERE key = ?", (key,))


# ── History ────────────────────────────────────────────────────────────────

def load() -> list[HistoryEntry]:
    """Return the persisted history, most recent first.

    Absent or malformed data yields an empty list; a corrupt value or an
    unreadable database is logged and otherwise ignored. Repeated cities keep
    only their most recent entry.
    """
    try:
        raw = get_value(HISTORY_KEY)
    except sqlite3.Error as exc:
        logger.warning("Could not read history from %s: %s", _db_path(), exc)
        return []

    if raw is None:
        return []

    try:
        entries = _entries_adapter.validate_json(raw)
    except ValidationError as exc:
        logger.warning("Ignoring corrupt history value: %s", exc)
        return []

    unique: list[HistoryEntry] = []
    seen: set[str] = set()
    for entry in entries:
        if entry.city not in seen:
            seen.add(entry.city)
            unique.append(entry)
    return unique[:HISTORY_LIMIT]


def save(entries: Sequence[HistoryEntry]) -> None:
    """Serialise *entries* as a JSON array and overwrite the stored history.

    Args:
        entries: History entries, most recent first.
    """
    payload = json.dumps([entry.model_dump() for entry in entries])
    set_value(HISTORY_KEY, payload)
    logger.info("Saved %d history entries", len(entries))


def clear() -> None:
    """Delete the stored history."""
    delete_value(HISTORY_KEY)
    logger.info("Cleared search history")


def merge(
    history: Sequence[HistoryEntry],
    entry: HistoryEntry,
    limit: int = HISTORY_LIMIT,
) -> list[HistoryEntry]:
    """Put *entry* at the front of *history*.

    Any older entry for the same city is dropped and the result is cut to
    *limit* entries.

    Examples:
        >>> [e.city for e in merge([b, a], a2)]
        ['A', 'B']
    """
    rest = [item for item in history if item.city != entry.city]
    return [entry, *rest][:limit]
