"""Datetime helpers: timestamps and JSON-safe temporal values."""

from __future__ import annotations

from datetime import UTC, date, datetime, time
from typing import Any


def now_utc() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(UTC)


def format_iso(dt: datetime) -> str:
    """Format datetime as ISO 8601 for JSON serialization."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.isoformat()


def normalize_temporal(value: Any) -> Any:
    """Recursively replace date, time and datetime values with ISO 8601 strings.

    YAML and TOML both produce native temporal objects; normalizing them keeps
    parsed record data identical whether it is held in memory or in the database.
    """
    if isinstance(value, datetime):
        return format_iso(value)
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): normalize_temporal(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_temporal(v) for v in value]
    return value
