"""Timestamp helpers shared by the version store and moderation queue."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

# Epoch values above this are milliseconds (year 5138 in seconds).
_MILLIS_THRESHOLD = 100_000_000_000

RESTORE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _from_native(value: Any) -> float | None:
    """Read store-native `{seconds, nanoseconds}` values, mapping or object."""
    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
    else:
        seconds = getattr(value, "seconds", None)
        nanos = getattr(value, "nanoseconds", 0)
    if seconds is None:
        return None
    return float(seconds) + float(nanos or 0) / 1_000_000_000


def to_epoch_seconds(value: Any) -> float:
    """Normalize any supported timestamp shape to epoch seconds.

    Supported: aware or naive `datetime`, epoch seconds or milliseconds,
    ISO-8601 strings (a trailing `Z` is accepted) and `{seconds, nanoseconds}`.
    Missing values sort first as 0.0.
    """
    if value is None:
        return 0.0
    if isinstance(value, datetime):
        return ensure_aware(value).timestamp()
    if isinstance(value, bool):
        raise TypeError("Boolean is not a timestamp")
    if isinstance(value, int | float):
        number = float(value)
        return number / 1000 if abs(number) >= _MILLIS_THRESHOLD else number
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = f"{raw[:-1]}+00:00"
        return ensure_aware(datetime.fromisoformat(raw)).timestamp()

    native = _from_native(value)
    if native is None:
        raise TypeError(f"Unsupported timestamp value: {type(value).__name__}")
    return native


def format_restore_timestamp(value: datetime) -> str:
    return ensure_aware(value).astimezone(timezone.utc).strftime(RESTORE_TIMESTAMP_FORMAT)
