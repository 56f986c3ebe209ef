"""Conversion of stored timestamp values into dates and datetimes.

Task documents written by the mobile app carry timestamps in several shapes:
- Firestore Timestamp maps: {"seconds": ..., "nanoseconds": ...}
  (exports from the Admin SDK use "_seconds"/"_nanoseconds")
- ISO 8601 strings ("2024-01-01" or "2024-01-01T09:00:00Z")
- JavaScript epoch milliseconds
- Native date/datetime values (already converted by a client library)

Everything is normalized here so the recurrence engine only ever sees
date or datetime values.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Mapping, Optional, Union


class TimestampError(ValueError):
    """Raised when a stored value cannot be read as a timestamp."""


@dataclass(frozen=True, slots=True)
class FirestoreTimestamp:
    """Seconds/nanoseconds pair as stored by Firestore."""

    seconds: int
    nanoseconds: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FirestoreTimestamp":
        seconds = data.get("seconds", data.get("_seconds"))
        nanoseconds = data.get("nanoseconds", data.get("_nanoseconds", 0))
        try:
            return cls(seconds=int(seconds), nanoseconds=int(nanoseconds or 0))
        except (TypeError, ValueError) as exc:
            raise TimestampError(f"Invalid Firestore timestamp: {dict(data)!r}") from exc

    def to_datetime(self) -> datetime:
        epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)
        return epoch + timedelta(seconds=self.seconds, microseconds=self.nanoseconds // 1000)


def _is_timestamp_mapping(value: Any) -> bool:
    return isinstance(value, Mapping) and ("seconds" in value or "_seconds" in value)


def _parse_iso(value: str) -> Union[date, datetime]:
    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise TimestampError(f"Invalid ISO timestamp: {value!r}") from exc


def _localize(value: datetime, tz: Optional[tzinfo]) -> datetime:
    if tz is None or value.tzinfo is None:
        return value
    return value.astimezone(tz)


def normalize_timestamp(raw: Any, *, tz: Optional[tzinfo] = None) -> Optional[Union[date, datetime]]:
    """Convert a stored timestamp value to a date or datetime.

    Args:
        raw: Value read from a task document
        tz: Optional zone that aware datetimes are converted into

    Returns:
        date for date-only values, datetime otherwise, None when absent

    Raises:
        TimestampError: if the value has an unsupported type or format
    """
    if raw is None or raw == "":
        return None

    if isinstance(raw, datetime):
        return _localize(raw, tz)

    if isinstance(raw, date):
        return raw

    if isinstance(raw, FirestoreTimestamp):
        return _localize(raw.to_datetime(), tz)

    if _is_timestamp_mapping(raw):
        return _localize(FirestoreTimestamp.from_mapping(raw).to_datetime(), tz)

    # bool is an int subclass but never a timestamp
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        try:
            value = datetime.fromtimestamp(raw / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise TimestampError(f"Epoch milliseconds out of range: {raw!r}") from exc
        return _localize(value, tz)

    if isinstance(raw, str):
        parsed = _parse_iso(raw)
        if isinstance(parsed, datetime):
            return _localize(parsed, tz)
        return parsed

    raise TimestampError(f"Unsupported timestamp value: {raw!r}")


def serialize_timestamp(value: Optional[Union[date, datetime]]) -> Optional[str]:
    """Render a normalized value back to ISO 8601 for storage."""
    if value is None:
        return None
    return value.isoformat()
