from __future__ import annotations

from datetime import date, datetime, time

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD")


def parse_hhmm(value: str) -> time:
    try:
        return datetime.strptime(value, "%H:%M").time()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid time {value!r}, expected HH:MM")


def parse_reader_timestamp(day: str, clock: str) -> datetime:
    """Parse the badge reader's `DD-MM-YYYY` date and `HH:MM:SS` time."""
    try:
        return datetime.strptime(f"{day} {clock}", "%d-%m-%Y %H:%M:%S")
    except (TypeError, ValueError):
        raise ValidationError("Invalid reader timestamp, expected DD-MM-YYYY and HH:MM:SS")


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO 8601 timestamp into naive local time, like `now_local`.

    Timestamps carrying a UTC offset are converted to the server's local zone first.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid timestamp {value!r}, expected ISO 8601")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def iso_or_none(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
