from __future__ import annotations

from datetime import UTC, datetime, timedelta
from urllib.parse import quote, unquote

from .errors import AppError


def url_encode(s: str) -> str:
    # Everything except the RFC 3986 unreserved set is escaped (space -> %20).
    return quote(s, safe="")


def url_decode(s: str) -> str:
    return unquote(s)


def utcnow() -> datetime:
    return datetime.now(UTC)


def seconds_to_time(seconds: int) -> datetime:
    return datetime.fromtimestamp(int(seconds), UTC)


def time_to_seconds(t: datetime) -> int:
    return int(t.timestamp())


def str_to_date(s: str) -> datetime:
    """Parse a YYYY-MM-DD path segment to midnight UTC of that day."""
    try:
        day = datetime.strptime(s, "%Y-%m-%d")
    except ValueError as e:
        raise AppError(f"Invalid date: {s}") from e
    return day.replace(tzinfo=UTC)


def days_since_new_year(t: datetime) -> int:
    t = t.astimezone(UTC)
    new_year = datetime(t.year, 1, 1, tzinfo=UTC)
    return (t - new_year) // timedelta(days=1)


__all__ = [
    "url_encode",
    "url_decode",
    "utcnow",
    "seconds_to_time",
    "time_to_seconds",
    "str_to_date",
    "days_since_new_year",
]
