from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Optional

import pytz

from ..core.exceptions import ConfigurationError, ValidationError

_HHMM = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD") from None


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    if value is None or not str(value).strip():
        return None
    return parse_iso_date(str(value).strip())


def is_valid_hhmm(value: str) -> bool:
    return bool(value) and bool(_HHMM.match(value))


def parse_hhmm(value: str) -> time:
    """Parse an HH:MM cutoff.

    A malformed stored value is a configuration problem, not a request problem.
    """
    m = _HHMM.match(value or "")
    if not m:
        raise ConfigurationError(f"Cutoff time must be in HH:MM format, got {value!r}")
    return time(int(m.group(1)), int(m.group(2)))


def get_timezone(name: str):
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        raise ConfigurationError(f"Unknown timezone {name!r}") from None


def to_utc(value: datetime, naive_tz) -> datetime:
    """Naive device datetimes are wall-clock time in ``naive_tz``."""
    if value.tzinfo is None:
        value = naive_tz.localize(value)
    return value.astimezone(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """Accept a datetime or an ISO-8601 string (``Z`` suffix allowed)."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_working_day(d: date) -> bool:
    return d.weekday() < 5  # Mon-Fri


def count_working_days(start: date, end: date) -> int:
    """Mon-Fri dates in [start, end] inclusive; 0 for an empty range."""
    return sum(1 for d in iter_dates(start, end) if is_working_day(d))


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)
