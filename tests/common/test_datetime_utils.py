from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest
import pytz

from src.attendance_sync.attendance_sync.common.datetime_utils import (
    count_working_days,
    get_timezone,
    minutes_between,
    parse_hhmm,
    parse_iso_date,
    parse_timestamp,
    to_utc,
)
from src.attendance_sync.attendance_sync.common.validators import require_date_range, window_or_default
from src.attendance_sync.attendance_sync.core.exceptions import ConfigurationError, ValidationError


def test_working_days_are_monday_to_friday_inclusive():
    assert count_working_days(date(2024, 1, 8), date(2024, 1, 14)) == 5
    assert count_working_days(date(2024, 1, 13), date(2024, 1, 14)) == 0
    assert count_working_days(date(2024, 1, 8), date(2024, 1, 8)) == 1


def test_minutes_between_floors():
    start = datetime(2024, 1, 8, 9, 0, tzinfo=timezone.utc)

    assert minutes_between(start, datetime(2024, 1, 8, 9, 20, 59, tzinfo=timezone.utc)) == 20
    assert minutes_between(start, start) == 0


def test_parse_hhmm():
    assert parse_hhmm("09:00") == time(9, 0)
    assert parse_hhmm("7:05") == time(7, 5)
    with pytest.raises(ConfigurationError):
        parse_hhmm("24:00")


def test_parse_iso_date_rejects_other_formats():
    assert parse_iso_date("2024-01-08") == date(2024, 1, 8)
    with pytest.raises(ValidationError):
        parse_iso_date("08/01/2024")


def test_parse_timestamp_accepts_z_suffix_and_datetimes():
    assert parse_timestamp("2024-01-08T09:12:00Z") == datetime(2024, 1, 8, 9, 12, tzinfo=timezone.utc)
    dt = datetime(2024, 1, 8, 9, 12)
    assert parse_timestamp(dt) is dt
    assert parse_timestamp("") is None
    assert parse_timestamp(12345) is None


def test_to_utc_localizes_naive_values():
    tz = pytz.timezone("Europe/Berlin")

    assert to_utc(datetime(2024, 7, 1, 9, 0), tz) == datetime(2024, 7, 1, 7, 0, tzinfo=timezone.utc)


def test_unknown_timezone_is_configuration_error():
    with pytest.raises(ConfigurationError):
        get_timezone("Mars/Olympus")


def test_require_date_range():
    assert require_date_range("2024-01-08", "2024-01-09") == (date(2024, 1, 8), date(2024, 1, 9))
    with pytest.raises(ValidationError):
        require_date_range("2024-01-08", None)
    with pytest.raises(ValidationError):
        require_date_range("2024-01-09", "2024-01-08")


def test_window_defaults_to_trailing_days():
    assert window_or_default(None, None, today=date(2024, 1, 31), days=30) == (date(2024, 1, 1), date(2024, 1, 31))
    assert window_or_default("2024-01-10", None, today=date(2024, 1, 31), days=30) == (date(2024, 1, 10), date(2024, 1, 31))
