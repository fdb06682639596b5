from __future__ import annotations

from datetime import date, timedelta
from typing import Optional, Tuple

from ..core.exceptions import ValidationError
from .datetime_utils import parse_optional_date


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_date_range(start: Optional[str], end: Optional[str]) -> Tuple[date, date]:
    if not start or not end:
        raise ValidationError("startDate and endDate are required")
    return ordered_range(parse_optional_date(start), parse_optional_date(end))


def window_or_default(start: Optional[str], end: Optional[str], *, today: date, days: int) -> Tuple[date, date]:
    """Optional range; missing bounds default to a trailing window ending today."""
    end_d = parse_optional_date(end) or today
    start_d = parse_optional_date(start) or end_d - timedelta(days=days)
    return ordered_range(start_d, end_d)


def ordered_range(start: date, end: date) -> Tuple[date, date]:
    if start > end:
        raise ValidationError("startDate must not be after endDate")
    return start, end


def positive_int(value, field_name: str, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer") from None
    if n <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return n
