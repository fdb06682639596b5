from __future__ import annotations

from enum import Enum


class PunchType(str, Enum):
    """Punch state reported by the terminal (numeric code 0..5)."""

    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"
    BREAK_OUT = "break-out"
    BREAK_IN = "break-in"
    OVERTIME_IN = "overtime-in"
    OVERTIME_OUT = "overtime-out"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, code) -> "PunchType":
        return _PUNCH_CODES.get(_as_int(code), cls.UNKNOWN)


class PunchMode(str, Enum):
    """Verification method the terminal used for the punch."""

    PASSWORD = "password"
    FINGERPRINT = "fingerprint"
    CARD = "card"
    FACE = "face"
    PALM = "palm"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, code) -> "PunchMode":
        return _MODE_CODES.get(_as_int(code), cls.UNKNOWN)


class Badge(str, Enum):
    PERFECT_ATTENDANCE = "PERFECT_ATTENDANCE"
    PUNCTUALITY_KING = "PUNCTUALITY_KING"
    STAR_PERFORMER = "STAR_PERFORMER"
    ZERO_LATE_DAYS = "ZERO_LATE_DAYS"


def _as_int(code):
    if isinstance(code, bool):
        return None
    try:
        return int(code)
    except (TypeError, ValueError):
        return None


_PUNCH_CODES = {
    0: PunchType.CHECK_IN,
    1: PunchType.CHECK_OUT,
    2: PunchType.BREAK_OUT,
    3: PunchType.BREAK_IN,
    4: PunchType.OVERTIME_IN,
    5: PunchType.OVERTIME_OUT,
}

_MODE_CODES = {
    0: PunchMode.PASSWORD,
    1: PunchMode.FINGERPRINT,
    2: PunchMode.CARD,
    15: PunchMode.FACE,
    25: PunchMode.PALM,
}
