from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..core.enums import PunchMode, PunchType


@dataclass(frozen=True)
class PunchRecord:
    """Domain entity: one normalized clock event reported by a terminal.

    ``employee_device_id`` is the id enrolled on the terminal, not the
    company's employee record id. ``timestamp`` is aware UTC; ``calendar_date``
    is its date in the reporting timezone.
    """

    device_address: str
    employee_device_id: str
    timestamp: datetime
    calendar_date: date
    company_id: str
    ingested_at: datetime
    punch_type: PunchType = PunchType.UNKNOWN
    punch_mode: PunchMode = PunchMode.UNKNOWN
    raw_payload: dict = field(default_factory=dict, compare=False, hash=False)

    @property
    def dedupe_key(self) -> tuple:
        return (self.device_address, self.employee_device_id, self.timestamp, self.company_id)

    def to_dict(self) -> dict:
        return {
            "deviceAddress": self.device_address,
            "employeeDeviceId": self.employee_device_id,
            "timestamp": self.timestamp.isoformat(),
            "calendarDate": self.calendar_date.isoformat(),
            "punchType": self.punch_type.value,
            "punchMode": self.punch_mode.value,
            "rawPayload": self.raw_payload,
            "companyId": self.company_id,
            "ingestedAt": self.ingested_at.isoformat(),
        }


@dataclass(frozen=True)
class RejectedPunch:
    """A raw punch excluded from a batch because a required field is missing or invalid."""

    reason: str
    raw: Any


@dataclass(frozen=True)
class BulkInsertResult:
    inserted: int
    skipped: int
    total: int


@dataclass(frozen=True)
class LastSyncInfo:
    timestamp: datetime
    ingested_at: datetime


@dataclass(frozen=True)
class PunchStats:
    total_punches: int
    last_ingested_at: Optional[datetime]
    oldest: Optional[PunchRecord]
    newest: Optional[PunchRecord]
