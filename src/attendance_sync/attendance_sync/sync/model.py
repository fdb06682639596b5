from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.exceptions import ConfigurationError
from ..punches.model import PunchRecord


@dataclass(frozen=True)
class SyncResult:
    device_address: str
    company_id: str
    inserted_count: int
    skipped_duplicate_count: int
    invalid_count: int
    total_seen: int
    duration_seconds: float
    sync_type: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    synced_at: Optional[datetime] = None

    @property
    def message(self) -> str:
        if self.total_seen == 0:
            return "Device returned no punches"
        return (
            f"Synced {self.inserted_count} new punches "
            f"({self.skipped_duplicate_count} duplicates, {self.invalid_count} invalid)"
        )

    def to_dict(self) -> dict:
        return {
            "deviceAddress": self.device_address,
            "companyId": self.company_id,
            "syncType": self.sync_type,
            "insertedCount": self.inserted_count,
            "skippedDuplicateCount": self.skipped_duplicate_count,
            "invalidCount": self.invalid_count,
            "totalSeen": self.total_seen,
            "durationSeconds": self.duration_seconds,
            "dateRange": {
                "startDate": self.start_date.isoformat() if self.start_date else None,
                "endDate": self.end_date.isoformat() if self.end_date else None,
            },
            "syncedAt": self.synced_at.isoformat() if self.synced_at else None,
            "message": self.message,
        }


def _edge(p: Optional[PunchRecord]) -> Optional[dict]:
    if p is None:
        return None
    return {"timestamp": p.timestamp.isoformat(), "calendarDate": p.calendar_date.isoformat()}


@dataclass(frozen=True)
class SyncStats:
    device_address: str
    company_id: str
    total_punches: int
    last_sync_time: Optional[datetime]
    oldest_record: Optional[PunchRecord]
    newest_record: Optional[PunchRecord]

    def to_dict(self) -> dict:
        return {
            "deviceAddress": self.device_address,
            "companyId": self.company_id,
            "totalPunches": self.total_punches,
            "lastSyncTime": self.last_sync_time.isoformat() if self.last_sync_time else None,
            "oldestRecord": _edge(self.oldest_record),
            "newestRecord": _edge(self.newest_record),
        }


@dataclass(frozen=True)
class SyncTarget:
    """One device the scheduled sync visits, parsed from ``company_id@address[:port]``."""

    company_id: str
    address: str
    port: int

    @classmethod
    def parse_many(cls, text: Optional[str], *, default_port: int) -> list["SyncTarget"]:
        targets = []
        for item in (text or "").split(","):
            item = item.strip()
            if not item:
                continue
            company_id, sep, location = item.partition("@")
            if not sep or not company_id.strip() or not location.strip():
                raise ConfigurationError(f"SYNC_DEVICES entry {item!r} must look like 'company_id@address[:port]'")
            address, _, port = location.strip().partition(":")
            try:
                port_n = int(port) if port else int(default_port)
            except ValueError:
                raise ConfigurationError(f"SYNC_DEVICES entry {item!r} has a non-numeric port") from None
            targets.append(cls(company_id.strip(), address.strip(), port_n))
        return targets
