from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, time
from typing import Optional

from ..common.datetime_utils import parse_hhmm
from ..core.constants import DEFAULT_CUTOFF_TIME, DEFAULT_DEVICE_PORT, DEFAULT_LATE_GRACE_MINUTES


@dataclass(frozen=True)
class AttendanceSettings:
    """One immutable version of a tenant's attendance policy.

    Versions are never updated in place; a change produces version + 1 and
    repoints the tenant's current pointer to it.
    """

    company_id: str
    version: int = 0
    use_custom_cutoff: bool = False
    cutoff_time: str = DEFAULT_CUTOFF_TIME
    late_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES
    device_default_address: Optional[str] = None
    device_default_port: int = DEFAULT_DEVICE_PORT
    description: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    settings_id: Optional[int] = None

    @property
    def is_persisted(self) -> bool:
        return self.version > 0

    def next_version(self, **changes) -> "AttendanceSettings":
        return replace(self, version=self.version + 1, settings_id=None, **changes)

    def to_dict(self) -> dict:
        return {
            "companyId": self.company_id,
            "version": self.version,
            "useCustomCutoff": self.use_custom_cutoff,
            "cutoffTime": self.cutoff_time,
            "lateGraceMinutes": self.late_grace_minutes,
            "deviceDefaultAddress": self.device_default_address,
            "deviceDefaultPort": self.device_default_port,
            "description": self.description,
            "updatedBy": self.updated_by,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class CutoffPolicy:
    """What MetricsEngine needs from settings: the resolved cutoff and grace."""

    cutoff: time
    late_grace_minutes: int
    source: str

    @classmethod
    def resolve(cls, settings: AttendanceSettings, *, default_cutoff: str) -> "CutoffPolicy":
        if settings.use_custom_cutoff:
            return cls(parse_hhmm(settings.cutoff_time), int(settings.late_grace_minutes), "custom")
        return cls(parse_hhmm(default_cutoff), int(settings.late_grace_minutes), "default")

    def to_dict(self) -> dict:
        return {
            "cutoffTime": self.cutoff.strftime("%H:%M"),
            "lateGraceMinutes": self.late_grace_minutes,
            "source": self.source,
        }
