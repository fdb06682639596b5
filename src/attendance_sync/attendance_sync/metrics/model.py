from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional, Tuple

from ..core.constants import DEFAULT_SCORE_WEIGHTS, DEFAULT_TIER_BANDS, LOWEST_TIER
from ..core.enums import Badge
from ..core.exceptions import ConfigurationError


@dataclass(frozen=True)
class ScoreWeights:
    """Composite score weights: attendance rate, punctuality, consistency."""

    attendance: float = 0.6
    punctuality: float = 0.25
    consistency: float = 0.15

    @classmethod
    def parse(cls, text: Optional[str]) -> "ScoreWeights":
        raw = (text or DEFAULT_SCORE_WEIGHTS).strip()
        parts = [p.strip() for p in raw.split(",")]
        if len(parts) not in (2, 3):
            raise ConfigurationError(f"SCORE_WEIGHTS must list 2 or 3 weights, got {raw!r}")
        try:
            values = [float(p) for p in parts]
        except ValueError:
            raise ConfigurationError(f"SCORE_WEIGHTS must be numeric, got {raw!r}") from None
        if len(values) == 2:
            values.append(0.0)
        if any(v < 0 for v in values) or sum(values) <= 0:
            raise ConfigurationError(f"SCORE_WEIGHTS must be non-negative and not all zero, got {raw!r}")
        return cls(*values)

    def to_dict(self) -> dict:
        return {"attendance": self.attendance, "punctuality": self.punctuality, "consistency": self.consistency}


@dataclass(frozen=True)
class TierBands:
    """Attendance-rate thresholds, highest first, e.g. ``95:star,90:excellent``."""

    bands: Tuple[Tuple[float, str], ...]
    lowest: str = LOWEST_TIER

    @classmethod
    def parse(cls, text: Optional[str], *, lowest: str = LOWEST_TIER) -> "TierBands":
        raw = (text or DEFAULT_TIER_BANDS).strip()
        bands = []
        for item in raw.split(","):
            threshold, sep, name = item.partition(":")
            if not sep or not name.strip():
                raise ConfigurationError(f"TIER_BANDS entry {item!r} must look like '<percent>:<name>'")
            try:
                value = float(threshold)
            except ValueError:
                raise ConfigurationError(f"TIER_BANDS threshold {threshold!r} is not a number") from None
            if not 0 <= value <= 100:
                raise ConfigurationError(f"TIER_BANDS threshold {value} is outside 0..100")
            bands.append((value, name.strip()))
        bands.sort(key=lambda b: b[0], reverse=True)
        return cls(tuple(bands), lowest)

    def tier_for(self, rate: float) -> str:
        for threshold, name in self.bands:
            if rate >= threshold:
                return name
        return self.lowest

    def names(self) -> list[str]:
        return [name for _, name in self.bands] + [self.lowest]


@dataclass(frozen=True)
class MetricsPolicy:
    cutoff: time
    late_grace_minutes: int
    count_weekend_punches: bool = False
    weights: ScoreWeights = field(default_factory=ScoreWeights)
    tiers: TierBands = field(default_factory=lambda: TierBands.parse(None))
    cutoff_source: str = "default"

    def to_dict(self) -> dict:
        return {
            "cutoffTime": self.cutoff.strftime("%H:%M"),
            "lateGraceMinutes": self.late_grace_minutes,
            "cutoffSource": self.cutoff_source,
            "countWeekendPunches": self.count_weekend_punches,
            "weights": self.weights.to_dict(),
        }


@dataclass(frozen=True)
class DailyAttendance:
    """One employee-day: first punch is check-in, last punch is check-out."""

    employee_device_id: str
    calendar_date: date
    check_in: datetime
    check_out: datetime
    punch_count: int
    work_minutes: int
    late_minutes: int
    counted: bool

    @property
    def is_late(self) -> bool:
        return self.late_minutes > 0

    def to_dict(self, tz=None) -> dict:
        check_in = self.check_in.astimezone(tz) if tz else self.check_in
        check_out = self.check_out.astimezone(tz) if tz else self.check_out
        return {
            "date": self.calendar_date.isoformat(),
            "checkIn": check_in.isoformat(),
            "checkOut": check_out.isoformat() if self.punch_count > 1 else None,
            "punchCount": self.punch_count,
            "workMinutes": self.work_minutes,
            "lateMinutes": self.late_minutes,
            "isLate": self.is_late,
            "isWorkingDay": self.counted,
        }


@dataclass(frozen=True)
class ScoreBreakdown:
    punctuality: float
    consistency: float
    score: float


@dataclass(frozen=True)
class EmployeeMetric:
    employee_device_id: str
    working_days: int
    present_days: int
    absent_days: int
    late_days: int
    total_work_minutes: int
    average_work_minutes: float
    total_late_minutes: int
    average_late_minutes: float
    attendance_rate: float
    punctuality_score: float
    consistency_score: float
    score: float
    tier: str
    badges: Tuple[Badge, ...] = ()
    rank: int = 0

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "employeeDeviceId": self.employee_device_id,
            "workingDays": self.working_days,
            "presentDays": self.present_days,
            "absentDays": self.absent_days,
            "lateDays": self.late_days,
            "totalWorkMinutes": self.total_work_minutes,
            "averageWorkMinutes": self.average_work_minutes,
            "totalLateMinutes": self.total_late_minutes,
            "averageLateMinutes": self.average_late_minutes,
            "attendanceRate": self.attendance_rate,
            "punctualityScore": self.punctuality_score,
            "consistencyScore": self.consistency_score,
            "score": self.score,
            "tier": self.tier,
            "badges": [b.value for b in self.badges],
        }


@dataclass(frozen=True)
class Leaderboard:
    start_date: date
    end_date: date
    working_days: int
    total_employees: int
    entries: Tuple[EmployeeMetric, ...]
    policy: MetricsPolicy
    device_address: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "deviceAddress": self.device_address,
            "dateRange": {"startDate": self.start_date.isoformat(), "endDate": self.end_date.isoformat()},
            "workingDays": self.working_days,
            "totalEmployees": self.total_employees,
            "policy": self.policy.to_dict(),
            "leaderboard": [m.to_dict() for m in self.entries],
        }


@dataclass(frozen=True)
class EmployeeReport:
    metric: EmployeeMetric
    days: Tuple[DailyAttendance, ...]


@dataclass(frozen=True)
class AttendanceReport:
    device_address: str
    company_id: str
    start_date: date
    end_date: date
    working_days: int
    total_punches: int
    employees: Tuple[EmployeeReport, ...]
    policy: MetricsPolicy

    def to_dict(self, tz=None) -> dict:
        return {
            "deviceAddress": self.device_address,
            "companyId": self.company_id,
            "dateRange": {"startDate": self.start_date.isoformat(), "endDate": self.end_date.isoformat()},
            "workingDays": self.working_days,
            "totalPunches": self.total_punches,
            "totalEmployees": len(self.employees),
            "policy": self.policy.to_dict(),
            "employees": [
                {**e.metric.to_dict(), "dailyRecords": [d.to_dict(tz) for d in e.days]} for e in self.employees
            ],
        }
