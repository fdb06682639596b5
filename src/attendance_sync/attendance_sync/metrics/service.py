from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import count_working_days, is_working_day, minutes_between, now_utc
from ..common.validators import ordered_range
from ..core.constants import DEFAULT_LEADERBOARD_LIMIT, DEFAULT_METRICS_WINDOW_DAYS
from ..core.enums import Badge
from ..punches.model import PunchRecord
from ..punches.repository import PunchRepository
from ..settings.service import SettingsService
from .model import (
    AttendanceReport,
    DailyAttendance,
    EmployeeMetric,
    EmployeeReport,
    Leaderboard,
    MetricsPolicy,
    ScoreWeights,
    TierBands,
)
from .scoring.base import PerformanceScorer
from .scoring.weighted_scorer import WeightedPerformanceScorer

logger = logging.getLogger(__name__)

STAR_PERFORMER_RATE = 95.0
PUNCTUALITY_KING_MAX_AVG_LATE = 5.0


def natural_key(employee_device_id: str) -> tuple:
    """Numeric ids sort numerically and before non-numeric ones."""
    text = str(employee_device_id)
    if text.isdigit():
        return (0, int(text), text)
    return (1, 0, text)


def late_minutes_for(check_in: datetime, calendar_date: date, policy: MetricsPolicy, tz) -> int:
    cutoff = datetime.combine(calendar_date, policy.cutoff)
    cutoff = tz.localize(cutoff) if hasattr(tz, "localize") else cutoff.replace(tzinfo=tz)
    past_cutoff = minutes_between(cutoff, check_in)
    return max(0, past_cutoff - policy.late_grace_minutes)


def daily_rollup(punches: Iterable[PunchRecord], policy: MetricsPolicy, tz) -> dict[str, list[DailyAttendance]]:
    """Group punches per employee per calendar date; first punch in, last punch out."""
    grouped: dict[str, dict[date, list[datetime]]] = defaultdict(lambda: defaultdict(list))
    for p in punches:
        grouped[p.employee_device_id][p.calendar_date].append(p.timestamp)

    out: dict[str, list[DailyAttendance]] = {}
    for emp, by_date in grouped.items():
        days = []
        for d in sorted(by_date):
            stamps = sorted(by_date[d])
            check_in, check_out = stamps[0], stamps[-1]
            counted = policy.count_weekend_punches or is_working_day(d)
            days.append(
                DailyAttendance(
                    employee_device_id=emp,
                    calendar_date=d,
                    check_in=check_in,
                    check_out=check_out,
                    punch_count=len(stamps),
                    work_minutes=max(0, minutes_between(check_in, check_out)),
                    late_minutes=late_minutes_for(check_in, d, policy, tz) if counted else 0,
                    counted=counted,
                )
            )
        out[emp] = days
    return out


@dataclass(frozen=True)
class _Computation:
    start: date
    end: date
    policy: MetricsPolicy
    total_punches: int
    rollup: dict
    working_days: int
    ranked: list


class MetricsEngine:
    """Read-only analytics over the punch log. Nothing here is cached or persisted."""

    def __init__(
        self,
        punches: PunchRepository,
        settings: SettingsService,
        *,
        reporting_tz,
        weights: ScoreWeights | None = None,
        tiers: TierBands | None = None,
        scorer: PerformanceScorer | None = None,
        count_weekend_punches: bool = False,
        window_days: int = DEFAULT_METRICS_WINDOW_DAYS,
        leaderboard_limit: int = DEFAULT_LEADERBOARD_LIMIT,
        clock: Callable = now_utc,
    ):
        self._punches = punches
        self._settings = settings
        self._tz = reporting_tz
        self._weights = weights or ScoreWeights()
        self._tiers = tiers or TierBands.parse(None)
        self._scorer = scorer or WeightedPerformanceScorer(self._weights)
        self._count_weekend = bool(count_weekend_punches)
        self._window_days = int(window_days)
        self._leaderboard_limit = int(leaderboard_limit)
        self._clock = clock

    @property
    def reporting_tz(self):
        return self._tz

    @property
    def window_days(self) -> int:
        return self._window_days

    @property
    def leaderboard_limit(self) -> int:
        return self._leaderboard_limit

    def today(self) -> date:
        return self._clock().astimezone(self._tz).date()

    def policy_for(self, company_id: str) -> MetricsPolicy:
        cutoff = self._settings.policy(company_id)
        return MetricsPolicy(
            cutoff=cutoff.cutoff,
            late_grace_minutes=cutoff.late_grace_minutes,
            count_weekend_punches=self._count_weekend,
            weights=self._weights,
            tiers=self._tiers,
            cutoff_source=cutoff.source,
        )

    def _load(self, company_id: str, start: date, end: date, device_address: Optional[str]) -> Sequence[PunchRecord]:
        if device_address:
            return self._punches.query_range(
                device_address=device_address, company_id=company_id, start_date=start, end_date=end
            )
        return self._punches.query_company_range(company_id=company_id, start_date=start, end_date=end)

    def _metric(self, emp: str, days: Sequence[DailyAttendance], working_days: int, policy: MetricsPolicy) -> EmployeeMetric:
        counted = [d for d in days if d.counted]
        present = len(counted)
        late_days = sum(1 for d in counted if d.is_late)
        total_work = sum(d.work_minutes for d in counted)
        total_late = sum(d.late_minutes for d in counted)
        absent = max(0, working_days - present)
        rate = min(100.0, present / working_days * 100.0) if working_days > 0 else 0.0
        avg_late = total_late / late_days if late_days else 0.0

        breakdown = self._scorer.score(attendance_rate=rate, total_late_minutes=total_late, absent_days=absent)

        badges = []
        if working_days > 0 and absent == 0:
            badges.append(Badge.PERFECT_ATTENDANCE)
        if present > 0 and avg_late <= PUNCTUALITY_KING_MAX_AVG_LATE:
            badges.append(Badge.PUNCTUALITY_KING)
        if rate >= STAR_PERFORMER_RATE:
            badges.append(Badge.STAR_PERFORMER)
        if present > 0 and late_days == 0:
            badges.append(Badge.ZERO_LATE_DAYS)

        return EmployeeMetric(
            employee_device_id=emp,
            working_days=working_days,
            present_days=present,
            absent_days=absent,
            late_days=late_days,
            total_work_minutes=total_work,
            average_work_minutes=round(total_work / present, 2) if present else 0.0,
            total_late_minutes=total_late,
            average_late_minutes=round(avg_late, 2),
            attendance_rate=round(rate, 2),
            punctuality_score=breakdown.punctuality,
            consistency_score=breakdown.consistency,
            score=breakdown.score,
            tier=policy.tiers.tier_for(rate),
            badges=tuple(badges),
        )

    def _ranked(self, rollup: dict[str, list[DailyAttendance]], working_days: int, policy: MetricsPolicy) -> list[EmployeeMetric]:
        metrics = [self._metric(emp, days, working_days, policy) for emp, days in rollup.items()]
        metrics.sort(key=lambda m: (-m.score, natural_key(m.employee_device_id)))
        return [replace(m, rank=i) for i, m in enumerate(metrics, start=1)]

    def _compute(self, company_id: str, start: date, end: date, device_address: Optional[str]) -> _Computation:
        start, end = ordered_range(start, end)
        policy = self.policy_for(company_id)
        punches = self._load(company_id, start, end, device_address)
        rollup = daily_rollup(punches, policy, self._tz)
        working_days = count_working_days(start, end)
        return _Computation(
            start=start,
            end=end,
            policy=policy,
            total_punches=len(punches),
            rollup=rollup,
            working_days=working_days,
            ranked=self._ranked(rollup, working_days, policy),
        )

    def employee_metrics(
        self,
        company_id: str,
        start: date,
        end: date,
        *,
        device_address: Optional[str] = None,
    ) -> list[EmployeeMetric]:
        """Ranked metrics for every employee with at least one punch in the window."""
        return self._compute(company_id, start, end, device_address).ranked

    def leaderboard(
        self,
        company_id: str,
        start: date,
        end: date,
        *,
        device_address: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Leaderboard:
        c = self._compute(company_id, start, end, device_address)
        n = limit or self._leaderboard_limit
        logger.debug(
            "Leaderboard %s/%s %s..%s: %d employees", company_id, device_address or "*", c.start, c.end, len(c.ranked)
        )
        return Leaderboard(
            start_date=c.start,
            end_date=c.end,
            working_days=c.working_days,
            total_employees=len(c.ranked),
            entries=tuple(c.ranked[:n]),
            policy=c.policy,
            device_address=device_address,
        )

    def attendance_report(self, device_address: str, company_id: str, start: date, end: date) -> AttendanceReport:
        """Per-employee daily records for one device, ordered by employee id."""
        c = self._compute(company_id, start, end, device_address)
        employees = tuple(
            EmployeeReport(metric=m, days=tuple(c.rollup[m.employee_device_id]))
            for m in sorted(c.ranked, key=lambda m: natural_key(m.employee_device_id))
        )
        return AttendanceReport(
            device_address=device_address,
            company_id=company_id,
            start_date=c.start,
            end_date=c.end,
            working_days=c.working_days,
            total_punches=c.total_punches,
            employees=employees,
            policy=c.policy,
        )

    def overview(self, company_id: str, start: date, end: date, *, device_address: Optional[str] = None) -> dict:
        c = self._compute(company_id, start, end, device_address)
        ranked = c.ranked
        tiers = Counter(m.tier for m in ranked)
        badges = Counter(b.value for m in ranked for b in m.badges)
        count = len(ranked)
        return {
            "companyId": company_id,
            "deviceAddress": device_address,
            "dateRange": {"startDate": c.start.isoformat(), "endDate": c.end.isoformat()},
            "workingDays": c.working_days,
            "totalPunches": c.total_punches,
            "totalEmployees": count,
            "averageScore": round(sum(m.score for m in ranked) / count, 2) if count else 0.0,
            "averageAttendanceRate": round(sum(m.attendance_rate for m in ranked) / count, 2) if count else 0.0,
            "totalLateDays": sum(m.late_days for m in ranked),
            "totalAbsentDays": sum(m.absent_days for m in ranked),
            "tierDistribution": {name: tiers.get(name, 0) for name in c.policy.tiers.names()},
            "badgeCounts": {b.value: badges.get(b.value, 0) for b in Badge},
            "topPerformer": ranked[0].to_dict() if ranked else None,
            "policy": c.policy.to_dict(),
        }
