from __future__ import annotations

from .base import PerformanceScorer
from ..model import ScoreBreakdown, ScoreWeights

# One punctuality point per 10 accumulated late minutes.
LATE_MINUTES_PER_POINT = 10
# Consistency points lost per absent working day.
ABSENCE_PENALTY = 15


class WeightedPerformanceScorer(PerformanceScorer):
    """Weighted blend of attendance rate, punctuality and consistency, each on 0..100."""

    def __init__(self, weights: ScoreWeights | None = None):
        self._weights = weights or ScoreWeights()

    @property
    def weights(self) -> ScoreWeights:
        return self._weights

    def score(self, *, attendance_rate: float, total_late_minutes: int, absent_days: int) -> ScoreBreakdown:
        punctuality = max(0.0, 100.0 - total_late_minutes / LATE_MINUTES_PER_POINT)
        consistency = max(0.0, 100.0 - absent_days * ABSENCE_PENALTY)
        w = self._weights
        composite = attendance_rate * w.attendance + punctuality * w.punctuality + consistency * w.consistency
        return ScoreBreakdown(
            punctuality=round(punctuality, 2),
            consistency=round(consistency, 2),
            score=round(composite, 2),
        )
