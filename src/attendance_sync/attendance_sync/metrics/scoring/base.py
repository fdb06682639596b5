from __future__ import annotations

from abc import ABC, abstractmethod

from ..model import ScoreBreakdown


class PerformanceScorer(ABC):
    """Scoring interface (Strategy Pattern for the composite performance score)."""

    @abstractmethod
    def score(self, *, attendance_rate: float, total_late_minutes: int, absent_days: int) -> ScoreBreakdown:
        raise NotImplementedError
