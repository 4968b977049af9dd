from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...schedules.model import WorkSchedule
from .base import ClassificationStrategy, StatusDecision


class OnTimeStrategy(ClassificationStrategy):
    """Clock-in within tolerance, or clock-out within the same minute as shift end."""

    def decide(self, *, now: datetime, nominal: datetime, schedule: WorkSchedule) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ON_TIME)
