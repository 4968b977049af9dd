from __future__ import annotations

from datetime import datetime, timedelta

from ...common.datetime_utils import whole_minutes
from ...core.enums import AttendanceStatus
from ...schedules.model import WorkSchedule
from .base import ClassificationStrategy, StatusDecision


class LateStrategy(ClassificationStrategy):
    """Late clock-in: minutes past nominal start beyond the tolerance."""

    def decide(self, *, now: datetime, nominal: datetime, schedule: WorkSchedule) -> StatusDecision:
        tolerance = timedelta(minutes=schedule.late_tolerance_minutes)
        return StatusDecision(
            status=AttendanceStatus.LATE,
            late_minutes=whole_minutes(now - nominal - tolerance),
        )
