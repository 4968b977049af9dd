from __future__ import annotations

from datetime import datetime

from ...common.datetime_utils import whole_minutes
from ...core.enums import AttendanceStatus
from ...schedules.model import WorkSchedule
from .base import ClassificationStrategy, StatusDecision


class OvertimeStrategy(ClassificationStrategy):
    """Clock-out after the nominal shift end, capped by the schedule."""

    def decide(self, *, now: datetime, nominal: datetime, schedule: WorkSchedule) -> StatusDecision:
        overtime = min(whole_minutes(now - nominal), max(0, int(schedule.overtime_cap_minutes)))
        return StatusDecision(status=AttendanceStatus.OVERTIME, overtime_minutes=overtime)
