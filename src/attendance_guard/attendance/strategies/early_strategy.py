from __future__ import annotations

from datetime import datetime

from ...common.datetime_utils import whole_minutes
from ...core.enums import AttendanceStatus
from ...schedules.model import WorkSchedule
from .base import ClassificationStrategy, StatusDecision


class EarlyStrategy(ClassificationStrategy):
    """Clock-out before the nominal shift end."""

    def decide(self, *, now: datetime, nominal: datetime, schedule: WorkSchedule) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.EARLY, early_minutes=whole_minutes(nominal - now))
