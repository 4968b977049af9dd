from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..common.datetime_utils import whole_minutes
from ..schedules.model import WorkSchedule
from .strategies.base import ClassificationStrategy
from .strategies.early_strategy import EarlyStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy
from .strategies.overtime_strategy import OvertimeStrategy


@dataclass
class ClassificationStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_clock_in(self, *, now: datetime, shift_start: datetime, schedule: WorkSchedule) -> ClassificationStrategy:
        tolerance = timedelta(minutes=schedule.late_tolerance_minutes)
        if whole_minutes(now - shift_start - tolerance) == 0:
            return OnTimeStrategy()
        return LateStrategy()

    def for_clock_out(self, *, now: datetime, shift_end: datetime) -> ClassificationStrategy:
        # Same whole-minute rule as clock-in: under a minute either side is on time.
        if whole_minutes(shift_end - now) > 0:
            return EarlyStrategy()
        if whole_minutes(now - shift_end) > 0:
            return OvertimeStrategy()
        return OnTimeStrategy()
