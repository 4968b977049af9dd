from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, tzinfo
from typing import Optional, Union

from ..attendance.factory import ClassificationStrategyFactory
from ..common.datetime_utils import at, to_org_local, whole_minutes
from ..core.enums import EventType, ReasonCode
from .model import WindowRejection, WindowResult, WorkSchedule

logger = logging.getLogger(__name__)


@dataclass
class ScheduleWindowResolver:
    """Resolve work-day membership and acceptance windows for one event.

    Every timestamp is first moved into the organization timezone; the
    weekday, the window check and all minute arithmetic happen there.
    """

    tz: tzinfo
    factory: ClassificationStrategyFactory = field(default_factory=ClassificationStrategyFactory)

    def resolve(
        self,
        schedule: Optional[WorkSchedule],
        event_type: EventType,
        now: datetime,
    ) -> Union[WindowResult, WindowRejection]:
        local_now = to_org_local(now, self.tz)
        work_date = local_now.date()

        if schedule is None:
            return WindowRejection(
                reason=ReasonCode.NO_SCHEDULE_ASSIGNED,
                message="No work schedule is assigned to this employee",
                work_date=work_date,
            )

        if not schedule.is_work_day(work_date):
            return WindowRejection(
                reason=ReasonCode.NOT_A_WORK_DAY,
                message=f"{work_date:%A} is not a work day for schedule '{schedule.name}'",
                work_date=work_date,
            )

        window_start, window_end = schedule.window_for(event_type)
        if not self._within(local_now, work_date, window_start, window_end):
            label = "Clock-in" if event_type == EventType.CLOCK_IN else "Clock-out"
            return WindowRejection(
                reason=ReasonCode.OUTSIDE_WINDOW,
                message=f"{label} is only accepted between {window_start:%H:%M} and {window_end:%H:%M}",
                work_date=work_date,
                window_start=window_start,
                window_end=window_end,
            )

        if event_type == EventType.CLOCK_IN:
            nominal = at(work_date, schedule.start_time, self.tz)
            strategy = self.factory.for_clock_in(now=local_now, shift_start=nominal, schedule=schedule)
        else:
            nominal = at(work_date, schedule.end_time, self.tz)
            strategy = self.factory.for_clock_out(now=local_now, shift_end=nominal)

        decision = strategy.decide(now=local_now, nominal=nominal, schedule=schedule)
        logger.debug(
            "Schedule %s: %s at %s classified as %s",
            schedule.schedule_id,
            event_type.value,
            local_now.isoformat(),
            decision.status.value,
        )
        return WindowResult(
            event_type=event_type,
            work_date=work_date,
            status=decision.status,
            schedule_name=schedule.name,
            late_minutes=decision.late_minutes,
            early_minutes=decision.early_minutes,
            overtime_minutes=decision.overtime_minutes,
        )

    def work_duration_minutes(self, schedule: WorkSchedule, clock_in_at: datetime, now: datetime) -> int:
        """Worked minutes between clock-in and ``now``.

        The break is subtracted only when it lies fully inside the worked
        interval.
        """

        start = to_org_local(clock_in_at, self.tz)
        end = to_org_local(now, self.tz)
        worked = end - start

        if schedule.break_start is not None and schedule.break_end is not None:
            work_date = start.date()
            break_start = at(work_date, schedule.break_start, self.tz)
            break_end = at(work_date, schedule.break_end, self.tz)
            if break_start < break_end and start <= break_start and break_end <= end:
                worked -= break_end - break_start

        return whole_minutes(worked)

    def open_windows(self, schedule: WorkSchedule, now: datetime) -> list[EventType]:
        """Event types whose acceptance window contains ``now``."""

        local_now = to_org_local(now, self.tz)
        work_date = local_now.date()
        if not schedule.is_work_day(work_date):
            return []
        return [
            event_type
            for event_type in (EventType.CLOCK_IN, EventType.CLOCK_OUT)
            if self._within(local_now, work_date, *schedule.window_for(event_type))
        ]

    def _within(self, local_now: datetime, work_date: date, start: time, end: time) -> bool:
        return at(work_date, start, self.tz) <= local_now <= at(work_date, end, self.tz)
