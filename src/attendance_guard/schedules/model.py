from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, time
from typing import Any, Iterable, Optional

from ..core import constants
from ..core.enums import AttendanceStatus, EventType, ReasonCode

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def parse_work_days(value: Any) -> frozenset[int]:
    """Parse a stored work-day set into weekday numbers (Monday=0).

    Accepts a JSON array (``["Monday", "Friday"]``), the legacy
    comma-separated form (``"monday,tuesday"``), bytes of either, or an
    iterable of names / weekday numbers.
    """

    if value is None:
        return frozenset()
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return frozenset()
        try:
            value = json.loads(text)
        except ValueError:
            value = text.split(",")
        if isinstance(value, str):
            value = [value]

    days: set[int] = set()
    for item in value:
        if isinstance(item, int):
            if not 0 <= item <= 6:
                raise ValueError(f"Invalid weekday number: {item!r}")
            days.add(item)
            continue
        name = str(item).strip().lower()
        if not name:
            continue
        if name not in WEEKDAY_NAMES:
            raise ValueError(f"Invalid weekday name: {item!r}")
        days.add(WEEKDAY_NAMES.index(name))
    return frozenset(days)


def format_work_days(days: Iterable[int]) -> str:
    return json.dumps([WEEKDAY_NAMES[d].capitalize() for d in sorted(days)])


@dataclass(frozen=True)
class WorkSchedule:
    """Thực thể miền (domain): Lịch làm việc theo tuần.

    Acceptance windows are configured independently of the nominal shift and
    may be narrower than it.
    """

    schedule_id: int
    name: str
    start_time: time
    end_time: time
    clock_in_start: time
    clock_in_end: time
    clock_out_start: time
    clock_out_end: time
    work_days: frozenset[int]
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    late_tolerance_minutes: int = constants.DEFAULT_LATE_TOLERANCE_MINUTES
    overtime_cap_minutes: int = constants.DEFAULT_OVERTIME_CAP_MINUTES

    def window_for(self, event_type: EventType) -> tuple[time, time]:
        if event_type == EventType.CLOCK_IN:
            return self.clock_in_start, self.clock_in_end
        return self.clock_out_start, self.clock_out_end

    def is_work_day(self, day: date) -> bool:
        return day.weekday() in self.work_days


@dataclass(frozen=True)
class WindowResult:
    event_type: EventType
    work_date: date
    status: AttendanceStatus
    schedule_name: str
    late_minutes: int = 0
    early_minutes: int = 0
    overtime_minutes: int = 0


@dataclass(frozen=True)
class WindowRejection:
    """A schedule-level refusal. Not a policy failure for rest days / no schedule."""

    reason: ReasonCode
    message: str
    work_date: date
    window_start: Optional[time] = None
    window_end: Optional[time] = None
