from __future__ import annotations

from typing import Any, Optional

from ..database.mysql_base import fetchone, normalize_mysql_time
from .model import WorkSchedule, parse_work_days
from .repository import WorkScheduleRepository


def _row_to_schedule(r: dict[str, Any]) -> WorkSchedule:
    return WorkSchedule(
        schedule_id=int(r["schedule_id"]),
        name=str(r["name"]),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        clock_in_start=normalize_mysql_time(r["clock_in_start"]),
        clock_in_end=normalize_mysql_time(r["clock_in_end"]),
        clock_out_start=normalize_mysql_time(r["clock_out_start"]),
        clock_out_end=normalize_mysql_time(r["clock_out_end"]),
        break_start=normalize_mysql_time(r.get("break_start")),
        break_end=normalize_mysql_time(r.get("break_end")),
        work_days=parse_work_days(r.get("work_days")),
        late_tolerance_minutes=int(r.get("late_tolerance_minutes") or 0),
        overtime_cap_minutes=int(r.get("overtime_cap_minutes") or 0),
    )


class MySQLWorkScheduleRepository(WorkScheduleRepository):
    """Reads schedules through the cursor of the current employee scope."""

    def __init__(self, cur):
        self._cur = cur

    def get_by_id(self, schedule_id: int) -> Optional[WorkSchedule]:
        self._cur.execute(
            """
            SELECT schedule_id, name, start_time, end_time,
                   clock_in_start, clock_in_end, clock_out_start, clock_out_end,
                   break_start, break_end, work_days,
                   late_tolerance_minutes, overtime_cap_minutes
            FROM work_schedules
            WHERE schedule_id=%s AND is_active=1
            """,
            (int(schedule_id),),
        )
        r = fetchone(self._cur)
        return _row_to_schedule(r) if r else None
