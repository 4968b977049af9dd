from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Any, Optional

from ..common.datetime_utils import to_org_local
from ..database.mysql_base import fetchone
from .model import Employee
from .repository import EmployeeRepository

_SELECT = """
    SELECT employee_id, employee_number, full_name, pin_hash, pin_attempts,
           pin_locked_until, work_schedule_id, is_active
    FROM employees
    WHERE employee_id=%s
"""


def _row_to_employee(row: dict[str, Any], tz: tzinfo) -> Employee:
    locked_until = row.get("pin_locked_until")
    return Employee(
        employee_id=int(row["employee_id"]),
        employee_number=str(row["employee_number"]),
        full_name=row["full_name"],
        pin_hash=row.get("pin_hash"),
        pin_attempts=int(row.get("pin_attempts") or 0),
        pin_locked_until=to_org_local(locked_until, tz) if locked_until else None,
        work_schedule_id=row.get("work_schedule_id"),
        is_active=bool(row.get("is_active", True)),
    )


def _to_db_datetime(value: Optional[datetime], tz: tzinfo) -> Optional[datetime]:
    # DATETIME columns hold naive org-local wall time.
    if value is None:
        return None
    return to_org_local(value, tz).replace(tzinfo=None)


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, cur, tz: tzinfo):
        self._cur = cur
        self._tz = tz

    def lock(self, employee_id: int) -> Optional[Employee]:
        """Read the employee row and hold its row lock until the scope ends."""

        self._cur.execute(_SELECT + " FOR UPDATE", (int(employee_id),))
        row = fetchone(self._cur)
        return _row_to_employee(row, self._tz) if row else None

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        self._cur.execute(_SELECT, (int(employee_id),))
        row = fetchone(self._cur)
        return _row_to_employee(row, self._tz) if row else None

    def update_pin_state(self, employee_id: int, *, attempts: int, locked_until: Optional[datetime]) -> None:
        self._cur.execute(
            "UPDATE employees SET pin_attempts=%s, pin_locked_until=%s WHERE employee_id=%s",
            (int(attempts), _to_db_datetime(locked_until, self._tz), int(employee_id)),
        )

    def set_pin_hash(self, employee_id: int, pin_hash: str) -> None:
        self._cur.execute(
            "UPDATE employees SET pin_hash=%s, pin_attempts=0, pin_locked_until=NULL WHERE employee_id=%s",
            (pin_hash, int(employee_id)),
        )
