from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Thực thể miền (domain): Employee.

    Lưu ý: Đây là đối tượng dữ liệu thuần (không chứa code truy cập DB).
    ``pin_locked_until`` is timezone-aware (organization timezone) when set.
    """

    employee_id: int
    employee_number: str
    full_name: str
    pin_hash: Optional[str] = None
    pin_attempts: int = 0
    pin_locked_until: Optional[datetime] = None
    work_schedule_id: Optional[int] = None
    is_active: bool = True

    @property
    def has_pin(self) -> bool:
        return bool(self.pin_hash)
