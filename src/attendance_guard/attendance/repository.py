from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ..core.enums import EventType
from .model import AttendanceEvent


class AttendanceEventRepository(Protocol):
    def get_for_day(self, employee_id: int, work_date: date, event_type: EventType) -> Optional[AttendanceEvent]:
        raise NotImplementedError

    def add(self, event: AttendanceEvent) -> int:
        """Append an event. Raises ``DuplicateEvent`` if one already exists for that day and type."""

        raise NotImplementedError
