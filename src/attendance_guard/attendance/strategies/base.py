from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ...core.enums import AttendanceStatus
from ...schedules.model import WorkSchedule


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    late_minutes: int = 0
    early_minutes: int = 0
    overtime_minutes: int = 0


class ClassificationStrategy(ABC):
    """Strategy Pattern: encapsulate how we classify an accepted event.

    ``nominal`` is the nominal shift start for clock-in and the nominal shift
    end for clock-out, already placed on the work date in the org timezone.
    """

    @abstractmethod
    def decide(self, *, now: datetime, nominal: datetime, schedule: WorkSchedule) -> StatusDecision:
        raise NotImplementedError
