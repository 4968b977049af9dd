from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Optional, Protocol

from ..audit.model import AuditRecord
from ..audit.repository import AuditRepository
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..faces.repository import FaceReferenceRepository
from ..policy.model import AttendancePolicy
from ..schedules.repository import WorkScheduleRepository
from .repository import AttendanceEventRepository


@dataclass(frozen=True)
class EmployeeScope:
    """Repositories bound to one employee's serialized unit of work.

    ``employee`` is ``None`` when the id is unknown. While the scope is open
    no other scope for the same employee can run.
    """

    employee_id: int
    employee: Optional[Employee]
    employees: EmployeeRepository
    schedules: WorkScheduleRepository
    faces: FaceReferenceRepository
    events: AttendanceEventRepository
    audit: AuditRepository


class AttendanceStore(Protocol):
    """Durable store with the per-employee locking guarantee.

    ``employee_scope`` commits on normal exit and rolls back when the block
    raises.
    """

    def employee_scope(self, employee_id: int) -> AbstractContextManager[EmployeeScope]:
        raise NotImplementedError

    def load_policy(self) -> AttendancePolicy:
        raise NotImplementedError

    def record_audit(self, record: AuditRecord) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError
