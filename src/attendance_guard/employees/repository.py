from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import Employee


class EmployeeRepository(Protocol):
    """Giao diện repository cho Employee.

    Lưu ý (DIP): tầng service phụ thuộc vào interface này, không phụ thuộc trực tiếp DB cụ thể.
    Implementations are bound to one employee scope; writes become visible
    only when the scope commits.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def update_pin_state(self, employee_id: int, *, attempts: int, locked_until: Optional[datetime]) -> None:
        raise NotImplementedError

    def set_pin_hash(self, employee_id: int, pin_hash: str) -> None:
        raise NotImplementedError
