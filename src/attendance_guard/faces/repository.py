from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .model import FaceDescriptor, FaceReference


class FaceReferenceRepository(Protocol):
    def list_active(self, employee_id: int) -> Sequence[FaceReference]:
        raise NotImplementedError

    def add(self, employee_id: int, descriptor: FaceDescriptor, *, created_at: datetime) -> int:
        raise NotImplementedError

    def deactivate_all(self, employee_id: int) -> int:
        """Flip ``is_active`` off for every reference; rows are never deleted."""

        raise NotImplementedError
