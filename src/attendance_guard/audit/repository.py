from __future__ import annotations

from typing import Protocol

from .model import AuditRecord


class AuditRepository(Protocol):
    def append(self, record: AuditRecord) -> int:
        raise NotImplementedError
