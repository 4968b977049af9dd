from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.enums import AuditAction, AuditKind, EventType


@dataclass(frozen=True)
class AuditRecord:
    """One append-only compliance entry (PIN check, face check, enrollment or decision)."""

    employee_id: Optional[int]
    kind: AuditKind
    action: AuditAction
    created_at: datetime
    event_type: Optional[EventType] = None
    similarity: Optional[float] = None
    reason: Optional[str] = None
    detail: dict[str, Any] = field(default_factory=dict)
    audit_id: Optional[int] = None
