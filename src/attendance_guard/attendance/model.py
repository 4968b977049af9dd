from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..core.enums import AttendanceStatus, ConfidenceTier, ErrorCategory, EventType, PinOutcome, ReasonCode


@dataclass(frozen=True)
class AttendanceEvent:
    """Thực thể miền (domain): Sự kiện chấm công (append-only)."""

    employee_id: int
    event_type: EventType
    work_date: date
    occurred_at: datetime
    latitude: float
    longitude: float
    distance_meters: float
    within_radius: bool
    pin_outcome: PinOutcome
    status: AttendanceStatus
    similarity: Optional[float] = None
    confidence_tier: Optional[ConfidenceTier] = None
    face_matched: Optional[bool] = None
    late_minutes: int = 0
    early_minutes: int = 0
    overtime_minutes: int = 0
    work_duration_minutes: Optional[int] = None
    event_id: Optional[int] = None


@dataclass(frozen=True)
class Decision:
    """Terminal outcome of one clock-in/clock-out submission."""

    accepted: bool
    reason: ReasonCode
    event_type: EventType
    category: Optional[ErrorCategory] = None
    message: str = ""
    status: Optional[AttendanceStatus] = None
    distance_meters: Optional[float] = None
    similarity: Optional[float] = None
    confidence_tier: Optional[ConfidenceTier] = None
    late_minutes: Optional[int] = None
    early_minutes: Optional[int] = None
    overtime_minutes: Optional[int] = None
    work_duration_minutes: Optional[int] = None
    event_id: Optional[int] = None

    @property
    def retryable(self) -> bool:
        return self.category in {ErrorCategory.TIMEOUT, ErrorCategory.SYSTEM}

    def to_dict(self) -> dict[str, Any]:
        return {
            "accepted": self.accepted,
            "reason": self.reason.value,
            "category": self.category.value if self.category else None,
            "event_type": self.event_type.value,
            "message": self.message,
            "status": self.status.value if self.status else None,
            "distance_meters": round(self.distance_meters, 2) if self.distance_meters is not None else None,
            "similarity": round(self.similarity, 4) if self.similarity is not None else None,
            "confidence_tier": self.confidence_tier.value if self.confidence_tier else None,
            "late_minutes": self.late_minutes,
            "early_minutes": self.early_minutes,
            "overtime_minutes": self.overtime_minutes,
            "work_duration_minutes": self.work_duration_minutes,
            "event_id": self.event_id,
            "retryable": self.retryable,
        }


@dataclass(frozen=True)
class TodayStatus:
    """Read-model cho màn hình hôm nay: lịch, trạng thái chấm công, cửa sổ đang mở."""

    employee_id: int
    work_date: date
    schedule_name: Optional[str]
    is_work_day: bool
    clock_in_at: Optional[datetime] = None
    clock_out_at: Optional[datetime] = None
    open_windows: tuple[EventType, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "work_date": self.work_date.isoformat(),
            "schedule_name": self.schedule_name,
            "is_work_day": self.is_work_day,
            "clock_in_at": self.clock_in_at.isoformat() if self.clock_in_at else None,
            "clock_out_at": self.clock_out_at.isoformat() if self.clock_out_at else None,
            "open_windows": [e.value for e in self.open_windows],
        }
