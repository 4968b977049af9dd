from __future__ import annotations

from enum import Enum
from typing import Optional


class EventType(str, Enum):
    """Loại sự kiện chấm công."""

    CLOCK_IN = "clock-in"
    CLOCK_OUT = "clock-out"


class AttendanceStatus(str, Enum):
    """Trạng thái chấm công chuẩn hoá lưu trong CSDL."""

    ON_TIME = "on-time"
    LATE = "late"
    EARLY = "early"
    OVERTIME = "overtime"


class AuthMode(str, Enum):
    FACE_ONLY = "face-only"
    PIN_ONLY = "pin-only"
    FACE_AND_PIN = "face-and-pin"


class PinStatus(str, Enum):
    VERIFIED = "verified"
    NOT_VERIFIED = "not_verified"
    LOCKED = "locked"


class PinOutcome(str, Enum):
    """PIN outcome stored on an accepted event."""

    VERIFIED = "verified"
    NOT_REQUIRED = "not_required"


class ConfidenceTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MatcherMode(str, Enum):
    AUTO = "auto"
    EMBEDDING = "embedding"
    GEOMETRY = "geometry"


class AuditKind(str, Enum):
    PIN = "pin"
    FACE = "face"
    ENROLLMENT = "enrollment"
    DECISION = "decision"


class AuditAction(str, Enum):
    PIN_VERIFY_SUCCESS = "pin_verify_success"
    PIN_VERIFY_FAILED = "pin_verify_failed"
    PIN_LOCKED = "pin_locked"
    PIN_BLOCKED = "pin_blocked"
    PIN_SET = "pin_set"
    PIN_CHANGED = "pin_changed"

    FACE_MATCH = "face_match"
    FACE_NO_MATCH = "face_no_match"
    NO_FACE = "no_face"

    FACE_ENROLLED = "face_enrolled"
    FACE_REFERENCES_RESET = "face_references_reset"

    DECISION_ACCEPTED = "decision_accepted"
    DECISION_REJECTED = "decision_rejected"


class ErrorCategory(str, Enum):
    """Nhóm lỗi dùng để map sang mã HTTP / quyết định retry."""

    VALIDATION = "validation"
    NOT_AUTHORIZED = "not_authorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"
    SYSTEM = "system"
    REST_DAY = "rest_day"


class ReasonCode(str, Enum):
    ACCEPTED = "accepted"

    INVALID_INPUT = "invalid_input"
    INVALID_LOCATION = "invalid_location"
    INVALID_PHOTO = "invalid_photo"
    PIN_REQUIRED = "pin_required"
    MULTIPLE_FACES = "multiple_faces"

    OUTSIDE_WINDOW = "outside_window"
    OUT_OF_RANGE = "out_of_range"
    PIN_LOCKED = "pin_locked"
    PIN_INCORRECT = "pin_incorrect"
    NO_MATCH = "no_match"
    MULTIPLE_FACES_AMBIGUOUS = "multiple_faces_ambiguous"
    EMPLOYEE_INACTIVE = "employee_inactive"

    EMPLOYEE_NOT_FOUND = "employee_not_found"
    NO_SCHEDULE_ASSIGNED = "no_schedule_assigned"
    NO_REFERENCE_ENROLLED = "no_reference_enrolled"
    NO_FACE_DETECTED = "no_face_detected"
    PIN_NOT_SET = "pin_not_set"
    NO_CLOCK_IN = "no_clock_in"

    DUPLICATE_EVENT = "duplicate_event"
    PIN_ALREADY_SET = "pin_already_set"

    DETECTION_TIMEOUT = "detection_timeout"
    DETECTION_FAILED = "detection_failed"

    STORE_UNAVAILABLE = "store_unavailable"

    NOT_A_WORK_DAY = "not_a_work_day"

    @property
    def category(self) -> Optional[ErrorCategory]:
        """None for ACCEPTED, otherwise the error family of the rejection."""
        return _CATEGORY_BY_REASON.get(self)


_CATEGORY_BY_REASON: dict[ReasonCode, ErrorCategory] = {
    ReasonCode.INVALID_INPUT: ErrorCategory.VALIDATION,
    ReasonCode.INVALID_LOCATION: ErrorCategory.VALIDATION,
    ReasonCode.INVALID_PHOTO: ErrorCategory.VALIDATION,
    ReasonCode.PIN_REQUIRED: ErrorCategory.VALIDATION,
    ReasonCode.MULTIPLE_FACES: ErrorCategory.VALIDATION,
    ReasonCode.OUTSIDE_WINDOW: ErrorCategory.NOT_AUTHORIZED,
    ReasonCode.OUT_OF_RANGE: ErrorCategory.NOT_AUTHORIZED,
    ReasonCode.PIN_LOCKED: ErrorCategory.NOT_AUTHORIZED,
    ReasonCode.PIN_INCORRECT: ErrorCategory.NOT_AUTHORIZED,
    ReasonCode.NO_MATCH: ErrorCategory.NOT_AUTHORIZED,
    ReasonCode.MULTIPLE_FACES_AMBIGUOUS: ErrorCategory.NOT_AUTHORIZED,
    ReasonCode.EMPLOYEE_INACTIVE: ErrorCategory.NOT_AUTHORIZED,
    ReasonCode.EMPLOYEE_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ReasonCode.NO_SCHEDULE_ASSIGNED: ErrorCategory.NOT_FOUND,
    ReasonCode.NO_REFERENCE_ENROLLED: ErrorCategory.NOT_FOUND,
    ReasonCode.NO_FACE_DETECTED: ErrorCategory.NOT_FOUND,
    ReasonCode.PIN_NOT_SET: ErrorCategory.NOT_FOUND,
    ReasonCode.NO_CLOCK_IN: ErrorCategory.NOT_FOUND,
    ReasonCode.DUPLICATE_EVENT: ErrorCategory.CONFLICT,
    ReasonCode.PIN_ALREADY_SET: ErrorCategory.CONFLICT,
    ReasonCode.DETECTION_TIMEOUT: ErrorCategory.TIMEOUT,
    ReasonCode.STORE_UNAVAILABLE: ErrorCategory.SYSTEM,
    ReasonCode.DETECTION_FAILED: ErrorCategory.SYSTEM,
    ReasonCode.NOT_A_WORK_DAY: ErrorCategory.REST_DAY,
}
