from __future__ import annotations

from typing import Any, Optional

from .enums import ErrorCategory, ReasonCode


class DomainError(Exception):
    """Base exception for business rule violations.

    Every subclass carries the ``ReasonCode`` it is reported under, so the
    decision composer can turn any of them into a rejected ``Decision``.
    """

    reason: ReasonCode = ReasonCode.INVALID_INPUT

    def __init__(self, message: str = "", *, reason: Optional[ReasonCode] = None, **detail: Any):
        super().__init__(message or self.__class__.__name__)
        if reason is not None:
            self.reason = reason
        self.detail = detail

    @property
    def category(self) -> Optional[ErrorCategory]:
        return self.reason.category

    @property
    def retryable(self) -> bool:
        return self.category in {ErrorCategory.TIMEOUT, ErrorCategory.SYSTEM}


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidLocation(ValidationError):
    reason = ReasonCode.INVALID_LOCATION


class InvalidPhoto(ValidationError):
    reason = ReasonCode.INVALID_PHOTO


class NotAuthorized(DomainError):
    """Raised when a check (window, geofence, PIN, face) refuses the request."""

    reason = ReasonCode.NO_MATCH


class NotFound(DomainError):
    reason = ReasonCode.EMPLOYEE_NOT_FOUND


class NoFaceDetected(NotFound):
    reason = ReasonCode.NO_FACE_DETECTED


class NoReferenceEnrolled(NotFound):
    reason = ReasonCode.NO_REFERENCE_ENROLLED


class PinNotSet(NotFound):
    reason = ReasonCode.PIN_NOT_SET


class Conflict(DomainError):
    reason = ReasonCode.DUPLICATE_EVENT


class DuplicateEvent(Conflict):
    """Today's event of the same type already exists. Never retry as-is."""


class DetectionTimeout(DomainError):
    """The external face detector did not answer in time (retryable)."""

    reason = ReasonCode.DETECTION_TIMEOUT


class DetectionFailed(DomainError):
    """The external face detector crashed (retryable)."""

    reason = ReasonCode.DETECTION_FAILED


class StoreUnavailable(DomainError):
    """The durable store failed; safe to retry when nothing was committed."""

    reason = ReasonCode.STORE_UNAVAILABLE


class SubmissionCancelled(Exception):
    """The caller aborted the submission; all partial work is discarded."""
