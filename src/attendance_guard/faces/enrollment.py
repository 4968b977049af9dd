from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Optional

from ..attendance.store import AttendanceStore
from ..audit.model import AuditRecord
from ..common.datetime_utils import now_local, to_org_local
from ..common.validators import require_positive_id
from ..core.enums import AuditAction, AuditKind, ReasonCode
from ..core.exceptions import NoFaceDetected, NotFound, ValidationError
from ..employees.pin import require_active
from .detector import DetectionGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrollmentResult:
    employee_id: int
    reference_id: int
    deactivated: int
    detection_confidence: float

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "reference_id": self.reference_id,
            "deactivated": self.deactivated,
            "detection_confidence": round(self.detection_confidence, 4),
        }


class FaceEnrollmentService:
    """Use case: enroll or reset an employee's face references.

    Enrollment replaces the active set: older references are deactivated,
    never deleted, so the audit history stays intact.
    """

    def __init__(self, store: AttendanceStore, detection: DetectionGateway, *, tz: tzinfo):
        self._store = store
        self._detection = detection
        self._tz = tz

    def enroll(
        self,
        employee_id: int,
        photo: Optional[bytes],
        now: Optional[datetime] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> EnrollmentResult:
        employee_id = require_positive_id(employee_id, "employee_id")
        now = to_org_local(now, self._tz) if now is not None else now_local(self._tz)

        # Detection runs before the employee row is locked.
        faces = self._detection.detect(photo, cancel)
        if not faces:
            raise NoFaceDetected("No face was detected in the enrollment photo")
        if len(faces) > 1:
            raise ValidationError(
                "Enrollment photo must contain exactly one face",
                reason=ReasonCode.MULTIPLE_FACES,
                faces_detected=len(faces),
            )
        face = faces[0]

        with self._store.employee_scope(employee_id) as scope:
            require_active(scope)
            deactivated = scope.faces.deactivate_all(employee_id)
            reference_id = scope.faces.add(employee_id, face.descriptor, created_at=now)
            scope.audit.append(
                AuditRecord(
                    employee_id=employee_id,
                    kind=AuditKind.ENROLLMENT,
                    action=AuditAction.FACE_ENROLLED,
                    created_at=now,
                    detail={
                        "reference_id": reference_id,
                        "deactivated": deactivated,
                        "detection_confidence": face.detection_confidence,
                        "has_embedding": face.embedding is not None,
                        "keypoints": len(face.keypoints),
                    },
                )
            )

        logger.info("Enrolled face reference %s for employee %s", reference_id, employee_id)
        return EnrollmentResult(
            employee_id=employee_id,
            reference_id=reference_id,
            deactivated=deactivated,
            detection_confidence=face.detection_confidence,
        )

    def reset(self, employee_id: int, now: Optional[datetime] = None) -> int:
        """Deactivate every reference; the employee must enroll again."""

        employee_id = require_positive_id(employee_id, "employee_id")
        now = to_org_local(now, self._tz) if now is not None else now_local(self._tz)
        with self._store.employee_scope(employee_id) as scope:
            # Inactive employees may still be reset.
            if scope.employee is None:
                raise NotFound(f"Employee {employee_id} does not exist")
            deactivated = scope.faces.deactivate_all(employee_id)
            scope.audit.append(
                AuditRecord(
                    employee_id=employee_id,
                    kind=AuditKind.ENROLLMENT,
                    action=AuditAction.FACE_REFERENCES_RESET,
                    created_at=now,
                    detail={"deactivated": deactivated},
                )
            )
        logger.info("Reset %d face reference(s) for employee %s", deactivated, employee_id)
        return deactivated
