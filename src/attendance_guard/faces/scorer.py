from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..audit.model import AuditRecord
from ..audit.repository import AuditRepository
from ..core.enums import AuditAction, AuditKind, ConfidenceTier, EventType
from ..core.exceptions import NoFaceDetected, NoReferenceEnrolled
from ..policy.model import FaceMatchConfig
from .factory import FaceMatcherFactory
from .model import Face, FaceReference, MatchResult, ScoreReport

logger = logging.getLogger(__name__)


def confidence_tier(similarity: float, config: FaceMatchConfig) -> ConfidenceTier:
    if similarity >= config.high_band:
        return ConfidenceTier.HIGH
    if similarity >= config.medium_band:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


class FaceMatchScorer:
    """Score detected faces against the employee's active references.

    Every detected face produces exactly one audit row, match or not. The
    scorer reports what it saw; deciding what to do with several faces is
    left to the caller.
    """

    def score(
        self,
        detected_faces: Sequence[Face],
        references: Sequence[FaceReference],
        config: FaceMatchConfig,
        *,
        employee_id: int,
        audit: AuditRepository,
        now: datetime,
        event_type: Optional[EventType] = None,
    ) -> ScoreReport:
        if not detected_faces:
            audit.append(
                AuditRecord(
                    employee_id=employee_id,
                    kind=AuditKind.FACE,
                    action=AuditAction.NO_FACE,
                    created_at=now,
                    event_type=event_type,
                    reason="no_face_detected",
                )
            )
            raise NoFaceDetected("No face was detected in the photo")

        active = [ref for ref in references if ref.is_active]
        if not active:
            raise NoReferenceEnrolled("No active face reference is enrolled for this employee")

        factory = FaceMatcherFactory(config)
        results: list[MatchResult] = []
        for index, face in enumerate(detected_faces):
            probe = face.descriptor
            best_similarity = -1.0
            best_reference: Optional[FaceReference] = None
            best_matcher = ""
            for ref in active:
                matcher = factory.for_pair(probe, ref.descriptor)
                similarity = matcher.similarity(probe, ref.descriptor)
                if similarity > best_similarity:
                    best_similarity, best_reference, best_matcher = similarity, ref, matcher.name

            similarity = max(0.0, best_similarity)
            result = MatchResult(
                face_index=index,
                similarity=similarity,
                is_match=similarity >= config.threshold,
                confidence_tier=confidence_tier(similarity, config),
                reference_id=best_reference.reference_id if best_reference else None,
                matcher=best_matcher,
            )
            results.append(result)
            audit.append(
                AuditRecord(
                    employee_id=employee_id,
                    kind=AuditKind.FACE,
                    action=AuditAction.FACE_MATCH if result.is_match else AuditAction.FACE_NO_MATCH,
                    created_at=now,
                    event_type=event_type,
                    similarity=result.similarity,
                    detail={
                        "face_index": index,
                        "reference_id": result.reference_id,
                        "confidence_tier": result.confidence_tier.value,
                        "matcher": result.matcher,
                        "detection_confidence": face.detection_confidence,
                        "faces_detected": len(detected_faces),
                    },
                )
            )

        logger.debug(
            "Scored %d face(s) for employee %s against %d reference(s)",
            len(results),
            employee_id,
            len(active),
        )
        return ScoreReport(results=tuple(results), multiple_faces_detected=len(detected_faces) > 1)
