from datetime import datetime

import pytest

from attendance_guard.core.enums import AuditAction, ConfidenceTier
from attendance_guard.core.exceptions import NoFaceDetected, NoReferenceEnrolled
from attendance_guard.faces.model import FaceDescriptor, FaceReference
from attendance_guard.faces.scorer import FaceMatchScorer, confidence_tier
from attendance_guard.policy.model import FaceMatchConfig

from conftest import REFERENCE_DESCRIPTOR, TZ, InMemoryAudit, face_like

NOW = datetime(2026, 10, 19, 6, 5, tzinfo=TZ)


def _reference(ref_id: int = 1, **overrides) -> FaceReference:
    values = dict(reference_id=ref_id, employee_id=7, descriptor=REFERENCE_DESCRIPTOR)
    values.update(overrides)
    return FaceReference(**values)


def _face_with_embedding(*embedding):
    return face_like(FaceDescriptor(box=REFERENCE_DESCRIPTOR.box, embedding=tuple(embedding)))


def test_threshold_is_inclusive():
    # distance 0.45 with scale 1.5 -> similarity exactly 0.7
    reference = _reference(descriptor=FaceDescriptor(box=REFERENCE_DESCRIPTOR.box, embedding=(0.0, 0.0)))
    face = _face_with_embedding(0.27, 0.36)
    config = FaceMatchConfig(threshold=0.7)

    report = FaceMatchScorer().score([face], [reference], config, employee_id=7, audit=InMemoryAudit(), now=NOW)

    assert report.best.similarity == pytest.approx(0.7)
    config_at_score = FaceMatchConfig(threshold=report.best.similarity)
    again = FaceMatchScorer().score([face], [reference], config_at_score, employee_id=7, audit=InMemoryAudit(), now=NOW)
    assert again.best.is_match is True


def test_one_audit_row_per_detected_face():
    audit = InMemoryAudit()
    faces = [face_like(), _face_with_embedding(9.0, 9.0, 9.0, 9.0, 9.0)]

    report = FaceMatchScorer().score(faces, [_reference()], FaceMatchConfig(), employee_id=7, audit=audit, now=NOW)

    assert report.multiple_faces_detected is True
    assert [r.action for r in audit.added] == [AuditAction.FACE_MATCH, AuditAction.FACE_NO_MATCH]
    assert len(report.matches) == 1
    assert report.best.face_index == 0


def test_best_reference_wins():
    far = _reference(1, descriptor=FaceDescriptor(box=REFERENCE_DESCRIPTOR.box, embedding=(5.0, 5.0, 5.0, 5.0, 5.0)))
    near = _reference(2)

    report = FaceMatchScorer().score([face_like()], [far, near], FaceMatchConfig(), employee_id=7, audit=InMemoryAudit(), now=NOW)

    assert report.best.reference_id == 2
    assert report.best.confidence_tier == ConfidenceTier.HIGH


def test_no_faces_raises_and_is_audited():
    audit = InMemoryAudit()
    with pytest.raises(NoFaceDetected):
        FaceMatchScorer().score([], [_reference()], FaceMatchConfig(), employee_id=7, audit=audit, now=NOW)

    assert [r.action for r in audit.added] == [AuditAction.NO_FACE]


def test_no_active_reference_raises():
    with pytest.raises(NoReferenceEnrolled):
        FaceMatchScorer().score(
            [face_like()],
            [_reference(is_active=False)],
            FaceMatchConfig(),
            employee_id=7,
            audit=InMemoryAudit(),
            now=NOW,
        )


@pytest.mark.parametrize(
    "similarity,tier",
    [(0.95, ConfidenceTier.HIGH), (0.80, ConfidenceTier.HIGH), (0.65, ConfidenceTier.MEDIUM), (0.60, ConfidenceTier.MEDIUM), (0.2, ConfidenceTier.LOW)],
)
def test_confidence_tiers(similarity, tier):
    assert confidence_tier(similarity, FaceMatchConfig()) == tier
