from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.enums import ConfidenceTier


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2.0, self.y + self.height / 2.0


@dataclass(frozen=True)
class Keypoint:
    """A named facial landmark (``leftEye``, ``noseTip``...) in image pixels."""

    name: str
    x: float
    y: float


@dataclass(frozen=True)
class FaceDescriptor:
    """What gets compared: box, landmarks and (when the detector has one) an embedding."""

    box: BoundingBox
    keypoints: tuple[Keypoint, ...] = ()
    embedding: Optional[tuple[float, ...]] = None

    def keypoint_map(self) -> dict[str, Keypoint]:
        return {kp.name: kp for kp in self.keypoints}

    def to_dict(self) -> dict[str, Any]:
        return {
            "box": {"x": self.box.x, "y": self.box.y, "width": self.box.width, "height": self.box.height},
            "keypoints": [{"name": kp.name, "x": kp.x, "y": kp.y} for kp in self.keypoints],
            "embedding": list(self.embedding) if self.embedding is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FaceDescriptor":
        box = data["box"]
        embedding = data.get("embedding")
        return cls(
            box=BoundingBox(
                x=float(box["x"]),
                y=float(box["y"]),
                width=float(box["width"]),
                height=float(box["height"]),
            ),
            keypoints=tuple(
                Keypoint(name=str(kp["name"]), x=float(kp["x"]), y=float(kp["y"]))
                for kp in data.get("keypoints") or ()
            ),
            embedding=tuple(float(v) for v in embedding) if embedding else None,
        )


@dataclass(frozen=True)
class Face:
    """One face as reported by the external detector."""

    box: BoundingBox
    keypoints: tuple[Keypoint, ...] = ()
    embedding: Optional[tuple[float, ...]] = None
    detection_confidence: float = 1.0

    @property
    def descriptor(self) -> FaceDescriptor:
        return FaceDescriptor(box=self.box, keypoints=tuple(self.keypoints), embedding=self.embedding)


@dataclass(frozen=True)
class FaceReference:
    """Thực thể miền (domain): enrolled reference descriptor of an employee."""

    reference_id: int
    employee_id: int
    descriptor: FaceDescriptor
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class MatchResult:
    face_index: int
    similarity: float
    is_match: bool
    confidence_tier: ConfidenceTier
    reference_id: Optional[int]
    matcher: str


@dataclass(frozen=True)
class ScoreReport:
    results: Sequence[MatchResult] = field(default_factory=tuple)
    multiple_faces_detected: bool = False

    @property
    def best(self) -> Optional[MatchResult]:
        if not self.results:
            return None
        return max(self.results, key=lambda r: r.similarity)

    @property
    def matches(self) -> list[MatchResult]:
        return [r for r in self.results if r.is_match]
