from __future__ import annotations

import math

import numpy as np

from ...core.constants import (
    DEFAULT_BOX_WEIGHT,
    DEFAULT_KEYPOINT_WEIGHT,
    GEOMETRY_FRAME_SIZE,
    KEYPOINT_MAX_DISTANCE,
)
from ..model import BoundingBox, FaceDescriptor
from .base import FaceMatcher, clamp01

_CENTER_WEIGHT = 0.6
_SIZE_WEIGHT = 0.4


def box_similarity(a: BoundingBox, b: BoundingBox) -> float:
    """Blend of normalized center distance and width/height ratio."""

    (ax, ay), (bx, by) = a.center, b.center
    center_distance = math.hypot(ax - bx, ay - by)
    center_sim = max(0.0, 1.0 - 2.0 * center_distance / GEOMETRY_FRAME_SIZE)

    if min(a.width, b.width, a.height, b.height) <= 0:
        size_ratio = 0.0
    else:
        size_ratio = (min(a.width, b.width) / max(a.width, b.width)) * (
            min(a.height, b.height) / max(a.height, b.height)
        )
    return clamp01(center_sim * _CENTER_WEIGHT + size_ratio * _SIZE_WEIGHT)


def keypoint_similarity(probe: FaceDescriptor, reference: FaceDescriptor) -> float:
    """1 - mean capped distance over landmarks present on both sides; 0 if none are shared."""

    ref_points = reference.keypoint_map()
    pairs = [(kp, ref_points[kp.name]) for kp in probe.keypoints if kp.name in ref_points]
    if not pairs:
        return 0.0
    deltas = np.array([[p.x - r.x, p.y - r.y] for p, r in pairs], dtype=np.float64)
    distances = np.minimum(np.hypot(deltas[:, 0], deltas[:, 1]), KEYPOINT_MAX_DISTANCE)
    return clamp01(1.0 - float(distances.mean()) / KEYPOINT_MAX_DISTANCE)


class GeometryMatcher(FaceMatcher):
    """Fallback when no embedding is available: weighted box and landmark geometry."""

    name = "geometry"

    def __init__(self, box_weight: float = DEFAULT_BOX_WEIGHT, keypoint_weight: float = DEFAULT_KEYPOINT_WEIGHT):
        if keypoint_weight <= box_weight:
            raise ValueError("Keypoint weight must be greater than box weight")
        self._box_weight = float(box_weight)
        self._keypoint_weight = float(keypoint_weight)

    def similarity(self, probe: FaceDescriptor, reference: FaceDescriptor) -> float:
        return clamp01(
            box_similarity(probe.box, reference.box) * self._box_weight
            + keypoint_similarity(probe, reference) * self._keypoint_weight
        )
