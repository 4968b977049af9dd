from __future__ import annotations

import numpy as np

from ...core.constants import DEFAULT_EMBEDDING_SCALE
from ..model import FaceDescriptor
from .base import FaceMatcher, clamp01


def can_compare_embeddings(probe: FaceDescriptor, reference: FaceDescriptor) -> bool:
    return (
        probe.embedding is not None
        and reference.embedding is not None
        and len(probe.embedding) > 0
        and len(probe.embedding) == len(reference.embedding)
    )


class EmbeddingMatcher(FaceMatcher):
    """similarity = clamp(1 - euclidean / scale, 0, 1)."""

    name = "embedding"

    def __init__(self, scale: float = DEFAULT_EMBEDDING_SCALE):
        if scale <= 0:
            raise ValueError("Embedding scale must be positive")
        self._scale = float(scale)

    def similarity(self, probe: FaceDescriptor, reference: FaceDescriptor) -> float:
        if not can_compare_embeddings(probe, reference):
            return 0.0
        a = np.asarray(probe.embedding, dtype=np.float64)
        b = np.asarray(reference.embedding, dtype=np.float64)
        distance = float(np.linalg.norm(a - b))
        return clamp01(1.0 - distance / self._scale)
