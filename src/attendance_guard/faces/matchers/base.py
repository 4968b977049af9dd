from __future__ import annotations

import math
from abc import ABC, abstractmethod

from ..model import FaceDescriptor


class FaceMatcher(ABC):
    """Strategy Pattern: one way of scoring a detected face against a reference.

    ``similarity`` always returns a value in [0, 1].
    """

    name: str = "base"

    @abstractmethod
    def similarity(self, probe: FaceDescriptor, reference: FaceDescriptor) -> float:
        raise NotImplementedError


def clamp01(value: float) -> float:
    value = float(value)
    # NaN/inf from a broken descriptor never counts as a match.
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))
