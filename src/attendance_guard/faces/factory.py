from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import MatcherMode
from ..policy.model import FaceMatchConfig
from .matchers.base import FaceMatcher
from .matchers.embedding_matcher import EmbeddingMatcher, can_compare_embeddings
from .matchers.geometry_matcher import GeometryMatcher
from .model import FaceDescriptor


@dataclass
class FaceMatcherFactory:
    """Factory Pattern: choose the matcher for one probe/reference pair."""

    config: FaceMatchConfig

    def __post_init__(self):
        self._embedding = EmbeddingMatcher(scale=self.config.embedding_scale)
        self._geometry = GeometryMatcher(
            box_weight=self.config.box_weight,
            keypoint_weight=self.config.keypoint_weight,
        )

    def for_pair(self, probe: FaceDescriptor, reference: FaceDescriptor) -> FaceMatcher:
        mode = self.config.matcher
        if mode == MatcherMode.EMBEDDING:
            return self._embedding
        if mode == MatcherMode.GEOMETRY:
            return self._geometry
        if can_compare_embeddings(probe, reference):
            return self._embedding
        return self._geometry
