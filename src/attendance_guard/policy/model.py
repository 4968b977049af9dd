from __future__ import annotations

from dataclasses import dataclass, field

from ..core import constants
from ..core.enums import AuthMode, MatcherMode
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class PinPolicy:
    required: bool = True
    max_attempts: int = constants.DEFAULT_PIN_MAX_ATTEMPTS
    lockout_minutes: int = constants.DEFAULT_PIN_LOCKOUT_MINUTES


@dataclass(frozen=True)
class OfficeLocation:
    """Office geofence plus the authentication policy that applies there."""

    latitude: float
    longitude: float
    radius_meters: float
    auth_mode: AuthMode = AuthMode.FACE_AND_PIN
    pin_policy: PinPolicy = field(default_factory=PinPolicy)

    @property
    def requires_pin(self) -> bool:
        if self.auth_mode == AuthMode.PIN_ONLY:
            return True
        return self.auth_mode == AuthMode.FACE_AND_PIN and self.pin_policy.required

    @property
    def requires_face(self) -> bool:
        return self.auth_mode in {AuthMode.FACE_ONLY, AuthMode.FACE_AND_PIN}


@dataclass(frozen=True)
class FaceMatchConfig:
    """One source of truth for face thresholds and weighting."""

    matcher: MatcherMode = MatcherMode.AUTO
    threshold: float = constants.DEFAULT_FACE_THRESHOLD
    high_band: float = constants.DEFAULT_FACE_HIGH_BAND
    medium_band: float = constants.DEFAULT_FACE_MEDIUM_BAND
    box_weight: float = constants.DEFAULT_BOX_WEIGHT
    keypoint_weight: float = constants.DEFAULT_KEYPOINT_WEIGHT
    embedding_scale: float = constants.DEFAULT_EMBEDDING_SCALE

    def __post_init__(self):
        if not 0.0 <= self.threshold <= 1.0:
            raise ValidationError("Face threshold must be within [0, 1]")
        if self.medium_band > self.high_band:
            raise ValidationError("Medium confidence band must not exceed the high band")
        if self.keypoint_weight <= self.box_weight:
            raise ValidationError("Keypoint weight must be greater than box weight")
        if self.embedding_scale <= 0:
            raise ValidationError("Embedding scale must be positive")


@dataclass(frozen=True)
class AttendancePolicy:
    """Resolved configuration, re-read from the store for every request."""

    office: OfficeLocation
    face: FaceMatchConfig = field(default_factory=FaceMatchConfig)
