import pytest

from attendance_guard.core.enums import AuthMode
from attendance_guard.core.exceptions import ValidationError
from attendance_guard.policy.model import FaceMatchConfig

from conftest import make_policy


@pytest.mark.parametrize(
    "mode, pin_required, requires_pin, requires_face",
    [
        (AuthMode.FACE_AND_PIN, True, True, True),
        (AuthMode.FACE_AND_PIN, False, False, True),
        (AuthMode.FACE_ONLY, True, False, True),
        (AuthMode.PIN_ONLY, False, True, False),
    ],
)
def test_auth_mode_requirements(mode, pin_required, requires_pin, requires_face):
    office = make_policy(mode, required=pin_required).office

    assert office.requires_pin is requires_pin
    assert office.requires_face is requires_face


def test_face_config_defaults():
    config = FaceMatchConfig()

    assert config.threshold == pytest.approx(0.70)
    assert (config.high_band, config.medium_band) == (pytest.approx(0.80), pytest.approx(0.60))


@pytest.mark.parametrize(
    "overrides",
    [
        {"threshold": 1.2},
        {"medium_band": 0.9, "high_band": 0.8},
        {"box_weight": 0.7, "keypoint_weight": 0.3},
        {"embedding_scale": 0},
    ],
)
def test_face_config_rejects_inconsistent_values(overrides):
    with pytest.raises(ValidationError):
        FaceMatchConfig(**overrides)
