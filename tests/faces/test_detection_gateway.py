import threading

import pytest

from attendance_guard.core.exceptions import DetectionFailed, DetectionTimeout, InvalidPhoto, SubmissionCancelled
from attendance_guard.faces.detector import DetectionGateway, check_photo

from conftest import FakeDetector, face_like


def test_detect_returns_faces(png_bytes):
    gateway = DetectionGateway(FakeDetector([face_like()]), timeout=2.0)
    try:
        faces = gateway.detect(png_bytes)
    finally:
        gateway.close()

    assert len(faces) == 1


def test_slow_detector_times_out(png_bytes):
    detector = FakeDetector([face_like()], delay=0.5)
    gateway = DetectionGateway(detector, timeout=0.1)
    try:
        with pytest.raises(DetectionTimeout) as info:
            gateway.detect(png_bytes)
    finally:
        gateway.close()

    assert info.value.retryable is True


def test_cancel_flag_aborts_wait(png_bytes):
    gateway = DetectionGateway(FakeDetector([face_like()], delay=0.5), timeout=5.0)
    cancel = threading.Event()
    cancel.set()
    try:
        with pytest.raises(SubmissionCancelled):
            gateway.start(png_bytes).result(cancel)
    finally:
        gateway.close()


def test_undecodable_photo_is_rejected_before_detection():
    detector = FakeDetector([face_like()])
    gateway = DetectionGateway(detector, timeout=2.0)
    try:
        with pytest.raises(InvalidPhoto):
            gateway.detect(b"definitely not an image")
    finally:
        gateway.close()

    assert detector.calls == 0


def test_photo_size_limit(png_bytes):
    with pytest.raises(InvalidPhoto):
        check_photo(png_bytes, max_bytes=len(png_bytes) - 1)
    check_photo(png_bytes, max_bytes=len(png_bytes))


def test_missing_photo_is_invalid():
    with pytest.raises(InvalidPhoto):
        check_photo(None)


class CrashingDetector:
    def detect(self, image_bytes):
        raise RuntimeError("model crashed")


def test_crashing_detector_becomes_retryable_failure(png_bytes):
    gateway = DetectionGateway(CrashingDetector(), timeout=2.0)
    try:
        with pytest.raises(DetectionFailed) as info:
            gateway.detect(png_bytes)
    finally:
        gateway.close()

    assert info.value.retryable is True
    assert isinstance(info.value.__cause__, RuntimeError)
