from __future__ import annotations

import io
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Optional, Protocol, Sequence

from PIL import Image

from ..core.constants import DEFAULT_DETECTION_TIMEOUT_SECONDS, DEFAULT_DETECTION_WORKERS, DEFAULT_MAX_PHOTO_BYTES
from ..core.exceptions import DetectionFailed, DetectionTimeout, DomainError, InvalidPhoto, SubmissionCancelled
from .model import Face

logger = logging.getLogger(__name__)

# How often a waiting caller re-checks its cancel flag.
_CANCEL_POLL_SECONDS = 0.05


class FaceDetector(Protocol):
    """External ML collaborator. Only its output shape matters here."""

    def detect(self, image_bytes: bytes) -> Sequence[Face]:
        raise NotImplementedError


def check_photo(photo: Optional[bytes], *, max_bytes: int = DEFAULT_MAX_PHOTO_BYTES) -> None:
    """Reject empty, oversized or undecodable uploads before the detector sees them."""

    if not photo:
        raise InvalidPhoto("A photo is required")
    if len(photo) > max_bytes:
        raise InvalidPhoto("Photo is too large", size=len(photo), max_bytes=max_bytes)
    try:
        with Image.open(io.BytesIO(photo)) as img:
            img.verify()
    except Exception as exc:  # Pillow raises assorted types on corrupt data
        raise InvalidPhoto("Photo could not be decoded as an image") from exc


class PendingDetection:
    """Handle to a detector call running on the gateway's pool."""

    def __init__(self, future: Future, timeout: float):
        self._future = future
        self._timeout = timeout
        self._started = time.monotonic()

    def result(self, cancel: Optional[threading.Event] = None) -> list[Face]:
        """Wait for the detector, bounded by the gateway timeout.

        Raises ``DetectionTimeout`` when the deadline passes and
        ``SubmissionCancelled`` as soon as ``cancel`` is set; in both cases
        the call is discarded. A crashing detector surfaces as
        ``DetectionFailed``.
        """

        deadline = self._started + self._timeout
        while True:
            if cancel is not None and cancel.is_set():
                self.cancel()
                raise SubmissionCancelled("Submission cancelled while waiting for face detection")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self.cancel()
                logger.warning("Face detector did not answer within %.1fs", self._timeout)
                raise DetectionTimeout(f"Face detection timed out after {self._timeout:g}s")
            done, _ = wait([self._future], timeout=min(remaining, _CANCEL_POLL_SECONDS))
            if done:
                return self._faces()

    def cancel(self) -> None:
        self._future.cancel()

    def _faces(self) -> list[Face]:
        try:
            return list(self._future.result())
        except DomainError:
            raise
        except Exception as exc:
            logger.error("Face detector failed", exc_info=True)
            raise DetectionFailed("Face detection failed, please try again") from exc


class DetectionGateway:
    """Runs the external detector off the request thread with a timeout.

    ``start`` returns immediately; the photo check and the detector call both
    happen on the pool, and their errors surface from
    ``PendingDetection.result``.
    """

    def __init__(
        self,
        detector: FaceDetector,
        *,
        timeout: float = DEFAULT_DETECTION_TIMEOUT_SECONDS,
        max_workers: int = DEFAULT_DETECTION_WORKERS,
        max_photo_bytes: int = DEFAULT_MAX_PHOTO_BYTES,
    ):
        self._detector = detector
        self._timeout = float(timeout)
        self._max_photo_bytes = int(max_photo_bytes)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="face-detector")

    @property
    def timeout(self) -> float:
        return self._timeout

    def start(self, photo: Optional[bytes]) -> PendingDetection:
        future = self._executor.submit(self._run, photo)
        return PendingDetection(future, self._timeout)

    def detect(self, photo: Optional[bytes], cancel: Optional[threading.Event] = None) -> list[Face]:
        return self.start(photo).result(cancel)

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _run(self, photo: Optional[bytes]) -> Sequence[Face]:
        check_photo(photo, max_bytes=self._max_photo_bytes)
        return self._detector.detect(photo)
