from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional

from .attendance.service import AttendanceDecisionComposer
from .attendance.store import AttendanceStore
from .common.datetime_utils import org_timezone
from .core import constants
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_store import MySQLAttendanceStore
from .employees.pin import PinService
from .faces.detector import DetectionGateway, FaceDetector
from .faces.enrollment import FaceEnrollmentService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    tz: tzinfo
    store: AttendanceStore
    detection: DetectionGateway

    attendance_composer: AttendanceDecisionComposer
    pin_service: PinService
    face_enrollment_service: FaceEnrollmentService

    def close(self) -> None:
        """Release the detector pool and the store handle (call once on shutdown)."""

        self.detection.close()
        self.store.close()


def build_services(
    *,
    store: AttendanceStore,
    detector: FaceDetector,
    tz: tzinfo,
    detection_timeout: float = constants.DEFAULT_DETECTION_TIMEOUT_SECONDS,
    detection_workers: int = constants.DEFAULT_DETECTION_WORKERS,
    max_photo_bytes: int = constants.DEFAULT_MAX_PHOTO_BYTES,
) -> Container:
    """Wire services around an already constructed store."""

    detection = DetectionGateway(
        detector,
        timeout=detection_timeout,
        max_workers=detection_workers,
        max_photo_bytes=max_photo_bytes,
    )
    return Container(
        tz=tz,
        store=store,
        detection=detection,
        attendance_composer=AttendanceDecisionComposer(store, detection, tz=tz),
        pin_service=PinService(store, tz=tz),
        face_enrollment_service=FaceEnrollmentService(store, detection, tz=tz),
    )


def build_container(
    *,
    db_config: dict,
    detector: FaceDetector,
    org_timezone_name: Optional[str] = None,
    detection_timeout: float = constants.DEFAULT_DETECTION_TIMEOUT_SECONDS,
    detection_workers: int = constants.DEFAULT_DETECTION_WORKERS,
    max_photo_bytes: int = constants.DEFAULT_MAX_PHOTO_BYTES,
) -> Container:
    tz = org_timezone(org_timezone_name)
    conn = DatabaseConnection(DBConfig.from_dict(db_config))
    store = MySQLAttendanceStore(conn, tz=tz)
    logger.info("Container ready (timezone=%s, detection timeout=%.1fs)", tz, detection_timeout)
    return build_services(
        store=store,
        detector=detector,
        tz=tz,
        detection_timeout=detection_timeout,
        detection_workers=detection_workers,
        max_photo_bytes=max_photo_bytes,
    )
