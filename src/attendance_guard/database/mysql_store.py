from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import tzinfo
from typing import Any, Iterator

from ..attendance.mysql_attendance_repository import MySQLAttendanceEventRepository
from ..attendance.store import AttendanceStore, EmployeeScope
from ..audit.model import AuditRecord
from ..audit.mysql_audit_repository import MySQLAuditRepository
from ..core.enums import AuthMode, MatcherMode
from ..core.exceptions import StoreUnavailable
from ..employees.mysql_employee_repository import MySQLEmployeeRepository
from ..faces.mysql_face_repository import MySQLFaceReferenceRepository
from ..policy.model import AttendancePolicy, FaceMatchConfig, OfficeLocation, PinPolicy
from ..policy.repository import PolicyRepository
from ..schedules.mysql_schedule_repository import MySQLWorkScheduleRepository
from .connection import DatabaseConnection
from .mysql_base import db_cursor, db_transaction, fetchone

logger = logging.getLogger(__name__)


def _row_to_policy(r: dict[str, Any]) -> AttendancePolicy:
    office = OfficeLocation(
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        radius_meters=float(r["radius_meters"]),
        auth_mode=AuthMode(r.get("auth_mode") or AuthMode.FACE_AND_PIN.value),
        pin_policy=PinPolicy(
            required=bool(r.get("pin_required", True)),
            max_attempts=int(r["pin_max_attempts"]),
            lockout_minutes=int(r["pin_lockout_minutes"]),
        ),
    )
    face = FaceMatchConfig(
        matcher=MatcherMode(r.get("face_matcher") or MatcherMode.AUTO.value),
        threshold=float(r["face_threshold"]),
        high_band=float(r["face_high_band"]),
        medium_band=float(r["face_medium_band"]),
        box_weight=float(r["face_box_weight"]),
        keypoint_weight=float(r["face_keypoint_weight"]),
        embedding_scale=float(r["face_embedding_scale"]),
    )
    return AttendancePolicy(office=office, face=face)


class MySQLPolicyRepository(PolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def load(self) -> AttendancePolicy:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT latitude, longitude, radius_meters, auth_mode,
                       pin_required, pin_max_attempts, pin_lockout_minutes,
                       face_matcher, face_threshold, face_high_band, face_medium_band,
                       face_box_weight, face_keypoint_weight, face_embedding_scale
                FROM office_settings
                ORDER BY settings_id ASC
                LIMIT 1
                """
            )
            r = fetchone(cur)
        if not r:
            raise StoreUnavailable("Office settings row is missing")
        return _row_to_policy(r)


class MySQLAttendanceStore(AttendanceStore):
    """MySQL-backed store.

    Each employee scope is one InnoDB transaction that starts by locking the
    employee row (``SELECT ... FOR UPDATE``); concurrent scopes for the same
    employee queue on that lock. The UNIQUE key on
    ``(employee_id, work_date, event_type)`` backs up the duplicate check.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, tz: tzinfo):
        self._conn_factory = conn_factory
        self._tz = tz
        self._policy = MySQLPolicyRepository(conn_factory)

    @contextmanager
    def employee_scope(self, employee_id: int) -> Iterator[EmployeeScope]:
        with db_transaction(self._conn_factory) as (_, cur):
            employees = MySQLEmployeeRepository(cur, self._tz)
            employee = employees.lock(employee_id)
            yield EmployeeScope(
                employee_id=int(employee_id),
                employee=employee,
                employees=employees,
                schedules=MySQLWorkScheduleRepository(cur),
                faces=MySQLFaceReferenceRepository(cur, self._tz),
                events=MySQLAttendanceEventRepository(cur, self._tz),
                audit=MySQLAuditRepository(cur, self._tz),
            )

    def load_policy(self) -> AttendancePolicy:
        return self._policy.load()

    def record_audit(self, record: AuditRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            MySQLAuditRepository(cur, self._tz).append(record)

    def close(self) -> None:
        self._conn_factory.close()
