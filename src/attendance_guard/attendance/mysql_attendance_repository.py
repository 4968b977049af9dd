from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Any, Optional

import mysql.connector

from ..common.datetime_utils import to_org_local
from ..core.enums import AttendanceStatus, ConfidenceTier, EventType, PinOutcome
from ..core.exceptions import DuplicateEvent
from ..database.mysql_base import fetchone
from .model import AttendanceEvent
from .repository import AttendanceEventRepository


def _row_to_event(r: dict[str, Any], tz: tzinfo) -> AttendanceEvent:
    similarity = r.get("similarity")
    face_matched = r.get("face_matched")
    duration = r.get("work_duration_minutes")
    return AttendanceEvent(
        event_id=int(r["event_id"]),
        employee_id=int(r["employee_id"]),
        event_type=EventType(r["event_type"]),
        work_date=r["work_date"],
        occurred_at=to_org_local(r["occurred_at"], tz),
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        distance_meters=float(r["distance_meters"]),
        within_radius=bool(r["within_radius"]),
        similarity=float(similarity) if similarity is not None else None,
        confidence_tier=ConfidenceTier(r["confidence_tier"]) if r.get("confidence_tier") else None,
        face_matched=bool(face_matched) if face_matched is not None else None,
        pin_outcome=PinOutcome(r["pin_outcome"]),
        status=AttendanceStatus(r["status"]),
        late_minutes=int(r.get("late_minutes") or 0),
        early_minutes=int(r.get("early_minutes") or 0),
        overtime_minutes=int(r.get("overtime_minutes") or 0),
        work_duration_minutes=int(duration) if duration is not None else None,
    )


class MySQLAttendanceEventRepository(AttendanceEventRepository):
    def __init__(self, cur, tz: tzinfo):
        self._cur = cur
        self._tz = tz

    def get_for_day(self, employee_id: int, work_date: date, event_type: EventType) -> Optional[AttendanceEvent]:
        self._cur.execute(
            """
            SELECT event_id, employee_id, event_type, work_date, occurred_at, latitude, longitude,
                   distance_meters, within_radius, similarity, confidence_tier, face_matched,
                   pin_outcome, status, late_minutes, early_minutes, overtime_minutes,
                   work_duration_minutes
            FROM attendance_events
            WHERE employee_id=%s AND work_date=%s AND event_type=%s
            """,
            (int(employee_id), work_date, event_type.value),
        )
        r = fetchone(self._cur)
        return _row_to_event(r, self._tz) if r else None

    def add(self, event: AttendanceEvent) -> int:
        occurred_at: datetime = to_org_local(event.occurred_at, self._tz).replace(tzinfo=None)
        try:
            self._cur.execute(
                """
                INSERT INTO attendance_events(
                    employee_id, event_type, work_date, occurred_at, latitude, longitude,
                    distance_meters, within_radius, similarity, confidence_tier, face_matched,
                    pin_outcome, status, late_minutes, early_minutes, overtime_minutes,
                    work_duration_minutes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(event.employee_id),
                    event.event_type.value,
                    event.work_date,
                    occurred_at,
                    event.latitude,
                    event.longitude,
                    round(event.distance_meters, 3),
                    1 if event.within_radius else 0,
                    round(event.similarity, 4) if event.similarity is not None else None,
                    event.confidence_tier.value if event.confidence_tier else None,
                    None if event.face_matched is None else int(event.face_matched),
                    event.pin_outcome.value,
                    event.status.value,
                    int(event.late_minutes),
                    int(event.early_minutes),
                    int(event.overtime_minutes),
                    event.work_duration_minutes,
                ),
            )
        except mysql.connector.IntegrityError as exc:
            raise DuplicateEvent(
                f"{event.event_type.value} already recorded for {event.work_date.isoformat()}",
                employee_id=event.employee_id,
            ) from exc
        return int(self._cur.lastrowid)
