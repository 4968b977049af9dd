from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, tzinfo
from typing import Any, Optional

from ..audit.model import AuditRecord
from ..common.datetime_utils import now_local, to_org_local
from ..common.validators import as_coordinate, require_positive_id
from ..core.enums import AuditAction, AuditKind, EventType, PinOutcome, PinStatus, ReasonCode
from ..core.exceptions import (
    DomainError,
    DuplicateEvent,
    NotAuthorized,
    NotFound,
    StoreUnavailable,
    SubmissionCancelled,
    ValidationError,
)
from ..employees.pin import PinVerifier, require_active
from ..faces.detector import DetectionGateway, PendingDetection
from ..faces.scorer import FaceMatchScorer
from ..geofence.model import GeoPoint
from ..geofence.validator import GeofenceValidator
from ..policy.model import AttendancePolicy
from ..schedules.model import WindowRejection
from ..schedules.resolver import ScheduleWindowResolver
from .model import AttendanceEvent, Decision, TodayStatus
from .store import AttendanceStore, EmployeeScope

logger = logging.getLogger(__name__)


def _check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise SubmissionCancelled("Submission cancelled by the caller")


class AttendanceDecisionComposer:
    """Use case: turn one clock-in/clock-out submission into one decision.

    Checks run in a fixed order, cheapest first, and the first failure wins:

    0. input and employee (exists, active); face detection is started here
    1. schedule window (rest day, no schedule, outside window)
    2. today's events (duplicate, clock-out without clock-in)
    3. geofence
    4. PIN, when the office policy requires it
    5. face match, when the office policy requires it

    Everything from step 0 on runs inside the employee scope, so PIN
    counters and the duplicate check are serialized per employee. A
    rejection is returned (its audit rows are committed); only an accepted
    decision writes an ``AttendanceEvent``. ``SubmissionCancelled`` and
    ``StoreUnavailable`` propagate and leave nothing behind.
    """

    def __init__(
        self,
        store: AttendanceStore,
        detection: DetectionGateway,
        *,
        tz: tzinfo,
        resolver: Optional[ScheduleWindowResolver] = None,
        geofence: Optional[GeofenceValidator] = None,
        pin_verifier: Optional[PinVerifier] = None,
        scorer: Optional[FaceMatchScorer] = None,
    ):
        self._store = store
        self._detection = detection
        self._tz = tz
        self._resolver = resolver or ScheduleWindowResolver(tz)
        self._geofence = geofence or GeofenceValidator()
        self._pin = pin_verifier or PinVerifier()
        self._scorer = scorer or FaceMatchScorer()

    def submit_clock_in(
        self,
        employee_id: Any,
        photo: Optional[bytes],
        pin: Optional[str],
        latitude: Any,
        longitude: Any,
        now: Optional[datetime] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Decision:
        return self._submit(EventType.CLOCK_IN, employee_id, photo, pin, latitude, longitude, now, cancel)

    def submit_clock_out(
        self,
        employee_id: Any,
        photo: Optional[bytes],
        pin: Optional[str],
        latitude: Any,
        longitude: Any,
        now: Optional[datetime] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Decision:
        return self._submit(EventType.CLOCK_OUT, employee_id, photo, pin, latitude, longitude, now, cancel)

    def today_status(self, employee_id: Any, now: Optional[datetime] = None) -> TodayStatus:
        employee_id = require_positive_id(employee_id, "employee_id")
        now = self._now(now)
        work_date = now.date()
        with self._store.employee_scope(employee_id) as scope:
            employee = scope.employee
            if employee is None:
                raise NotFound(f"Employee {employee_id} does not exist")
            schedule = scope.schedules.get_by_id(employee.work_schedule_id) if employee.work_schedule_id else None
            clock_in = scope.events.get_for_day(employee_id, work_date, EventType.CLOCK_IN)
            clock_out = scope.events.get_for_day(employee_id, work_date, EventType.CLOCK_OUT)

        return TodayStatus(
            employee_id=employee_id,
            work_date=work_date,
            schedule_name=schedule.name if schedule else None,
            is_work_day=bool(schedule and schedule.is_work_day(work_date)),
            clock_in_at=clock_in.occurred_at if clock_in else None,
            clock_out_at=clock_out.occurred_at if clock_out else None,
            open_windows=tuple(self._resolver.open_windows(schedule, now)) if schedule else (),
        )

    def _now(self, now: Optional[datetime]) -> datetime:
        return to_org_local(now, self._tz) if now is not None else now_local(self._tz)

    def _submit(
        self,
        event_type: EventType,
        employee_id: Any,
        photo: Optional[bytes],
        pin: Optional[str],
        latitude: Any,
        longitude: Any,
        now: Optional[datetime],
        cancel: Optional[threading.Event],
    ) -> Decision:
        started = time.monotonic()
        now = self._now(now)

        try:
            employee_id = require_positive_id(employee_id, "employee_id")
        except ValidationError as exc:
            decision = self._rejected(event_type, exc)
            self._store.record_audit(self._decision_audit(None, decision, now, submitted_id=str(employee_id)))
            self._log(None, decision, started)
            return decision

        _check_cancel(cancel)
        policy = self._store.load_policy()
        point = GeoPoint(as_coordinate(latitude), as_coordinate(longitude))

        pending: Optional[PendingDetection] = None
        if policy.office.requires_face:
            pending = self._detection.start(photo)

        try:
            with self._store.employee_scope(employee_id) as scope:
                decision = self._decide(scope, event_type, policy, now, pin, point, pending, cancel)
                _check_cancel(cancel)
                scope.audit.append(self._decision_audit(employee_id, decision, now))
        finally:
            if pending is not None:
                pending.cancel()

        self._log(employee_id, decision, started)
        return decision

    def _decide(
        self,
        scope: EmployeeScope,
        event_type: EventType,
        policy: AttendancePolicy,
        now: datetime,
        pin: Optional[str],
        point: GeoPoint,
        pending: Optional[PendingDetection],
        cancel: Optional[threading.Event],
    ) -> Decision:
        facts: dict[str, Any] = {}
        try:
            employee = require_active(scope)
            employee_id = employee.employee_id

            # 1. schedule window
            _check_cancel(cancel)
            schedule = scope.schedules.get_by_id(employee.work_schedule_id) if employee.work_schedule_id else None
            window = self._resolver.resolve(schedule, event_type, now)
            if isinstance(window, WindowRejection):
                return Decision(
                    accepted=False,
                    reason=window.reason,
                    category=window.reason.category,
                    event_type=event_type,
                    message=window.message,
                )

            # 2. today's events
            clock_in = scope.events.get_for_day(employee_id, window.work_date, EventType.CLOCK_IN)
            if event_type == EventType.CLOCK_IN:
                if clock_in is not None:
                    raise DuplicateEvent("Clock-in already recorded today")
            else:
                if scope.events.get_for_day(employee_id, window.work_date, EventType.CLOCK_OUT) is not None:
                    raise DuplicateEvent("Clock-out already recorded today")
                if clock_in is None:
                    raise NotFound("No clock-in recorded today", reason=ReasonCode.NO_CLOCK_IN)

            # 3. geofence
            _check_cancel(cancel)
            geo = self._geofence.evaluate(point, policy.office)
            facts["distance_meters"] = geo.distance_meters
            if not geo.within_radius:
                raise NotAuthorized(
                    f"Location is {geo.distance_meters:.1f} m from the office (allowed {geo.radius_meters:g} m)",
                    reason=ReasonCode.OUT_OF_RANGE,
                )

            # 4. PIN
            pin_outcome = PinOutcome.NOT_REQUIRED
            if policy.office.requires_pin:
                if pin is None or str(pin) == "":
                    raise ValidationError("PIN is required", reason=ReasonCode.PIN_REQUIRED)
                result = self._pin.verify(
                    employee,
                    str(pin),
                    now,
                    policy=policy.office.pin_policy,
                    employees=scope.employees,
                    audit=scope.audit,
                    event_type=event_type,
                )
                if result.status == PinStatus.LOCKED:
                    raise NotAuthorized(
                        f"PIN is locked, try again in {result.remaining_seconds} seconds",
                        reason=ReasonCode.PIN_LOCKED,
                    )
                if not result.verified:
                    if result.locked_until is not None:
                        message = f"Incorrect PIN, PIN is now locked until {result.locked_until:%H:%M}"
                    else:
                        message = f"Incorrect PIN, {result.remaining_attempts} attempt(s) left"
                    raise NotAuthorized(message, reason=ReasonCode.PIN_INCORRECT)
                pin_outcome = PinOutcome.VERIFIED

            # 5. face
            best = None
            if policy.office.requires_face and pending is not None:
                faces = pending.result(cancel)
                references = scope.faces.list_active(employee_id)
                report = self._scorer.score(
                    faces,
                    references,
                    policy.face,
                    employee_id=employee_id,
                    audit=scope.audit,
                    now=now,
                    event_type=event_type,
                )
                best = report.best
                facts["similarity"] = best.similarity
                facts["confidence_tier"] = best.confidence_tier
                if len(report.matches) > 1:
                    raise NotAuthorized(
                        "More than one face matches; please retake the photo alone",
                        reason=ReasonCode.MULTIPLE_FACES_AMBIGUOUS,
                    )
                if not best.is_match:
                    raise NotAuthorized("Face does not match the enrolled reference", reason=ReasonCode.NO_MATCH)

            work_duration = None
            if event_type == EventType.CLOCK_OUT:
                work_duration = self._resolver.work_duration_minutes(schedule, clock_in.occurred_at, now)

            event = AttendanceEvent(
                employee_id=employee_id,
                event_type=event_type,
                work_date=window.work_date,
                occurred_at=now,
                latitude=float(point.latitude),
                longitude=float(point.longitude),
                distance_meters=geo.distance_meters,
                within_radius=geo.within_radius,
                pin_outcome=pin_outcome,
                status=window.status,
                similarity=best.similarity if best else None,
                confidence_tier=best.confidence_tier if best else None,
                face_matched=best.is_match if best else None,
                late_minutes=window.late_minutes,
                early_minutes=window.early_minutes,
                overtime_minutes=window.overtime_minutes,
                work_duration_minutes=work_duration,
            )
            _check_cancel(cancel)
            event_id = scope.events.add(event)
        except StoreUnavailable:
            raise
        except DomainError as exc:
            return self._rejected(event_type, exc, **facts)

        return Decision(
            accepted=True,
            reason=ReasonCode.ACCEPTED,
            event_type=event_type,
            message=f"{event_type.value} accepted ({window.status.value})",
            status=window.status,
            distance_meters=geo.distance_meters,
            similarity=event.similarity,
            confidence_tier=event.confidence_tier,
            late_minutes=window.late_minutes,
            early_minutes=window.early_minutes,
            overtime_minutes=window.overtime_minutes,
            work_duration_minutes=work_duration,
            event_id=event_id,
        )

    def _rejected(self, event_type: EventType, exc: DomainError, **facts: Any) -> Decision:
        return Decision(
            accepted=False,
            reason=exc.reason,
            category=exc.category,
            event_type=event_type,
            message=str(exc),
            distance_meters=facts.get("distance_meters"),
            similarity=facts.get("similarity"),
            confidence_tier=facts.get("confidence_tier"),
        )

    def _decision_audit(
        self,
        employee_id: Optional[int],
        decision: Decision,
        now: datetime,
        **detail: Any,
    ) -> AuditRecord:
        detail.update(
            category=decision.category.value if decision.category else None,
            status=decision.status.value if decision.status else None,
            distance_meters=decision.distance_meters,
            event_id=decision.event_id,
        )
        return AuditRecord(
            employee_id=employee_id,
            kind=AuditKind.DECISION,
            action=AuditAction.DECISION_ACCEPTED if decision.accepted else AuditAction.DECISION_REJECTED,
            created_at=now,
            event_type=decision.event_type,
            similarity=decision.similarity,
            reason=decision.reason.value,
            detail=detail,
        )

    def _log(self, employee_id: Optional[int], decision: Decision, started: float) -> None:
        logger.info(
            "%s employee=%s accepted=%s reason=%s took=%.0fms",
            decision.event_type.value,
            employee_id,
            decision.accepted,
            decision.reason.value,
            (time.monotonic() - started) * 1000.0,
        )
