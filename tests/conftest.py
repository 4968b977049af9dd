from __future__ import annotations

import io
import itertools
import threading
import time as _time
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, time
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

import pytest
from PIL import Image
from werkzeug.security import generate_password_hash

from attendance_guard.attendance.model import AttendanceEvent
from attendance_guard.attendance.service import AttendanceDecisionComposer
from attendance_guard.attendance.store import EmployeeScope
from attendance_guard.audit.model import AuditRecord
from attendance_guard.core.enums import AuthMode, EventType
from attendance_guard.core.exceptions import DuplicateEvent
from attendance_guard.employees.model import Employee
from attendance_guard.faces.detector import DetectionGateway
from attendance_guard.faces.model import BoundingBox, Face, FaceDescriptor, FaceReference, Keypoint
from attendance_guard.policy.model import AttendancePolicy, OfficeLocation, PinPolicy
from attendance_guard.schedules.model import WorkSchedule

TZ = ZoneInfo("Asia/Makassar")
OFFICE_LAT = -6.2615
OFFICE_LON = 106.8106
EMPLOYEE_PIN = "123456"

# 2026-10-19 is a Monday, 2026-10-24 a Saturday.
MONDAY = date(2026, 10, 19)
SATURDAY = date(2026, 10, 24)


def at_local(day: date, hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, second, tzinfo=TZ)


def morning_shift(**overrides) -> WorkSchedule:
    values = dict(
        schedule_id=1,
        name="Morning Shift - Opening Crew",
        start_time=time(6, 0),
        end_time=time(14, 0),
        clock_in_start=time(5, 45),
        clock_in_end=time(6, 15),
        clock_out_start=time(13, 45),
        clock_out_end=time(14, 15),
        work_days=frozenset({0, 1, 2, 3, 4}),
        break_start=time(9, 0),
        break_end=time(10, 0),
        late_tolerance_minutes=15,
        overtime_cap_minutes=480,
    )
    values.update(overrides)
    return WorkSchedule(**values)


REFERENCE_DESCRIPTOR = FaceDescriptor(
    box=BoundingBox(x=200, y=120, width=180, height=220),
    keypoints=(
        Keypoint("leftEye", 250, 190),
        Keypoint("rightEye", 330, 190),
        Keypoint("noseTip", 290, 240),
        Keypoint("mouthCenter", 290, 290),
    ),
    embedding=(0.12, -0.40, 0.33, 0.05, 0.71),
)


def face_like(descriptor: FaceDescriptor = REFERENCE_DESCRIPTOR, **overrides) -> Face:
    values = dict(
        box=descriptor.box,
        keypoints=descriptor.keypoints,
        embedding=descriptor.embedding,
        detection_confidence=0.98,
    )
    values.update(overrides)
    return Face(**values)


class FakeDetector:
    """Returns a fixed list of faces; can be slowed down to exercise timeouts."""

    def __init__(self, faces: Sequence[Face] = (), *, delay: float = 0.0):
        self.faces = list(faces)
        self.delay = delay
        self.calls = 0

    def detect(self, image_bytes: bytes) -> Sequence[Face]:
        self.calls += 1
        if self.delay:
            _time.sleep(self.delay)
        return list(self.faces)


class InMemoryEmployees:
    def __init__(self, committed: dict[int, Employee]):
        self._committed = committed
        self.staged: dict[int, Employee] = {}

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self.staged.get(employee_id) or self._committed.get(employee_id)

    def update_pin_state(self, employee_id: int, *, attempts: int, locked_until: Optional[datetime]) -> None:
        current = self.get_by_id(employee_id)
        self.staged[employee_id] = replace(current, pin_attempts=attempts, pin_locked_until=locked_until)

    def set_pin_hash(self, employee_id: int, pin_hash: str) -> None:
        current = self.get_by_id(employee_id)
        self.staged[employee_id] = replace(current, pin_hash=pin_hash, pin_attempts=0, pin_locked_until=None)


class InMemorySchedules:
    def __init__(self, schedules: dict[int, WorkSchedule]):
        self._schedules = schedules

    def get_by_id(self, schedule_id: int) -> Optional[WorkSchedule]:
        return self._schedules.get(schedule_id)


class InMemoryFaces:
    def __init__(self, committed: list[FaceReference], ids: itertools.count):
        self._committed = committed
        self._ids = ids
        self.added: list[FaceReference] = []
        self.deactivated: set[int] = set()

    def list_active(self, employee_id: int) -> Sequence[FaceReference]:
        refs = [] if employee_id in self.deactivated else [
            r for r in self._committed if r.employee_id == employee_id and r.is_active
        ]
        return refs + [r for r in self.added if r.employee_id == employee_id and r.is_active]

    def add(self, employee_id: int, descriptor: FaceDescriptor, *, created_at: datetime) -> int:
        ref = FaceReference(
            reference_id=next(self._ids),
            employee_id=employee_id,
            descriptor=descriptor,
            is_active=True,
            created_at=created_at,
        )
        self.added.append(ref)
        return ref.reference_id

    def deactivate_all(self, employee_id: int) -> int:
        count = len(self.list_active(employee_id))
        self.deactivated.add(employee_id)
        self.added = [replace(r, is_active=False) if r.employee_id == employee_id else r for r in self.added]
        return count


class InMemoryEvents:
    def __init__(self, committed: list[AttendanceEvent], ids: itertools.count):
        self._committed = committed
        self._ids = ids
        self.added: list[AttendanceEvent] = []

    def get_for_day(self, employee_id: int, work_date: date, event_type: EventType) -> Optional[AttendanceEvent]:
        for event in self._committed + self.added:
            if (event.employee_id, event.work_date, event.event_type) == (employee_id, work_date, event_type):
                return event
        return None

    def add(self, event: AttendanceEvent) -> int:
        if self.get_for_day(event.employee_id, event.work_date, event.event_type) is not None:
            raise DuplicateEvent("Event already exists for that day")
        event_id = next(self._ids)
        self.added.append(replace(event, event_id=event_id))
        return event_id


class InMemoryAudit:
    def __init__(self):
        self.added: list[AuditRecord] = []

    def append(self, record: AuditRecord) -> int:
        self.added.append(record)
        return len(self.added)


class InMemoryAttendanceStore:
    """AttendanceStore double: per-employee lock, staged writes, commit on success."""

    def __init__(self, *, policy: AttendancePolicy):
        self.policy = policy
        self.employees: dict[int, Employee] = {}
        self.schedules: dict[int, WorkSchedule] = {}
        self.faces: list[FaceReference] = []
        self.events: list[AttendanceEvent] = []
        self.audit: list[AuditRecord] = []
        self.closed = False
        self.fail_policy_with: Optional[Exception] = None
        self._ids = itertools.count(1)
        self._commit_lock = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, employee_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(employee_id, threading.Lock())

    @contextmanager
    def employee_scope(self, employee_id: int):
        lock = self._lock_for(employee_id)
        with lock:
            employees = InMemoryEmployees(self.employees)
            faces = InMemoryFaces(self.faces, self._ids)
            events = InMemoryEvents(self.events, self._ids)
            audit = InMemoryAudit()
            yield EmployeeScope(
                employee_id=employee_id,
                employee=self.employees.get(employee_id),
                employees=employees,
                schedules=InMemorySchedules(self.schedules),
                faces=faces,
                events=events,
                audit=audit,
            )
            # Only reached when the block did not raise.
            with self._commit_lock:
                self.employees.update(employees.staged)
                if faces.deactivated:
                    self.faces[:] = [
                        replace(r, is_active=False) if r.employee_id in faces.deactivated else r for r in self.faces
                    ]
                self.faces.extend(faces.added)
                self.events.extend(events.added)
                self.audit.extend(audit.added)

    def load_policy(self) -> AttendancePolicy:
        if self.fail_policy_with is not None:
            raise self.fail_policy_with
        return self.policy

    def record_audit(self, record: AuditRecord) -> None:
        with self._commit_lock:
            self.audit.append(record)

    def close(self) -> None:
        self.closed = True

    def events_for(self, employee_id: int) -> list[AttendanceEvent]:
        return [e for e in self.events if e.employee_id == employee_id]

    def audit_actions(self, employee_id: Optional[int] = None) -> list[str]:
        return [a.action.value for a in self.audit if employee_id is None or a.employee_id == employee_id]


def make_policy(auth_mode: AuthMode = AuthMode.FACE_AND_PIN, **pin_overrides) -> AttendancePolicy:
    return AttendancePolicy(
        office=OfficeLocation(
            latitude=OFFICE_LAT,
            longitude=OFFICE_LON,
            radius_meters=50.0,
            auth_mode=auth_mode,
            pin_policy=PinPolicy(**pin_overrides),
        )
    )


@pytest.fixture
def tz():
    return TZ


@pytest.fixture(scope="session")
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (16, 16), color=(200, 180, 160)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def store() -> InMemoryAttendanceStore:
    s = InMemoryAttendanceStore(policy=make_policy())
    s.schedules[1] = morning_shift()
    s.employees[1] = Employee(
        employee_id=1,
        employee_number="EMP-0001",
        full_name="Sari Dewi",
        pin_hash=generate_password_hash(EMPLOYEE_PIN),
        work_schedule_id=1,
    )
    s.employees[2] = Employee(
        employee_id=2,
        employee_number="EMP-0002",
        full_name="Budi Santoso",
        pin_hash=generate_password_hash("654321"),
        work_schedule_id=1,
    )
    s.faces.append(FaceReference(reference_id=1001, employee_id=1, descriptor=REFERENCE_DESCRIPTOR))
    s.faces.append(FaceReference(reference_id=1002, employee_id=2, descriptor=REFERENCE_DESCRIPTOR))
    return s


@pytest.fixture
def detector() -> FakeDetector:
    return FakeDetector([face_like()])


@pytest.fixture
def gateway(detector):
    g = DetectionGateway(detector, timeout=2.0, max_workers=2)
    yield g
    g.close()


@pytest.fixture
def composer(store, gateway) -> AttendanceDecisionComposer:
    return AttendanceDecisionComposer(store, gateway, tz=TZ)
