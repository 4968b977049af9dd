from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..attendance.store import AttendanceStore, EmployeeScope
from ..audit.model import AuditRecord
from ..audit.repository import AuditRepository
from ..common.datetime_utils import now_local, to_org_local
from ..common.validators import require_pin_format, require_positive_id
from ..core.enums import AuditAction, AuditKind, EventType, PinStatus, ReasonCode
from ..core.exceptions import Conflict, NotAuthorized, NotFound, PinNotSet
from ..policy.model import PinPolicy
from .model import Employee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PinResult:
    status: PinStatus
    remaining_attempts: Optional[int] = None
    remaining_seconds: Optional[int] = None
    locked_until: Optional[datetime] = None

    @property
    def verified(self) -> bool:
        return self.status == PinStatus.VERIFIED

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "verified": self.verified,
            "remaining_attempts": self.remaining_attempts,
            "remaining_seconds": self.remaining_seconds,
            "locked_until": self.locked_until.isoformat() if self.locked_until else None,
        }


def _pin_matches(pin_hash: str, supplied_pin: str) -> bool:
    try:
        return check_password_hash(pin_hash, supplied_pin)
    except ValueError:
        # Corrupted stored hash: never matches.
        logger.warning("Stored PIN hash could not be parsed")
        return False


class PinVerifier:
    """PIN check with an attempt counter and a timed lockout.

    States per employee: ``Unlocked(attempts)`` and ``Locked(until)``. A lock
    whose time has passed counts as ``Unlocked(0)``. Must be called inside
    the employee scope so the read-modify-write of the counter is atomic.
    """

    def verify(
        self,
        employee: Employee,
        supplied_pin: str,
        now: datetime,
        *,
        policy: PinPolicy,
        employees: EmployeeRepository,
        audit: AuditRepository,
        event_type: Optional[EventType] = None,
    ) -> PinResult:
        def record(action: AuditAction, **detail) -> None:
            audit.append(
                AuditRecord(
                    employee_id=employee.employee_id,
                    kind=AuditKind.PIN,
                    action=action,
                    created_at=now,
                    event_type=event_type,
                    detail=detail,
                )
            )

        locked_until = employee.pin_locked_until
        if locked_until is not None and locked_until > now:
            remaining = max(1, int((locked_until - now).total_seconds()))
            record(AuditAction.PIN_BLOCKED, remaining_seconds=remaining)
            return PinResult(status=PinStatus.LOCKED, remaining_seconds=remaining, locked_until=locked_until)

        if not employee.pin_hash:
            raise PinNotSet("PIN has not been set for this employee")

        attempts = employee.pin_attempts if locked_until is None else 0

        if _pin_matches(employee.pin_hash, supplied_pin or ""):
            employees.update_pin_state(employee.employee_id, attempts=0, locked_until=None)
            record(AuditAction.PIN_VERIFY_SUCCESS)
            return PinResult(status=PinStatus.VERIFIED)

        attempts += 1
        max_attempts = max(1, int(policy.max_attempts))
        if attempts >= max_attempts:
            until = now + timedelta(minutes=int(policy.lockout_minutes))
            employees.update_pin_state(employee.employee_id, attempts=attempts, locked_until=until)
            record(AuditAction.PIN_LOCKED, attempts=attempts, locked_until=until.isoformat())
            logger.warning(
                "PIN locked for employee %s until %s after %d failed attempts",
                employee.employee_id,
                until.isoformat(),
                attempts,
            )
            # The attempt that triggers the lock is still reported as a wrong PIN.
            return PinResult(
                status=PinStatus.NOT_VERIFIED,
                remaining_attempts=0,
                remaining_seconds=int(policy.lockout_minutes) * 60,
                locked_until=until,
            )

        employees.update_pin_state(employee.employee_id, attempts=attempts, locked_until=None)
        record(AuditAction.PIN_VERIFY_FAILED, attempts=attempts)
        return PinResult(status=PinStatus.NOT_VERIFIED, remaining_attempts=max_attempts - attempts)


def require_active(scope: EmployeeScope) -> Employee:
    employee = scope.employee
    if employee is None:
        raise NotFound(f"Employee {scope.employee_id} does not exist")
    if not employee.is_active:
        raise NotAuthorized("Employee account is inactive", reason=ReasonCode.EMPLOYEE_INACTIVE)
    return employee


class PinService:
    """Use case: verify / set / change an employee PIN outside of attendance."""

    def __init__(self, store: AttendanceStore, *, tz: tzinfo, verifier: Optional[PinVerifier] = None):
        self._store = store
        self._tz = tz
        self._verifier = verifier or PinVerifier()

    def _now(self, now: Optional[datetime]) -> datetime:
        return to_org_local(now, self._tz) if now is not None else now_local(self._tz)

    def verify_pin(self, employee_id: int, pin: str, now: Optional[datetime] = None) -> PinResult:
        employee_id = require_positive_id(employee_id, "employee_id")
        now = self._now(now)
        policy = self._store.load_policy().office.pin_policy
        with self._store.employee_scope(employee_id) as scope:
            employee = require_active(scope)
            return self._verifier.verify(
                employee,
                "" if pin is None else str(pin),
                now,
                policy=policy,
                employees=scope.employees,
                audit=scope.audit,
            )

    def set_pin(self, employee_id: int, pin: str, now: Optional[datetime] = None) -> None:
        """First-time PIN (account activation). Refuses to overwrite an existing PIN."""

        employee_id = require_positive_id(employee_id, "employee_id")
        pin = require_pin_format(pin)
        now = self._now(now)
        with self._store.employee_scope(employee_id) as scope:
            employee = require_active(scope)
            if employee.has_pin:
                raise Conflict("PIN is already set; use change PIN instead", reason=ReasonCode.PIN_ALREADY_SET)
            scope.employees.set_pin_hash(employee_id, generate_password_hash(pin))
            scope.audit.append(
                AuditRecord(employee_id=employee_id, kind=AuditKind.PIN, action=AuditAction.PIN_SET, created_at=now)
            )
        logger.info("PIN set for employee %s", employee_id)

    def change_pin(
        self,
        employee_id: int,
        current_pin: str,
        new_pin: str,
        now: Optional[datetime] = None,
    ) -> PinResult:
        """Change the PIN after proving the current one.

        The current PIN goes through the same lockout machine as any other
        attempt; the returned result tells whether the change happened.
        """

        employee_id = require_positive_id(employee_id, "employee_id")
        new_pin = require_pin_format(new_pin, "New PIN")
        now = self._now(now)
        policy = self._store.load_policy().office.pin_policy
        with self._store.employee_scope(employee_id) as scope:
            employee = require_active(scope)
            result = self._verifier.verify(
                employee,
                "" if current_pin is None else str(current_pin),
                now,
                policy=policy,
                employees=scope.employees,
                audit=scope.audit,
            )
            if not result.verified:
                return result
            scope.employees.set_pin_hash(employee_id, generate_password_hash(new_pin))
            scope.audit.append(
                AuditRecord(employee_id=employee_id, kind=AuditKind.PIN, action=AuditAction.PIN_CHANGED, created_at=now)
            )
        logger.info("PIN changed for employee %s", employee_id)
        return result
