from dataclasses import replace
from datetime import timedelta

import pytest
from werkzeug.security import check_password_hash

from attendance_guard.core.enums import AuditAction, PinStatus, ReasonCode
from attendance_guard.core.exceptions import Conflict, NotAuthorized, PinNotSet, ValidationError
from attendance_guard.employees.pin import PinService

from conftest import EMPLOYEE_PIN, MONDAY, TZ, at_local


@pytest.fixture
def pins(store):
    return PinService(store, tz=TZ)


def test_correct_pin_verifies_and_resets_counter(pins, store):
    now = at_local(MONDAY, 8, 0)
    pins.verify_pin(1, "000000", now)

    result = pins.verify_pin(1, EMPLOYEE_PIN, now)

    assert result.verified
    assert store.employees[1].pin_attempts == 0
    assert store.audit_actions(1) == [
        AuditAction.PIN_VERIFY_FAILED.value,
        AuditAction.PIN_VERIFY_SUCCESS.value,
    ]


def test_third_wrong_attempt_locks_but_reports_wrong_pin(pins, store):
    now = at_local(MONDAY, 8, 0)

    first = pins.verify_pin(1, "000000", now)
    second = pins.verify_pin(1, "111111", now)
    third = pins.verify_pin(1, "222222", now)

    assert (first.status, first.remaining_attempts) == (PinStatus.NOT_VERIFIED, 2)
    assert (second.status, second.remaining_attempts) == (PinStatus.NOT_VERIFIED, 1)
    assert third.status == PinStatus.NOT_VERIFIED
    assert third.remaining_attempts == 0
    assert third.remaining_seconds == 30 * 60
    assert third.locked_until == now + timedelta(minutes=30)
    assert store.audit_actions(1)[-1] == AuditAction.PIN_LOCKED.value
    assert store.employees[1].pin_locked_until == now + timedelta(minutes=30)


def test_locked_employee_is_refused_even_with_correct_pin(pins, store):
    now = at_local(MONDAY, 8, 0)
    for _ in range(3):
        pins.verify_pin(1, "000000", now)

    result = pins.verify_pin(1, EMPLOYEE_PIN, now + timedelta(minutes=10))

    assert result.status == PinStatus.LOCKED
    assert result.remaining_seconds == 20 * 60
    assert store.audit_actions(1)[-1] == AuditAction.PIN_BLOCKED.value


def test_expired_lock_starts_fresh(pins, store):
    now = at_local(MONDAY, 8, 0)
    for _ in range(3):
        pins.verify_pin(1, "000000", now)

    later = now + timedelta(minutes=31)
    wrong = pins.verify_pin(1, "000000", later)

    assert wrong.status == PinStatus.NOT_VERIFIED
    assert wrong.remaining_attempts == 2
    assert pins.verify_pin(1, EMPLOYEE_PIN, later).verified
    assert store.employees[1].pin_locked_until is None


def test_lockout_is_per_employee(pins):
    now = at_local(MONDAY, 8, 0)
    for _ in range(3):
        pins.verify_pin(1, "000000", now)

    assert pins.verify_pin(2, "654321", now).verified


def test_malformed_pin_counts_as_wrong_attempt(pins):
    result = pins.verify_pin(1, "12ab", at_local(MONDAY, 8, 0))

    assert result.status == PinStatus.NOT_VERIFIED
    assert result.remaining_attempts == 2


def test_verify_without_pin_set(pins, store):
    store.employees[2] = replace(store.employees[2], pin_hash=None)
    with pytest.raises(PinNotSet):
        pins.verify_pin(2, "654321")


def test_inactive_employee_cannot_verify(pins, store):
    store.employees[1] = replace(store.employees[1], is_active=False)
    with pytest.raises(NotAuthorized) as info:
        pins.verify_pin(1, EMPLOYEE_PIN)
    assert info.value.reason == ReasonCode.EMPLOYEE_INACTIVE


def test_set_pin_refuses_overwrite(pins):
    with pytest.raises(Conflict) as info:
        pins.set_pin(1, "999999")
    assert info.value.reason == ReasonCode.PIN_ALREADY_SET


def test_set_pin_for_new_employee(pins, store):
    store.employees[2] = replace(store.employees[2], pin_hash=None)
    pins.set_pin(2, "246810", at_local(MONDAY, 8, 0))

    assert check_password_hash(store.employees[2].pin_hash, "246810")
    assert store.audit_actions(2) == [AuditAction.PIN_SET.value]


@pytest.mark.parametrize("bad_pin", ["12345", "1234567", "12a456", "", None])
def test_set_pin_validates_format(pins, store, bad_pin):
    store.employees[2] = replace(store.employees[2], pin_hash=None)
    with pytest.raises(ValidationError):
        pins.set_pin(2, bad_pin)


def test_change_pin(pins, store):
    now = at_local(MONDAY, 8, 0)

    result = pins.change_pin(1, EMPLOYEE_PIN, "135790", now)

    assert result.verified
    assert check_password_hash(store.employees[1].pin_hash, "135790")
    assert store.audit_actions(1)[-1] == AuditAction.PIN_CHANGED.value


def test_change_pin_with_wrong_current_pin_keeps_old_hash(pins, store):
    old_hash = store.employees[1].pin_hash

    result = pins.change_pin(1, "000000", "135790", at_local(MONDAY, 8, 0))

    assert result.status == PinStatus.NOT_VERIFIED
    assert store.employees[1].pin_hash == old_hash
    assert store.employees[1].pin_attempts == 1
