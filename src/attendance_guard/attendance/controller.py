from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Optional

from flask import Flask, jsonify, request

from ..core.enums import ErrorCategory, PinStatus, ReasonCode
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .model import Decision

logger = logging.getLogger(__name__)

HTTP_STATUS_BY_CATEGORY = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_AUTHORIZED: 403,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.TIMEOUT: 504,
    ErrorCategory.SYSTEM: 503,
    ErrorCategory.REST_DAY: 200,
}


def _payload() -> dict[str, Any]:
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def _photo_bytes(data: dict[str, Any]) -> Optional[bytes]:
    """Photo from a multipart ``photo`` file, or base64 in ``photo_base64``."""

    upload = request.files.get("photo")
    if upload is not None:
        return upload.read()
    encoded = data.get("photo_base64")
    if not encoded:
        return None
    if "," in encoded and encoded.startswith("data:"):
        encoded = encoded.split(",", 1)[1]
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("photo_base64 is not valid base64", reason=ReasonCode.INVALID_PHOTO) from None


def _decision_response(decision: Decision):
    if decision.accepted:
        return jsonify(decision.to_dict()), 201
    return jsonify(decision.to_dict()), HTTP_STATUS_BY_CATEGORY.get(decision.category, 400)


def register(app: Flask, container: Container) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = HTTP_STATUS_BY_CATEGORY.get(exc.category, 400)
        if status >= 500:
            logger.error("Request failed: %s", exc)
        body = {
            "accepted": False,
            "reason": exc.reason.value,
            "category": exc.category.value if exc.category else None,
            "message": str(exc),
            "retryable": exc.retryable,
        }
        return jsonify(body), status

    def _submit(submit):
        data = _payload()
        decision = submit(
            data.get("employee_id"),
            _photo_bytes(data),
            data.get("pin"),
            data.get("latitude"),
            data.get("longitude"),
        )
        return _decision_response(decision)

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="clock_in")
    def clock_in():
        return _submit(container.attendance_composer.submit_clock_in)

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="clock_out")
    def clock_out():
        return _submit(container.attendance_composer.submit_clock_out)

    @app.route("/api/attendance/today/<employee_id>", methods=["GET"], endpoint="today_status")
    def today_status(employee_id: str):
        status = container.attendance_composer.today_status(employee_id)
        return jsonify(status.to_dict())

    @app.route("/api/pin/verify", methods=["POST"], endpoint="pin_verify")
    def pin_verify():
        data = _payload()
        result = container.pin_service.verify_pin(data.get("employee_id"), data.get("pin"))
        body = result.to_dict()
        if result.verified:
            return jsonify(body), 200
        reason = ReasonCode.PIN_LOCKED if result.status == PinStatus.LOCKED else ReasonCode.PIN_INCORRECT
        body.update(reason=reason.value, category=reason.category.value)
        return jsonify(body), HTTP_STATUS_BY_CATEGORY[reason.category]

    @app.route("/api/pin/set", methods=["POST"], endpoint="pin_set")
    def pin_set():
        data = _payload()
        container.pin_service.set_pin(data.get("employee_id"), data.get("pin"))
        return jsonify({"ok": True}), 201

    @app.route("/api/pin/change", methods=["POST"], endpoint="pin_change")
    def pin_change():
        data = _payload()
        result = container.pin_service.change_pin(
            data.get("employee_id"),
            data.get("current_pin"),
            data.get("new_pin"),
        )
        body = result.to_dict()
        if result.verified:
            body["ok"] = True
            return jsonify(body), 200
        reason = ReasonCode.PIN_LOCKED if result.status == PinStatus.LOCKED else ReasonCode.PIN_INCORRECT
        body.update(ok=False, reason=reason.value, category=reason.category.value)
        return jsonify(body), HTTP_STATUS_BY_CATEGORY[reason.category]

    @app.route("/api/faces/enroll", methods=["POST"], endpoint="face_enroll")
    def face_enroll():
        data = _payload()
        result = container.face_enrollment_service.enroll(data.get("employee_id"), _photo_bytes(data))
        return jsonify(result.to_dict()), 201

    @app.route("/api/faces/reset/<employee_id>", methods=["POST"], endpoint="face_reset")
    def face_reset(employee_id: str):
        deactivated = container.face_enrollment_service.reset(employee_id)
        return jsonify({"ok": True, "deactivated": deactivated})
