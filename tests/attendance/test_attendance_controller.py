import base64
import io
from datetime import time

import pytest

from attendance_guard.container import build_services
from attendance_guard.main import create_app

from conftest import EMPLOYEE_PIN, OFFICE_LAT, OFFICE_LON, TZ, FakeDetector, face_like, morning_shift

ALL_DAY = dict(
    start_time=time(0, 0),
    end_time=time(23, 59),
    clock_in_start=time(0, 0),
    clock_in_end=time(23, 59, 59),
    clock_out_start=time(0, 0),
    clock_out_end=time(23, 59, 59),
    work_days=frozenset(range(7)),
    break_start=None,
    break_end=None,
)


@pytest.fixture
def container(store):
    # The HTTP layer always uses the real clock, so every day is a work day with open windows.
    store.schedules[1] = morning_shift(**ALL_DAY)
    c = build_services(store=store, detector=FakeDetector([face_like()]), tz=TZ, max_photo_bytes=1024 * 1024)
    yield c
    c.detection.close()


@pytest.fixture
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=container)
    app.config["TESTING"] = True
    return app.test_client()


def _clock_in_form(png_bytes, **overrides):
    data = {
        "employee_id": "1",
        "pin": EMPLOYEE_PIN,
        "latitude": str(OFFICE_LAT),
        "longitude": str(OFFICE_LON),
        "photo": (io.BytesIO(png_bytes), "selfie.png"),
    }
    data.update(overrides)
    return data


def test_clock_in_multipart_created(client, store, png_bytes):
    resp = client.post(
        "/api/attendance/clock-in", data=_clock_in_form(png_bytes), content_type="multipart/form-data"
    )

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["accepted"] is True
    assert body["reason"] == "accepted"
    assert body["event_id"] == store.events_for(1)[0].event_id


def test_clock_in_json_with_base64_photo(client, png_bytes):
    photo = "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
    resp = client.post(
        "/api/attendance/clock-in",
        json={
            "employee_id": 1,
            "pin": EMPLOYEE_PIN,
            "latitude": OFFICE_LAT,
            "longitude": OFFICE_LON,
            "photo_base64": photo,
        },
    )

    assert resp.status_code == 201


def test_duplicate_clock_in_is_conflict(client, png_bytes):
    client.post("/api/attendance/clock-in", data=_clock_in_form(png_bytes), content_type="multipart/form-data")
    resp = client.post(
        "/api/attendance/clock-in", data=_clock_in_form(png_bytes), content_type="multipart/form-data"
    )

    assert resp.status_code == 409
    assert resp.get_json()["reason"] == "duplicate_event"
    assert resp.get_json()["retryable"] is False


def test_out_of_range_is_forbidden(client, png_bytes):
    resp = client.post(
        "/api/attendance/clock-in",
        data=_clock_in_form(png_bytes, latitude=str(OFFICE_LAT + 0.01)),
        content_type="multipart/form-data",
    )

    assert resp.status_code == 403
    assert resp.get_json()["reason"] == "out_of_range"


def test_rest_day_is_not_an_error(client, store, png_bytes):
    store.schedules[1] = morning_shift(**{**ALL_DAY, "work_days": frozenset()})

    resp = client.post(
        "/api/attendance/clock-in", data=_clock_in_form(png_bytes), content_type="multipart/form-data"
    )

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["accepted"] is False
    assert body["category"] == "rest_day"


def test_bad_employee_id(client, png_bytes):
    resp = client.post(
        "/api/attendance/clock-in",
        data=_clock_in_form(png_bytes, employee_id="x"),
        content_type="multipart/form-data",
    )

    assert resp.status_code == 400


def test_invalid_base64_photo(client):
    resp = client.post("/api/faces/enroll", json={"employee_id": 1, "photo_base64": "%%%"})

    assert resp.status_code == 400
    assert resp.get_json()["reason"] == "invalid_photo"


def test_today_status(client, png_bytes):
    client.post("/api/attendance/clock-in", data=_clock_in_form(png_bytes), content_type="multipart/form-data")

    resp = client.get("/api/attendance/today/1")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["clock_in_at"] is not None
    assert body["clock_out_at"] is None


def test_today_status_unknown_employee(client):
    resp = client.get("/api/attendance/today/77")

    assert resp.status_code == 404
    assert resp.get_json()["reason"] == "employee_not_found"


def test_pin_verify_wrong_pin(client):
    resp = client.post("/api/pin/verify", json={"employee_id": 1, "pin": "000000"})

    assert resp.status_code == 403
    body = resp.get_json()
    assert body["reason"] == "pin_incorrect"
    assert body["remaining_attempts"] == 2


def test_pin_set_conflict(client):
    resp = client.post("/api/pin/set", json={"employee_id": 1, "pin": "111111"})

    assert resp.status_code == 409
    assert resp.get_json()["reason"] == "pin_already_set"


def test_pin_change(client):
    resp = client.post(
        "/api/pin/change", json={"employee_id": 1, "current_pin": EMPLOYEE_PIN, "new_pin": "112233"}
    )

    assert resp.status_code == 200
    assert resp.get_json()["ok"] is True
    assert client.post("/api/pin/verify", json={"employee_id": 1, "pin": "112233"}).status_code == 200


def test_face_enroll_and_reset(client, png_bytes):
    resp = client.post(
        "/api/faces/enroll",
        data={"employee_id": "2", "photo": (io.BytesIO(png_bytes), "face.png")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 201
    assert resp.get_json()["deactivated"] == 1

    reset = client.post("/api/faces/reset/2")
    assert reset.status_code == 200
    assert reset.get_json()["deactivated"] == 1
