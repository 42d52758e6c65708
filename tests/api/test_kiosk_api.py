from __future__ import annotations

import pytest

from faceauth_station.container import build_container
from faceauth_station.main import create_app
from faceauth_station.verification.model import ImageValidation, VerificationResult


class MatchesLatestUser:
    """Claims every live capture is the most recently registered user."""

    def verify(self, image, candidates, challenge):
        if not candidates:
            return VerificationResult.failed("No users registered in the database.")
        return VerificationResult(
            match=True,
            user_id=candidates[-1].user_id,
            confidence=0.9,
            liveness_confirmed=True,
            spoof_detected=False,
            reason="Same person",
        )


class AcceptsEverything:
    def validate(self, image):
        return ImageValidation(valid=True)


@pytest.fixture
def app(monkeypatch, ledger):
    monkeypatch.setenv("APP_ENV", "testing")
    container = build_container(
        settings={"STORAGE_BACKEND": "memory"},
        ledger=ledger,
        verifier=MatchesLatestUser(),
        validator=AcceptsEverything(),
    )
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()


def _register(client, image, name="Alice", employee_id="E-1"):
    client.post("/api/registration/start")
    client.post("/api/registration/form", json={"name": name, "employee_id": employee_id, "department": "Ops"})
    client.post("/api/registration/capture", json={"image": image})
    return client.post("/api/registration/confirm")


def _punch(client, image, punch_type):
    client.post("/api/attendance/cancel")
    client.post("/api/attendance/mode", json={"punch_type": punch_type})
    client.post("/api/attendance/challenge/accept")
    return client.post("/api/attendance/capture", json={"image": image})


def test_health(client):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "status": "ok"}


def test_testing_settings_are_loaded(app):
    assert app.config["TESTING"] is True
    assert app.config["SETTINGS_MODULE"] == "faceauth_station.config.testing"


def test_register_then_check_in_and_out(client, face_image):
    resp = _register(client, face_image)
    assert resp.get_json()["message"] == "Registered Alice"

    users = client.get("/api/history/users").get_json()["users"]
    assert len(users) == 1
    assert "faceImage" not in users[0]

    resp = _punch(client, face_image, "in")
    body = resp.get_json()
    assert body["state"]["step"] == "SUCCESS"
    assert body["message"] == "Checked in: Alice"

    resp = _punch(client, face_image, "OUT")
    assert resp.get_json()["message"] == "Checked out: Alice"

    records = client.get("/api/history/records").get_json()["records"]
    assert [r["type"] for r in records] == ["OUT", "IN"]
    assert records[0]["label"] == "Checked out"
    assert records[0]["method"] == "face-biometric"


def test_second_check_in_is_reported_not_recorded(client, face_image):
    _register(client, face_image)
    _punch(client, face_image, "IN")

    body = _punch(client, face_image, "IN").get_json()

    assert body["state"]["step"] == "FAILURE"
    assert body["message"].startswith("Already checked in")
    assert body["state"]["previousTimestamp"] is not None
    assert len(client.get("/api/history/records").get_json()["records"]) == 1


def test_blank_form_field_is_shown_on_the_form(client):
    client.post("/api/registration/start")

    body = client.post("/api/registration/form", json={"name": "", "employee_id": "E-1"}).get_json()

    assert body["state"]["step"] == "FORM_ENTRY"
    assert body["message"] == "Name is required"


def test_out_of_order_event_is_409(client):
    resp = client.post("/api/attendance/challenge/accept")

    assert resp.status_code == 409
    assert resp.get_json()["success"] is False


@pytest.mark.parametrize("payload", [{"punch_type": "LUNCH"}, {}])
def test_bad_punch_type_is_400(client, payload):
    resp = client.post("/api/attendance/mode", json=payload)

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "punch_type must be IN or OUT"


def test_capture_rejects_non_image(client):
    client.post("/api/attendance/mode", json={"punch_type": "IN"})
    client.post("/api/attendance/challenge/accept")

    resp = client.post("/api/attendance/capture", json={"image": "data:image/png;base64,aGVsbG8="})

    assert resp.status_code == 400
    assert client.get("/api/attendance/state").get_json()["state"]["step"] == "CAPTURING"


def test_new_challenge_can_be_requested(client):
    client.post("/api/attendance/mode", json={"punch_type": "IN"})

    body = client.post("/api/attendance/challenge").get_json()

    assert body["state"]["step"] == "CHALLENGE_ISSUED"
    assert body["state"]["punchType"] == "IN"


def test_delete_unknown_user_is_404(client):
    resp = client.delete("/api/users/nope")

    assert resp.status_code == 404
    assert resp.get_json()["message"] == "User not found"


def test_delete_user_keeps_their_records(client, face_image):
    _register(client, face_image)
    _punch(client, face_image, "IN")
    user_id = client.get("/api/history/users").get_json()["users"][0]["id"]

    assert client.delete(f"/api/users/{user_id}").status_code == 200

    assert client.get("/api/history/users").get_json()["users"] == []
    assert len(client.get("/api/history/records").get_json()["records"]) == 1


def test_records_limit_must_be_numeric(client):
    assert client.get("/api/history/records?limit=abc").status_code == 400


def test_reset_clears_data_and_sessions(client, face_image):
    _register(client, face_image)
    _punch(client, face_image, "IN")
    client.post("/api/attendance/mode", json={"punch_type": "OUT"})

    resp = client.post("/api/history/reset")

    assert resp.status_code == 200
    assert client.get("/api/history/users").get_json()["users"] == []
    assert client.get("/api/history/records").get_json()["records"] == []
    assert client.get("/api/attendance/state").get_json()["state"]["step"] == "IDLE"


def test_numeric_employee_id_is_accepted(client):
    client.post("/api/registration/start")

    resp = client.post("/api/registration/form", json={"name": "Al", "employee_id": 1042})

    assert resp.status_code == 200
    assert resp.get_json()["state"]["form"]["employeeId"] == "1042"
