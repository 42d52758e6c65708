from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
import requests

from faceauth_station.core.enums import LivenessAction
from faceauth_station.core.exceptions import GatewayError
from faceauth_station.users.model import User
from faceauth_station.verification.gemini_client import (
    GeminiClient,
    GeminiVerifier,
    describe_gateway_error,
    parse_verification,
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, reason="OK"):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posts = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.posts.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _model_answer(data) -> dict:
    text = data if isinstance(data, str) else json.dumps(data)
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _users(n: int) -> list[User]:
    return [
        User(
            user_id=f"U{i}",
            employee_id=f"E{i}",
            name=f"User {i}",
            department="",
            face_image=f"data:image/jpeg;base64,FACE{i}",
            registered_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        for i in range(n)
    ]


def _verifier(session, *, api_key="test-key", max_candidates=40) -> GeminiVerifier:
    client = GeminiClient(api_key, model="gemini-test", base_url="https://ai.example/v1beta", session=session)
    return GeminiVerifier(client, max_candidates=max_candidates, compress=lambda image, width, quality: image)


def test_request_carries_key_schema_and_images():
    session = FakeSession(FakeResponse(payload=_model_answer({"match": False, "confidence": 0.1})))
    verifier = _verifier(session)

    verifier.verify("data:image/jpeg;base64,LIVE", _users(2), LivenessAction.SMILE)

    [post] = session.posts
    assert post["url"] == "https://ai.example/v1beta/models/gemini-test:generateContent"
    assert post["headers"] == {"x-goog-api-key": "test-key"}
    body = post["json"]
    assert body["generationConfig"]["responseMimeType"] == "application/json"
    parts = body["contents"][0]["parts"]
    assert [p["inline_data"]["data"] for p in parts[:3]] == ["LIVE", "FACE0", "FACE1"]
    assert "Smile widely" in parts[-1]["text"]


def test_matched_index_maps_to_user_id():
    answer = {
        "match": True,
        "matchedUserIndex": 1,
        "confidence": 0.93,
        "livenessConfirmed": True,
        "spoofDetected": False,
        "reason": "Same person",
    }
    verifier = _verifier(FakeSession(FakeResponse(payload=_model_answer(answer))))

    result = verifier.verify("live", _users(3), LivenessAction.BLINK)

    assert result.user_id == "U1"
    assert result.passed
    assert result.confidence == pytest.approx(0.93)


@pytest.mark.parametrize("index", [-1, 5, None, "0"])
def test_unusable_index_means_no_user(index):
    result = parse_verification({"match": True, "matchedUserIndex": index, "confidence": 0.9}, _users(2))

    assert result.user_id is None
    assert not result.passed


def test_confidence_is_clamped():
    assert parse_verification({"confidence": 3}, _users(1)).confidence == 1.0
    assert parse_verification({"confidence": -2}, _users(1)).confidence == 0.0


def test_bad_confidence_is_a_gateway_error():
    with pytest.raises(GatewayError):
        parse_verification({"confidence": "very"}, _users(1))


def test_missing_api_key_short_circuits():
    session = FakeSession()
    verifier = _verifier(session, api_key="  ")

    result = verifier.verify("live", _users(1), LivenessAction.BLINK)

    assert result.reason == "System Error: API key is missing."
    assert result.match is False
    assert session.posts == []
    assert verifier.validate("img").reason == "API key is missing."


def test_no_registered_users_short_circuits():
    session = FakeSession()

    result = _verifier(session).verify("live", [], LivenessAction.BLINK)

    assert result.reason == "No users registered in the database."
    assert session.posts == []


def test_candidates_beyond_cap_are_not_sent(caplog):
    session = FakeSession(FakeResponse(payload=_model_answer({"match": True, "matchedUserIndex": 2, "confidence": 0.9})))
    verifier = _verifier(session, max_candidates=2)

    with caplog.at_level("WARNING"):
        result = verifier.verify("live", _users(5), LivenessAction.BLINK)

    parts = session.posts[0]["json"]["contents"][0]["parts"]
    assert len(parts) == 1 + 2 + 1
    assert result.user_id is None
    assert "truncated" in caplog.text


@pytest.mark.parametrize(
    "status, expected",
    [
        (403, "API key invalid or expired (403)."),
        (503, "AI service unavailable (503). Try again."),
        (400, "Request too large (400). Try clearing some users."),
        (429, "AI service quota exceeded (429). Try again later."),
    ],
)
def test_http_errors_become_friendly_failures(status, expected):
    session = FakeSession(FakeResponse(status, {"error": {"message": "nope"}}, reason="Bad"))

    result = _verifier(session).verify("live", _users(1), LivenessAction.BLINK)

    assert result.match is False
    assert result.reason == f"Verification Error: {expected}"


def test_non_json_model_text_is_reported():
    session = FakeSession(FakeResponse(payload=_model_answer("I think it's a match")))

    result = _verifier(session).verify("live", _users(1), LivenessAction.BLINK)

    assert result.reason == "Verification Error: Invalid JSON response from AI"


def test_empty_candidates_list_in_envelope():
    session = FakeSession(FakeResponse(payload={"candidates": []}))

    result = _verifier(session).verify("live", _users(1), LivenessAction.BLINK)

    assert result.reason == "Verification Error: No response text from model"


def test_network_error_is_a_failure_not_an_exception():
    session = FakeSession(error=requests.ConnectionError("refused"))

    result = _verifier(session).verify("live", _users(1), LivenessAction.BLINK)

    assert result.match is False
    assert result.reason.startswith("Verification Error: Network error")


def test_validate_reads_valid_and_reason():
    session = FakeSession(FakeResponse(payload=_model_answer({"valid": False, "reason": "Sunglasses"})))

    validation = _verifier(session).validate("img")

    assert validation.valid is False
    assert validation.reason == "Sunglasses"


def test_validate_gateway_error_is_rejection():
    session = FakeSession(FakeResponse(401, {}, reason="Unauthorized"))

    validation = _verifier(session).validate("img")

    assert validation.valid is False
    assert validation.reason == "Validation Error: API key invalid or expired (401)."


def test_describe_unknown_status_falls_back_to_message():
    assert describe_gateway_error(GatewayError("odd", status_code=418)) == "odd"
    assert describe_gateway_error(GatewayError("offline")) == "offline"
