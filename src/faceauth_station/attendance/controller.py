from __future__ import annotations

from flask import Flask

from ..common.images import require_image
from ..common.responses import json_body, json_errors, ok
from ..container import Container
from ..core.enums import PunchType
from ..core.exceptions import ValidationError
from .workflow import Failure, Success


def _parse_punch_type(value) -> PunchType:
    try:
        return PunchType(str(value or "").strip().upper())
    except ValueError as exc:
        raise ValidationError("punch_type must be IN or OUT") from exc


def register(app: Flask, container: Container) -> None:
    workflow = container.attendance_workflow

    @app.get("/api/attendance/state", endpoint="attendance_state")
    @json_errors
    def attendance_state():
        return ok(state=workflow.snapshot())

    @app.post("/api/attendance/mode", endpoint="attendance_mode")
    @json_errors
    def attendance_mode():
        punch_type = _parse_punch_type(json_body().get("punch_type"))
        return ok(state=workflow.select_mode(punch_type).to_dict())

    @app.post("/api/attendance/challenge", endpoint="attendance_challenge")
    @json_errors
    def attendance_challenge():
        return ok(state=workflow.issue_challenge().to_dict())

    @app.post("/api/attendance/challenge/accept", endpoint="attendance_accept")
    @json_errors
    def attendance_accept():
        return ok(state=workflow.accept_challenge().to_dict())

    @app.post("/api/attendance/capture", endpoint="attendance_capture")
    @json_errors
    def attendance_capture():
        image = require_image(json_body().get("image") or "")
        state = workflow.on_image_captured(image)
        if isinstance(state, Success):
            verb = "Checked in" if state.punch_type == PunchType.IN else "Checked out"
            return ok(state=state.to_dict(), message=f"{verb}: {state.record.user_name}")
        if isinstance(state, Failure):
            return ok(state=state.to_dict(), message=state.reason)
        # Session was cancelled while the verifier was running.
        return ok(state=state.to_dict(), message="Session ended before verification finished")

    @app.post("/api/attendance/retry", endpoint="attendance_retry")
    @json_errors
    def attendance_retry():
        return ok(state=workflow.retry().to_dict())

    @app.post("/api/attendance/cancel", endpoint="attendance_cancel")
    @json_errors
    def attendance_cancel():
        return ok(state=workflow.cancel().to_dict())
