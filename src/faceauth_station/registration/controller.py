from __future__ import annotations

from flask import Flask

from ..common.images import require_image
from ..common.responses import json_body, json_errors, ok
from ..container import Container
from .workflow import FormEntry, PreviewPending, Registered


def register(app: Flask, container: Container) -> None:
    workflow = container.registration_workflow

    @app.get("/api/registration/state", endpoint="registration_state")
    @json_errors
    def registration_state():
        return ok(state=workflow.snapshot())

    @app.post("/api/registration/start", endpoint="registration_start")
    @json_errors
    def registration_start():
        return ok(state=workflow.start().to_dict())

    @app.post("/api/registration/form", endpoint="registration_form")
    @json_errors
    def registration_form():
        data = json_body()
        state = workflow.submit_form(data.get("name"), data.get("employee_id"), data.get("department"))
        if isinstance(state, FormEntry) and state.error:
            return ok(state=state.to_dict(), message=state.error)
        return ok(state=state.to_dict())

    @app.post("/api/registration/capture", endpoint="registration_capture")
    @json_errors
    def registration_capture():
        image = require_image(json_body().get("image") or "")
        return ok(state=workflow.on_image_captured(image).to_dict())

    @app.post("/api/registration/retake", endpoint="registration_retake")
    @json_errors
    def registration_retake():
        return ok(state=workflow.retake().to_dict())

    @app.post("/api/registration/confirm", endpoint="registration_confirm")
    @json_errors
    def registration_confirm():
        state = workflow.confirm_registration()
        if isinstance(state, Registered):
            return ok(state=state.to_dict(), message=f"Registered {state.user.name}")
        if isinstance(state, PreviewPending) and state.rejection:
            return ok(state=state.to_dict(), message=f"Image rejected: {state.rejection}. Please retake.")
        return ok(state=state.to_dict())

    @app.post("/api/registration/cancel", endpoint="registration_cancel")
    @json_errors
    def registration_cancel():
        return ok(state=workflow.cancel().to_dict())
