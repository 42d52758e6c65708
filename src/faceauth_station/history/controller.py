from __future__ import annotations

from flask import Flask, request

from ..common.responses import json_errors, ok
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.get("/api/history/records", endpoint="history_records")
    @json_errors
    def history_records():
        limit = request.args.get("limit")
        if limit is not None and not limit.isdigit():
            raise ValidationError("limit must be a non-negative integer")
        rows = container.history_service.list_records_ui(
            user_id=request.args.get("user_id") or None,
            limit=int(limit) if limit is not None else None,
        )
        return ok(records=rows)

    @app.get("/api/history/users", endpoint="history_users")
    @json_errors
    def history_users():
        return ok(users=container.user_service.list_admin_view())

    @app.delete("/api/users/<user_id>", endpoint="delete_user")
    @json_errors
    def delete_user(user_id: str):
        container.user_service.delete_user(user_id)
        return ok(message="User deleted")

    @app.post("/api/history/reset", endpoint="history_reset")
    @json_errors
    def history_reset():
        container.history_service.reset()
        container.attendance_workflow.cancel()
        container.registration_workflow.cancel()
        return ok(message="All data cleared")
