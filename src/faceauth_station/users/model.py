from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..common.datetime_utils import parse_iso, to_iso


@dataclass(frozen=True)
class User:
    """Domain entity: a registered person.

    Note: Plain data object (no storage code). ``employee_id`` is the upsert key,
    ``user_id`` is the internal reference used by attendance records.
    """

    user_id: str
    employee_id: str
    name: str
    department: str
    face_image: str
    registered_at: datetime

    def to_dict(self, *, include_image: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.user_id,
            "employeeId": self.employee_id,
            "name": self.name,
            "department": self.department,
            "registeredAt": to_iso(self.registered_at),
        }
        if include_image:
            data["faceImage"] = self.face_image
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            user_id=str(data["id"]),
            employee_id=str(data["employeeId"]),
            name=str(data["name"]),
            department=str(data.get("department") or ""),
            face_image=str(data.get("faceImage") or ""),
            registered_at=parse_iso(str(data["registeredAt"])),
        )
