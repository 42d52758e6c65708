from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..common.datetime_utils import parse_iso, to_iso
from ..core.constants import VERIFICATION_METHOD
from ..core.enums import PunchType


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one punch event. Never mutated once written."""

    record_id: str
    user_id: str
    user_name: str
    timestamp: datetime
    punch_type: PunchType
    confidence: float
    method: str = VERIFICATION_METHOD

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.record_id,
            "userId": self.user_id,
            "userName": self.user_name,
            "timestamp": to_iso(self.timestamp),
            "type": self.punch_type.value,
            "verificationConfidence": self.confidence,
            "method": self.method,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AttendanceRecord":
        return cls(
            record_id=str(data["id"]),
            user_id=str(data["userId"]),
            user_name=str(data.get("userName") or ""),
            timestamp=parse_iso(str(data["timestamp"])),
            punch_type=PunchType(data["type"]),
            confidence=float(data.get("verificationConfidence") or 0.0),
            method=str(data.get("method") or VERIFICATION_METHOD),
        )
