from __future__ import annotations

from typing import Optional

from ...common.datetime_utils import format_clock
from ...core.enums import PunchType
from ..model import AttendanceRecord
from .base import PunchDecision, PunchRule


class CheckInRule(PunchRule):
    """IN is allowed unless the latest record is already IN."""

    def decide(self, *, previous: Optional[AttendanceRecord]) -> PunchDecision:
        if previous is not None and previous.punch_type == PunchType.IN:
            return PunchDecision(
                allowed=False,
                reason=f"Already checked in (last: {format_clock(previous.timestamp)})",
                previous=previous,
            )
        return PunchDecision(allowed=True, previous=previous)
