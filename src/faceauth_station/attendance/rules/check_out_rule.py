from __future__ import annotations

from typing import Optional

from ...core.enums import PunchType
from ..model import AttendanceRecord
from .base import PunchDecision, PunchRule


class CheckOutRule(PunchRule):
    """OUT needs an open IN as the latest record."""

    def decide(self, *, previous: Optional[AttendanceRecord]) -> PunchDecision:
        if previous is None or previous.punch_type == PunchType.OUT:
            return PunchDecision(allowed=False, reason="Cannot check out: not checked in", previous=previous)
        return PunchDecision(allowed=True, previous=previous)
