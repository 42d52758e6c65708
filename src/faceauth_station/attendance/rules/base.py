from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..model import AttendanceRecord


@dataclass(frozen=True)
class PunchDecision:
    allowed: bool
    reason: Optional[str] = None
    previous: Optional[AttendanceRecord] = None


class PunchRule(ABC):
    """Strategy Pattern: decide whether a punch may follow the user's latest record."""

    @abstractmethod
    def decide(self, *, previous: Optional[AttendanceRecord]) -> PunchDecision:
        raise NotImplementedError
