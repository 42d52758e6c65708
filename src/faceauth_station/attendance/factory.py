from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import PunchType
from .rules.base import PunchRule
from .rules.check_in_rule import CheckInRule
from .rules.check_out_rule import CheckOutRule


@dataclass
class PunchRuleFactory:
    """Factory Pattern: choose the rule that guards a punch type."""

    def for_punch(self, punch_type: PunchType) -> PunchRule:
        if punch_type == PunchType.IN:
            return CheckInRule()
        if punch_type == PunchType.OUT:
            return CheckOutRule()
        raise ValueError(f"Unsupported punch type: {punch_type!r}")
