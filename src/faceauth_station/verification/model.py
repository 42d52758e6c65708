from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional


@dataclass(frozen=True)
class VerificationResult:
    """What the vision model concluded about one live capture. Not persisted."""

    match: bool
    confidence: float
    liveness_confirmed: bool
    spoof_detected: bool
    reason: str
    user_id: Optional[str] = None

    @classmethod
    def failed(cls, reason: str) -> "VerificationResult":
        return cls(
            match=False,
            confidence=0.0,
            liveness_confirmed=False,
            spoof_detected=False,
            reason=reason,
        )

    @property
    def passed(self) -> bool:
        return bool(self.match and self.liveness_confirmed and not self.spoof_detected and self.user_id)

    def with_reason(self, reason: str, *, match: Optional[bool] = None) -> "VerificationResult":
        if match is None:
            return replace(self, reason=reason)
        return replace(self, reason=reason, match=match)

    def to_dict(self) -> dict[str, Any]:
        return {
            "match": self.match,
            "userId": self.user_id,
            "confidence": self.confidence,
            "livenessConfirmed": self.liveness_confirmed,
            "spoofDetected": self.spoof_detected,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ImageValidation:
    valid: bool
    reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "reason": self.reason}
