from __future__ import annotations

from typing import Protocol, Sequence

from ..core.enums import LivenessAction
from ..users.model import User
from .model import ImageValidation, VerificationResult


class Verifier(Protocol):
    """Identity + liveness + spoof check for one live capture.

    Implementations return a failed ``VerificationResult`` instead of raising.
    """

    def verify(self, image: str, candidates: Sequence[User], challenge: LivenessAction) -> VerificationResult:
        raise NotImplementedError


class ImageValidator(Protocol):
    """Does this image contain exactly one usable face?"""

    def validate(self, image: str) -> ImageValidation:
        raise NotImplementedError
