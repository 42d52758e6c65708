from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, ClassVar, Optional, Union

from ..common.datetime_utils import now_utc, to_iso
from ..common.ids import new_id
from ..core.constants import DEFAULT_SUCCESS_RETURN_SECONDS
from ..core.enums import AttendanceStep, LivenessAction, PunchType
from ..core.exceptions import InvalidTransitionError
from ..users.repository import UserRepository
from ..verification.gateway import Verifier
from ..verification.model import VerificationResult
from .challenge import choose_challenge
from .factory import PunchRuleFactory
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    step: ClassVar[AttendanceStep] = AttendanceStep.IDLE

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step.value}


@dataclass(frozen=True)
class ModeSelected:
    step: ClassVar[AttendanceStep] = AttendanceStep.MODE_SELECTED
    punch_type: PunchType

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step.value, "punchType": self.punch_type.value}


@dataclass(frozen=True)
class ChallengeIssued:
    step: ClassVar[AttendanceStep] = AttendanceStep.CHALLENGE_ISSUED
    punch_type: PunchType
    challenge: LivenessAction

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step.value, "punchType": self.punch_type.value, "challenge": self.challenge.value}


@dataclass(frozen=True)
class Capturing:
    step: ClassVar[AttendanceStep] = AttendanceStep.CAPTURING
    punch_type: PunchType
    challenge: LivenessAction

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step.value, "punchType": self.punch_type.value, "challenge": self.challenge.value}


@dataclass(frozen=True, eq=False)
class Processing:
    """Compared by identity: a response only applies to the exact call that started it."""

    step: ClassVar[AttendanceStep] = AttendanceStep.PROCESSING
    punch_type: PunchType
    challenge: LivenessAction

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step.value, "punchType": self.punch_type.value, "challenge": self.challenge.value}


@dataclass(frozen=True)
class Success:
    step: ClassVar[AttendanceStep] = AttendanceStep.SUCCESS
    punch_type: PunchType
    record: AttendanceRecord
    result: VerificationResult
    return_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step.value,
            "punchType": self.punch_type.value,
            "record": self.record.to_dict(),
            "result": self.result.to_dict(),
            "returnAt": to_iso(self.return_at),
        }


@dataclass(frozen=True)
class Failure:
    step: ClassVar[AttendanceStep] = AttendanceStep.FAILURE
    punch_type: PunchType
    challenge: LivenessAction
    reason: str
    result: Optional[VerificationResult] = None
    previous: Optional[AttendanceRecord] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step.value,
            "punchType": self.punch_type.value,
            "challenge": self.challenge.value,
            "reason": self.reason,
            "result": self.result.to_dict() if self.result else None,
            "previousTimestamp": to_iso(self.previous.timestamp) if self.previous else None,
        }


AttendanceState = Union[Idle, ModeSelected, ChallengeIssued, Capturing, Processing, Success, Failure]


class AttendanceWorkflow:
    """Kiosk punch session: mode -> challenge -> capture -> verify -> validate -> record.

    One instance serves one kiosk. Transitions are serialized by a lock that is
    released while the verifier runs, so ``cancel()`` can interrupt a pending call;
    the late answer is then dropped.
    """

    def __init__(
        self,
        users: UserRepository,
        attendance: AttendanceRepository,
        verifier: Verifier,
        *,
        rule_factory: PunchRuleFactory | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = now_utc,
        success_return_seconds: float = DEFAULT_SUCCESS_RETURN_SECONDS,
        id_factory: Callable[[], str] = new_id,
    ):
        self._users = users
        self._attendance = attendance
        self._verifier = verifier
        self._factory = rule_factory or PunchRuleFactory()
        self._rng = rng or random.Random()
        self._clock = clock
        self._success_delay = timedelta(seconds=float(success_return_seconds))
        self._new_id = id_factory
        self._lock = threading.Lock()
        self._state: AttendanceState = Idle()

    @property
    def state(self) -> AttendanceState:
        with self._lock:
            return self._current()

    def snapshot(self) -> dict[str, Any]:
        return self.state.to_dict()

    def _current(self) -> AttendanceState:
        # Success leaves by itself once its display time is over.
        if isinstance(self._state, Success) and self._clock() >= self._state.return_at:
            self._state = Idle()
        return self._state

    def _require(self, *allowed: type, event: str) -> AttendanceState:
        current = self._current()
        if not isinstance(current, allowed):
            raise InvalidTransitionError(f"Cannot {event} while {current.step.value}")
        return current

    def _draw_challenge(self, punch_type: PunchType) -> ChallengeIssued:
        self._state = ChallengeIssued(punch_type=punch_type, challenge=choose_challenge(self._rng))
        return self._state

    def select_mode(self, punch_type: PunchType) -> AttendanceState:
        punch_type = PunchType(punch_type)
        with self._lock:
            self._require(Idle, Success, Failure, event="select a punch type")
            self._state = ModeSelected(punch_type=punch_type)
            return self._draw_challenge(punch_type)

    def issue_challenge(self) -> AttendanceState:
        """Draw a fresh challenge, keeping the chosen punch type."""
        with self._lock:
            current = self._require(ModeSelected, ChallengeIssued, Failure, event="issue a challenge")
            return self._draw_challenge(current.punch_type)

    def retry(self) -> AttendanceState:
        with self._lock:
            current = self._require(Failure, event="retry")
            return self._draw_challenge(current.punch_type)

    def accept_challenge(self) -> AttendanceState:
        with self._lock:
            current = self._require(ChallengeIssued, event="accept the challenge")
            self._state = Capturing(punch_type=current.punch_type, challenge=current.challenge)
            return self._state

    def cancel(self) -> AttendanceState:
        with self._lock:
            if isinstance(self._state, Processing):
                logger.info("Attendance session cancelled while verification was pending")
            self._state = Idle()
            return self._state

    def on_image_captured(self, image: str) -> AttendanceState:
        with self._lock:
            current = self._require(Capturing, event="process a capture")
            processing = Processing(punch_type=current.punch_type, challenge=current.challenge)
            try:
                candidates = list(self._users.list_users())
            except Exception as exc:
                logger.exception("Could not load registered users")
                self._state = self._storage_failure(processing, exc)
                return self._state
            self._state = processing

        try:
            result = self._verifier.verify(image, candidates, processing.challenge)
        except Exception as exc:
            logger.exception("Verifier raised instead of returning a result")
            result = VerificationResult.failed(f"Verification Error: {exc}")

        return self._complete(processing, result)

    def _complete(self, processing: Processing, result: VerificationResult) -> AttendanceState:
        with self._lock:
            if self._state is not processing:
                logger.debug("Discarding verification result for an abandoned session")
                return self._current()
            try:
                self._state = self._evaluate(processing, result)
            except Exception as exc:
                logger.exception("Ledger access failed while recording %s", processing.punch_type.value)
                self._state = self._storage_failure(processing, exc, result)
            return self._state

    @staticmethod
    def _storage_failure(
        processing: Processing, exc: Exception, result: Optional[VerificationResult] = None
    ) -> Failure:
        reason = f"Storage Error: {exc}"
        return Failure(
            punch_type=processing.punch_type,
            challenge=processing.challenge,
            reason=reason,
            result=result.with_reason(reason, match=False) if result else None,
        )

    def _evaluate(self, processing: Processing, result: VerificationResult) -> AttendanceState:
        punch_type = processing.punch_type

        def fail(reason: str, **extra) -> Failure:
            return Failure(punch_type=punch_type, challenge=processing.challenge, reason=reason, **extra)

        if not result.passed:
            return fail(result.reason or "Verification failed", result=result)

        user = self._users.get_user(result.user_id)
        if user is None:
            logger.error("Verifier matched user id %s which is not in the registry", result.user_id)
            reason = "Identity matched but user record missing"
            return fail(reason, result=result.with_reason(reason))

        previous = self._attendance.most_recent_record_for(user.user_id)
        decision = self._factory.for_punch(punch_type).decide(previous=previous)
        if not decision.allowed:
            reason = decision.reason or "Punch not allowed"
            logger.info("Rejected %s for user %s: %s", punch_type.value, user.user_id, reason)
            return fail(reason, result=result.with_reason(reason, match=False), previous=decision.previous)

        now = self._clock()
        record = AttendanceRecord(
            record_id=self._new_id(),
            user_id=user.user_id,
            user_name=user.name,
            timestamp=now,
            punch_type=punch_type,
            confidence=result.confidence,
        )
        self._attendance.append_record(record)
        logger.info("Recorded %s for %s (confidence %.2f)", punch_type.value, user.name, result.confidence)
        return Success(punch_type=punch_type, record=record, result=result, return_at=now + self._success_delay)
