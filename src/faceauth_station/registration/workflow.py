from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, ClassVar, Optional, Union

from ..common.datetime_utils import now_utc
from ..common.ids import new_id
from ..common.images import compress_image
from ..common.validators import require_non_empty
from ..core.constants import REGISTRATION_IMAGE_QUALITY, REGISTRATION_IMAGE_WIDTH
from ..core.enums import RegistrationStep
from ..core.exceptions import InvalidTransitionError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from ..verification.gateway import ImageValidator
from ..verification.model import ImageValidation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationForm:
    name: str = ""
    employee_id: str = ""
    department: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "employeeId": self.employee_id, "department": self.department}


@dataclass(frozen=True)
class RegistrationIdle:
    step: ClassVar[RegistrationStep] = RegistrationStep.IDLE

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step.value}


@dataclass(frozen=True)
class FormEntry:
    step: ClassVar[RegistrationStep] = RegistrationStep.FORM_ENTRY
    form: RegistrationForm = RegistrationForm()
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step.value, "form": self.form.to_dict(), "error": self.error}


@dataclass(frozen=True)
class CapturingFace:
    step: ClassVar[RegistrationStep] = RegistrationStep.CAPTURING
    form: RegistrationForm

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step.value, "form": self.form.to_dict()}


@dataclass(frozen=True)
class PreviewPending:
    step: ClassVar[RegistrationStep] = RegistrationStep.PREVIEW_PENDING
    form: RegistrationForm
    image: str
    rejection: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step.value, "form": self.form.to_dict(), "image": self.image, "rejection": self.rejection}


@dataclass(frozen=True, eq=False)
class Validating:
    step: ClassVar[RegistrationStep] = RegistrationStep.VALIDATING
    form: RegistrationForm
    image: str

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step.value, "form": self.form.to_dict()}


@dataclass(frozen=True)
class Registered:
    step: ClassVar[RegistrationStep] = RegistrationStep.SUCCESS
    user: User

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step.value, "user": self.user.to_dict(include_image=False)}


RegistrationState = Union[RegistrationIdle, FormEntry, CapturingFace, PreviewPending, Validating, Registered]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def normalize_face_image(image: str) -> str:
    return compress_image(image, REGISTRATION_IMAGE_WIDTH, REGISTRATION_IMAGE_QUALITY)


class RegistrationWorkflow:
    """Form -> capture -> preview -> validate -> upsert by employee id."""

    def __init__(
        self,
        users: UserRepository,
        validator: ImageValidator,
        *,
        normalize: Callable[[str], str] = normalize_face_image,
        clock: Callable[[], datetime] = now_utc,
        id_factory: Callable[[], str] = new_id,
    ):
        self._users = users
        self._validator = validator
        self._normalize = normalize
        self._clock = clock
        self._new_id = id_factory
        self._lock = threading.Lock()
        self._state: RegistrationState = RegistrationIdle()

    @property
    def state(self) -> RegistrationState:
        with self._lock:
            return self._state

    def snapshot(self) -> dict[str, Any]:
        return self.state.to_dict()

    def _require(self, *allowed: type, event: str) -> RegistrationState:
        if not isinstance(self._state, allowed):
            raise InvalidTransitionError(f"Cannot {event} while {self._state.step.value}")
        return self._state

    def start(self) -> RegistrationState:
        with self._lock:
            if isinstance(self._state, Validating):
                raise InvalidTransitionError("Cannot start a registration while VALIDATING")
            self._state = FormEntry()
            return self._state

    def cancel(self) -> RegistrationState:
        with self._lock:
            self._state = RegistrationIdle()
            return self._state

    def submit_form(self, name: Any, employee_id: Any, department: Any = "") -> RegistrationState:
        with self._lock:
            self._require(FormEntry, event="submit the form")
            entered = RegistrationForm(name=_text(name), employee_id=_text(employee_id), department=_text(department))
            try:
                form = RegistrationForm(
                    name=require_non_empty(name, "Name"),
                    employee_id=require_non_empty(employee_id, "Employee ID"),
                    department=entered.department.strip(),
                )
            except ValidationError as exc:
                self._state = FormEntry(form=entered, error=str(exc))
                return self._state
            self._state = CapturingFace(form=form)
            return self._state

    def on_image_captured(self, image: str) -> RegistrationState:
        with self._lock:
            current = self._require(CapturingFace, event="store a capture")
            self._state = PreviewPending(form=current.form, image=image)
            return self._state

    def retake(self) -> RegistrationState:
        with self._lock:
            current = self._require(CapturingFace, PreviewPending, event="retake the photo")
            self._state = CapturingFace(form=current.form)
            return self._state

    def confirm_registration(self) -> RegistrationState:
        with self._lock:
            current = self._require(PreviewPending, event="confirm the registration")
            validating = Validating(form=current.form, image=current.image)
            self._state = validating

        try:
            validation = self._validator.validate(validating.image)
        except Exception as exc:
            logger.exception("Image validator raised instead of returning a result")
            validation = ImageValidation(valid=False, reason=f"Validation Error: {exc}")

        normalized = self._normalize(validating.image) if validation.valid else None

        with self._lock:
            if self._state is not validating:
                logger.debug("Discarding image validation for an abandoned registration")
                return self._state

            if not validation.valid:
                reason = validation.reason or "Face not clearly visible"
                logger.info("Registration image rejected for %s: %s", validating.form.employee_id, reason)
                self._state = PreviewPending(form=validating.form, image=validating.image, rejection=reason)
                return self._state

            user = User(
                user_id=self._new_id(),
                employee_id=validating.form.employee_id,
                name=validating.form.name,
                department=validating.form.department,
                face_image=normalized,
                registered_at=self._clock(),
            )
            try:
                self._users.upsert_user(user)
            except Exception as exc:
                logger.exception("Could not store registration for employee %s", user.employee_id)
                self._state = PreviewPending(
                    form=validating.form, image=validating.image, rejection=f"Storage Error: {exc}"
                )
                return self._state
            logger.info("Registered %s (employee %s)", user.name, user.employee_id)
            self._state = Registered(user=user)
            return self._state
