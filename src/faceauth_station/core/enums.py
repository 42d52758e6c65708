from __future__ import annotations

from enum import Enum


class PunchType(str, Enum):
    """Direction of an attendance event."""

    IN = "IN"
    OUT = "OUT"


class LivenessAction(str, Enum):
    """Physical action the subject must perform in front of the camera."""

    BLINK = "Blink your eyes"
    SMILE = "Smile widely"
    LOOK_LEFT = "Turn head slightly left"
    LOOK_RIGHT = "Turn head slightly right"
    OPEN_MOUTH = "Open your mouth"


class AttendanceStep(str, Enum):
    IDLE = "IDLE"
    MODE_SELECTED = "MODE_SELECTED"
    CHALLENGE_ISSUED = "CHALLENGE_ISSUED"
    CAPTURING = "CAPTURING"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class RegistrationStep(str, Enum):
    IDLE = "IDLE"
    FORM_ENTRY = "FORM_ENTRY"
    CAPTURING = "CAPTURING"
    PREVIEW_PENDING = "PREVIEW_PENDING"
    VALIDATING = "VALIDATING"
    SUCCESS = "SUCCESS"
