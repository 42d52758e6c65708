"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import LivenessAction

LIVENESS_ACTIONS = (
    LivenessAction.BLINK,
    LivenessAction.SMILE,
    LivenessAction.LOOK_LEFT,
    LivenessAction.LOOK_RIGHT,
    LivenessAction.OPEN_MOUTH,
)

VERIFICATION_METHOD = "face-biometric"

USERS_KEY = "faceauth_users"
ATTENDANCE_KEY = "faceauth_logs"

DEFAULT_MODEL_NAME = "gemini-2.5-flash"
DEFAULT_API_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT_SECONDS = 30.0

DEFAULT_MAX_CANDIDATES = 40
DEFAULT_SUCCESS_RETURN_SECONDS = 3.5

# Reference images kept small so 40 candidates fit in one request.
VERIFY_IMAGE_WIDTH = 200
VERIFY_IMAGE_QUALITY = 50
VALIDATE_IMAGE_WIDTH = 300
VALIDATE_IMAGE_QUALITY = 70
REGISTRATION_IMAGE_WIDTH = 400
REGISTRATION_IMAGE_QUALITY = 70
