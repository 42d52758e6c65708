"""Example: drive the attendance workflow without Flask.

Controllers are only a thin layer; this uses the workflows directly with an
in-memory ledger and a canned verifier.
"""

from faceauth_station.container import build_container
from faceauth_station.core.enums import PunchType
from faceauth_station.verification.model import ImageValidation, VerificationResult

PIXEL = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="


class AlwaysFirstUser:
    def verify(self, image, candidates, challenge):
        return VerificationResult(
            match=True,
            user_id=candidates[0].user_id,
            confidence=0.9,
            liveness_confirmed=True,
            spoof_detected=False,
            reason=f"Demo match, performed: {challenge.value}",
        )

    def validate(self, image):
        return ImageValidation(valid=True)


def main():
    stub = AlwaysFirstUser()
    container = build_container(settings={"STORAGE_BACKEND": "memory"}, verifier=stub, validator=stub)

    reg = container.registration_workflow
    reg.start()
    reg.submit_form("Demo User", "EMP-001", "Engineering")
    reg.on_image_captured(PIXEL)
    print(reg.confirm_registration().to_dict())

    att = container.attendance_workflow
    for punch in (PunchType.IN, PunchType.IN, PunchType.OUT):
        att.cancel()
        print(att.select_mode(punch).to_dict())
        att.accept_challenge()
        print(att.on_image_captured(PIXEL).to_dict())

    print(container.history_service.list_records_ui(limit=5))


if __name__ == "__main__":
    main()
