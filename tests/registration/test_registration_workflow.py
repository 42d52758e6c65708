from __future__ import annotations

import pytest

from faceauth_station.core.exceptions import InvalidTransitionError, StorageError
from faceauth_station.registration.workflow import (
    CapturingFace,
    FormEntry,
    PreviewPending,
    Registered,
    RegistrationIdle,
    RegistrationWorkflow,
)
from faceauth_station.storage.kv_store import InMemoryKeyValueStore
from faceauth_station.storage.ledger import KeyValueLedgerStore
from faceauth_station.verification.model import ImageValidation


class StubValidator:
    def __init__(self, *answers: ImageValidation):
        self.answers = list(answers) or [ImageValidation(valid=True)]
        self.calls = []

    def validate(self, image):
        self.calls.append(image)
        return self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]


def _workflow(ledger, validator, clock, ids=None) -> RegistrationWorkflow:
    ids = iter(ids or ["id-1", "id-2", "id-3"])
    return RegistrationWorkflow(
        ledger,
        validator,
        normalize=lambda image: f"normalized:{image}",
        clock=clock,
        id_factory=lambda: next(ids),
    )


def _register(wf: RegistrationWorkflow, name: str, employee_id: str, department: str, image: str):
    wf.start()
    wf.submit_form(name, employee_id, department)
    wf.on_image_captured(image)
    return wf.confirm_registration()


def test_happy_path_stores_normalized_user(ledger, clock, fixed_now):
    wf = _workflow(ledger, StubValidator(), clock)

    state = _register(wf, "  Alice ", "E-100", "Ops", "raw-image")

    assert isinstance(state, Registered)
    [user] = ledger.list_users()
    assert user.user_id == "id-1"
    assert user.name == "Alice"
    assert user.employee_id == "E-100"
    assert user.department == "Ops"
    assert user.face_image == "normalized:raw-image"
    assert user.registered_at == fixed_now


@pytest.mark.parametrize("name, employee_id", [("", "E-1"), ("Alice", "   "), (None, None)])
def test_blank_required_fields_stay_on_form(ledger, clock, name, employee_id):
    validator = StubValidator()
    wf = _workflow(ledger, validator, clock)
    wf.start()

    state = wf.submit_form(name, employee_id, "Ops")

    assert isinstance(state, FormEntry)
    assert "is required" in state.error
    assert state.form.department == "Ops"
    assert validator.calls == []
    with pytest.raises(InvalidTransitionError):
        wf.on_image_captured("raw")


def test_rejected_image_stays_in_preview_with_reason(ledger, clock):
    wf = _workflow(ledger, StubValidator(ImageValidation(valid=False, reason="Two faces")), clock)

    state = _register(wf, "Alice", "E-1", "", "raw")

    assert isinstance(state, PreviewPending)
    assert state.rejection == "Two faces"
    assert state.image == "raw"
    assert ledger.list_users() == []


def test_rejection_without_reason_gets_default(ledger, clock):
    wf = _workflow(ledger, StubValidator(ImageValidation(valid=False)), clock)

    state = _register(wf, "Alice", "E-1", "", "raw")

    assert state.rejection == "Face not clearly visible"


def test_retake_discards_pending_image(ledger, clock):
    validator = StubValidator(ImageValidation(valid=False, reason="Blurry"), ImageValidation(valid=True))
    wf = _workflow(ledger, validator, clock)
    _register(wf, "Alice", "E-1", "", "blurry")

    state = wf.retake()
    assert isinstance(state, CapturingFace)
    assert state.form.employee_id == "E-1"

    wf.on_image_captured("sharp")
    final = wf.confirm_registration()

    assert isinstance(final, Registered)
    assert validator.calls == ["blurry", "sharp"]
    assert ledger.list_users()[0].face_image == "normalized:sharp"


def test_same_employee_id_twice_keeps_one_user_with_latest_fields(ledger, clock):
    wf = _workflow(ledger, StubValidator(), clock)

    _register(wf, "Alice", "E-1", "Ops", "first")
    clock.advance(10)
    _register(wf, "Alice Smith", "E-1", "Finance", "second")

    users = ledger.list_users()
    assert len(users) == 1
    assert users[0].name == "Alice Smith"
    assert users[0].department == "Finance"
    assert users[0].face_image == "normalized:second"


def test_validator_exception_counts_as_rejection(ledger, clock):
    class Exploding:
        def validate(self, image):
            raise RuntimeError("timeout")

    wf = _workflow(ledger, Exploding(), clock)

    state = _register(wf, "Alice", "E-1", "", "raw")

    assert isinstance(state, PreviewPending)
    assert "timeout" in state.rejection


def test_cancel_while_validating_discards_result(ledger, clock):
    class CancelsMidCall:
        workflow = None

        def validate(self, image):
            self.workflow.cancel()
            return ImageValidation(valid=True)

    validator = CancelsMidCall()
    wf = _workflow(ledger, validator, clock)
    validator.workflow = wf

    state = _register(wf, "Alice", "E-1", "", "raw")

    assert isinstance(state, RegistrationIdle)
    assert ledger.list_users() == []


def test_confirm_requires_a_pending_image(ledger, clock):
    wf = _workflow(ledger, StubValidator(), clock)
    wf.start()

    with pytest.raises(InvalidTransitionError):
        wf.confirm_registration()


def test_storage_failure_returns_to_preview_and_allows_retry(clock):
    class DiskFullLedger(KeyValueLedgerStore):
        broken = True

        def upsert_user(self, user):
            if self.broken:
                raise StorageError("disk full")
            return super().upsert_user(user)

    ledger = DiskFullLedger(InMemoryKeyValueStore())
    wf = _workflow(ledger, StubValidator(), clock)

    state = _register(wf, "Alice", "E-1", "", "raw")

    assert isinstance(state, PreviewPending)
    assert state.rejection == "Storage Error: disk full"
    assert state.image == "raw"

    ledger.broken = False
    assert isinstance(wf.confirm_registration(), Registered)
    assert [u.employee_id for u in ledger.list_users()] == ["E-1"]


def test_numeric_form_values_are_accepted_as_text(ledger, clock):
    wf = _workflow(ledger, StubValidator(), clock)
    wf.start()

    state = wf.submit_form("Al", 1042, 7)

    assert isinstance(state, CapturingFace)
    assert state.form.employee_id == "1042"
    assert state.form.department == "7"
