import pytest

from app.common.exceptions import NotFoundError, PersistenceError, ValidationError
from app.store.memory_store import InMemoryDocumentStore
from app.submissions import SubmissionService
from conftest import allergy_template
from intake_schemas import PatientProfile, ResponseStatus
from observability.metrics import MERGE_FAILURES, MERGES, SUBMISSIONS


class FlakyPatientStore(InMemoryDocumentStore):
    """Fails ``save_patient`` until ``healthy`` is set."""

    def __init__(self):
        super().__init__()
        self.healthy = False

    def save_patient(self, profile):
        if not self.healthy:
            raise PersistenceError("database unavailable", operation="save_patient")
        return super().save_patient(profile)


def _payload(template, patient_id, *, status="completed", allergy="Peanuts"):
    reason, allergies, _upload = template.items
    return {
        "formTemplateId": template.id,
        "patientId": patient_id,
        "status": status,
        "respondent": {"name": "Ada"},
        "responses": [
            {"questionId": reason.storage_id, "questionType": "openAnswer", "answer": "Checkup"},
            {
                "questionId": allergies.storage_id,
                "questionType": "allergies",
                "matrixResponses": [{"rowIndex": 1, "columnIndex": 0, "value": allergy}],
            },
        ],
    }


@pytest.fixture
def service(memory_store):
    return SubmissionService(memory_store)


def test_completed_response_is_merged(service, memory_store, patient, metrics):
    template = allergy_template(memory_store)

    outcome = service.create_response(_payload(template, patient.id), actor_id="staff-1")

    assert outcome.merge_status == "applied"
    assert outcome.record.status == ResponseStatus.COMPLETED
    assert outcome.record.completed_at is not None
    profile = memory_store.get_patient(patient.id)
    assert profile.dynamic_data["allergies"] == ["Peanuts"]
    assert profile.form_response_ids == [outcome.record.id]
    assert profile.dynamic_data["openAnswer_" + template.items[0].storage_id]["answer"] == "Checkup"
    assert memory_store.list_pending_merges() == []
    assert metrics.counter_value(SUBMISSIONS, {"kind": "form_response", "status": "completed"}) == 1
    assert metrics.counter_value(MERGES) == 1
    assert metrics.timing_count("intake.extract") == 1


def test_incomplete_response_is_not_merged(service, memory_store, patient):
    template = allergy_template(memory_store)
    payload = _payload(template, patient.id, status="incomplete")
    payload["responses"] = payload["responses"][1:]

    outcome = service.create_response(payload)

    assert outcome.merge_status == "skipped"
    assert memory_store.get_patient(patient.id).dynamic_data == {}


def test_completion_requires_required_answers(service, memory_store, patient):
    template = allergy_template(memory_store)
    payload = _payload(template, patient.id)
    payload["responses"] = payload["responses"][1:]
    with pytest.raises(ValidationError):
        service.create_response(payload)


def test_finishing_a_draft_requires_required_answers(service, memory_store, patient):
    template = allergy_template(memory_store)
    payload = _payload(template, patient.id, status="incomplete")
    payload["responses"] = payload["responses"][1:]
    draft = service.create_response(payload).record

    with pytest.raises(ValidationError) as excinfo:
        service.update_response(draft.id, {"status": "completed"})

    assert f"{template.items[0].storage_id}: an answer is required" in excinfo.value.errors
    assert service.get_response(draft.id).status == ResponseStatus.INCOMPLETE
    assert memory_store.list_pending_merges() == []
    assert memory_store.get_patient(patient.id).dynamic_data == {}


def test_unknown_patient_or_template(service, memory_store):
    template = allergy_template(memory_store)
    with pytest.raises(NotFoundError):
        service.create_response(_payload(template, "ghost"))
    with pytest.raises(NotFoundError):
        service.create_response({"formTemplateId": "missing"})
    with pytest.raises(ValidationError):
        service.create_response({})


def test_failed_merge_stays_pending_until_retry(metrics):
    store = FlakyPatientStore()
    service = SubmissionService(store)
    patient = store.create_patient(PatientProfile(assigned_doctor="doc-1"))
    template = allergy_template(store)

    outcome = service.create_response(_payload(template, patient.id))

    assert outcome.merge_status == "pending"
    assert store.get_response(outcome.record.id) is not None
    pending = store.list_pending_merges()
    assert len(pending) == 1
    assert pending[0].attempts == 1
    assert "database unavailable" in pending[0].last_error
    assert store.get_patient(patient.id).dynamic_data == {}
    assert metrics.counter_value(MERGE_FAILURES) == 1

    store.healthy = True
    summary = service.retry_pending_merges()

    assert summary == {"attempted": 1, "applied": 1, "pending": 0}
    assert store.get_patient(patient.id).dynamic_data["allergies"] == ["Peanuts"]
    assert store.list_pending_merges() == []
    applied = store.get_pending_merge(pending[0].id)
    assert applied.applied_at is not None
    assert applied.attempts == 2


class OutageStore(FlakyPatientStore):
    """Neither the profile nor the outbox bookkeeping can be written."""

    def save_pending_merge(self, merge):
        if not self.healthy:
            raise PersistenceError("database unavailable", operation="save_pending_merge")
        return super().save_pending_merge(merge)


def test_outage_during_merge_does_not_fail_the_submission(metrics):
    store = OutageStore()
    service = SubmissionService(store)
    patient = store.create_patient(PatientProfile(assigned_doctor="doc-1"))
    template = allergy_template(store)

    outcome = service.create_response(_payload(template, patient.id))

    assert outcome.merge_status == "pending"
    assert store.get_response(outcome.record.id) is not None
    assert len(store.list_pending_merges()) == 1

    store.healthy = True
    assert service.retry_pending_merges() == {"attempted": 1, "applied": 1, "pending": 0}
    assert store.get_patient(patient.id).dynamic_data["allergies"] == ["Peanuts"]


def test_status_transitions(service, memory_store, patient):
    template = allergy_template(memory_store)
    payload = _payload(template, patient.id, status="incomplete")
    created = service.create_response(payload).record

    completed = service.update_response(created.id, {"status": "completed"})
    assert completed.merge_status == "applied"

    reviewed = service.update_response(created.id, {"status": "reviewed"}, actor_id="doc-1")
    assert reviewed.merge_status == "skipped"
    assert reviewed.record.reviewed_by == "doc-1"
    assert reviewed.record.completed_at == completed.record.completed_at

    with pytest.raises(ValidationError):
        service.update_response(created.id, {"status": "incomplete"})
    with pytest.raises(ValidationError):
        service.update_response(created.id, {"responses": []})

    profile = memory_store.get_patient(patient.id)
    assert profile.form_response_ids == [created.id]
    assert len(profile.form_data) == 1


def test_intake_lifecycle(service, memory_store, patient):
    payload = {
        "patientId": patient.id,
        "status": "incomplete",
        "sections": [
            {
                "sectionId": "s1",
                "sectionName": "History",
                "fields": [{"fieldName": "Medications", "fieldType": "text", "fieldValue": ["Aspirin"]}],
            }
        ],
    }
    intake = service.create_intake(payload, actor_id="staff-1").record
    assert intake.created_by == "staff-1"
    assert memory_store.get_patient(patient.id).dynamic_data == {}

    outcome = service.update_intake(intake.id, {"status": "completed"})

    assert outcome.merge_status == "applied"
    profile = memory_store.get_patient(patient.id)
    assert profile.dynamic_data["medications"] == ["Aspirin"]
    assert profile.intake_form_ids == [intake.id]
    assert profile.form_data[0].form_type == "intake"
    assert [record.id for record in service.list_intakes(patient_id=patient.id)] == [intake.id]


def test_intake_requires_existing_patient(service):
    with pytest.raises(ValidationError):
        service.create_intake({"sections": []})
    with pytest.raises(NotFoundError):
        service.create_intake({"patientId": "ghost"})


def test_delete(service, memory_store, patient):
    template = allergy_template(memory_store)
    record = service.create_response(_payload(template, patient.id)).record
    service.delete_response(record.id)
    with pytest.raises(NotFoundError):
        service.get_response(record.id)
    with pytest.raises(NotFoundError):
        service.delete_response(record.id)
