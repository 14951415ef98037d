"""HTTP surface exercised end to end against the SQL store."""

from __future__ import annotations

import pytest

from conftest import ADMIN, DOCTOR, OTHER_DOCTOR


def _new_item(client, question_type, **changes):
    resp = client.post(f"/api/question-types/{question_type}")
    assert resp.status_code == 201
    return {**resp.json(), **changes}


@pytest.fixture
def patient_id(client):
    resp = client.post(
        "/api/patients",
        json={"firstName": "Ada", "lastName": "Lovelace", "assignedDoctor": "doc-1"},
        headers=ADMIN,
    )
    assert resp.status_code == 201
    return resp.json()["id"]


@pytest.fixture
def template(client):
    items = [
        _new_item(client, "openAnswer", questionText="Reason for visit", isRequired=True),
        _new_item(client, "allergies"),
        _new_item(client, "fileAttachment", fileTypes=["pdf", "png"]),
    ]
    resp = client.post("/api/form-templates", json={"title": "Allergy intake", "items": items}, headers=ADMIN)
    assert resp.status_code == 201
    return resp.json()


def _answers(template, allergy="Peanuts"):
    reason, allergies, _upload = template["items"]
    return [
        {"questionId": reason["storageId"], "questionType": "openAnswer", "answer": "Checkup"},
        {
            "questionId": allergies["storageId"],
            "questionType": "allergies",
            "matrixResponses": [{"rowIndex": 1, "columnIndex": 0, "value": allergy}],
        },
    ]


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_question_type_catalog(client):
    types = client.get("/api/question-types").json()["types"]
    assert "openAnswer" in [entry["type"] for entry in types]
    assert "blank" not in [entry["type"] for entry in types]

    item = client.post("/api/question-types/blank").json()
    assert item["type"] == "openAnswer"
    assert item["id"]
    assert client.post("/api/question-types/hologram").status_code == 400


def test_template_items_get_storage_ids(client, template):
    assert template["createdBy"] == "admin-1"
    assert all(item["storageId"] for item in template["items"])

    fetched = client.get(f"/api/form-templates/{template['id']}", headers=DOCTOR).json()
    assert [i["storageId"] for i in fetched["items"]] == [i["storageId"] for i in template["items"]]


def test_template_requires_title(client):
    resp = client.post(
        "/api/form-templates",
        json={"title": "  ", "items": [_new_item(client, "text")]},
        headers=ADMIN,
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Form template cannot be saved"
    assert "title: Form title is required" in body["validationErrors"]


def test_completed_response_updates_profile(client, template, patient_id):
    resp = client.post(
        "/api/form-responses",
        json={
            "formTemplateId": template["id"],
            "patientId": patient_id,
            "status": "completed",
            "responses": _answers(template),
        },
        headers=DOCTOR,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["mergeStatus"] == "applied"
    assert body["status"] == "completed"

    canonical = client.get(f"/api/patients/{patient_id}/canonical", headers=DOCTOR).json()
    assert canonical["dynamicData"]["allergies"] == ["Peanuts"]
    assert canonical["formDataCount"] == 1

    profile = client.get(f"/api/patients/{patient_id}", headers=DOCTOR).json()
    assert profile["formResponseIds"] == [body["id"]]

    listed = client.get(
        "/api/form-responses", params={"patientId": patient_id}, headers=ADMIN
    ).json()
    assert [r["id"] for r in listed] == [body["id"]]


def test_missing_required_answer_is_rejected(client, template, patient_id):
    answers = _answers(template)[1:]
    resp = client.post(
        "/api/form-responses",
        json={
            "formTemplateId": template["id"],
            "patientId": patient_id,
            "status": "completed",
            "responses": answers,
        },
        headers=ADMIN,
    )
    assert resp.status_code == 400
    assert resp.json()["validationErrors"]


def test_other_doctor_is_denied(client, template, patient_id):
    assert client.get(f"/api/patients/{patient_id}", headers=OTHER_DOCTOR).status_code == 403
    resp = client.post(
        "/api/form-responses",
        json={"formTemplateId": template["id"], "patientId": patient_id, "responses": []},
        headers=OTHER_DOCTOR,
    )
    assert resp.status_code == 403
    assert resp.json()["message"] == "Access denied"


def test_other_doctor_does_not_see_responses(client, template, patient_id):
    client.post(
        "/api/form-responses",
        json={"formTemplateId": template["id"], "patientId": patient_id, "responses": []},
        headers=ADMIN,
    )
    assert len(client.get("/api/form-responses", headers=DOCTOR).json()) == 1
    assert client.get("/api/form-responses", headers=OTHER_DOCTOR).json() == []


def test_missing_identity_headers(client):
    assert client.get("/api/form-templates").status_code == 401
    assert client.get("/api/form-templates", headers={"X-User-Id": "x", "X-User-Role": "janitor"}).status_code == 401


def test_not_found(client):
    resp = client.get("/api/form-responses/nope", headers=ADMIN)
    assert resp.status_code == 404
    assert resp.json()["validationErrors"] == []


def test_delete_requires_admin(client, template, patient_id):
    created = client.post(
        "/api/form-responses",
        json={"formTemplateId": template["id"], "patientId": patient_id, "responses": []},
        headers=ADMIN,
    ).json()

    assert client.delete(f"/api/form-responses/{created['id']}", headers=DOCTOR).status_code == 403
    assert client.delete(f"/api/form-responses/{created['id']}", headers=ADMIN).status_code == 204
    assert client.get(f"/api/form-responses/{created['id']}", headers=ADMIN).status_code == 404


def test_template_items_frozen_once_answered(client, template, patient_id):
    client.post(
        "/api/form-responses",
        json={"formTemplateId": template["id"], "patientId": patient_id, "responses": []},
        headers=ADMIN,
    )
    items = template["items"] + [_new_item(client, "text")]
    resp = client.put(f"/api/form-templates/{template['id']}", json={"items": items}, headers=ADMIN)
    assert resp.status_code == 400

    resp = client.put(f"/api/form-templates/{template['id']}", json={"title": "Renamed"}, headers=ADMIN)
    assert resp.status_code == 200
    assert resp.json()["title"] == "Renamed"


def test_attachment_upload_reports_partial_failure(client, template, patient_id, object_store):
    created = client.post(
        "/api/form-responses",
        json={"formTemplateId": template["id"], "patientId": patient_id, "responses": []},
        headers=ADMIN,
    ).json()
    upload_id = template["items"][2]["storageId"]
    object_store.fail_on = lambda key: key.endswith("broken.pdf")

    resp = client.post(
        f"/api/form-responses/{created['id']}/attachments/{upload_id}",
        files=[
            ("files", ("scan.pdf", b"%PDF-1.4", "application/pdf")),
            ("files", ("broken.pdf", b"%PDF-1.4", "application/pdf")),
            ("files", ("notes.exe", b"MZ", "application/octet-stream")),
        ],
        headers=ADMIN,
    )

    assert resp.status_code == 200
    body = resp.json()
    assert [a["fileName"] for a in body["attached"]] == ["scan.pdf"]
    assert sorted(f["fileName"] for f in body["failures"]) == ["broken.pdf", "notes.exe"]

    stored = client.get(f"/api/form-responses/{created['id']}", headers=ADMIN).json()
    entry = next(e for e in stored["responses"] if e["questionId"] == upload_id)
    assert [a["fileName"] for a in entry["fileAttachments"]] == ["scan.pdf"]
    assert len(object_store.objects) == 1


def test_builder_duplicate_and_reorder(client):
    items = [_new_item(client, "text"), _new_item(client, "radio"), _new_item(client, "date")]
    original_ids = [item["id"] for item in items]

    resp = client.post("/api/builder/duplicate", json={"items": items, "index": 1})
    assert resp.status_code == 200
    body = resp.json()
    assert body["selectedIndex"] == 2
    duplicated = body["items"]
    assert len(duplicated) == 4
    assert duplicated[1]["id"] == original_ids[1]
    assert duplicated[2]["type"] == "radio"
    assert duplicated[2]["id"] not in original_ids

    resp = client.post(
        "/api/builder/reorder", json={"items": items, "fromId": original_ids[2], "toIndex": 0}
    )
    assert [item["id"] for item in resp.json()["items"]] == [original_ids[2], original_ids[0], original_ids[1]]

    resp = client.post("/api/builder/reorder", json={"items": items, "fromId": "gone", "toIndex": 0})
    assert resp.status_code == 400


def test_builder_prepare_drops_untouched_matrix(client):
    items = [_new_item(client, "matrix"), _new_item(client, "text", questionText="Name")]
    body = client.post("/api/builder/prepare", json={"title": "Intake", "items": items}).json()
    assert [item["type"] for item in body["items"]] == ["text"]
    assert "id" not in body["items"][0]


def test_intake_form_lifecycle(client, patient_id):
    resp = client.post(
        "/api/intake-forms",
        json={
            "patientId": patient_id,
            "status": "completed",
            "sections": [
                {
                    "sectionId": "meds",
                    "sectionName": "Medications",
                    "fields": [{"fieldName": "Current medications", "fieldType": "text", "fieldValue": "Aspirin"}],
                }
            ],
        },
        headers=DOCTOR,
    )
    assert resp.status_code == 201
    assert resp.json()["mergeStatus"] == "applied"

    listed = client.get(f"/api/intake-forms/patient/{patient_id}", headers=DOCTOR).json()
    assert len(listed) == 1
    canonical = client.get(f"/api/patients/{patient_id}/canonical", headers=DOCTOR).json()
    assert canonical["dynamicData"]["medications"] == ["Aspirin"]


def test_merge_retry_requires_admin(client):
    assert client.post("/api/maintenance/merges/retry", headers=DOCTOR).status_code == 403
    resp = client.post("/api/maintenance/merges/retry", headers=ADMIN)
    assert resp.json() == {"attempted": 0, "applied": 0, "pending": 0}
