"""Form response endpoints, including the attachment upload phase."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, Query, Response, UploadFile, status

from app.api.dependencies import get_attachment_service, get_document_store, get_submission_service
from app.api.guards import ActingUser, check_patient, get_acting_user, require_admin, visible_to
from app.responses.attachments import AttachmentService, UploadedFile
from app.store.ports import DocumentStore
from app.submissions import SubmissionService

router = APIRouter(prefix="/api/form-responses", tags=["form-responses"])

_user_dep = Depends(get_acting_user)
_service_dep = Depends(get_submission_service)
_store_dep = Depends(get_document_store)


@router.get("")
def list_responses(
    form_template_id: Optional[str] = Query(default=None, alias="formTemplateId"),
    patient_id: Optional[str] = Query(default=None, alias="patientId"),
    user: ActingUser = _user_dep,
    service: SubmissionService = _service_dep,
    store: DocumentStore = _store_dep,
) -> list[dict[str, Any]]:
    check_patient(user, store, patient_id)
    records = service.list_responses(template_id=form_template_id, patient_id=patient_id)
    allowed = visible_to(user, store, [record.patient_id for record in records])
    return [record.to_wire() for record in records if record.patient_id in allowed]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_response(
    payload: dict[str, Any] = Body(...),
    user: ActingUser = _user_dep,
    service: SubmissionService = _service_dep,
    store: DocumentStore = _store_dep,
) -> dict[str, Any]:
    check_patient(user, store, payload.get("patientId"))
    return service.create_response(payload, actor_id=user.user_id).to_dict()


@router.get("/{response_id}")
def get_response(
    response_id: str,
    user: ActingUser = _user_dep,
    service: SubmissionService = _service_dep,
    store: DocumentStore = _store_dep,
) -> dict[str, Any]:
    record = service.get_response(response_id)
    check_patient(user, store, record.patient_id)
    return record.to_wire()


@router.put("/{response_id}")
def update_response(
    response_id: str,
    payload: dict[str, Any] = Body(...),
    user: ActingUser = _user_dep,
    service: SubmissionService = _service_dep,
    store: DocumentStore = _store_dep,
) -> dict[str, Any]:
    check_patient(user, store, service.get_response(response_id).patient_id)
    return service.update_response(response_id, payload, actor_id=user.user_id).to_dict()


@router.delete("/{response_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_response(
    response_id: str,
    user: ActingUser = _user_dep,
    service: SubmissionService = _service_dep,
) -> Response:
    require_admin(user)
    service.delete_response(response_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{response_id}/attachments/{question_id}")
async def upload_attachments(
    response_id: str,
    question_id: str,
    files: list[UploadFile] = File(...),
    user: ActingUser = _user_dep,
    service: SubmissionService = _service_dep,
    attachments: AttachmentService = Depends(get_attachment_service),
    store: DocumentStore = _store_dep,
) -> dict[str, Any]:
    """Store each file and record it on the response; failed files are reported, not raised."""
    check_patient(user, store, service.get_response(response_id).patient_id)
    uploads = [
        UploadedFile(
            file_name=upload.filename or "upload",
            content=await upload.read(),
            content_type=upload.content_type,
        )
        for upload in files
    ]
    result = await attachments.attach_files(response_id, question_id, uploads)
    return result.to_dict()
