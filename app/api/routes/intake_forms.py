"""Intake form endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from app.api.dependencies import get_document_store, get_submission_service
from app.api.guards import ActingUser, check_patient, get_acting_user, require_admin, visible_to
from app.store.ports import DocumentStore
from app.submissions import SubmissionService

router = APIRouter(prefix="/api/intake-forms", tags=["intake-forms"])

_user_dep = Depends(get_acting_user)
_service_dep = Depends(get_submission_service)
_store_dep = Depends(get_document_store)


@router.get("")
def list_intakes(
    patient_id: Optional[str] = Query(default=None, alias="patientId"),
    user: ActingUser = _user_dep,
    service: SubmissionService = _service_dep,
    store: DocumentStore = _store_dep,
) -> list[dict[str, Any]]:
    check_patient(user, store, patient_id)
    records = service.list_intakes(patient_id=patient_id)
    allowed = visible_to(user, store, [record.patient_id for record in records])
    return [record.to_wire() for record in records if record.patient_id in allowed]


@router.get("/patient/{patient_id}")
def list_patient_intakes(
    patient_id: str,
    user: ActingUser = _user_dep,
    service: SubmissionService = _service_dep,
    store: DocumentStore = _store_dep,
) -> list[dict[str, Any]]:
    check_patient(user, store, patient_id)
    return [record.to_wire() for record in service.list_intakes(patient_id=patient_id)]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_intake(
    payload: dict[str, Any] = Body(...),
    user: ActingUser = _user_dep,
    service: SubmissionService = _service_dep,
    store: DocumentStore = _store_dep,
) -> dict[str, Any]:
    check_patient(user, store, payload.get("patientId"))
    return service.create_intake(payload, actor_id=user.user_id).to_dict()


@router.get("/{intake_id}")
def get_intake(
    intake_id: str,
    user: ActingUser = _user_dep,
    service: SubmissionService = _service_dep,
    store: DocumentStore = _store_dep,
) -> dict[str, Any]:
    record = service.get_intake(intake_id)
    check_patient(user, store, record.patient_id)
    return record.to_wire()


@router.put("/{intake_id}")
def update_intake(
    intake_id: str,
    payload: dict[str, Any] = Body(...),
    user: ActingUser = _user_dep,
    service: SubmissionService = _service_dep,
    store: DocumentStore = _store_dep,
) -> dict[str, Any]:
    check_patient(user, store, service.get_intake(intake_id).patient_id)
    return service.update_intake(intake_id, payload, actor_id=user.user_id).to_dict()


@router.delete("/{intake_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_intake(
    intake_id: str,
    user: ActingUser = _user_dep,
    service: SubmissionService = _service_dep,
) -> Response:
    require_admin(user)
    service.delete_intake(intake_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
