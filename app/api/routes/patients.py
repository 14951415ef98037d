"""Patient profile endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from app.api.dependencies import get_patient_service
from app.api.guards import ActingUser, ensure_patient_access, get_acting_user
from app.submissions import PatientService

router = APIRouter(prefix="/api/patients", tags=["patients"])

_user_dep = Depends(get_acting_user)
_service_dep = Depends(get_patient_service)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_patient(
    payload: dict[str, Any] = Body(...),
    user: ActingUser = _user_dep,
    service: PatientService = _service_dep,
) -> dict[str, Any]:
    return service.create(payload).to_wire()


@router.get("/{patient_id}")
def get_patient(
    patient_id: str,
    user: ActingUser = _user_dep,
    service: PatientService = _service_dep,
) -> dict[str, Any]:
    profile = service.get(patient_id)
    ensure_patient_access(user, profile)
    return profile.to_wire()


@router.get("/{patient_id}/canonical")
def get_canonical(
    patient_id: str,
    user: ActingUser = _user_dep,
    service: PatientService = _service_dep,
) -> dict[str, Any]:
    ensure_patient_access(user, service.get(patient_id))
    return service.canonical(patient_id)
