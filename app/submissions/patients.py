"""Patient profiles: creation and read access to merged canonical data."""

from __future__ import annotations

from typing import Any

from app.common.exceptions import NotFoundError, ValidationError
from app.store.ports import DocumentStore
from intake_schemas import PatientProfile
from observability.logging_config import get_logger

logger = get_logger("patients")

# Merged data is owned by the merge step; clients never write it directly.
_SERVER_OWNED = {
    "id": None,
    "dynamic_data": {},
    "form_data": [],
    "form_response_ids": [],
    "intake_form_ids": [],
}


class PatientService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def create(self, payload: dict[str, Any]) -> PatientProfile:
        try:
            profile = PatientProfile.model_validate(payload)
        except ValueError as exc:
            raise ValidationError("Invalid patient", [str(exc)]) from exc
        profile = self.store.create_patient(profile.model_copy(update=_SERVER_OWNED))
        logger.info(
            "Patient created",
            extra={"patient_id": profile.id, "assigned_doctor": profile.assigned_doctor},
        )
        return profile

    def get(self, patient_id: str) -> PatientProfile:
        profile = self.store.get_patient(patient_id)
        if profile is None:
            raise NotFoundError("patient", patient_id)
        return profile

    def canonical(self, patient_id: str) -> dict[str, Any]:
        """The merged ``dynamicData`` together with the formData log length."""
        profile = self.get(patient_id)
        return {
            "patientId": profile.id,
            "dynamicData": profile.dynamic_data,
            "formDataCount": len(profile.form_data),
        }


__all__ = ["PatientService"]
