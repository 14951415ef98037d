"""Acting-user resolution and access checks.

Authentication happens upstream; the gateway forwards the verified user as
``X-User-Id`` and ``X-User-Role`` headers.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Header, HTTPException, status

from app.common.exceptions import AccessDeniedError, NotFoundError
from app.store.ports import DocumentStore
from intake_schemas import PatientProfile

ROLES = frozenset({"admin", "doctor", "staff", "patient"})


@dataclass(frozen=True)
class ActingUser:
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_acting_user(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> ActingUser:
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id and X-User-Role headers are required",
        )
    role = x_user_role.strip().lower()
    if role not in ROLES:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role: {x_user_role}",
        )
    return ActingUser(user_id=x_user_id.strip(), role=role)


def ensure_patient_access(user: ActingUser, patient: PatientProfile) -> None:
    """Doctors only see their assigned patients; other roles are not restricted here."""
    if user.role == "doctor" and patient.assigned_doctor != user.user_id:
        raise AccessDeniedError(f"patient {patient.id} is not assigned to this doctor")


def require_admin(user: ActingUser) -> None:
    if not user.is_admin:
        raise AccessDeniedError("admin role required")


def check_patient(user: ActingUser, store: DocumentStore, patient_id: str | None) -> None:
    """Resolve ``patient_id`` and apply the access rule; no-op for unlinked records."""
    if not patient_id:
        return
    patient = store.get_patient(patient_id)
    if patient is None:
        raise NotFoundError("patient", patient_id)
    ensure_patient_access(user, patient)


def visible_to(user: ActingUser, store: DocumentStore, patient_ids: list[str | None]) -> set[str | None]:
    """Subset of ``patient_ids`` whose records ``user`` may list."""
    if user.role != "doctor":
        return set(patient_ids)
    allowed: set[str | None] = set()
    for patient_id in set(patient_ids):
        patient = store.get_patient(patient_id) if patient_id else None
        if patient is not None and patient.assigned_doctor == user.user_id:
            allowed.add(patient_id)
    return allowed


__all__ = [
    "ActingUser",
    "ROLES",
    "check_patient",
    "ensure_patient_access",
    "get_acting_user",
    "require_admin",
    "visible_to",
]
