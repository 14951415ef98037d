"""Status transitions for form responses and intake forms."""

from __future__ import annotations

from typing import TypeVar, Union

from app.common.exceptions import ValidationError
from intake_schemas import FormResponseRecord, IntakeFormRecord, ResponseStatus, utcnow

R = TypeVar("R", bound=Union[FormResponseRecord, IntakeFormRecord])

_ORDER = {
    ResponseStatus.INCOMPLETE: 0,
    ResponseStatus.COMPLETED: 1,
    ResponseStatus.REVIEWED: 2,
}


def is_mergeable(status: ResponseStatus) -> bool:
    """Only finished submissions feed the patient profile."""
    return status in (ResponseStatus.COMPLETED, ResponseStatus.REVIEWED)


def advance_status(record: R, status: ResponseStatus | str, *, actor_id: str | None = None) -> R:
    """Move ``record`` forward along incomplete -> completed -> reviewed.

    Reaching completed stamps ``completedAt`` once; reaching reviewed records
    the reviewer. Moving backwards raises ValidationError.
    """
    try:
        target = ResponseStatus(status)
    except ValueError as exc:
        raise ValidationError("Unknown status", [f"status: {status!r}"]) from exc

    if target == record.status:
        return record
    if _ORDER[target] < _ORDER[record.status]:
        raise ValidationError(
            "Invalid status transition",
            [f"status: cannot go from {record.status.value} to {target.value}"],
        )

    now = utcnow()
    update: dict = {"status": target}
    if record.completed_at is None:
        update["completed_at"] = now
    if target == ResponseStatus.REVIEWED:
        update["reviewed_by"] = actor_id
        update["reviewed_at"] = now
    return record.model_copy(update=update)


__all__ = ["advance_status", "is_mergeable"]
