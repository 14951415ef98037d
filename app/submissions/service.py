"""Persist-then-merge orchestration for form responses and intake forms.

A finished submission is written together with a ``PendingMerge`` outbox
row. The merge into the patient profile is attempted right away; when it
fails the row stays queued with its error and ``retry_pending_merges``
applies it later. Merging is idempotent, so a retry after a partial failure
is safe.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union

from app.common.exceptions import MergeError, NotFoundError, PersistenceError, ValidationError
from app.extraction import extract_canonical_data, merge_into_profile
from app.responses.lifecycle import advance_status, is_mergeable
from app.responses.validation import validate_submission
from app.store.documents import new_id
from app.store.ports import DocumentStore
from intake_schemas import (
    CanonicalMedicalData,
    FileEntry,
    FormResponseRecord,
    FormTemplate,
    IntakeFormRecord,
    IntakeSection,
    PatientProfile,
    PendingMerge,
    Respondent,
    ResponseEntry,
    ResponseStatus,
    utcnow,
)
from observability.logging_config import get_logger
from observability.metrics import MERGE_FAILURES, MERGES, SUBMISSIONS, get_metrics_client
from observability.timing import timed

logger = get_logger("submissions")

Record = Union[FormResponseRecord, IntakeFormRecord]
MergeStatus = Literal["applied", "pending", "skipped"]


@dataclass
class SubmissionOutcome:
    record: Record
    merge_status: MergeStatus = "skipped"
    merge_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        body = self.record.to_wire()
        body["mergeStatus"] = self.merge_status
        return body


def _status(raw: Any) -> ResponseStatus:
    if raw is None:
        return ResponseStatus.INCOMPLETE
    try:
        return ResponseStatus(raw)
    except ValueError as exc:
        raise ValidationError("Unknown status", [f"status: {raw!r}"]) from exc


def _source_kind(record: Record) -> Literal["form_response", "intake"]:
    return "form_response" if isinstance(record, FormResponseRecord) else "intake"


def _carry_attachments(previous: list[ResponseEntry], entries: list[ResponseEntry]) -> list[ResponseEntry]:
    """File answers only change through the attachment upload; keep what is stored."""
    stored = {entry.question_id: entry for entry in previous if isinstance(entry, FileEntry)}
    result: list[ResponseEntry] = []
    for entry in entries:
        if isinstance(entry, FileEntry):
            kept = stored.pop(entry.question_id, None)
            entry = entry.model_copy(
                update={"file_attachments": list(kept.file_attachments) if kept else []}
            )
        result.append(entry)
    result.extend(stored.values())
    return result


def _link_source(profile: PatientProfile, merge: PendingMerge) -> PatientProfile:
    attr = "form_response_ids" if merge.source_kind == "form_response" else "intake_form_ids"
    linked = getattr(profile, attr)
    if merge.source_id in linked:
        return profile
    return profile.model_copy(update={attr: [*linked, merge.source_id]})


class SubmissionService:
    def __init__(self, store: DocumentStore, *, midline: float = 50.0):
        self.store = store
        self.midline = midline

    # -- shared -------------------------------------------------------------

    def _require_patient(self, patient_id: str) -> PatientProfile:
        profile = self.store.get_patient(patient_id)
        if profile is None:
            raise NotFoundError("patient", patient_id)
        return profile

    def _pending_merge(self, record: Record) -> PendingMerge | None:
        if not record.patient_id or not is_mergeable(record.status):
            return None
        kind = _source_kind(record)
        with timed("intake.extract", {"kind": kind}):
            canonical = extract_canonical_data(record, midline=self.midline)
        return PendingMerge(
            id=new_id(),
            patient_id=record.patient_id,
            source_kind=kind,
            source_id=record.id,
            canonical=canonical.to_wire(),
        )

    def _settle(self, record: Record, pending: PendingMerge | None) -> SubmissionOutcome:
        if pending is None:
            return SubmissionOutcome(record=record)
        try:
            stored = self.store.get_pending_merge(pending.id) or pending
        except PersistenceError as exc:
            logger.error(
                "Could not load queued merge; left pending",
                extra={"merge_id": pending.id, "error": str(exc)},
            )
            return SubmissionOutcome(record=record, merge_status="pending", merge_id=pending.id)
        applied = self.apply_pending_merge(stored)
        return SubmissionOutcome(
            record=record,
            merge_status="applied" if applied else "pending",
            merge_id=pending.id,
        )

    def _count(self, record: Record) -> None:
        get_metrics_client().incr(
            SUBMISSIONS, {"kind": _source_kind(record), "status": record.status.value}
        )

    # -- form responses -----------------------------------------------------

    def create_response(self, payload: dict[str, Any], *, actor_id: str | None = None) -> SubmissionOutcome:
        template_id = payload.get("formTemplateId") or payload.get("form_template_id")
        if not template_id:
            raise ValidationError("Form template is required", ["formTemplateId: missing"])
        template = self.store.get_template(template_id)
        if template is None:
            raise NotFoundError("form_template", template_id)

        status = _status(payload.get("status"))
        entries = validate_submission(
            template,
            payload.get("responses") or [],
            enforce_required=status != ResponseStatus.INCOMPLETE,
        )
        patient_id = payload.get("patientId") or payload.get("patient_id")
        if patient_id:
            self._require_patient(patient_id)

        try:
            respondent = Respondent.model_validate(payload.get("respondent") or {})
        except ValueError as exc:
            raise ValidationError("Invalid respondent", [str(exc)]) from exc

        record = FormResponseRecord(
            id=new_id(),
            form_template_id=template_id,
            patient_id=patient_id,
            respondent=respondent,
            responses=_carry_attachments([], entries),
        )
        record = advance_status(record, status, actor_id=actor_id)

        pending = self._pending_merge(record)
        record = self.store.create_response(record, pending_merge=pending)
        self._count(record)
        logger.info(
            "Form response created",
            extra={
                "response_id": record.id,
                "template_id": template_id,
                "status": record.status.value,
                "entries": len(record.responses),
            },
        )
        return self._settle(record, pending)

    def get_response(self, response_id: str) -> FormResponseRecord:
        record = self.store.get_response(response_id)
        if record is None:
            raise NotFoundError("form_response", response_id)
        return record

    def list_responses(
        self, *, template_id: str | None = None, patient_id: str | None = None
    ) -> list[FormResponseRecord]:
        return self.store.list_responses(template_id=template_id, patient_id=patient_id)

    def _template_of(self, record: FormResponseRecord) -> FormTemplate:
        template = self.store.get_template(record.form_template_id)
        if template is None:
            raise NotFoundError("form_template", record.form_template_id)
        return template

    def update_response(
        self, response_id: str, payload: dict[str, Any], *, actor_id: str | None = None
    ) -> SubmissionOutcome:
        """Replace answers (only while incomplete) and/or advance the status."""
        existing = self.get_response(response_id)
        status = _status(payload.get("status") or existing.status)
        record = existing

        if "responses" in payload:
            if existing.status != ResponseStatus.INCOMPLETE:
                raise ValidationError(
                    "Response is finished; its answers can no longer change",
                    [f"status: {existing.status.value}"],
                )
            entries = validate_submission(
                self._template_of(existing),
                payload.get("responses") or [],
                enforce_required=status != ResponseStatus.INCOMPLETE,
            )
            record = record.model_copy(
                update={"responses": _carry_attachments(existing.responses, entries)}
            )
        elif existing.status == ResponseStatus.INCOMPLETE and status != ResponseStatus.INCOMPLETE:
            # Finishing a draft: the stored answers must satisfy the required items.
            validate_submission(self._template_of(existing), existing.responses, enforce_required=True)

        record = advance_status(record, status, actor_id=actor_id)
        pending = None if is_mergeable(existing.status) else self._pending_merge(record)
        record = self.store.update_response(record, pending_merge=pending)
        if record.status != existing.status:
            self._count(record)
        logger.info(
            "Form response updated",
            extra={"response_id": response_id, "status": record.status.value},
        )
        return self._settle(record, pending)

    def delete_response(self, response_id: str) -> None:
        if not self.store.delete_response(response_id):
            raise NotFoundError("form_response", response_id)
        logger.info("Form response deleted", extra={"response_id": response_id})

    # -- intake forms -------------------------------------------------------

    @staticmethod
    def _sections(raw: Any) -> list[IntakeSection]:
        try:
            return [IntakeSection.model_validate(section) for section in raw or []]
        except ValueError as exc:
            raise ValidationError("Invalid intake sections", [str(exc)]) from exc

    def create_intake(self, payload: dict[str, Any], *, actor_id: str | None = None) -> SubmissionOutcome:
        patient_id = payload.get("patientId") or payload.get("patient_id")
        if not patient_id:
            raise ValidationError("Patient is required", ["patientId: missing"])
        self._require_patient(patient_id)

        record = IntakeFormRecord(
            id=new_id(),
            patient_id=patient_id,
            sections=self._sections(payload.get("sections")),
            form_version=str(payload.get("formVersion") or "1.0"),
            created_by=actor_id,
        )
        record = advance_status(record, _status(payload.get("status")), actor_id=actor_id)

        pending = self._pending_merge(record)
        record = self.store.create_intake(record, pending_merge=pending)
        self._count(record)
        logger.info(
            "Intake form created",
            extra={"intake_id": record.id, "patient_id": patient_id, "status": record.status.value},
        )
        return self._settle(record, pending)

    def get_intake(self, intake_id: str) -> IntakeFormRecord:
        record = self.store.get_intake(intake_id)
        if record is None:
            raise NotFoundError("intake_form", intake_id)
        return record

    def list_intakes(self, *, patient_id: str | None = None) -> list[IntakeFormRecord]:
        return self.store.list_intakes(patient_id=patient_id)

    def update_intake(
        self, intake_id: str, payload: dict[str, Any], *, actor_id: str | None = None
    ) -> SubmissionOutcome:
        existing = self.get_intake(intake_id)
        record = existing
        if "sections" in payload:
            if existing.status != ResponseStatus.INCOMPLETE:
                raise ValidationError(
                    "Intake form is finished; its sections can no longer change",
                    [f"status: {existing.status.value}"],
                )
            record = record.model_copy(update={"sections": self._sections(payload["sections"])})

        record = advance_status(record, _status(payload.get("status") or existing.status), actor_id=actor_id)
        pending = None if is_mergeable(existing.status) else self._pending_merge(record)
        record = self.store.update_intake(record, pending_merge=pending)
        if record.status != existing.status:
            self._count(record)
        logger.info("Intake form updated", extra={"intake_id": intake_id, "status": record.status.value})
        return self._settle(record, pending)

    def delete_intake(self, intake_id: str) -> None:
        if not self.store.delete_intake(intake_id):
            raise NotFoundError("intake_form", intake_id)
        logger.info("Intake form deleted", extra={"intake_id": intake_id})

    # -- merge outbox -------------------------------------------------------

    def _record_attempt(self, merge: PendingMerge) -> bool:
        """Persist outbox bookkeeping; False when the store is unavailable."""
        try:
            self.store.save_pending_merge(merge)
        except PersistenceError as exc:
            logger.error(
                "Could not record merge attempt; row stays queued",
                extra={"merge_id": merge.id, "attempts": merge.attempts, "error": str(exc)},
            )
            return False
        return True

    def apply_pending_merge(self, merge: PendingMerge) -> bool:
        """Fold one outbox row into its patient profile; False leaves it queued."""
        tags = {"kind": merge.source_kind}
        attempts = merge.attempts + 1
        try:
            with timed("intake.merge", tags):
                canonical = CanonicalMedicalData.model_validate(merge.canonical)
                profile = self._require_patient(merge.patient_id)
                merged = _link_source(merge_into_profile(profile, canonical), merge)
                self.store.save_patient(merged)
        except (PersistenceError, NotFoundError) as exc:
            error = MergeError(merge.patient_id, merge.source_id, f"{type(exc).__name__}: {exc}")
            logger.warning(
                "Patient merge failed; left pending",
                extra={
                    "merge_id": merge.id,
                    "patient_id": merge.patient_id,
                    "source_id": merge.source_id,
                    "attempts": attempts,
                    "error": str(error),
                },
            )
            get_metrics_client().incr(MERGE_FAILURES, tags)
            self._record_attempt(
                merge.model_copy(update={"attempts": attempts, "last_error": str(error)})
            )
            return False

        if not self._record_attempt(
            merge.model_copy(update={"attempts": attempts, "last_error": None, "applied_at": utcnow()})
        ):
            # Profile is merged but the row stays queued; the next retry re-applies idempotently.
            return False
        get_metrics_client().incr(MERGES, tags)
        logger.info(
            "Patient profile merged",
            extra={"merge_id": merge.id, "patient_id": merge.patient_id, "source_id": merge.source_id},
        )
        return True

    def retry_pending_merges(self, *, limit: int | None = None) -> dict[str, int]:
        pending = self.store.list_pending_merges(limit=limit)
        applied = sum(1 for merge in pending if self.apply_pending_merge(merge))
        summary = {"attempted": len(pending), "applied": applied, "pending": len(pending) - applied}
        logger.info("Pending merges retried", extra=summary)
        return summary


__all__ = ["SubmissionOutcome", "SubmissionService"]
