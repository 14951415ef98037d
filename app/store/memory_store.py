"""In-memory implementation of the DocumentStore interface.

Documents are kept as JSON-safe dicts so every read returns a fresh model.
Suitable for development and tests; use ``SqlDocumentStore`` for anything
that must survive a restart.
"""

from __future__ import annotations

import threading
from typing import Any

from app.common.exceptions import NotFoundError
from app.store.documents import (
    model_from_doc,
    model_to_doc,
    stamp_new,
    stamp_updated,
    template_from_doc,
    template_to_doc,
)
from app.store.ports import DocumentStore
from intake_schemas import (
    FormResponseRecord,
    FormTemplate,
    IntakeFormRecord,
    PatientProfile,
    PendingMerge,
)


class InMemoryDocumentStore(DocumentStore):
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._templates: dict[str, dict[str, Any]] = {}
        self._responses: dict[str, dict[str, Any]] = {}
        self._intakes: dict[str, dict[str, Any]] = {}
        self._patients: dict[str, dict[str, Any]] = {}
        self._merges: dict[str, dict[str, Any]] = {}

    def _put_merge(self, merge: PendingMerge | None) -> None:
        if merge is None:
            return
        merge = stamp_new(merge)
        self._merges[merge.id] = model_to_doc(merge)

    # =========================================================================
    # Templates
    # =========================================================================

    def create_template(self, template: FormTemplate) -> FormTemplate:
        with self._lock:
            template = stamp_new(template)
            self._templates[template.id] = template_to_doc(template)
            return template_from_doc(self._templates[template.id])

    def get_template(self, template_id: str) -> FormTemplate | None:
        with self._lock:
            doc = self._templates.get(template_id)
            return template_from_doc(doc) if doc is not None else None

    def list_templates(self, *, active_only: bool = False) -> list[FormTemplate]:
        with self._lock:
            docs = list(reversed(self._templates.values()))
        templates = [template_from_doc(doc) for doc in docs]
        if active_only:
            templates = [t for t in templates if t.is_active]
        return templates

    def update_template(self, template: FormTemplate) -> FormTemplate:
        with self._lock:
            if template.id not in self._templates:
                raise NotFoundError("form_template", template.id)
            template = stamp_updated(template)
            self._templates[template.id] = template_to_doc(template)
            return template_from_doc(self._templates[template.id])

    def delete_template(self, template_id: str) -> bool:
        with self._lock:
            return self._templates.pop(template_id, None) is not None

    # =========================================================================
    # Form responses
    # =========================================================================

    def create_response(
        self, record: FormResponseRecord, *, pending_merge: PendingMerge | None = None
    ) -> FormResponseRecord:
        with self._lock:
            record = stamp_new(record)
            self._responses[record.id] = model_to_doc(record)
            self._put_merge(pending_merge)
            return model_from_doc(FormResponseRecord, self._responses[record.id])

    def get_response(self, response_id: str) -> FormResponseRecord | None:
        with self._lock:
            doc = self._responses.get(response_id)
            return model_from_doc(FormResponseRecord, doc) if doc is not None else None

    def list_responses(
        self, *, template_id: str | None = None, patient_id: str | None = None
    ) -> list[FormResponseRecord]:
        with self._lock:
            docs = list(reversed(self._responses.values()))
        records = [model_from_doc(FormResponseRecord, doc) for doc in docs]
        if template_id is not None:
            records = [r for r in records if r.form_template_id == template_id]
        if patient_id is not None:
            records = [r for r in records if r.patient_id == patient_id]
        return records

    def update_response(
        self, record: FormResponseRecord, *, pending_merge: PendingMerge | None = None
    ) -> FormResponseRecord:
        with self._lock:
            if record.id not in self._responses:
                raise NotFoundError("form_response", record.id)
            record = stamp_updated(record)
            self._responses[record.id] = model_to_doc(record)
            self._put_merge(pending_merge)
            return model_from_doc(FormResponseRecord, self._responses[record.id])

    def delete_response(self, response_id: str) -> bool:
        with self._lock:
            return self._responses.pop(response_id, None) is not None

    def count_responses(self, template_id: str) -> int:
        with self._lock:
            return sum(
                1 for doc in self._responses.values() if doc.get("formTemplateId") == template_id
            )

    # =========================================================================
    # Intake forms
    # =========================================================================

    def create_intake(
        self, record: IntakeFormRecord, *, pending_merge: PendingMerge | None = None
    ) -> IntakeFormRecord:
        with self._lock:
            record = stamp_new(record)
            self._intakes[record.id] = model_to_doc(record)
            self._put_merge(pending_merge)
            return model_from_doc(IntakeFormRecord, self._intakes[record.id])

    def get_intake(self, intake_id: str) -> IntakeFormRecord | None:
        with self._lock:
            doc = self._intakes.get(intake_id)
            return model_from_doc(IntakeFormRecord, doc) if doc is not None else None

    def list_intakes(self, *, patient_id: str | None = None) -> list[IntakeFormRecord]:
        with self._lock:
            docs = list(reversed(self._intakes.values()))
        records = [model_from_doc(IntakeFormRecord, doc) for doc in docs]
        if patient_id is not None:
            records = [r for r in records if r.patient_id == patient_id]
        return records

    def update_intake(
        self, record: IntakeFormRecord, *, pending_merge: PendingMerge | None = None
    ) -> IntakeFormRecord:
        with self._lock:
            if record.id not in self._intakes:
                raise NotFoundError("intake_form", record.id)
            record = stamp_updated(record)
            self._intakes[record.id] = model_to_doc(record)
            self._put_merge(pending_merge)
            return model_from_doc(IntakeFormRecord, self._intakes[record.id])

    def delete_intake(self, intake_id: str) -> bool:
        with self._lock:
            return self._intakes.pop(intake_id, None) is not None

    # =========================================================================
    # Patients
    # =========================================================================

    def create_patient(self, profile: PatientProfile) -> PatientProfile:
        with self._lock:
            profile = stamp_new(profile)
            self._patients[profile.id] = model_to_doc(profile)
            return model_from_doc(PatientProfile, self._patients[profile.id])

    def get_patient(self, patient_id: str) -> PatientProfile | None:
        with self._lock:
            doc = self._patients.get(patient_id)
            return model_from_doc(PatientProfile, doc) if doc is not None else None

    def save_patient(self, profile: PatientProfile) -> PatientProfile:
        with self._lock:
            if profile.id not in self._patients:
                raise NotFoundError("patient", profile.id)
            profile = stamp_updated(profile)
            self._patients[profile.id] = model_to_doc(profile)
            return model_from_doc(PatientProfile, self._patients[profile.id])

    # =========================================================================
    # Merge outbox
    # =========================================================================

    def get_pending_merge(self, merge_id: str) -> PendingMerge | None:
        with self._lock:
            doc = self._merges.get(merge_id)
            return model_from_doc(PendingMerge, doc) if doc is not None else None

    def list_pending_merges(self, *, limit: int | None = None) -> list[PendingMerge]:
        with self._lock:
            docs = [doc for doc in self._merges.values() if doc.get("appliedAt") is None]
        merges = sorted(
            (model_from_doc(PendingMerge, doc) for doc in docs),
            key=lambda merge: merge.created_at,
        )
        return merges[:limit] if limit is not None else merges

    def save_pending_merge(self, merge: PendingMerge) -> PendingMerge:
        with self._lock:
            if not merge.id or merge.id not in self._merges:
                merge = stamp_new(merge)
            self._merges[merge.id] = model_to_doc(merge)
            return model_from_doc(PendingMerge, self._merges[merge.id])


__all__ = ["InMemoryDocumentStore"]
