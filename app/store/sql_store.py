"""SQLAlchemy implementation of the DocumentStore interface."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.common.exceptions import NotFoundError, PersistenceError
from app.store.db import session_factory
from app.store.documents import (
    model_from_doc,
    model_to_doc,
    stamp_new,
    stamp_updated,
    template_from_doc,
    template_to_doc,
)
from app.store.models import (
    FormResponseRow,
    FormTemplateRow,
    IntakeFormRow,
    PatientRow,
    PendingMergeRow,
)
from app.store.ports import DocumentStore
from intake_schemas import (
    FormResponseRecord,
    FormTemplate,
    IntakeFormRecord,
    PatientProfile,
    PendingMerge,
)
from observability.logging_config import get_logger

logger = get_logger("sql_document_store")


def _merge_row(merge: PendingMerge) -> PendingMergeRow:
    return PendingMergeRow(
        id=merge.id,
        patient_id=merge.patient_id,
        source_kind=merge.source_kind,
        source_id=merge.source_id,
        canonical=merge.canonical,
        attempts=merge.attempts,
        last_error=merge.last_error,
        created_at=merge.created_at,
        applied_at=merge.applied_at,
    )


def _merge_from_row(row: PendingMergeRow) -> PendingMerge:
    return PendingMerge(
        id=row.id,
        patient_id=row.patient_id,
        source_kind=row.source_kind,
        source_id=row.source_id,
        canonical=dict(row.canonical or {}),
        attempts=row.attempts,
        last_error=row.last_error,
        created_at=row.created_at,
        applied_at=row.applied_at,
    )


class SqlDocumentStore(DocumentStore):
    """Documents as JSON bodies in relational rows.

    Every public method runs in its own transaction; a response or intake
    insert and its pending merge commit together.
    """

    def __init__(self, engine: Engine):
        self._engine = engine
        self._sessions = session_factory(engine)

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        session = self._sessions()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error(
                "Document store operation failed",
                extra={"operation": operation, "error": type(exc).__name__},
            )
            raise PersistenceError(f"{operation} failed: {exc}", operation=operation) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # =========================================================================
    # Templates
    # =========================================================================

    def create_template(self, template: FormTemplate) -> FormTemplate:
        template = stamp_new(template)
        doc = template_to_doc(template)
        with self._session("create_template") as session:
            session.add(
                FormTemplateRow(
                    id=template.id,
                    title=template.title,
                    is_active=template.is_active,
                    body=doc,
                    created_at=template.created_at,
                    updated_at=template.updated_at,
                )
            )
        return template_from_doc(doc)

    def get_template(self, template_id: str) -> FormTemplate | None:
        with self._session("get_template") as session:
            row = session.get(FormTemplateRow, template_id)
            return template_from_doc(row.body) if row is not None else None

    def list_templates(self, *, active_only: bool = False) -> list[FormTemplate]:
        stmt = select(FormTemplateRow).order_by(FormTemplateRow.created_at.desc())
        if active_only:
            stmt = stmt.where(FormTemplateRow.is_active.is_(True))
        with self._session("list_templates") as session:
            return [template_from_doc(row.body) for row in session.scalars(stmt)]

    def update_template(self, template: FormTemplate) -> FormTemplate:
        template = stamp_updated(template)
        doc = template_to_doc(template)
        with self._session("update_template") as session:
            row = session.get(FormTemplateRow, template.id)
            if row is None:
                raise NotFoundError("form_template", template.id)
            row.title = template.title
            row.is_active = template.is_active
            row.body = doc
        return template_from_doc(doc)

    def delete_template(self, template_id: str) -> bool:
        with self._session("delete_template") as session:
            row = session.get(FormTemplateRow, template_id)
            if row is None:
                return False
            session.delete(row)
            return True

    # =========================================================================
    # Form responses
    # =========================================================================

    def create_response(
        self, record: FormResponseRecord, *, pending_merge: PendingMerge | None = None
    ) -> FormResponseRecord:
        record = stamp_new(record)
        doc = model_to_doc(record)
        with self._session("create_response") as session:
            session.add(
                FormResponseRow(
                    id=record.id,
                    form_template_id=record.form_template_id,
                    patient_id=record.patient_id,
                    status=record.status.value,
                    body=doc,
                    created_at=record.created_at,
                    updated_at=record.updated_at,
                )
            )
            if pending_merge is not None:
                session.add(_merge_row(stamp_new(pending_merge)))
        return model_from_doc(FormResponseRecord, doc)

    def get_response(self, response_id: str) -> FormResponseRecord | None:
        with self._session("get_response") as session:
            row = session.get(FormResponseRow, response_id)
            return model_from_doc(FormResponseRecord, row.body) if row is not None else None

    def list_responses(
        self, *, template_id: str | None = None, patient_id: str | None = None
    ) -> list[FormResponseRecord]:
        stmt = select(FormResponseRow).order_by(FormResponseRow.created_at.desc())
        if template_id is not None:
            stmt = stmt.where(FormResponseRow.form_template_id == template_id)
        if patient_id is not None:
            stmt = stmt.where(FormResponseRow.patient_id == patient_id)
        with self._session("list_responses") as session:
            return [model_from_doc(FormResponseRecord, row.body) for row in session.scalars(stmt)]

    def update_response(
        self, record: FormResponseRecord, *, pending_merge: PendingMerge | None = None
    ) -> FormResponseRecord:
        record = stamp_updated(record)
        doc = model_to_doc(record)
        with self._session("update_response") as session:
            row = session.get(FormResponseRow, record.id)
            if row is None:
                raise NotFoundError("form_response", record.id)
            row.patient_id = record.patient_id
            row.status = record.status.value
            row.body = doc
            if pending_merge is not None:
                session.add(_merge_row(stamp_new(pending_merge)))
        return model_from_doc(FormResponseRecord, doc)

    def delete_response(self, response_id: str) -> bool:
        with self._session("delete_response") as session:
            row = session.get(FormResponseRow, response_id)
            if row is None:
                return False
            session.delete(row)
            return True

    def count_responses(self, template_id: str) -> int:
        stmt = select(func.count()).select_from(FormResponseRow).where(
            FormResponseRow.form_template_id == template_id
        )
        with self._session("count_responses") as session:
            return int(session.scalar(stmt) or 0)

    # =========================================================================
    # Intake forms
    # =========================================================================

    def create_intake(
        self, record: IntakeFormRecord, *, pending_merge: PendingMerge | None = None
    ) -> IntakeFormRecord:
        record = stamp_new(record)
        doc = model_to_doc(record)
        with self._session("create_intake") as session:
            session.add(
                IntakeFormRow(
                    id=record.id,
                    patient_id=record.patient_id,
                    status=record.status.value,
                    body=doc,
                    created_at=record.created_at,
                    updated_at=record.updated_at,
                )
            )
            if pending_merge is not None:
                session.add(_merge_row(stamp_new(pending_merge)))
        return model_from_doc(IntakeFormRecord, doc)

    def get_intake(self, intake_id: str) -> IntakeFormRecord | None:
        with self._session("get_intake") as session:
            row = session.get(IntakeFormRow, intake_id)
            return model_from_doc(IntakeFormRecord, row.body) if row is not None else None

    def list_intakes(self, *, patient_id: str | None = None) -> list[IntakeFormRecord]:
        stmt = select(IntakeFormRow).order_by(IntakeFormRow.created_at.desc())
        if patient_id is not None:
            stmt = stmt.where(IntakeFormRow.patient_id == patient_id)
        with self._session("list_intakes") as session:
            return [model_from_doc(IntakeFormRecord, row.body) for row in session.scalars(stmt)]

    def update_intake(
        self, record: IntakeFormRecord, *, pending_merge: PendingMerge | None = None
    ) -> IntakeFormRecord:
        record = stamp_updated(record)
        doc = model_to_doc(record)
        with self._session("update_intake") as session:
            row = session.get(IntakeFormRow, record.id)
            if row is None:
                raise NotFoundError("intake_form", record.id)
            row.status = record.status.value
            row.body = doc
            if pending_merge is not None:
                session.add(_merge_row(stamp_new(pending_merge)))
        return model_from_doc(IntakeFormRecord, doc)

    def delete_intake(self, intake_id: str) -> bool:
        with self._session("delete_intake") as session:
            row = session.get(IntakeFormRow, intake_id)
            if row is None:
                return False
            session.delete(row)
            return True

    # =========================================================================
    # Patients
    # =========================================================================

    def create_patient(self, profile: PatientProfile) -> PatientProfile:
        profile = stamp_new(profile)
        doc = model_to_doc(profile)
        with self._session("create_patient") as session:
            session.add(
                PatientRow(
                    id=profile.id,
                    assigned_doctor=profile.assigned_doctor,
                    status=profile.status.value,
                    body=doc,
                    created_at=profile.created_at,
                    updated_at=profile.updated_at,
                )
            )
        return model_from_doc(PatientProfile, doc)

    def get_patient(self, patient_id: str) -> PatientProfile | None:
        with self._session("get_patient") as session:
            row = session.get(PatientRow, patient_id)
            return model_from_doc(PatientProfile, row.body) if row is not None else None

    def save_patient(self, profile: PatientProfile) -> PatientProfile:
        profile = stamp_updated(profile)
        doc = model_to_doc(profile)
        with self._session("save_patient") as session:
            row = session.get(PatientRow, profile.id)
            if row is None:
                raise NotFoundError("patient", profile.id)
            row.assigned_doctor = profile.assigned_doctor
            row.status = profile.status.value
            row.body = doc
        return model_from_doc(PatientProfile, doc)

    # =========================================================================
    # Merge outbox
    # =========================================================================

    def get_pending_merge(self, merge_id: str) -> PendingMerge | None:
        with self._session("get_pending_merge") as session:
            row = session.get(PendingMergeRow, merge_id)
            return _merge_from_row(row) if row is not None else None

    def list_pending_merges(self, *, limit: int | None = None) -> list[PendingMerge]:
        stmt = (
            select(PendingMergeRow)
            .where(PendingMergeRow.applied_at.is_(None))
            .order_by(PendingMergeRow.created_at.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._session("list_pending_merges") as session:
            return [_merge_from_row(row) for row in session.scalars(stmt)]

    def save_pending_merge(self, merge: PendingMerge) -> PendingMerge:
        with self._session("save_pending_merge") as session:
            row = session.get(PendingMergeRow, merge.id) if merge.id else None
            if row is None:
                merge = stamp_new(merge)
                session.add(_merge_row(merge))
            else:
                row.attempts = merge.attempts
                row.last_error = merge.last_error
                row.applied_at = merge.applied_at
                row.canonical = merge.canonical
        return merge


__all__ = ["SqlDocumentStore"]
