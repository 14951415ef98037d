"""SQLAlchemy models for intake documents.

Each row keeps the full wire-format document in ``body``; the scalar columns
are copies used for filtering.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from app.store.db import Base, JSONType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FormTemplateRow(Base):
    __tablename__ = "form_templates"

    id = Column(String(36), primary_key=True)
    title = Column(String(500), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    body = Column(JSONType, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class PatientRow(Base):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True)
    assigned_doctor = Column(String(255), nullable=True, index=True)
    status = Column(String(32), nullable=False, default="active")
    body = Column(JSONType, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class FormResponseRow(Base):
    __tablename__ = "form_responses"

    id = Column(String(36), primary_key=True)
    form_template_id = Column(String(36), nullable=False, index=True)
    patient_id = Column(String(36), nullable=True, index=True)
    status = Column(String(32), nullable=False, default="incomplete", index=True)
    body = Column(JSONType, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class IntakeFormRow(Base):
    __tablename__ = "intake_forms"

    id = Column(String(36), primary_key=True)
    patient_id = Column(String(36), nullable=False, index=True)
    status = Column(String(32), nullable=False, default="incomplete", index=True)
    body = Column(JSONType, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class PendingMergeRow(Base):
    __tablename__ = "pending_merges"

    id = Column(String(36), primary_key=True)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    source_kind = Column(String(32), nullable=False)
    source_id = Column(String(36), nullable=False, index=True)
    canonical = Column(JSONType, nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    applied_at = Column(DateTime(timezone=True), nullable=True, index=True)


__all__ = [
    "FormTemplateRow",
    "PatientRow",
    "FormResponseRow",
    "IntakeFormRow",
    "PendingMergeRow",
]
