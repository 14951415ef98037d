"""Persisted documents: templates, form responses, intake forms, patients."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import Field

from .base import WireModel
from .questions import QuestionDefinition
from .responses import ResponseEntry


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResponseStatus(str, Enum):
    INCOMPLETE = "incomplete"
    COMPLETED = "completed"
    REVIEWED = "reviewed"


class PatientStatus(str, Enum):
    ACTIVE = "active"
    DISCHARGED = "discharged"


class FormTemplate(WireModel):
    id: str | None = None
    title: str = ""
    description: str | None = None
    items: list[QuestionDefinition] = Field(default_factory=list)
    is_active: bool = True
    is_public: bool = False
    language: Literal["english", "spanish", "bilingual"] = "english"
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def find_question(self, question_id: str) -> QuestionDefinition | None:
        for question in self.items:
            if question_id in (question.storage_id, question.id):
                return question
        return None


class Respondent(WireModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    relationship: str | None = None


class FormResponseRecord(WireModel):
    id: str | None = None
    form_template_id: str
    patient_id: str | None = None
    respondent: Respondent = Field(default_factory=Respondent)
    responses: list[ResponseEntry] = Field(default_factory=list)
    status: ResponseStatus = ResponseStatus.INCOMPLETE
    completed_at: datetime | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class MatrixValue(WireModel):
    row_name: str
    column_name: str
    value: Any = None


class FileData(WireModel):
    file_name: str | None = None
    file_type: str | None = None
    file_size: int | None = None
    file_url: str | None = None


class IntakeField(WireModel):
    field_name: str
    field_type: str = "text"
    field_value: Any = None
    options: list[str] | None = None
    matrix_values: list[MatrixValue] | None = None
    file_data: FileData | None = None


class IntakeSection(WireModel):
    section_id: str
    section_name: str
    fields: list[IntakeField] = Field(default_factory=list)


class IntakeFormRecord(WireModel):
    id: str | None = None
    patient_id: str
    sections: list[IntakeSection] = Field(default_factory=list)
    form_version: str = "1.0"
    status: ResponseStatus = ResponseStatus.INCOMPLETE
    completed_at: datetime | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FormDataEntry(WireModel):
    form_type: Literal["form_response", "intake"]
    form_id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PatientProfile(WireModel):
    id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    assigned_doctor: str | None = None
    status: PatientStatus = PatientStatus.ACTIVE
    dynamic_data: dict[str, Any] = Field(default_factory=dict)
    form_data: list[FormDataEntry] = Field(default_factory=list)
    form_response_ids: list[str] = Field(default_factory=list)
    intake_form_ids: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PendingMerge(WireModel):
    """Outbox row: a canonical payload waiting to be folded into a patient profile."""

    id: str | None = None
    patient_id: str
    source_kind: Literal["form_response", "intake"]
    source_id: str
    canonical: dict[str, Any] = Field(default_factory=dict)
    attempts: int = 0
    last_error: str | None = None
    created_at: datetime | None = None
    applied_at: datetime | None = None


__all__ = [
    "utcnow",
    "ResponseStatus",
    "PatientStatus",
    "FormTemplate",
    "Respondent",
    "FormResponseRecord",
    "MatrixValue",
    "FileData",
    "IntakeField",
    "IntakeSection",
    "IntakeFormRecord",
    "FormDataEntry",
    "PatientProfile",
    "PendingMerge",
]
