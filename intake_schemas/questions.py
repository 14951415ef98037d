"""Question definitions authored in the form builder.

A question carries two identities:
- ``id``: the ephemeral authoring key, unique within one edit session.
- ``storage_id``: the key assigned by the document store on create.

Neither is persisted as part of the item body; ``to_persisted`` is the explicit
translation step used at save time.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from .base import WireModel


class QuestionType(str, Enum):
    BLANK = "blank"  # legacy alias of openAnswer
    OPEN_ANSWER = "openAnswer"
    TEXT = "text"
    DATE = "date"
    DROPDOWN = "dropdown"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    MULTIPLE_CHOICE_SINGLE = "multipleChoiceSingle"
    MULTIPLE_CHOICE_MULTIPLE = "multipleChoiceMultiple"
    MATRIX = "matrix"
    MATRIX_SINGLE_ANSWER = "matrixSingleAnswer"
    ALLERGIES = "allergies"
    DEMOGRAPHICS = "demographics"
    PRIMARY_INSURANCE = "primaryInsurance"
    SECONDARY_INSURANCE = "secondaryInsurance"
    MIXED_CONTROLS = "mixedControls"
    SECTION_TITLE = "sectionTitle"
    FILE_ATTACHMENT = "fileAttachment"
    E_SIGNATURE = "eSignature"
    SMART_EDITOR = "smartEditor"
    BODY_MAP = "bodyMap"


MATRIX_TYPES = frozenset(
    {QuestionType.MATRIX, QuestionType.MATRIX_SINGLE_ANSWER, QuestionType.ALLERGIES}
)
FIELD_GROUP_TYPES = frozenset(
    {
        QuestionType.DEMOGRAPHICS,
        QuestionType.PRIMARY_INSURANCE,
        QuestionType.SECONDARY_INSURANCE,
    }
)
CHOICE_TYPES = frozenset(
    {
        QuestionType.DROPDOWN,
        QuestionType.RADIO,
        QuestionType.CHECKBOX,
        QuestionType.MULTIPLE_CHOICE_SINGLE,
        QuestionType.MULTIPLE_CHOICE_MULTIPLE,
    }
)


class MatrixSpec(WireModel):
    row_header: str | None = None
    column_headers: list[str] = Field(default_factory=list)
    column_types: list[str] = Field(default_factory=list)
    rows: list[str] = Field(default_factory=list)
    dropdown_options: list[list[str]] = Field(default_factory=list)
    display_text_box: bool = False
    allow_multiple_answers: bool | None = None


class FieldSpec(WireModel):
    """One entry of a demographics or insurance field group."""

    field_name: str
    field_type: str = "text"
    required: bool = False
    options: list[str] | None = None


class MixedControlSpec(WireModel):
    control_type: str
    label: str
    required: bool = False
    options: list[str] | None = None
    placeholder: str | None = None


class QuestionDefinition(WireModel):
    id: str | None = None
    storage_id: str | None = None

    type: QuestionType
    question_text: str
    is_required: bool = False

    placeholder: str | None = None
    instructions: str | None = None
    multiple_lines: bool | None = None
    options: list[str] | None = None
    matrix: MatrixSpec | None = None
    demographic_fields: list[FieldSpec] | None = None
    insurance_fields: list[FieldSpec] | None = None
    mixed_controls_config: list[MixedControlSpec] | None = None
    section_content: str | None = None
    file_types: list[str] | None = None
    max_file_size: int | None = None
    signature_prompt: str | None = None
    editor_content: str | None = None
    body_map_type: str | None = None
    allow_patient_markings: bool | None = None

    def content(self) -> dict[str, Any]:
        """Everything but identity; two items with equal content are interchangeable."""
        return self.model_dump(exclude={"id", "storage_id"})

    def to_persisted(self) -> dict[str, Any]:
        """Wire body for the document store, identity fields stripped."""
        return self.model_dump(
            by_alias=True,
            mode="json",
            exclude={"id", "storage_id"},
            exclude_none=True,
        )

    @property
    def field_group(self) -> list[FieldSpec]:
        if self.type == QuestionType.DEMOGRAPHICS:
            return list(self.demographic_fields or [])
        if self.type in (QuestionType.PRIMARY_INSURANCE, QuestionType.SECONDARY_INSURANCE):
            return list(self.insurance_fields or [])
        return []

    @property
    def reference_id(self) -> str | None:
        """Identity a respondent uses to address this item."""
        return self.storage_id or self.id


__all__ = [
    "QuestionType",
    "MATRIX_TYPES",
    "FIELD_GROUP_TYPES",
    "CHOICE_TYPES",
    "MatrixSpec",
    "FieldSpec",
    "MixedControlSpec",
    "QuestionDefinition",
]
