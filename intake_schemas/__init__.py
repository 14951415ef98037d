"""Public schema exports for the Intake Suite."""

from .base import WireModel
from .questions import (
    CHOICE_TYPES,
    FIELD_GROUP_TYPES,
    MATRIX_TYPES,
    FieldSpec,
    MatrixSpec,
    MixedControlSpec,
    QuestionDefinition,
    QuestionType,
)
from .responses import (
    ANSWER_SHAPES,
    BodyMapEntry,
    BodyMapMarking,
    FieldGroupEntry,
    FileAttachment,
    FileEntry,
    MatrixCell,
    MatrixEntry,
    MixedControlResponse,
    MixedControlsEntry,
    MultiChoiceEntry,
    ResponseEntry,
    ScalarEntry,
    Signature,
    SignatureEntry,
    parse_entries,
    parse_entry,
)
from .records import (
    FileData,
    FormDataEntry,
    FormResponseRecord,
    FormTemplate,
    IntakeField,
    IntakeFormRecord,
    IntakeSection,
    MatrixValue,
    PatientProfile,
    PatientStatus,
    PendingMerge,
    Respondent,
    ResponseStatus,
    utcnow,
)
from .canonical import CANONICAL_LIST_FIELDS, BodyPart, CanonicalMedicalData, PainData

__all__ = [
    "WireModel",
    "CHOICE_TYPES",
    "FIELD_GROUP_TYPES",
    "MATRIX_TYPES",
    "FieldSpec",
    "MatrixSpec",
    "MixedControlSpec",
    "QuestionDefinition",
    "QuestionType",
    "ANSWER_SHAPES",
    "BodyMapEntry",
    "BodyMapMarking",
    "FieldGroupEntry",
    "FileAttachment",
    "FileEntry",
    "MatrixCell",
    "MatrixEntry",
    "MixedControlResponse",
    "MixedControlsEntry",
    "MultiChoiceEntry",
    "ResponseEntry",
    "ScalarEntry",
    "Signature",
    "SignatureEntry",
    "parse_entries",
    "parse_entry",
    "FileData",
    "FormDataEntry",
    "FormResponseRecord",
    "FormTemplate",
    "IntakeField",
    "IntakeFormRecord",
    "IntakeSection",
    "MatrixValue",
    "PatientProfile",
    "PatientStatus",
    "PendingMerge",
    "Respondent",
    "ResponseStatus",
    "utcnow",
    "CANONICAL_LIST_FIELDS",
    "BodyPart",
    "CanonicalMedicalData",
    "PainData",
]
