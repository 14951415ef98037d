"""Response capture shapes, one variant per question-type family.

Entries are a tagged union keyed by ``questionType``. Type-specific list
sub-structures default to ``[]`` and are always serialized, so a matrix entry
with no cells still carries ``matrixResponses: []``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union, get_args

from pydantic import Field, TypeAdapter

from .base import WireModel


class _EntryBase(WireModel):
    question_id: str
    question_text: str | None = None

    def payload(self) -> Any:
        """The type-specific answer value, as stored in the formData log."""
        raise NotImplementedError


class ScalarEntry(_EntryBase):
    question_type: Literal[
        "openAnswer",
        "blank",
        "text",
        "date",
        "dropdown",
        "radio",
        "multipleChoiceSingle",
        "sectionTitle",
        "smartEditor",
    ]
    answer: str | None = None

    def payload(self) -> Any:
        return self.answer

    def is_empty(self) -> bool:
        return not (self.answer or "").strip()


class MultiChoiceEntry(_EntryBase):
    question_type: Literal["checkbox", "multipleChoiceMultiple"]
    answer: list[str] = Field(default_factory=list)

    def payload(self) -> Any:
        return list(self.answer)

    def is_empty(self) -> bool:
        return not [value for value in self.answer if value]


class FieldGroupEntry(_EntryBase):
    question_type: Literal["demographics", "primaryInsurance", "secondaryInsurance"]
    answer: dict[str, Any] = Field(default_factory=dict)

    def payload(self) -> Any:
        return dict(self.answer)

    def is_empty(self) -> bool:
        return not any(self.answer.values())


class MatrixCell(WireModel):
    row_index: int
    column_index: int
    value: Any = None


class MatrixEntry(_EntryBase):
    question_type: Literal["matrix", "matrixSingleAnswer", "allergies"]
    matrix_responses: list[MatrixCell] = Field(default_factory=list)

    def payload(self) -> Any:
        return [cell.to_wire() for cell in self.matrix_responses]

    def is_empty(self) -> bool:
        return not [cell for cell in self.matrix_responses if cell.value not in (None, "", False)]


class FileAttachment(WireModel):
    file_name: str
    url: str
    content_type: str | None = None
    size: int | None = None
    uploaded_at: datetime | None = None


class FileEntry(_EntryBase):
    question_type: Literal["fileAttachment"]
    file_attachments: list[FileAttachment] = Field(default_factory=list)

    def payload(self) -> Any:
        return [attachment.to_wire() for attachment in self.file_attachments]

    def is_empty(self) -> bool:
        return not self.file_attachments


class Signature(WireModel):
    data: str | None = None
    signed_at: datetime | None = None
    signed_by: str | None = None


class SignatureEntry(_EntryBase):
    question_type: Literal["eSignature"]
    signature: Signature | None = None

    def payload(self) -> Any:
        return self.signature.to_wire() if self.signature else None

    def is_empty(self) -> bool:
        return self.signature is None or not self.signature.data


class BodyMapMarking(WireModel):
    x: float
    y: float
    type: str | None = None
    intensity: float | None = None
    notes: str | None = None


class BodyMapEntry(_EntryBase):
    question_type: Literal["bodyMap"]
    body_map_markings: list[BodyMapMarking] = Field(default_factory=list)

    def payload(self) -> Any:
        return [marking.to_wire() for marking in self.body_map_markings]

    def is_empty(self) -> bool:
        return not self.body_map_markings


class MixedControlResponse(WireModel):
    control_id: str
    control_type: str
    value: Any = None


class MixedControlsEntry(_EntryBase):
    question_type: Literal["mixedControls"]
    mixed_controls_responses: list[MixedControlResponse] = Field(default_factory=list)

    def payload(self) -> Any:
        return [item.to_wire() for item in self.mixed_controls_responses]

    def is_empty(self) -> bool:
        return not [item for item in self.mixed_controls_responses if item.value not in (None, "")]


ResponseEntry = Annotated[
    Union[
        ScalarEntry,
        MultiChoiceEntry,
        FieldGroupEntry,
        MatrixEntry,
        FileEntry,
        SignatureEntry,
        BodyMapEntry,
        MixedControlsEntry,
    ],
    Field(discriminator="question_type"),
]

_ENTRY_ADAPTER: TypeAdapter[Any] = TypeAdapter(ResponseEntry)
_ENTRY_LIST_ADAPTER: TypeAdapter[Any] = TypeAdapter(list[ResponseEntry])


def parse_entry(raw: Any) -> ResponseEntry:
    """Parse one wire-format entry into its variant (pydantic errors propagate)."""
    return _ENTRY_ADAPTER.validate_python(raw)


def parse_entries(raw: Any) -> list[ResponseEntry]:
    return _ENTRY_LIST_ADAPTER.validate_python(raw)


# questionType tag -> shape family, used by the catalog palette.
ANSWER_SHAPES: dict[str, str] = {}
for _variant, _family in (
    (ScalarEntry, "scalar"),
    (MultiChoiceEntry, "multi"),
    (FieldGroupEntry, "fieldGroup"),
    (MatrixEntry, "matrix"),
    (FileEntry, "file"),
    (SignatureEntry, "signature"),
    (BodyMapEntry, "bodyMap"),
    (MixedControlsEntry, "mixed"),
):
    for _tag in get_args(_variant.model_fields["question_type"].annotation):
        ANSWER_SHAPES[_tag] = _family


__all__ = [
    "ScalarEntry",
    "MultiChoiceEntry",
    "FieldGroupEntry",
    "MatrixCell",
    "MatrixEntry",
    "FileAttachment",
    "FileEntry",
    "Signature",
    "SignatureEntry",
    "BodyMapMarking",
    "BodyMapEntry",
    "MixedControlResponse",
    "MixedControlsEntry",
    "ResponseEntry",
    "parse_entry",
    "parse_entries",
    "ANSWER_SHAPES",
]
