"""Question type catalog: palette descriptors and canonical default configurations.

Defaults are built by a pure factory so that a freshly created item can later be
recognised as untouched (``is_default_unmodified``).
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass
from typing import Any

from app.common.exceptions import ValidationError
from intake_schemas import ANSWER_SHAPES, QuestionDefinition, QuestionType

ITEM_KEY_PREFIX = "q_"
_KEY_ALPHABET = string.ascii_lowercase + string.digits
_KEY_LENGTH = 26

DEFAULT_QUESTION_TEXT = "Type your question text here"
DEFAULT_OPTIONS = ("Option 1", "Option 2", "Option 3")
MAX_FILE_SIZE_BYTES = 5 * 1024 * 1024

US_STATES = (
    "AK", "AL", "AR", "AZ", "CA", "CO", "CT", "DC", "DE", "FL", "GA", "HI", "IA",
    "ID", "IL", "IN", "KS", "KY", "LA", "MA", "MD", "ME", "MI", "MN", "MO", "MS",
    "MT", "NC", "ND", "NE", "NH", "NJ", "NM", "NV", "NY", "OH", "OK", "OR", "PA",
    "RI", "SC", "SD", "TN", "TX", "UT", "VA", "VT", "WA", "WI", "WV", "WY",
)

# Items of these types are dropped on save while they still equal their defaults.
FILTER_WHEN_DEFAULT = frozenset(
    {QuestionType.MATRIX, QuestionType.MATRIX_SINGLE_ANSWER, QuestionType.SECTION_TITLE}
)


@dataclass(frozen=True)
class QuestionDescriptor:
    type: QuestionType
    label: str
    shape: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type.value, "label": self.label, "shape": self.shape}


_LABELS: dict[QuestionType, str] = {
    QuestionType.OPEN_ANSWER: "Open Answer",
    QuestionType.TEXT: "Text",
    QuestionType.DATE: "Date",
    QuestionType.DROPDOWN: "Dropdown",
    QuestionType.RADIO: "Radio Buttons",
    QuestionType.CHECKBOX: "Checkboxes",
    QuestionType.MULTIPLE_CHOICE_SINGLE: "Multiple Choice - Single Answer",
    QuestionType.MULTIPLE_CHOICE_MULTIPLE: "Multiple Choice - Multiple Answer",
    QuestionType.MATRIX: "Matrix",
    QuestionType.MATRIX_SINGLE_ANSWER: "Matrix - Single Answer per Line",
    QuestionType.ALLERGIES: "Allergies",
    QuestionType.DEMOGRAPHICS: "Demographics",
    QuestionType.PRIMARY_INSURANCE: "Primary Insurance",
    QuestionType.SECONDARY_INSURANCE: "Secondary Insurance",
    QuestionType.MIXED_CONTROLS: "Mixed Controls",
    QuestionType.SECTION_TITLE: "Section Title / Note",
    QuestionType.FILE_ATTACHMENT: "File Attachment",
    QuestionType.E_SIGNATURE: "e-Signature",
    QuestionType.SMART_EDITOR: "Smart Editor",
    QuestionType.BODY_MAP: "Body Map / Drawing",
}


def new_item_key() -> str:
    """Mint an authoring key, e.g. ``q_k3x9...``."""
    return ITEM_KEY_PREFIX + "".join(secrets.choice(_KEY_ALPHABET) for _ in range(_KEY_LENGTH))


def parse_question_type(value: Any) -> QuestionType:
    if isinstance(value, QuestionType):
        return value
    try:
        return QuestionType(value)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown question type: {value!r}", [f"type: {value!r} is not in the catalog"]
        ) from exc


def _field(name: str, field_type: str = "text", required: bool = False, options=None) -> dict[str, Any]:
    spec: dict[str, Any] = {"field_name": name, "field_type": field_type, "required": required}
    if options is not None:
        spec["options"] = list(options)
    return spec


def _demographic_fields() -> list[dict[str, Any]]:
    return [
        _field("First Name", required=True),
        _field("Middle Initials"),
        _field("Last Name", required=True),
        _field("Date of Birth", "date", required=True),
        _field("Gender", "dropdown", True, ["Female", "Male", "Non-Binary"]),
        _field("Sex", "dropdown", True, ["Female", "Male", "Intersex"]),
        _field(
            "Marital Status",
            "dropdown",
            False,
            ["Single", "Married", "Domestic Partner", "Separated", "Divorced", "Widowed"],
        ),
        _field("Street Address", required=True),
        _field("Apt/Unit #"),
        _field("City", required=True),
        _field("State", "dropdown", True, US_STATES),
        _field("Zip Code", required=True),
        _field("Mobile Phone", required=True),
        _field("Home Phone"),
        _field("Work Phone"),
        _field("Email", required=True),
        _field(
            "Preferred contact method",
            "dropdown",
            True,
            ["Mobile Phone", "Home Phone", "Work Phone", "Email"],
        ),
    ]


def _insurance_fields(tier: str) -> list[dict[str, Any]]:
    return [
        _field(f"{tier} Insurance Company", required=True),
        _field("Member ID / Policy #", required=True),
        _field("Group Number"),
        _field("Client Relationship to Insured", "dropdown", True, ["Self", "Spouse", "Child", "Other"]),
        _field("Insured Name"),
        _field("Insured Phone #"),
        _field("Insured Date of Birth", "date"),
        _field("Insured Sex", "dropdown", False, ["Female", "Male"]),
        _field("Insured Street Address"),
        _field("Insured City"),
        _field("Insured State", "dropdown", False, US_STATES),
        _field("Zip Code"),
    ]


def _grid(column_type: str, allow_multiple: bool) -> dict[str, Any]:
    return {
        "row_header": "Questions",
        "column_headers": list(DEFAULT_OPTIONS),
        "column_types": [column_type] * 3,
        "rows": ["Row 1", "Row 2", "Row 3"],
        "dropdown_options": [[], [], []],
        "display_text_box": False,
        "allow_multiple_answers": allow_multiple,
    }


def default_config(question_type: QuestionType | str) -> dict[str, Any]:
    """Pure factory: the canonical default body (snake_case, no identity) for a type."""
    qtype = parse_question_type(question_type)
    base: dict[str, Any] = {"type": qtype, "question_text": DEFAULT_QUESTION_TEXT, "is_required": False}

    if qtype in (QuestionType.OPEN_ANSWER, QuestionType.BLANK):
        base.update(placeholder="Enter your answer here", multiple_lines=False)
    elif qtype in (QuestionType.DROPDOWN, QuestionType.RADIO, QuestionType.CHECKBOX):
        base.update(options=list(DEFAULT_OPTIONS))
    elif qtype == QuestionType.MULTIPLE_CHOICE_SINGLE:
        base.update(question_text="Multiple Choice Question", options=list(DEFAULT_OPTIONS))
    elif qtype == QuestionType.MULTIPLE_CHOICE_MULTIPLE:
        base.update(
            question_text="Multiple Choice Question (Select all that apply)",
            options=list(DEFAULT_OPTIONS),
        )
    elif qtype == QuestionType.MATRIX:
        base.update(question_text="Matrix Question", matrix=_grid("text", True))
    elif qtype == QuestionType.MATRIX_SINGLE_ANSWER:
        base.update(
            question_text="Matrix Question (Single Answer per Row)",
            matrix=_grid("radio", False),
        )
    elif qtype == QuestionType.ALLERGIES:
        base.update(
            question_text="Please enter the details of any allergies",
            matrix={
                "row_header": "Row Header (optional)",
                "column_headers": [
                    "Allergic To",
                    "Allergy Type",
                    "Reaction",
                    "Severity",
                    "Date of Onset",
                    "End Date",
                ],
                "column_types": ["text", "dropdown", "dropdown", "dropdown", "text", "text"],
                "rows": ["1", "2", "3"],
                "dropdown_options": [
                    [],
                    ["Food", "Medication", "Environmental", "Other"],
                    ["Rash", "Hives", "Swelling", "Anaphylaxis", "GI Issues", "Respiratory", "Other"],
                    ["Mild", "Moderate", "Severe", "Life-threatening"],
                    [],
                    [],
                ],
                "display_text_box": True,
            },
        )
    elif qtype == QuestionType.DEMOGRAPHICS:
        base.update(question_text="Demographics Information", demographic_fields=_demographic_fields())
    elif qtype == QuestionType.PRIMARY_INSURANCE:
        base.update(
            question_text="Primary Insurance Information",
            insurance_fields=_insurance_fields("Primary"),
        )
    elif qtype == QuestionType.SECONDARY_INSURANCE:
        base.update(
            question_text="Secondary Insurance Information",
            insurance_fields=_insurance_fields("Secondary"),
        )
    elif qtype == QuestionType.MIXED_CONTROLS:
        base.update(
            question_text="Mixed Controls Question",
            mixed_controls_config=[
                {
                    "control_type": "text",
                    "label": "Text Field",
                    "required": False,
                    "placeholder": "Enter text here",
                },
                {
                    "control_type": "dropdown",
                    "label": "Dropdown Field",
                    "required": False,
                    "options": list(DEFAULT_OPTIONS),
                },
            ],
        )
    elif qtype == QuestionType.SECTION_TITLE:
        base.update(
            question_text="Section Title",
            section_content="Add additional information or instructions here.",
        )
    elif qtype == QuestionType.FILE_ATTACHMENT:
        base.update(
            question_text="File Attachment",
            file_types=["pdf", "jpg", "png", "doc", "docx"],
            max_file_size=MAX_FILE_SIZE_BYTES,
        )
    elif qtype == QuestionType.E_SIGNATURE:
        base.update(
            question_text="Signature",
            signature_prompt="Please sign below to confirm your agreement.",
        )
    elif qtype == QuestionType.SMART_EDITOR:
        base.update(question_text="Smart Editor", editor_content="<p>Enter your content here...</p>")
    elif qtype == QuestionType.BODY_MAP:
        base.update(
            question_text="Body Map / Drawing",
            body_map_type="fullBody",
            allow_patient_markings=True,
        )
    return base


def create_question(question_type: QuestionType | str) -> QuestionDefinition:
    """New item with a fresh authoring key; ``blank`` is created as ``openAnswer``."""
    qtype = parse_question_type(question_type)
    if qtype == QuestionType.BLANK:
        qtype = QuestionType.OPEN_ANSWER
    return QuestionDefinition(id=new_item_key(), **default_config(qtype))


def is_default_unmodified(item: QuestionDefinition) -> bool:
    """True iff every non-identity field equals the factory default for the item's type."""
    default = QuestionDefinition(**default_config(item.type))
    return item.content() == default.content()


def catalog_entries() -> list[QuestionDescriptor]:
    """Palette of creatable types; the legacy ``blank`` tag is not offered."""
    return [
        QuestionDescriptor(type=qtype, label=label, shape=ANSWER_SHAPES[qtype.value])
        for qtype, label in _LABELS.items()
    ]


__all__ = [
    "FILTER_WHEN_DEFAULT",
    "QuestionDescriptor",
    "US_STATES",
    "catalog_entries",
    "create_question",
    "default_config",
    "is_default_unmodified",
    "new_item_key",
    "parse_question_type",
]
