"""Turn a filled form response or intake form into canonical medical data.

Extraction is pure: it reads one record and never touches the store. The
result is folded into a patient profile by :func:`app.extraction.merge.merge_into_profile`.
"""

from __future__ import annotations

from typing import Any, Union

from app.extraction.heuristics import (
    ALLERGY_KEYWORD,
    BODY_PART_KEYWORD,
    LIST_RULES,
    body_parts_from_markings,
    dedupe,
    insurance_tier,
    is_pain_quality,
    is_pain_severity,
    max_intensity,
    string_values,
)
from intake_schemas import (
    CANONICAL_LIST_FIELDS,
    BodyMapEntry,
    BodyPart,
    CanonicalMedicalData,
    FieldGroupEntry,
    FormDataEntry,
    FormResponseRecord,
    IntakeField,
    IntakeFormRecord,
    MatrixEntry,
    MultiChoiceEntry,
    ScalarEntry,
)

DEFAULT_MIDLINE = 50.0

_OPEN_ANSWER_TYPES = ("openAnswer", "blank")


class _Accumulator:
    """Mutable scratch state; frozen into a CanonicalMedicalData at the end."""

    def __init__(self) -> None:
        self.lists: dict[str, list[str]] = {name: [] for name in CANONICAL_LIST_FIELDS}
        self.body_parts: list[BodyPart] = []
        self.pain_intensity: str | None = None
        self.pain_severity: str | None = None
        self.pain_quality: list[str] = []
        self.insurance: dict[str, dict[str, Any] | None] = {"primary": None, "secondary": None}
        self.fields: dict[str, Any] = {}

    def add_body_parts(self, parts: list[BodyPart]) -> None:
        known = {part.key for part in self.body_parts}
        for part in parts:
            if part.key not in known:
                known.add(part.key)
                self.body_parts.append(part)

    def freeze(self, form_entry: FormDataEntry) -> CanonicalMedicalData:
        return CanonicalMedicalData(
            **{name: dedupe(values) for name, values in self.lists.items()},
            body_parts=self.body_parts,
            pain_intensity=self.pain_intensity,
            pain_data={"severity": self.pain_severity, "quality": dedupe(self.pain_quality)},
            primary_insurance=self.insurance["primary"],
            secondary_insurance=self.insurance["secondary"],
            fields=self.fields,
            form_entry=form_entry,
        )


def _extract_response(record: FormResponseRecord, midline: float) -> CanonicalMedicalData:
    acc = _Accumulator()
    form_data: dict[str, Any] = {}

    for entry in record.responses:
        qid = entry.question_id
        form_data[qid] = {
            "type": entry.question_type,
            "value": entry.payload(),
            "questionText": entry.question_text,
        }

        if isinstance(entry, MatrixEntry):
            if entry.question_type == "allergies":
                acc.lists["allergies"].extend(
                    string_values([cell.value for cell in entry.matrix_responses])
                )
        elif isinstance(entry, BodyMapEntry):
            acc.add_body_parts(body_parts_from_markings(entry.body_map_markings, midline))
            intensity = max_intensity(entry.body_map_markings)
            if intensity is not None:
                acc.pain_intensity = intensity
        elif isinstance(entry, FieldGroupEntry):
            if entry.question_type == "demographics":
                for key, value in entry.answer.items():
                    if value:
                        acc.fields[key] = value
            elif entry.question_type == "primaryInsurance":
                acc.insurance["primary"] = dict(entry.answer)
            else:
                acc.insurance["secondary"] = dict(entry.answer)
        elif isinstance(entry, ScalarEntry) and entry.question_type in _OPEN_ANSWER_TYPES:
            answer = (entry.answer or "").strip()
            if answer:
                acc.fields[f"openAnswer_{qid}"] = {
                    "question": entry.question_text,
                    "answer": answer,
                }
        elif isinstance(entry, (ScalarEntry, MultiChoiceEntry)):
            if entry.is_empty():
                continue
            answer = entry.answer.strip() if isinstance(entry.answer, str) else list(entry.answer)
            acc.fields[f"question_{qid}"] = {
                "type": entry.question_type,
                "question": entry.question_text,
                "answer": answer,
            }

    return acc.freeze(FormDataEntry(form_type="form_response", form_id=record.id, data=form_data))


def _intake_field(acc: _Accumulator, section_key: str, field: IntakeField, midline: float) -> None:
    key = field.field_name.lower()
    value = field.field_value

    if ALLERGY_KEYWORD in key:
        if isinstance(value, (list, str)):
            acc.lists["allergies"].extend(string_values(value))
        elif field.matrix_values:
            acc.lists["allergies"].extend(
                string_values([cell.value for cell in field.matrix_values])
            )
    for rule in LIST_RULES:
        if rule.matches(key):
            acc.lists[rule.target].extend(string_values(value))

    if BODY_PART_KEYWORD in key or field.field_type == "bodyMap":
        if isinstance(value, list) and value and isinstance(value[0], dict) and value[0].get("type"):
            acc.add_body_parts(body_parts_from_markings(value, midline))

    if is_pain_severity(key) and value not in (None, ""):
        acc.pain_severity = str(value).strip()
    elif is_pain_quality(key):
        acc.pain_quality.extend(string_values(value))

    tier = insurance_tier(section_key, key)
    if tier is not None:
        if acc.insurance[tier] is None:
            acc.insurance[tier] = {}
        acc.insurance[tier][field.field_name] = value.strip() if isinstance(value, str) else value


def _extract_intake(record: IntakeFormRecord, midline: float) -> CanonicalMedicalData:
    acc = _Accumulator()
    form_data: dict[str, Any] = {}

    for section in record.sections:
        section_key = section.section_name.lower()
        for field in section.fields:
            _intake_field(acc, section_key, field, midline)
        form_data[section.section_name] = {
            "sectionId": section.section_id,
            "sectionName": section.section_name,
            "fields": {
                field.field_name: {
                    "name": field.field_name,
                    "type": field.field_type,
                    "value": field.field_value,
                }
                for field in section.fields
            },
        }

    return acc.freeze(FormDataEntry(form_type="intake", form_id=record.id, data=form_data))


def extract_canonical_data(
    record: Union[FormResponseRecord, IntakeFormRecord],
    *,
    midline: float = DEFAULT_MIDLINE,
) -> CanonicalMedicalData:
    """Canonical fragments contributed by one submission.

    ``midline`` is the body-map x coordinate separating the patient's left
    (smaller x) from their right.
    """
    if isinstance(record, FormResponseRecord):
        return _extract_response(record, midline)
    if isinstance(record, IntakeFormRecord):
        return _extract_intake(record, midline)
    raise TypeError(f"cannot extract canonical data from {type(record).__name__}")


__all__ = ["DEFAULT_MIDLINE", "extract_canonical_data"]
