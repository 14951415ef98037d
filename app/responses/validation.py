"""Validation of captured answers against their template items."""

from __future__ import annotations

from typing import Any, Iterable

from app.common.exceptions import ValidationError
from intake_schemas import (
    CHOICE_TYPES,
    ANSWER_SHAPES,
    BodyMapEntry,
    FieldGroupEntry,
    FileEntry,
    FormTemplate,
    MatrixEntry,
    MixedControlsEntry,
    MultiChoiceEntry,
    QuestionDefinition,
    QuestionType,
    ResponseEntry,
    ScalarEntry,
    parse_entry,
)

_OPEN_ANSWER_ALIASES = frozenset({QuestionType.OPEN_ANSWER.value, QuestionType.BLANK.value})

BODY_MAP_INTENSITY_RANGE = (0, 10)


def _types_match(entry_type: str, item_type: QuestionType) -> bool:
    if entry_type in _OPEN_ANSWER_ALIASES and item_type.value in _OPEN_ANSWER_ALIASES:
        return True
    return entry_type == item_type.value


def _coerce_entry(entry: Any) -> ResponseEntry:
    if isinstance(entry, dict):
        tag = entry.get("questionType", entry.get("question_type"))
        if tag not in ANSWER_SHAPES:
            raise ValidationError(
                "Unknown question type", [f"questionType: {tag!r} is not in the catalog"]
            )
        try:
            return parse_entry(entry)
        except ValueError as exc:
            raise ValidationError("Malformed response entry", [str(exc)]) from exc
    return entry


def _check_choices(entry: ResponseEntry, item: QuestionDefinition, errors: list[str]) -> None:
    options = item.options
    if not options or item.type not in CHOICE_TYPES:
        return
    if isinstance(entry, ScalarEntry):
        chosen = [entry.answer] if entry.answer else []
    elif isinstance(entry, MultiChoiceEntry):
        chosen = list(entry.answer)
    else:
        return
    for value in chosen:
        if value not in options:
            errors.append(f"{entry.question_id}: {value!r} is not one of the options")


def _check_field_group(entry: FieldGroupEntry, item: QuestionDefinition, errors: list[str]) -> None:
    if not item.is_required:
        return
    for spec in item.field_group:
        if spec.required and not entry.answer.get(spec.field_name):
            errors.append(f"{entry.question_id}: {spec.field_name} is required")


def _check_matrix(entry: MatrixEntry, item: QuestionDefinition, errors: list[str]) -> None:
    matrix = item.matrix
    if matrix is None:
        return
    rows, cols = len(matrix.rows), len(matrix.column_headers)
    used_rows: set[int] = set()
    for cell in entry.matrix_responses:
        if not (0 <= cell.row_index < rows and 0 <= cell.column_index < cols):
            errors.append(
                f"{entry.question_id}: cell ({cell.row_index}, {cell.column_index}) "
                f"is outside the {rows}x{cols} grid"
            )
            continue
        if item.type == QuestionType.MATRIX_SINGLE_ANSWER and cell.value not in (None, "", False):
            if cell.row_index in used_rows:
                errors.append(f"{entry.question_id}: row {cell.row_index} has more than one answer")
            used_rows.add(cell.row_index)


def _check_body_map(entry: BodyMapEntry, errors: list[str]) -> None:
    low, high = BODY_MAP_INTENSITY_RANGE
    for index, marking in enumerate(entry.body_map_markings):
        if marking.intensity is not None and not low <= marking.intensity <= high:
            errors.append(
                f"{entry.question_id}: marking {index} intensity {marking.intensity} not in {low}..{high}"
            )


def _check_mixed(entry: MixedControlsEntry, item: QuestionDefinition, errors: list[str]) -> None:
    configured = {control.control_type for control in item.mixed_controls_config or []}
    for response in entry.mixed_controls_responses:
        if response.control_type not in configured:
            errors.append(
                f"{entry.question_id}: control type {response.control_type!r} is not configured"
            )


def validate_response_entry(
    entry: ResponseEntry | dict[str, Any],
    template_item: QuestionDefinition,
    *,
    enforce_required: bool = True,
) -> ResponseEntry:
    """Check one answer against its template item and return the parsed entry.

    File attachments are never required here: their content arrives in the
    second, upload phase.
    """
    parsed = _coerce_entry(entry)
    errors: list[str] = []

    if not _types_match(parsed.question_type, template_item.type):
        raise ValidationError(
            "Response type does not match the question",
            [
                f"{parsed.question_id}: questionType {parsed.question_type!r} "
                f"but question is {template_item.type.value!r}"
            ],
        )

    if (
        enforce_required
        and template_item.is_required
        and not isinstance(parsed, FileEntry)
        and template_item.type != QuestionType.SECTION_TITLE
        and parsed.is_empty()
    ):
        errors.append(f"{parsed.question_id}: an answer is required")

    _check_choices(parsed, template_item, errors)
    if isinstance(parsed, FieldGroupEntry) and enforce_required:
        _check_field_group(parsed, template_item, errors)
    elif isinstance(parsed, MatrixEntry):
        _check_matrix(parsed, template_item, errors)
    elif isinstance(parsed, BodyMapEntry):
        _check_body_map(parsed, errors)
    elif isinstance(parsed, MixedControlsEntry):
        _check_mixed(parsed, template_item, errors)

    if errors:
        raise ValidationError("Response validation failed", errors)
    return parsed


def validate_submission(
    template: FormTemplate,
    entries: Iterable[ResponseEntry | dict[str, Any]],
    *,
    enforce_required: bool = True,
) -> list[ResponseEntry]:
    """Validate every entry; collects all problems into one ValidationError."""
    errors: list[str] = []
    parsed: list[ResponseEntry] = []
    answered: set[str] = set()
    seen: set[str] = set()

    for entry in entries:
        try:
            candidate = _coerce_entry(entry)
        except ValidationError as exc:
            errors.extend(exc.errors)
            continue
        item = template.find_question(candidate.question_id)
        if item is None:
            errors.append(f"{candidate.question_id}: not a question of this form")
            continue
        key = item.reference_id or candidate.question_id
        if key in seen:
            errors.append(f"{candidate.question_id}: answered more than once")
            continue
        seen.add(key)
        try:
            parsed.append(validate_response_entry(candidate, item, enforce_required=enforce_required))
        except ValidationError as exc:
            errors.extend(exc.errors)
            continue
        answered.update(filter(None, (item.storage_id, item.id)))

    if enforce_required:
        for item in template.items:
            if (
                item.is_required
                and item.type not in (QuestionType.FILE_ATTACHMENT, QuestionType.SECTION_TITLE)
                and not answered.intersection(filter(None, (item.storage_id, item.id)))
            ):
                errors.append(f"{item.reference_id}: an answer is required")

    if errors:
        raise ValidationError("Response validation failed", errors)
    return parsed


__all__ = ["validate_response_entry", "validate_submission", "BODY_MAP_INTENSITY_RANGE"]
