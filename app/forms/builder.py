"""Authoring-time item list management for the form builder.

Every list mutation goes through ``repair_identities`` so that no two items
share an authoring key, whatever the client sent or the edit produced.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable

from app.common.exceptions import ValidationError
from app.forms.catalog import (
    FILTER_WHEN_DEFAULT,
    create_question,
    is_default_unmodified,
    new_item_key,
)
from intake_schemas import QuestionDefinition, QuestionType

# Client-side editors occasionally send numbers for these; they are persisted as text.
_TEXT_FIELDS = ("questionText", "question_text", "placeholder", "instructions")


class BuilderState(str, Enum):
    UNSELECTED = "unselected"
    SELECTED = "selected"
    PREVIEW = "preview"


def _mint_unique(taken: set[str]) -> str:
    key = new_item_key()
    while key in taken:
        key = new_item_key()
    return key


def repair_identities(items: Iterable[QuestionDefinition]) -> list[QuestionDefinition]:
    """Copy ``items`` re-minting every missing, empty or repeated authoring key.

    The first holder of a key keeps it; later holders get a fresh one.
    """
    items = list(items)
    taken = {item.id for item in items if item.id}
    seen: set[str] = set()
    repaired: list[QuestionDefinition] = []
    for item in items:
        if not item.id or item.id in seen:
            key = _mint_unique(taken)
            taken.add(key)
            item = item.model_copy(update={"id": key})
        seen.add(item.id)
        repaired.append(item)
    return repaired


def _coerce_text(raw: dict[str, Any]) -> dict[str, Any]:
    body = dict(raw)
    for name in _TEXT_FIELDS:
        value = body.get(name)
        if value is not None and not isinstance(value, str):
            body[name] = str(value)
    matrix = body.get("matrix")
    if isinstance(matrix, dict):
        matrix = dict(matrix)
        for name in ("rowHeader", "row_header"):
            if matrix.get(name) is not None and not isinstance(matrix[name], str):
                matrix[name] = str(matrix[name])
        body["matrix"] = matrix
    return body


def load_items(raw_items: Iterable[Any]) -> list[QuestionDefinition]:
    """Build items from client or stored documents.

    Accepts already-parsed definitions, wire dicts, and stored documents that
    carry ``_id``. Non-string authoring keys are discarded and re-minted.
    """
    items: list[QuestionDefinition] = []
    for index, raw in enumerate(raw_items):
        if isinstance(raw, QuestionDefinition):
            items.append(raw)
            continue
        if not isinstance(raw, dict):
            raise ValidationError(
                "Invalid form item", [f"items[{index}]: expected an object"]
            )
        body = _coerce_text(raw)
        stored_id = body.pop("_id", None)
        if stored_id is not None and not body.get("storageId") and not body.get("storage_id"):
            body["storageId"] = str(stored_id)
        if not isinstance(body.get("id"), str):
            body.pop("id", None)
        try:
            items.append(QuestionDefinition.model_validate(body))
        except ValueError as exc:
            raise ValidationError("Invalid form item", [f"items[{index}]: {exc}"]) from exc
    return repair_identities(items)


def _find_index(items: list[QuestionDefinition], item_id: str | None) -> int | None:
    if not item_id:
        return None
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    for index, item in enumerate(items):
        if item.storage_id == item_id:
            return index
    return None


def reorder(
    items: Iterable[QuestionDefinition],
    from_id: str | None,
    to_index: int,
    source_index: int | None = None,
) -> list[QuestionDefinition]:
    """Move the item identified by ``from_id`` to ``to_index``.

    Falls back to ``source_index`` (the drag source) when the id cannot be
    resolved. Raises ValidationError rather than dropping or duplicating items.
    """
    current = repair_identities(items)
    origin = _find_index(current, from_id)
    if origin is None and source_index is not None and 0 <= source_index < len(current):
        origin = source_index
    if origin is None:
        raise ValidationError(
            "Cannot resolve the dragged item",
            [f"fromId: {from_id!r} not found and no usable source index"],
        )
    if not 0 <= to_index < len(current):
        raise ValidationError(
            "Drop position out of range",
            [f"toIndex: {to_index} not in 0..{len(current) - 1}"],
        )
    moved = list(current)
    moved.insert(to_index, moved.pop(origin))
    return repair_identities(moved)


def duplicate_item(items: Iterable[QuestionDefinition], index: int) -> tuple[list[QuestionDefinition], int]:
    """Insert a copy of ``items[index]`` right after it; returns the list and the copy's index."""
    current = list(items)
    _check_index(current, index)
    copy = current[index].model_copy(deep=True, update={"id": None, "storage_id": None})
    current.insert(index + 1, copy)
    return repair_identities(current), index + 1


def select_for_save(title: str | None, items: Iterable[QuestionDefinition]) -> list[QuestionDefinition]:
    """Items that a template save keeps.

    Untouched matrix, single-answer matrix and section-title items are left out;
    every other item is kept even when it still holds its defaults.
    """
    errors: list[str] = []
    if not (title or "").strip():
        errors.append("title: Form title is required")
    kept = [
        item
        for item in items
        if not (item.type in FILTER_WHEN_DEFAULT and is_default_unmodified(item))
    ]
    if not kept:
        errors.append("items: Form must have at least one question")
    if errors:
        raise ValidationError("Form template cannot be saved", errors)
    return kept


def prepare_for_save(title: str | None, items: Iterable[QuestionDefinition]) -> list[dict[str, Any]]:
    """Persisted item bodies for a template save, identity stripped."""
    return [item.to_persisted() for item in select_for_save(title, items)]


def _check_index(items: list[QuestionDefinition], index: int) -> None:
    if not 0 <= index < len(items):
        raise ValidationError("Item index out of range", [f"index: {index} not in 0..{len(items) - 1}"])


class BuilderSession:
    """In-memory authoring state: the item list, a selection, and an optional preview item.

    A preview item is edited without touching the list until ``commit_preview``.
    """

    def __init__(self, items: Iterable[Any] | None = None, title: str = ""):
        self.title = title
        self._items = load_items(items or [])
        self.selected_index: int | None = 0 if self._items else None
        self.preview: QuestionDefinition | None = None

    @property
    def items(self) -> list[QuestionDefinition]:
        return list(self._items)

    @property
    def state(self) -> BuilderState:
        if self.preview is not None:
            return BuilderState.PREVIEW
        if self.selected_index is not None:
            return BuilderState.SELECTED
        return BuilderState.UNSELECTED

    @property
    def selected(self) -> QuestionDefinition | None:
        if self.selected_index is None:
            return None
        return self._items[self.selected_index]

    def _replace(self, items: list[QuestionDefinition]) -> None:
        self._items = repair_identities(items)

    def add_question(self, question_type: QuestionType | str) -> QuestionDefinition:
        item = create_question(question_type)
        self._replace(self._items + [item])
        self.preview = None
        self.selected_index = len(self._items) - 1
        return self._items[-1]

    def select(self, index: int) -> QuestionDefinition:
        _check_index(self._items, index)
        self.preview = None
        self.selected_index = index
        return self._items[index]

    def clear_selection(self) -> None:
        self.selected_index = None
        self.preview = None

    def start_preview(self, question_type: QuestionType | str) -> QuestionDefinition:
        self.preview = create_question(question_type)
        self.selected_index = None
        return self.preview

    def update_preview(self, item: QuestionDefinition) -> QuestionDefinition:
        if self.preview is None:
            raise ValidationError("No preview item to update", ["state: not in preview"])
        self.preview = item.model_copy(update={"id": self.preview.id})
        return self.preview

    def commit_preview(self) -> QuestionDefinition:
        if self.preview is None:
            raise ValidationError("No preview item to add", ["state: not in preview"])
        self._replace(self._items + [self.preview])
        self.preview = None
        self.selected_index = len(self._items) - 1
        return self._items[-1]

    def update_item(self, index: int, item: QuestionDefinition) -> QuestionDefinition:
        _check_index(self._items, index)
        updated = list(self._items)
        updated[index] = item
        self._replace(updated)
        return self._items[index]

    def duplicate(self, index: int) -> QuestionDefinition:
        self._items, new_index = duplicate_item(self._items, index)
        self.preview = None
        self.selected_index = new_index
        return self._items[new_index]

    def delete(self, index: int) -> None:
        _check_index(self._items, index)
        self._replace(self._items[:index] + self._items[index + 1 :])
        if self.selected_index == index:
            if not self._items:
                self.selected_index = None
            elif index < len(self._items):
                self.selected_index = index
            else:
                self.selected_index = len(self._items) - 1
        elif self.selected_index is not None and self.selected_index > index:
            self.selected_index -= 1

    def move(self, from_id: str | None, to_index: int, source_index: int | None = None) -> None:
        selected_id = self.selected.id if self.selected is not None else None
        self._items = reorder(self._items, from_id, to_index, source_index)
        if selected_id is not None:
            self.selected_index = _find_index(self._items, selected_id)

    def prepare_for_save(self) -> list[dict[str, Any]]:
        return prepare_for_save(self.title, self._items)


__all__ = [
    "BuilderSession",
    "BuilderState",
    "duplicate_item",
    "load_items",
    "prepare_for_save",
    "repair_identities",
    "reorder",
    "select_for_save",
]
