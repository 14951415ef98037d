import pytest

from app.common.exceptions import ValidationError
from app.forms.builder import (
    BuilderSession,
    BuilderState,
    duplicate_item,
    load_items,
    prepare_for_save,
    reorder,
    repair_identities,
)
from app.forms.catalog import create_question


def _items(count: int):
    return [
        create_question("text").model_copy(update={"question_text": f"Question {index}"})
        for index in range(count)
    ]


def test_reorder_moves_by_identity():
    items = _items(5)
    ids = [item.id for item in items]

    moved = reorder(items, ids[2], 0)

    assert [item.id for item in moved] == [ids[2], ids[0], ids[1], ids[3], ids[4]]
    assert len(moved) == 5
    assert sorted(item.id for item in moved) == sorted(ids)


def test_reorder_falls_back_to_source_index():
    items = _items(3)
    moved = reorder(items, "gone", 2, source_index=0)
    assert [item.question_text for item in moved] == ["Question 1", "Question 2", "Question 0"]


def test_reorder_resolves_storage_id():
    items = [item.model_copy(update={"storage_id": f"s{index}"}) for index, item in enumerate(_items(3))]
    moved = reorder(items, "s2", 0)
    assert moved[0].storage_id == "s2"


def test_unresolvable_reorder_raises():
    items = _items(3)
    with pytest.raises(ValidationError):
        reorder(items, "missing", 0)
    with pytest.raises(ValidationError):
        reorder(items, items[0].id, 3)


def test_reorder_repairs_colliding_ids():
    first, second, third = _items(3)
    second = second.model_copy(update={"id": first.id})
    moved = reorder([first, second, third], third.id, 0)
    assert len({item.id for item in moved}) == 3
    assert [item.question_text for item in moved] == ["Question 2", "Question 0", "Question 1"]


def test_repair_keeps_first_holder():
    first, second = _items(2)
    clash = second.model_copy(update={"id": first.id})
    repaired = repair_identities([first, clash, second.model_copy(update={"id": None})])
    assert repaired[0].id == first.id
    assert repaired[1].id != first.id
    assert repaired[2].id
    assert len({item.id for item in repaired}) == 3


def test_load_items_handles_stored_and_malformed_keys():
    raw = [
        {"_id": "stored-1", "type": "text", "questionText": 42},
        {"id": 7, "type": "radio", "questionText": "Pick", "options": ["A", "B"]},
        {"id": "", "type": "date", "questionText": "When?"},
    ]
    items = load_items(raw)
    assert items[0].storage_id == "stored-1"
    assert items[0].question_text == "42"
    assert all(isinstance(item.id, str) and item.id for item in items)
    assert len({item.id for item in items}) == 3


def test_load_items_rejects_bad_documents():
    with pytest.raises(ValidationError):
        load_items([{"type": "nope", "questionText": "x"}])
    with pytest.raises(ValidationError):
        load_items(["not a dict"])


def test_duplicate_inserts_copy_after_original():
    items = [item.model_copy(update={"storage_id": f"s{index}"}) for index, item in enumerate(_items(3))]
    result, index = duplicate_item(items, 1)
    assert index == 2
    assert len(result) == 4
    assert result[1].id == items[1].id
    assert result[2].id not in {item.id for item in items}
    assert result[2].storage_id is None
    assert result[2].question_text == items[1].question_text


def test_prepare_for_save_filters_untouched_grids_and_strips_identity():
    kept = create_question("text")
    untouched_matrix = create_question("matrix")
    untouched_title = create_question("sectionTitle")
    untouched_allergies = create_question("allergies")
    edited_matrix = create_question("matrix").model_copy(update={"question_text": "Symptoms grid"})

    saved = prepare_for_save(
        "Intake", [kept, untouched_matrix, untouched_title, untouched_allergies, edited_matrix]
    )

    assert [body["type"] for body in saved] == ["text", "allergies", "matrix"]
    assert all("id" not in body and "storageId" not in body for body in saved)
    assert saved[2]["questionText"] == "Symptoms grid"


def test_prepare_for_save_requires_title_and_items():
    with pytest.raises(ValidationError) as excinfo:
        prepare_for_save("  ", [create_question("matrix")])
    assert len(excinfo.value.errors) == 2


class TestBuilderSession:
    def test_states(self):
        session = BuilderSession()
        assert session.state == BuilderState.UNSELECTED

        session.start_preview("radio")
        assert session.state == BuilderState.PREVIEW
        preview_id = session.preview.id
        edited = session.preview.model_copy(update={"question_text": "Pick one", "id": "other"})
        assert session.update_preview(edited).id == preview_id

        committed = session.commit_preview()
        assert session.state == BuilderState.SELECTED
        assert committed.question_text == "Pick one"
        assert session.selected_index == 0

        session.clear_selection()
        assert session.state == BuilderState.UNSELECTED

    def test_preview_operations_require_preview(self):
        with pytest.raises(ValidationError):
            BuilderSession().commit_preview()

    def test_add_selects_new_item(self):
        session = BuilderSession(_items(2))
        added = session.add_question("bodyMap")
        assert session.selected_index == 2
        assert session.selected.id == added.id

    def test_duplicate_selects_copy(self):
        session = BuilderSession(_items(3))
        original = session.items[1].id
        copy = session.duplicate(1)
        assert session.selected_index == 2
        assert session.items[1].id == original
        assert copy.id != original

    def test_delete_selected_moves_to_next(self):
        session = BuilderSession(_items(3))
        survivor = session.items[2].id
        session.select(1)
        session.delete(1)
        assert session.selected.id == survivor

    def test_delete_last_selected_moves_to_new_last(self):
        session = BuilderSession(_items(3))
        session.select(2)
        session.delete(2)
        assert session.selected_index == 1

    def test_delete_before_selection_shifts_left(self):
        session = BuilderSession(_items(3))
        selected = session.select(2).id
        session.delete(0)
        assert session.selected_index == 1
        assert session.selected.id == selected

    def test_delete_only_item_clears_selection(self):
        session = BuilderSession(_items(1))
        session.delete(0)
        assert session.selected_index is None
        assert session.state == BuilderState.UNSELECTED

    def test_move_keeps_selection(self):
        session = BuilderSession(_items(4))
        selected = session.select(1).id
        session.move(session.items[3].id, 0)
        assert session.selected.id == selected
        assert session.selected_index == 2

    def test_update_item_repairs_identity(self):
        session = BuilderSession(_items(2))
        clash = session.items[1].model_copy(update={"id": session.items[0].id})
        updated = session.update_item(1, clash)
        assert updated.id != session.items[0].id

    def test_prepare_for_save_uses_title(self):
        session = BuilderSession(_items(2), title="Visit")
        assert len(session.prepare_for_save()) == 2
        session.title = ""
        with pytest.raises(ValidationError):
            session.prepare_for_save()
