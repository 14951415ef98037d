import pytest

from app.common.exceptions import ValidationError
from app.forms.catalog import (
    FILTER_WHEN_DEFAULT,
    catalog_entries,
    create_question,
    default_config,
    is_default_unmodified,
)
from intake_schemas import FieldSpec, QuestionType

CREATABLE = [qtype for qtype in QuestionType if qtype != QuestionType.BLANK]


@pytest.mark.parametrize("qtype", list(QuestionType))
def test_new_question_is_default_unmodified(qtype):
    item = create_question(qtype)
    assert item.id and item.id.startswith("q_")
    assert item.storage_id is None
    assert is_default_unmodified(item)


@pytest.mark.parametrize("qtype", CREATABLE)
def test_editing_question_text_breaks_default(qtype):
    item = create_question(qtype)
    edited = item.model_copy(update={"question_text": item.question_text + "?"})
    assert not is_default_unmodified(edited)


def test_toggling_required_breaks_default():
    item = create_question("matrix")
    assert not is_default_unmodified(item.model_copy(update={"is_required": True}))


def test_identity_does_not_affect_default_check():
    item = create_question("sectionTitle").model_copy(update={"storage_id": "abc"})
    assert is_default_unmodified(item)


def test_blank_is_created_as_open_answer():
    item = create_question("blank")
    assert item.type == QuestionType.OPEN_ANSWER
    assert item.placeholder == "Enter your answer here"


def test_unknown_type_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        create_question("hologram")
    assert "hologram" in excinfo.value.errors[0]


def test_authoring_keys_are_unique():
    keys = {create_question("text").id for _ in range(200)}
    assert len(keys) == 200


def test_matrix_defaults():
    matrix = create_question("matrix").matrix
    assert matrix.rows == ["Row 1", "Row 2", "Row 3"]
    assert matrix.column_types == ["text", "text", "text"]
    assert matrix.allow_multiple_answers is True
    single = create_question("matrixSingleAnswer").matrix
    assert single.column_types == ["radio", "radio", "radio"]
    assert single.allow_multiple_answers is False


def test_allergy_grid_defaults():
    item = create_question("allergies")
    assert item.matrix.row_header == "Row Header (optional)"
    assert item.matrix.column_headers[0] == "Allergic To"
    assert len(item.matrix.column_headers) == 6
    assert item.matrix.display_text_box is True


def test_field_group_defaults():
    demographics = create_question("demographics")
    assert len(demographics.demographic_fields) == 17
    assert demographics.demographic_fields[0] == FieldSpec(
        field_name="First Name", field_type="text", required=True
    )
    primary = create_question("primaryInsurance")
    assert len(primary.insurance_fields) == 12
    assert primary.insurance_fields[0].field_name == "Primary Insurance Company"
    secondary = create_question("secondaryInsurance")
    assert secondary.insurance_fields[0].field_name == "Secondary Insurance Company"


def test_file_attachment_defaults():
    item = create_question("fileAttachment")
    assert item.file_types == ["pdf", "jpg", "png", "doc", "docx"]
    assert item.max_file_size == 5 * 1024 * 1024


def test_default_config_is_a_fresh_copy_each_time():
    first = default_config("dropdown")
    first["options"].append("Option 4")
    assert default_config("dropdown")["options"] == ["Option 1", "Option 2", "Option 3"]


def test_catalog_offers_every_type_but_blank():
    entries = catalog_entries()
    types = [entry.type for entry in entries]
    assert QuestionType.BLANK not in types
    assert set(types) == set(CREATABLE)
    by_type = {entry.type: entry for entry in entries}
    assert by_type[QuestionType.ALLERGIES].shape == "matrix"
    assert by_type[QuestionType.CHECKBOX].shape == "multi"
    assert by_type[QuestionType.BODY_MAP].to_dict() == {
        "type": "bodyMap",
        "label": "Body Map / Drawing",
        "shape": "bodyMap",
    }


def test_filtered_types():
    assert FILTER_WHEN_DEFAULT == {
        QuestionType.MATRIX,
        QuestionType.MATRIX_SINGLE_ANSWER,
        QuestionType.SECTION_TITLE,
    }
