from app.extraction import extract_canonical_data, merge_into_profile
from intake_schemas import CanonicalMedicalData, FormDataEntry, FormResponseRecord, PatientProfile


def _canonical(**values) -> CanonicalMedicalData:
    return CanonicalMedicalData.model_validate(values)


def test_merge_twice_is_idempotent():
    profile = PatientProfile(id="p-1")
    canonical = _canonical(
        allergies=["Penicillin"],
        bodyParts=[{"part": "wrist", "side": "left"}],
        painData={"severity": "5", "quality": ["Dull"]},
        formEntry={"formType": "form_response", "formId": "r-1", "data": {}},
    )

    once = merge_into_profile(profile, canonical)
    twice = merge_into_profile(once, canonical)

    assert once.dynamic_data["allergies"] == ["Penicillin"]
    assert twice.dynamic_data == once.dynamic_data
    assert len(twice.form_data) == 1


def test_merge_does_not_mutate_input():
    profile = PatientProfile(id="p-1", dynamic_data={"allergies": ["Latex"]})
    merged = merge_into_profile(profile, _canonical(allergies=["Peanuts"]))
    assert profile.dynamic_data == {"allergies": ["Latex"]}
    assert merged.dynamic_data["allergies"] == ["Latex", "Peanuts"]


def test_lists_union_and_scalars_last_write_wins():
    profile = PatientProfile(
        id="p-1",
        dynamic_data={
            "familyHistory": ["Diabetes"],
            "painIntensity": "3",
            "painData": {"severity": "2", "quality": ["Sharp"]},
            "bodyParts": [{"part": "knee", "side": "right"}],
            "primaryInsurance": {"Company": "Old"},
        },
    )
    merged = merge_into_profile(
        profile,
        _canonical(
            familyHistory=["Diabetes", "Stroke"],
            painIntensity="8",
            painData={"severity": "7", "quality": ["Sharp", "Throbbing"]},
            bodyParts=[{"part": "knee", "side": "right"}, {"part": "knee", "side": "left"}],
            primaryInsurance={"Company": "New"},
        ),
    )
    dynamic = merged.dynamic_data
    assert dynamic["familyHistory"] == ["Diabetes", "Stroke"]
    assert dynamic["painIntensity"] == "8"
    assert dynamic["painData"] == {"severity": "7", "quality": ["Sharp", "Throbbing"]}
    assert dynamic["bodyParts"] == [
        {"part": "knee", "side": "right"},
        {"part": "knee", "side": "left"},
    ]
    assert dynamic["primaryInsurance"] == {"Company": "New"}


def test_empty_canonical_leaves_existing_values():
    profile = PatientProfile(id="p-1", dynamic_data={"painIntensity": "4", "secondaryInsurance": {"a": 1}})
    merged = merge_into_profile(profile, _canonical())
    assert merged.dynamic_data == profile.dynamic_data
    assert merged.form_data == []


def test_fields_are_replaced():
    profile = PatientProfile(id="p-1", dynamic_data={"First Name": "Ada"})
    merged = merge_into_profile(profile, _canonical(fields={"First Name": "Augusta"}))
    assert merged.dynamic_data["First Name"] == "Augusta"


def test_form_entries_are_keyed_by_type_and_id():
    profile = PatientProfile(
        id="p-1", form_data=[FormDataEntry(form_type="intake", form_id="x-1", data={})]
    )
    merged = merge_into_profile(
        profile, _canonical(formEntry={"formType": "form_response", "formId": "x-1", "data": {}})
    )
    assert [(entry.form_type, entry.form_id) for entry in merged.form_data] == [
        ("intake", "x-1"),
        ("form_response", "x-1"),
    ]
    assert merged.form_data[1].created_at is not None


def test_extract_then_merge_round():
    record = FormResponseRecord.model_validate(
        {
            "id": "r-9",
            "formTemplateId": "t",
            "responses": [
                {
                    "questionId": "q",
                    "questionType": "allergies",
                    "matrixResponses": [{"rowIndex": 1, "columnIndex": 0, "value": "Peanuts"}],
                }
            ],
        }
    )
    canonical = extract_canonical_data(record)
    profile = merge_into_profile(PatientProfile(id="p"), canonical)
    profile = merge_into_profile(profile, extract_canonical_data(record))
    assert profile.dynamic_data["allergies"] == ["Peanuts"]
    assert len(profile.form_data) == 1
