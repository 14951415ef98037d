"""Fold canonical medical data into a patient profile.

Merging is idempotent: applying the same canonical data twice leaves the
profile as it was after the first application. That property is what lets
pending merges be retried safely.
"""

from __future__ import annotations

import copy
from typing import Any

from pydantic.alias_generators import to_camel

from intake_schemas import (
    CANONICAL_LIST_FIELDS,
    CanonicalMedicalData,
    PatientProfile,
    utcnow,
)


def _union(existing: Any, incoming: list[Any]) -> list[Any]:
    merged = list(existing) if isinstance(existing, list) else []
    for value in incoming:
        if value not in merged:
            merged.append(value)
    return merged


def _union_body_parts(existing: Any, incoming: list[dict[str, str]]) -> list[dict[str, str]]:
    merged = [part for part in existing or [] if isinstance(part, dict)]
    known = {(part.get("part"), part.get("side")) for part in merged}
    for part in incoming:
        key = (part["part"], part["side"])
        if key not in known:
            known.add(key)
            merged.append(part)
    return merged


def merge_dynamic_data(dynamic: dict[str, Any], canonical: CanonicalMedicalData) -> dict[str, Any]:
    """Return a new ``dynamicData`` mapping with ``canonical`` folded in."""
    merged = copy.deepcopy(dynamic)

    for name in CANONICAL_LIST_FIELDS:
        values = getattr(canonical, name)
        if values:
            key = to_camel(name)
            merged[key] = _union(merged.get(key), values)

    if canonical.body_parts:
        merged["bodyParts"] = _union_body_parts(
            merged.get("bodyParts"), [part.to_wire() for part in canonical.body_parts]
        )

    if canonical.pain_intensity is not None:
        merged["painIntensity"] = canonical.pain_intensity

    pain = canonical.pain_data
    if pain.severity is not None or pain.quality:
        current = merged.get("painData") if isinstance(merged.get("painData"), dict) else {}
        current = dict(current)
        if pain.severity is not None:
            current["severity"] = pain.severity
        current["quality"] = _union(current.get("quality"), pain.quality)
        merged["painData"] = current

    if canonical.primary_insurance is not None:
        merged["primaryInsurance"] = copy.deepcopy(canonical.primary_insurance)
    if canonical.secondary_insurance is not None:
        merged["secondaryInsurance"] = copy.deepcopy(canonical.secondary_insurance)

    for key, value in canonical.fields.items():
        merged[key] = copy.deepcopy(value)

    return merged


def merge_into_profile(profile: PatientProfile, canonical: CanonicalMedicalData) -> PatientProfile:
    """A new profile with ``canonical`` merged; ``profile`` itself is not modified."""
    form_data = [entry.model_copy(deep=True) for entry in profile.form_data]
    entry = canonical.form_entry
    if entry is not None and not any(
        (existing.form_type, existing.form_id) == (entry.form_type, entry.form_id)
        for existing in form_data
    ):
        now = utcnow()
        form_data.append(
            entry.model_copy(
                deep=True,
                update={"created_at": entry.created_at or now, "updated_at": now},
            )
        )

    return profile.model_copy(
        deep=True,
        update={
            "dynamic_data": merge_dynamic_data(profile.dynamic_data, canonical),
            "form_data": form_data,
        },
    )


__all__ = ["merge_dynamic_data", "merge_into_profile"]
