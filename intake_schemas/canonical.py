"""Canonical medical data produced by extraction and merged into profiles."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from .base import WireModel
from .records import FormDataEntry

# Canonical list fields, in the order they appear in dynamicData.
CANONICAL_LIST_FIELDS: tuple[str, ...] = (
    "allergies",
    "medications",
    "conditions",
    "surgeries",
    "family_history",
    "symptoms",
)


class BodyPart(WireModel):
    part: str
    side: Literal["left", "right"]

    @property
    def key(self) -> tuple[str, str]:
        return (self.part, self.side)


class PainData(WireModel):
    severity: str | None = None
    quality: list[str] = Field(default_factory=list)


class CanonicalMedicalData(WireModel):
    allergies: list[str] = Field(default_factory=list)
    medications: list[str] = Field(default_factory=list)
    conditions: list[str] = Field(default_factory=list)
    surgeries: list[str] = Field(default_factory=list)
    family_history: list[str] = Field(default_factory=list)
    symptoms: list[str] = Field(default_factory=list)
    body_parts: list[BodyPart] = Field(default_factory=list)
    pain_intensity: str | None = None
    pain_data: PainData = Field(default_factory=PainData)
    primary_insurance: dict[str, Any] | None = None
    secondary_insurance: dict[str, Any] | None = None
    fields: dict[str, Any] = Field(default_factory=dict)
    form_entry: FormDataEntry | None = None


__all__ = ["CANONICAL_LIST_FIELDS", "BodyPart", "PainData", "CanonicalMedicalData"]
