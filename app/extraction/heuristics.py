"""Field-name heuristics for free-form intake sections.

Intake fields are named by whoever built the form, so categories are found
by substring match on the lower-cased field name.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from intake_schemas import BodyPart


@dataclass(frozen=True)
class FieldRule:
    target: str  # canonical list field
    keywords: tuple[str, ...]

    def matches(self, field_key: str) -> bool:
        return any(keyword in field_key for keyword in self.keywords)


# Allergies are handled separately: they also read matrix values.
LIST_RULES: tuple[FieldRule, ...] = (
    FieldRule("medications", ("medication",)),
    FieldRule("conditions", ("condition", "diagnosis")),
    FieldRule("surgeries", ("surger", "operation")),
    FieldRule("family_history", ("family history",)),
    FieldRule("symptoms", ("symptom",)),
)

ALLERGY_KEYWORD = "allerg"
BODY_PART_KEYWORD = "body part"
PAIN_KEYWORD = "pain"
PAIN_SEVERITY_KEYWORDS = ("level", "severity")
PAIN_QUALITY_KEYWORDS = ("quality", "type")
PRIMARY_INSURANCE_KEYWORDS = ("primary insurance", "primaryinsurance")
SECONDARY_INSURANCE_KEYWORDS = ("secondary insurance", "secondaryinsurance")


def string_values(value: Any) -> list[str]:
    """Non-empty trimmed strings from a scalar or a list; other values are ignored."""
    if isinstance(value, str):
        candidates: Iterable[Any] = [value]
    elif isinstance(value, (list, tuple)):
        candidates = value
    else:
        return []
    return [item.strip() for item in candidates if isinstance(item, str) and item.strip()]


def is_pain_severity(field_key: str) -> bool:
    return PAIN_KEYWORD in field_key and any(k in field_key for k in PAIN_SEVERITY_KEYWORDS)


def is_pain_quality(field_key: str) -> bool:
    return PAIN_KEYWORD in field_key and any(k in field_key for k in PAIN_QUALITY_KEYWORDS)


def insurance_tier(section_key: str, field_key: str) -> str | None:
    """``primary``/``secondary`` when the section or field belongs to an insurance block."""
    for tier, keywords in (
        ("primary", PRIMARY_INSURANCE_KEYWORDS),
        ("secondary", SECONDARY_INSURANCE_KEYWORDS),
    ):
        if keywords[0] in section_key or any(k in field_key for k in keywords):
            return tier
    return None


def body_side(x: float, midline: float) -> str:
    return "left" if x < midline else "right"


def body_parts_from_markings(markings: Iterable[Any], midline: float) -> list[BodyPart]:
    """One part per distinct (type, side); markings without a type are skipped.

    Accepts marking models or plain dicts as stored in intake fields.
    """
    parts: list[BodyPart] = []
    seen: set[tuple[str, str]] = set()
    for marking in markings:
        if isinstance(marking, dict):
            part, x = marking.get("type"), marking.get("x")
        else:
            part, x = getattr(marking, "type", None), getattr(marking, "x", None)
        if not part or not isinstance(x, (int, float)):
            continue
        body_part = BodyPart(part=str(part), side=body_side(float(x), midline))
        if body_part.key not in seen:
            seen.add(body_part.key)
            parts.append(body_part)
    return parts


def format_intensity(value: float) -> str:
    """Render 7.0 as ``"7"`` and 6.5 as ``"6.5"``."""
    return str(int(value)) if float(value).is_integer() else str(value)


def max_intensity(markings: Iterable[Any]) -> str | None:
    values = []
    for marking in markings:
        intensity = marking.get("intensity") if isinstance(marking, dict) else getattr(marking, "intensity", None)
        if isinstance(intensity, (int, float)) and not isinstance(intensity, bool) and intensity:
            values.append(intensity)
    return format_intensity(max(values)) if values else None


def dedupe(values: Iterable[str]) -> list[str]:
    """Order-preserving de-duplication."""
    return list(dict.fromkeys(values))


__all__ = [
    "ALLERGY_KEYWORD",
    "BODY_PART_KEYWORD",
    "FieldRule",
    "LIST_RULES",
    "body_parts_from_markings",
    "body_side",
    "dedupe",
    "format_intensity",
    "insurance_tier",
    "is_pain_quality",
    "is_pain_severity",
    "max_intensity",
    "string_values",
]
