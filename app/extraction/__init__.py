"""Extraction of canonical medical data and merging into patient profiles."""

from app.extraction.extractor import DEFAULT_MIDLINE, extract_canonical_data
from app.extraction.merge import merge_dynamic_data, merge_into_profile

__all__ = [
    "DEFAULT_MIDLINE",
    "extract_canonical_data",
    "merge_dynamic_data",
    "merge_into_profile",
]
