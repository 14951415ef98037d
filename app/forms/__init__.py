"""Form authoring: the question type catalog and builder item management."""

from app.forms.builder import (
    BuilderSession,
    BuilderState,
    duplicate_item,
    load_items,
    prepare_for_save,
    reorder,
    repair_identities,
)
from app.forms.catalog import (
    QuestionDescriptor,
    catalog_entries,
    create_question,
    default_config,
    is_default_unmodified,
)

__all__ = [
    "BuilderSession",
    "BuilderState",
    "QuestionDescriptor",
    "catalog_entries",
    "create_question",
    "default_config",
    "duplicate_item",
    "is_default_unmodified",
    "load_items",
    "prepare_for_save",
    "reorder",
    "repair_identities",
]
