"""Template persistence rules on top of the document store."""

from __future__ import annotations

from typing import Any

from app.common.exceptions import NotFoundError, ValidationError
from app.forms.builder import load_items, select_for_save
from app.store.ports import DocumentStore
from intake_schemas import FormTemplate
from observability.logging_config import get_logger

logger = get_logger("form_templates")

_METADATA_FIELDS = frozenset({"title", "description", "is_active", "is_public", "language"})


def _parse_metadata(payload: dict[str, Any]) -> FormTemplate:
    body = {k: v for k, v in payload.items() if k not in ("items", "id", "_id")}
    try:
        return FormTemplate.model_validate(body)
    except ValueError as exc:
        raise ValidationError("Invalid form template", [str(exc)]) from exc


class TemplateService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def create(self, payload: dict[str, Any], *, created_by: str | None = None) -> FormTemplate:
        meta = _parse_metadata(payload)
        items = select_for_save(meta.title, load_items(payload.get("items") or []))
        template = meta.model_copy(update={"items": items, "created_by": meta.created_by or created_by})
        template = self.store.create_template(template)
        logger.info(
            "Form template created",
            extra={"template_id": template.id, "items": len(template.items)},
        )
        return template

    def get(self, template_id: str) -> FormTemplate:
        template = self.store.get_template(template_id)
        if template is None:
            raise NotFoundError("form_template", template_id)
        return template

    def list(self, *, active_only: bool = False) -> list[FormTemplate]:
        return self.store.list_templates(active_only=active_only)

    def update(self, template_id: str, payload: dict[str, Any]) -> FormTemplate:
        """Apply the provided metadata, and the items unless responses already exist.

        Items sent back with their ``storageId`` keep it; new items get one on write.
        """
        existing = self.get(template_id)
        meta = _parse_metadata(payload)
        changes = {name: getattr(meta, name) for name in meta.model_fields_set & _METADATA_FIELDS}
        title = changes.get("title", existing.title)

        if "items" in payload:
            items = select_for_save(title, load_items(payload.get("items") or []))
            if self._items_changed(existing.items, items) and self.store.count_responses(template_id):
                raise ValidationError(
                    "Form template has responses; its questions can no longer change",
                    ["items: template is referenced by submitted responses"],
                )
        else:
            items = select_for_save(title, existing.items)

        template = existing.model_copy(update={**changes, "items": items})
        template = self.store.update_template(template)
        logger.info("Form template updated", extra={"template_id": template_id})
        return template

    def delete(self, template_id: str) -> None:
        if not self.store.delete_template(template_id):
            raise NotFoundError("form_template", template_id)
        logger.info("Form template deleted", extra={"template_id": template_id})

    @staticmethod
    def _items_changed(before: list, after: list) -> bool:
        return [(item.storage_id, item.content()) for item in before] != [
            (item.storage_id, item.content()) for item in after
        ]


__all__ = ["TemplateService"]
