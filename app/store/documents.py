"""Document (de)serialization shared by the store adapters.

Template items are stored without their authoring key; the storage key is
kept under ``_id`` the way the clinic's document database stores sub-documents.
"""

from __future__ import annotations

import uuid
from typing import Any, TypeVar

from app.forms.builder import load_items
from intake_schemas import FormTemplate, WireModel, utcnow

M = TypeVar("M", bound=WireModel)


def new_id() -> str:
    return str(uuid.uuid4())


def template_to_doc(template: FormTemplate) -> dict[str, Any]:
    doc = template.to_wire(exclude={"items"})
    items = []
    for item in template.items:
        body = item.to_persisted()
        body["_id"] = item.storage_id or new_id()
        items.append(body)
    doc["items"] = items
    return doc


def template_from_doc(doc: dict[str, Any]) -> FormTemplate:
    body = dict(doc)
    items = load_items(body.pop("items", []))
    return FormTemplate.model_validate({**body, "items": items})


def model_to_doc(model: WireModel) -> dict[str, Any]:
    return model.to_wire()


def model_from_doc(model_cls: type[M], doc: dict[str, Any]) -> M:
    return model_cls.model_validate(doc)


def stamp_new(model: M) -> M:
    """Assign id and created/updated timestamps to a document about to be inserted."""
    now = utcnow()
    update = {
        "id": getattr(model, "id", None) or new_id(),
        "created_at": getattr(model, "created_at", None) or now,
        "updated_at": now,
    }
    fields = type(model).model_fields
    return model.model_copy(update={k: v for k, v in update.items() if k in fields})


def stamp_updated(model: M) -> M:
    if "updated_at" not in type(model).model_fields:
        return model
    return model.model_copy(update={"updated_at": utcnow()})
