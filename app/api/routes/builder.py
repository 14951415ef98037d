"""Stateless builder operations over the client's item list.

The authoring UI keeps the session; these endpoints apply one identity-safe
operation and return the repaired list.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from app.api.schemas import (
    BuilderItemsResponse,
    DuplicateRequest,
    PrepareRequest,
    ReorderRequest,
)
from app.forms.builder import duplicate_item, load_items, prepare_for_save, reorder

router = APIRouter(prefix="/api/builder", tags=["builder"])


def _wire(items) -> list[dict[str, Any]]:
    return [item.to_wire(exclude_none=True) for item in items]


@router.post("/reorder")
def reorder_items(body: ReorderRequest) -> dict[str, Any]:
    items = reorder(load_items(body.items), body.from_id, body.to_index, body.source_index)
    return BuilderItemsResponse(items=_wire(items), selected_index=body.to_index).to_wire()


@router.post("/duplicate")
def duplicate(body: DuplicateRequest) -> dict[str, Any]:
    items, index = duplicate_item(load_items(body.items), body.index)
    return BuilderItemsResponse(items=_wire(items), selected_index=index).to_wire()


@router.post("/prepare")
def prepare(body: PrepareRequest) -> dict[str, Any]:
    """Item bodies as a template save would persist them."""
    return {"title": body.title, "items": prepare_for_save(body.title, load_items(body.items))}
