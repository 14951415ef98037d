"""Request and response bodies for the FastAPI integration layer."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from intake_schemas import WireModel


class BuilderItemsRequest(WireModel):
    """Raw builder items as the authoring UI holds them."""

    items: list[dict[str, Any]] = Field(default_factory=list)


class ReorderRequest(BuilderItemsRequest):
    from_id: str | None = None
    to_index: int
    source_index: int | None = None


class DuplicateRequest(BuilderItemsRequest):
    index: int


class PrepareRequest(BuilderItemsRequest):
    title: str | None = None


class BuilderItemsResponse(WireModel):
    items: list[dict[str, Any]]
    selected_index: int | None = None


class ErrorBody(WireModel):
    message: str
    validation_errors: list[str] = Field(default_factory=list)


class RetrySummary(WireModel):
    attempted: int
    applied: int
    pending: int
