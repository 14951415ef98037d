"""Question type catalog endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, status

from app.forms.catalog import catalog_entries, create_question

router = APIRouter(prefix="/api/question-types", tags=["question-types"])


@router.get("")
def list_question_types() -> dict[str, Any]:
    return {"types": [entry.to_dict() for entry in catalog_entries()]}


@router.post("/{question_type}", status_code=status.HTTP_201_CREATED)
def new_question(question_type: str) -> dict[str, Any]:
    """A fresh item of ``question_type`` with its default configuration."""
    return create_question(question_type).to_wire(exclude_none=True)
