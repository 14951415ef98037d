"""API schemas package."""

from app.api.schemas.base import (
    BuilderItemsRequest,
    BuilderItemsResponse,
    DuplicateRequest,
    ErrorBody,
    PrepareRequest,
    ReorderRequest,
    RetrySummary,
)

__all__ = [
    "BuilderItemsRequest",
    "BuilderItemsResponse",
    "DuplicateRequest",
    "ErrorBody",
    "PrepareRequest",
    "ReorderRequest",
    "RetrySummary",
]
