"""Operational endpoints for the merge outbox."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_submission_service
from app.api.guards import ActingUser, get_acting_user, require_admin
from app.api.schemas import RetrySummary
from app.submissions import SubmissionService

router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])


@router.post("/merges/retry")
def retry_merges(
    limit: Optional[int] = Query(default=None, ge=1),
    user: ActingUser = Depends(get_acting_user),
    service: SubmissionService = Depends(get_submission_service),
) -> dict[str, Any]:
    require_admin(user)
    return RetrySummary(**service.retry_pending_merges(limit=limit)).to_wire()
