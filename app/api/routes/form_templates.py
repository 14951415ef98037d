"""Form template CRUD."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Response, status

from app.api.dependencies import get_template_service
from app.api.guards import ActingUser, get_acting_user
from app.forms.templates import TemplateService

router = APIRouter(prefix="/api/form-templates", tags=["form-templates"])

_user_dep = Depends(get_acting_user)
_service_dep = Depends(get_template_service)


@router.get("")
def list_templates(
    active: bool = False,
    user: ActingUser = _user_dep,
    service: TemplateService = _service_dep,
) -> list[dict[str, Any]]:
    return [template.to_wire() for template in service.list(active_only=active)]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_template(
    payload: dict[str, Any] = Body(...),
    user: ActingUser = _user_dep,
    service: TemplateService = _service_dep,
) -> dict[str, Any]:
    return service.create(payload, created_by=user.user_id).to_wire()


@router.get("/{template_id}")
def get_template(
    template_id: str,
    user: ActingUser = _user_dep,
    service: TemplateService = _service_dep,
) -> dict[str, Any]:
    return service.get(template_id).to_wire()


@router.put("/{template_id}")
def update_template(
    template_id: str,
    payload: dict[str, Any] = Body(...),
    user: ActingUser = _user_dep,
    service: TemplateService = _service_dep,
) -> dict[str, Any]:
    return service.update(template_id, payload).to_wire()


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template(
    template_id: str,
    user: ActingUser = _user_dep,
    service: TemplateService = _service_dep,
) -> Response:
    service.delete(template_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
