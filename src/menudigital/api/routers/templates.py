"""Menu template listing and assignment."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from menudigital.api.auth import require_user
from menudigital.api.deps import enforce_restaurant, get_store
from menudigital.api.schemas import TemplateAssignBody

log = logging.getLogger("menudigital.api.templates")

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("")
def list_templates(request: Request):
    return [t.to_dict() for t in get_store(request).list_templates()]


@router.post("/restaurants/{restaurant_id}/template")
def assign_template(
    request: Request,
    restaurant_id: int,
    body: TemplateAssignBody,
    principal: dict[str, Any] = Depends(require_user),
):
    if not body.templateId:
        raise HTTPException(status_code=400, detail="Missing required field: templateId")
    enforce_restaurant(restaurant_id, principal)
    store = get_store(request)
    if body.templateId not in {t.id for t in store.list_templates()}:
        raise HTTPException(status_code=400, detail=f"Unknown template: {body.templateId}")
    if not store.set_template(restaurant_id, body.templateId):
        raise HTTPException(status_code=404, detail="Restaurant not found")
    log.info("Template %s assigned to restaurant %s", body.templateId, restaurant_id)
    return {"message": "Template assigned"}
