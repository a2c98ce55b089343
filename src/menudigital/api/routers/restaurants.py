"""Restaurant profile endpoints: read, update, logo upload."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from menudigital.api.auth import require_user
from menudigital.api.deps import enforce_restaurant, get_store
from menudigital.api.schemas import RestaurantUpdateBody
from menudigital.defaults import LOGO_EXTENSIONS, LOGO_MAX_BYTES
from menudigital.uploads import read_upload

log = logging.getLogger("menudigital.api.restaurants")

router = APIRouter(prefix="/restaurantes", tags=["restaurants"])


@router.get("/{restaurant_id}")
def get_restaurant(
    request: Request,
    restaurant_id: int,
    principal: dict[str, Any] = Depends(require_user),
):
    restaurant = get_store(request).get_restaurant(restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant.to_dict()


@router.put("/{restaurant_id}")
def update_restaurant(
    request: Request,
    restaurant_id: int,
    body: RestaurantUpdateBody,
    principal: dict[str, Any] = Depends(require_user),
):
    enforce_restaurant(restaurant_id, principal)
    updated = get_store(request).update_restaurant(
        restaurant_id,
        name=body.name,
        colors=body.colors,
        logo_url=body.logo,
        sections=body.sections,
        plan_id=body.plan_id,
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    log.info("Restaurant %s updated", restaurant_id)
    return {"message": "Restaurant updated"}


@router.post("/{restaurant_id}/upload-logo")
async def upload_logo(
    request: Request,
    restaurant_id: int,
    logo: UploadFile | None = File(None),
    principal: dict[str, Any] = Depends(require_user),
):
    enforce_restaurant(restaurant_id, principal)
    if logo is None:
        raise HTTPException(status_code=400, detail="No valid file provided")
    store = get_store(request)
    if store.get_restaurant(restaurant_id) is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")

    logo_url = request.app.state.uploads.save(
        logo.filename or "",
        await read_upload(logo, LOGO_MAX_BYTES),
        content_type=logo.content_type,
        allowed_extensions=LOGO_EXTENSIONS,
        max_bytes=LOGO_MAX_BYTES,
    )
    store.set_logo_url(restaurant_id, logo_url)
    log.info("Logo stored for restaurant %s: %s", restaurant_id, logo_url)
    return {"logoUrl": logo_url}
