"""Menu endpoints: public menu view, item CRUD, media upload.

Writes here never broadcast on the notification channel; clients send a
``menu-updated`` message after a successful write.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from menudigital.api.auth import require_user
from menudigital.api.deps import enforce_restaurant, get_store
from menudigital.api.schemas import MenuItemBody, MenuItemPatchBody
from menudigital.defaults import MENU_FILE_EXTENSIONS, MENU_FILE_MAX_BYTES
from menudigital.uploads import read_upload

log = logging.getLogger("menudigital.api.menu")

router = APIRouter(prefix="/menu", tags=["menu"])


@router.get("/{restaurant_id}")
def get_menu(request: Request, restaurant_id: int):
    """Published menu for diners (no auth)."""
    store = get_store(request)
    restaurant = store.get_restaurant(restaurant_id)
    if restaurant is None:
        return {"restaurant": {}, "items": []}
    items = store.list_menu_items(restaurant_id)
    return {
        "restaurant": restaurant.public_dict(),
        "items": [it.to_dict() for it in items],
    }


@router.post("/{restaurant_id}", status_code=201)
def add_item(
    request: Request,
    restaurant_id: int,
    body: MenuItemBody,
    principal: dict[str, Any] = Depends(require_user),
):
    enforce_restaurant(restaurant_id, principal)
    store = get_store(request)
    if store.get_restaurant(restaurant_id) is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    item_id = store.add_menu_item(
        restaurant_id,
        name=body.name,
        price=body.price,
        description=body.description,
        category=body.category,
        image_url=body.imageUrl,
    )
    log.info("Menu item %s added to restaurant %s", item_id, restaurant_id)
    return {"id": item_id, "message": "Item added"}


@router.put("/{restaurant_id}/items/{item_id}")
def update_item(
    request: Request,
    restaurant_id: int,
    item_id: int,
    body: MenuItemPatchBody,
    principal: dict[str, Any] = Depends(require_user),
):
    enforce_restaurant(restaurant_id, principal)
    store = get_store(request)
    updated = store.update_menu_item(
        restaurant_id,
        item_id,
        name=body.name,
        price=body.price,
        description=body.description,
        category=body.category,
        image_url=body.imageUrl,
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Menu item not found")
    return store.get_menu_item(restaurant_id, item_id).to_dict()


@router.delete("/{restaurant_id}/items/{item_id}")
def delete_item(
    request: Request,
    restaurant_id: int,
    item_id: int,
    principal: dict[str, Any] = Depends(require_user),
):
    enforce_restaurant(restaurant_id, principal)
    if not get_store(request).delete_menu_item(restaurant_id, item_id):
        raise HTTPException(status_code=404, detail="Menu item not found")
    log.info("Menu item %s removed from restaurant %s", item_id, restaurant_id)
    return {"id": item_id, "message": "Item deleted"}


@router.post("/{restaurant_id}/upload")
async def upload_file(
    request: Request,
    restaurant_id: int,
    file: UploadFile | None = File(None),
    principal: dict[str, Any] = Depends(require_user),
):
    enforce_restaurant(restaurant_id, principal)
    if file is None:
        raise HTTPException(status_code=400, detail="No valid file provided")
    file_url = request.app.state.uploads.save(
        file.filename or "",
        await read_upload(file, MENU_FILE_MAX_BYTES),
        content_type=file.content_type,
        allowed_extensions=MENU_FILE_EXTENSIONS,
        max_bytes=MENU_FILE_MAX_BYTES,
    )
    return {"fileUrl": file_url}
