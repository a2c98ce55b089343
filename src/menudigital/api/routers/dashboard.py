"""Owner dashboard statistics."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from menudigital.api.auth import require_user
from menudigital.api.deps import get_store
from menudigital.models import Role

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats")
def stats(request: Request, principal: dict[str, Any] = Depends(require_user)):
    restaurant_id = principal.get("restaurantId")
    if not restaurant_id:
        raise HTTPException(status_code=400, detail="Token carries no restaurant")
    store = get_store(request)
    total_restaurants = 1
    if principal.get("role") == Role.ADMIN.value:
        total_restaurants = store.count_restaurants()
    return {
        "totalPlatos": store.count_menu_items(restaurant_id),
        "totalRestaurantes": total_restaurants,
    }
