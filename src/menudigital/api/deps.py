"""Shared request helpers for routers."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request

from menudigital.models import Role
from menudigital.ports import MenuStore


def get_store(request: Request) -> MenuStore:
    return request.app.state.store


def enforce_restaurant(restaurant_id: int, principal: dict[str, Any]) -> int:
    """Raise 403 when the caller manages a different restaurant."""
    if principal.get("role") == Role.ADMIN.value:
        return restaurant_id
    if principal.get("restaurantId") != restaurant_id:
        raise HTTPException(status_code=403, detail="Forbidden: cannot modify another restaurant")
    return restaurant_id
