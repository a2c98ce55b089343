"""Typed envelope for the menu notification channel.

Every application message is a JSON object carried in one text frame and
tagged by ``kind``:

    { "kind": "ping" }
    { "kind": "pong" }
    { "kind": "menu-updated", "restaurantId": <int>, "item": <opaque> }
    { "kind": "menu-changed", "restaurantId": <int>, "item": <opaque> }
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from menudigital.models import MessageKind


class MessageError(ValueError):
    """Raised when a channel payload cannot be interpreted."""


class MenuUpdate(BaseModel):
    """Validated body of a ``menu-updated`` request."""

    restaurant_id: StrictInt = Field(..., alias="restaurantId")
    item: Any = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def parse_message(raw: str | bytes) -> dict[str, Any]:
    """Decode one frame into a message dict with a string ``kind``."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MessageError(f"Frame is not UTF-8: {e}") from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MessageError(f"Invalid JSON: {e.msg}") from e
    if not isinstance(data, dict):
        raise MessageError("Message must be a JSON object")
    kind = data.get("kind")
    if not isinstance(kind, str) or not kind:
        raise MessageError("Message has no kind")
    return data


def parse_menu_update(message: dict[str, Any]) -> MenuUpdate:
    try:
        return MenuUpdate.model_validate(message)
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(part) for part in first.get("loc", ()))
        raise MessageError(f"{loc}: {first.get('msg', 'invalid')}") from e


def encode(message: dict[str, Any]) -> str:
    return json.dumps(message, default=str)


def ping() -> dict[str, Any]:
    return {"kind": MessageKind.PING}


def pong() -> dict[str, Any]:
    return {"kind": MessageKind.PONG}


def menu_updated(restaurant_id: int, item: Any = None) -> dict[str, Any]:
    return {"kind": MessageKind.MENU_UPDATED, "restaurantId": restaurant_id, "item": item}


def menu_changed(restaurant_id: int, item: Any = None) -> dict[str, Any]:
    return {"kind": MessageKind.MENU_CHANGED, "restaurantId": restaurant_id, "item": item}
