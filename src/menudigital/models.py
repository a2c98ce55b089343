"""Core data types for menudigital."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex[:12]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Role(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"
    ADMIN = "admin"


class ChannelState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class MessageKind:
    """Registry of channel message kinds (single source of truth)."""

    PING = "ping"
    PONG = "pong"
    MENU_UPDATED = "menu-updated"
    MENU_CHANGED = "menu-changed"


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

@dataclass
class User:
    id: int
    name: str
    email: str
    role: str
    restaurant_id: int | None = None
    password_hash: str = ""

    def claims(self) -> dict[str, Any]:
        """Claims carried by the signed auth token."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "restaurantId": self.restaurant_id,
        }

    def to_dict(self) -> dict[str, Any]:
        return self.claims()


# ---------------------------------------------------------------------------
# Menu
# ---------------------------------------------------------------------------

@dataclass
class MenuItem:
    id: int
    restaurant_id: int
    name: str
    price: float = 0.0
    description: str = ""
    category: str = ""
    image_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "description": self.description,
            "category": self.category,
            "image_url": self.image_url,
        }


@dataclass
class Restaurant:
    id: int
    name: str
    logo_url: str | None = None
    colors: dict[str, Any] = field(default_factory=dict)
    sections: dict[str, Any] = field(default_factory=dict)
    template_id: int | None = None
    plan_id: int | None = None
    plan: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "logo_url": self.logo_url,
            "colors": self.colors,
            "sections": self.sections,
            "template_id": self.template_id,
            "plan_id": self.plan_id,
        }
        if self.plan:
            d.update(self.plan)
        return d

    def public_dict(self) -> dict[str, Any]:
        """Subset shown to diners on the published menu."""
        return {
            "name": self.name,
            "logo_url": self.logo_url,
            "colors": self.colors,
            "sections": self.sections,
        }


@dataclass
class MenuTemplate:
    id: int
    type: str
    name: str
    fields: dict[str, Any] = field(default_factory=dict)
    default_colors: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "fields": self.fields,
            "default_colors": self.default_colors,
        }


@dataclass
class Table:
    id: int
    numero_mesa: int
    qr_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "numero_mesa": self.numero_mesa, "qr_url": self.qr_url}
