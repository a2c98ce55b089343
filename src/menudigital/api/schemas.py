"""Pydantic request models for strict input validation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class RegisterBody(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class LoginBody(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UpdatePlanBody(BaseModel):
    plan: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Restaurants
# ---------------------------------------------------------------------------

class RestaurantUpdateBody(BaseModel):
    name: str | None = None
    colors: dict[str, Any] | None = None
    logo: str | None = None
    sections: dict[str, Any] | None = None
    plan_id: int | None = None

    model_config = {"extra": "ignore"}


# ---------------------------------------------------------------------------
# Menu
# ---------------------------------------------------------------------------

class MenuItemBody(BaseModel):
    name: str = Field(..., min_length=1)
    price: float = Field(default=0.0, ge=0)
    description: str = ""
    category: str = ""
    imageUrl: str = ""


class MenuItemPatchBody(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    price: float | None = Field(default=None, ge=0)
    description: str | None = None
    category: str | None = None
    imageUrl: str | None = None


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

class TemplateAssignBody(BaseModel):
    templateId: int | None = None
