"""Account endpoints: register, login, verify, update-plan."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from menudigital.api.auth import hash_password, issue_token, require_user, verify_password
from menudigital.api.deps import get_store
from menudigital.api.schemas import LoginBody, RegisterBody, UpdatePlanBody
from menudigital.defaults import DEFAULT_ROLE, PLANS

log = logging.getLogger("menudigital.api.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
def register(request: Request, body: RegisterBody):
    store = get_store(request)
    email = body.email.strip().lower()
    if store.get_user_by_email(email) is not None:
        log.warning("Registration with existing email: %s", email)
        raise HTTPException(status_code=400, detail="User already exists")

    user = store.register_owner(body.name, email, hash_password(body.password), DEFAULT_ROLE)
    token = issue_token(user, request.app.state.settings)
    return {**user.to_dict(), "token": token}


@router.post("/login")
def login(request: Request, body: LoginBody):
    store = get_store(request)
    email = body.email.strip().lower()
    user = store.get_user_by_email(email)
    if user is None or not verify_password(body.password, user.password_hash):
        log.warning("Failed login for %s", email)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    log.info("User %s authenticated (restaurant %s)", user.id, user.restaurant_id)
    return {"token": issue_token(user, request.app.state.settings), "user": user.to_dict()}


@router.get("/verify")
def verify(principal: dict[str, Any] = Depends(require_user)):
    return {"valid": True, "user": {k: principal.get(k) for k in
                                    ("id", "email", "name", "role", "restaurantId")}}


@router.put("/update-plan")
def update_plan(
    request: Request,
    body: UpdatePlanBody,
    principal: dict[str, Any] = Depends(require_user),
):
    plan = body.plan.strip().lower()
    if plan not in PLANS:
        raise HTTPException(status_code=400, detail=f"Unknown plan: {body.plan}")
    store = get_store(request)
    if not store.update_user_role(principal["id"], plan):
        raise HTTPException(status_code=404, detail="User not found")
    user = store.get_user(principal["id"])
    log.info("User %s moved to plan %s", principal["id"], plan)
    return {
        "message": "Plan updated",
        "user": user.to_dict(),
        "token": issue_token(user, request.app.state.settings),
    }
