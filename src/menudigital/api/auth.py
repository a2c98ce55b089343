"""Authentication: password hashing, signed tokens, FastAPI dependencies.

Tokens are HS256 JWTs carrying ``{id, email, name, role, restaurantId}``.
The REST API requires them; the notification channel does not.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import secrets
import time
from typing import Any

import jwt  # PyJWT
from fastapi import HTTPException, Request

from menudigital.config import Settings
from menudigital.defaults import JWT_ALGORITHM, PASSWORD_HASH_ITERATIONS
from menudigital.models import User

log = logging.getLogger("menudigital.auth")

# --- Auth constants ---
_SALT_BYTES = 16
_HASH_SCHEME = "pbkdf2_sha256"
_BEARER = "bearer"


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

def hash_password(password: str, *, iterations: int = PASSWORD_HASH_ITERATIONS) -> str:
    """Return ``scheme$iterations$salt$digest`` for storage."""
    salt = secrets.token_bytes(_SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, iterations)
    return "$".join((
        _HASH_SCHEME,
        str(iterations),
        base64.b64encode(salt).decode(),
        base64.b64encode(digest).decode(),
    ))


def verify_password(password: str, stored: str) -> bool:
    try:
        scheme, iterations, salt_b64, digest_b64 = stored.split("$")
    except ValueError:
        return False
    if scheme != _HASH_SCHEME:
        return False
    salt = base64.b64decode(salt_b64)
    expected = base64.b64decode(digest_b64)
    actual = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, int(iterations))
    return hmac.compare_digest(expected, actual)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

def issue_token(user: User, settings: Settings) -> str:
    now = int(time.time())
    payload = {**user.claims(), "iat": now, "exp": now + settings.jwt_ttl_seconds}
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, settings: Settings) -> dict[str, Any]:
    """Verify signature and expiry. Raises ``jwt.InvalidTokenError``."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])


def _bearer_token(request: Request) -> str:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != _BEARER:
        return ""
    return token.strip()


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

def require_user(request: Request) -> dict[str, Any]:
    """Return the token claims of the caller, or raise 401."""
    token = _bearer_token(request)
    if not token:
        log.info("Rejected %s %s: no token", request.method, request.url.path,
                 extra={"method": request.method, "path": request.url.path})
        raise HTTPException(status_code=401, detail="No token provided")
    try:
        return decode_token(token, request.app.state.settings)
    except jwt.InvalidTokenError as e:
        log.info("Rejected %s %s: %s", request.method, request.url.path, e,
                 extra={"method": request.method, "path": request.url.path})
        raise HTTPException(status_code=401, detail="Invalid token") from e
