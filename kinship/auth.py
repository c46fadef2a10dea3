"""Current-user identity for request handlers.

Sign-in happens elsewhere; this module only reads the identity it hands us:
either ``request.state.user`` populated upstream, or the signed session
cookie (PyJWT, HS256).
"""

from __future__ import annotations

import os
from typing import Any

import jwt
from fastapi import HTTPException, Request

_JWT_SECRET_ENV = "JWT_SECRET"
_JWT_ALGORITHM = "HS256"
_JWT_COOKIE_NAME = "kin_session"

# Roles allowed to add or remove relationships.
_EDITOR_ROLES = frozenset({"user", "admin"})


def _get_jwt_secret() -> str:
    secret = os.environ.get(_JWT_SECRET_ENV, "")
    if not secret:
        # Development fallback, not safe for production.
        secret = "dev-secret-change-me"
    return secret


def decode_jwt(token: str) -> dict[str, Any]:
    """Decode and verify a JWT.  Raises ``jwt.PyJWTError`` on failure."""
    return jwt.decode(token, _get_jwt_secret(), algorithms=[_JWT_ALGORITHM])


def _user_from_claims(claims: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": int(claims["sub"]),
        "username": claims.get("username", ""),
        "role": claims.get("role", "guest"),
        "instance": claims.get("instance") or None,
    }


def get_current_user(request: Request) -> dict[str, Any]:
    """Return the authenticated user.

    Raises 401 if there is no user on the request and no valid session cookie.
    """
    user = getattr(request.state, "user", None)
    if user:
        return user

    token = request.cookies.get(_JWT_COOKIE_NAME) if hasattr(request, "cookies") else None
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        claims = decode_jwt(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Session expired") from None
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid session") from None

    user = _user_from_claims(claims)
    request.state.user = user
    if user["instance"] and not getattr(request.state, "instance_slug", None):
        request.state.instance_slug = user["instance"]
    return user


def require_editor(request: Request) -> dict[str, Any]:
    """Return the current user, or 403 if they may only read."""
    user = get_current_user(request)
    if user.get("role") not in _EDITOR_ROLES:
        raise HTTPException(status_code=403, detail="Guests cannot change relationships")
    return user


def get_instance_slug(request: Request) -> str | None:
    """Return the active family tree slug for the request, if any."""
    return getattr(request.state, "instance_slug", None)
