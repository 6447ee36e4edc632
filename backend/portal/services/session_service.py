# Overview: Service-layer operations for session tokens; signs and resolves bearer tokens.

"""
Session Token Service

WHY: Stateless signed tokens (PyJWT, HS256) carry only the user id. Every
request resolves the token back into a fresh ResolvedUser so that role and
permission edits, deactivation and deletion take effect on the next request.

SECURITY FEATURES:
- Signing secret comes from configuration and is length-checked at startup
- Short absolute lifetime (JWT_EXPIRY_HOURS, default 2)
- Expired and otherwise invalid tokens fail with distinct errors
"""

from __future__ import annotations

from datetime import timedelta, timezone

import jwt
from flask import current_app

from ..errors import TokenExpiredError, TokenInvalidError, UserInactiveError, UserNotFoundError
from ..extensions import db
from ..models import User
from ..time_utils import utcnow
from .access_service import ResolvedUser, ensure_role_loaded, resolve_user


def _secret() -> str:
    return current_app.config["JWT_SECRET"]


def _algorithm() -> str:
    return current_app.config.get("JWT_ALGORITHM", "HS256")


def issue_token(user: User) -> str:
    """Mint a signed token embedding the user id."""
    issued_at = utcnow().replace(tzinfo=timezone.utc)
    expires_at = issued_at + timedelta(hours=current_app.config.get("JWT_EXPIRY_HOURS", 2))
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(payload, _secret(), algorithm=_algorithm())


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            _secret(),
            algorithms=[_algorithm()],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError("Session token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise TokenInvalidError("Session token is invalid") from exc


def resolve_session(token: str) -> ResolvedUser:
    """
    Resolve a bearer token into a fully-populated user.

    The user is loaded from the database, not from the token payload.
    Raises AuthorizationDataIncompleteError when the user's role row is gone.
    """
    payload = decode_token(token)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as exc:
        raise TokenInvalidError("Session token subject is malformed") from exc

    user = db.session.get(User, user_id)
    if user is None:
        raise UserNotFoundError("User no longer exists")
    if not user.is_active:
        raise UserInactiveError("User account is deactivated")

    # A dangling role reference fails every request, not just permission-gated ones
    return ensure_role_loaded(resolve_user(user))
