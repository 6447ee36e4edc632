# Overview: Login, password hashing and password policy for portal accounts.

"""
Authentication Service

WHY: Every portal action is attributed to a named account, so credentials are
checked here and nowhere else. Tokens themselves come from session_service.

SECURITY NOTES:
- bcrypt hashes, BCRYPT_ROUNDS work factor
- 8 to 128 characters with upper and lower case letters, a digit and a symbol
- Unknown username and wrong password produce one identical error
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import bcrypt

from ..errors import InvalidCredentialsError, ValidationError
from ..extensions import db
from ..models import User
from ..time_utils import utcnow
from . import session_service, system_event_service
from .access_service import ResolvedUser, ensure_role_loaded, resolve_user

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
BCRYPT_ROUNDS = 12

# Character classes every password needs, with the name used in the error
PASSWORD_CHARACTER_RULES = (
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"\d"), "a digit"),
    (re.compile(r"[^A-Za-z0-9]"), "a special character"),
)

# Compared against when the username is unknown so both failure paths cost one bcrypt check
_DUMMY_HASH = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds=4)).decode("utf-8")


class PasswordValidationError(ValidationError):
    """A proposed password fails the portal password policy."""


@dataclass
class LoginResult:
    token: str
    user: ResolvedUser

    def to_dict(self) -> dict:
        return {
            "message": "Login successful",
            "token": self.token,
            "id": self.user.id,
            "role": self.user.role_name,
            **{k: v for k, v in self.user.summary().items() if k not in ("id", "role")},
        }


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or not MIN_PASSWORD_LENGTH <= len(password) <= MAX_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be between {MIN_PASSWORD_LENGTH} and {MAX_PASSWORD_LENGTH} characters long"
        )
    for pattern, label in PASSWORD_CHARACTER_RULES:
        if pattern.search(password) is None:
            raise PasswordValidationError(f"Password must contain {label}")


def hash_password(password: str) -> str:
    """Check the password policy, then return the bcrypt hash as text for the users table."""
    validate_password_strength(password)
    digest = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return digest.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    # bcrypt.checkpw compares in constant time
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def authenticate(username: str, password: str) -> LoginResult:
    """
    Validate credentials and mint a session token.

    Username match is exact and case-sensitive. Deactivated accounts fail
    like unknown ones.
    """
    if not username or not password:
        raise InvalidCredentialsError("Invalid username or password")

    user = db.session.query(User).filter(User.username == username).first()
    if user is None:
        verify_password(password, _DUMMY_HASH)
        raise InvalidCredentialsError("Invalid username or password")

    if not verify_password(password, user.password_hash) or not user.is_active:
        raise InvalidCredentialsError("Invalid username or password")

    resolved = ensure_role_loaded(resolve_user(user))

    user.last_login_at = utcnow()
    db.session.commit()

    token = session_service.issue_token(user)
    system_event_service.record(resolved, "User logged in")
    return LoginResult(token=token, user=resolved)


def logout(actor: ResolvedUser) -> None:
    """Tokens are stateless; logout only leaves an audit trail."""
    system_event_service.record(actor, "User logged out")
