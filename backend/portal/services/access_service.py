# Overview: Service-layer operations for access decisions; resolves who the caller is and what they may do.

"""
Access Decision

WHY: One pure function answers "may this user do X". Routes, services and the
folder visibility filter all call has_permission; nothing else inspects roles.

DESIGN PRINCIPLES:
- Fail closed: an unknown key is denied
- The super-admin role passes every check, including keys that do not exist
- Incomplete role data is an error, never a silent allow
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import AuthorizationDataIncompleteError
from ..models import User
from ..permissions import SUPER_ADMIN_ROLE, ADMIN_ROLES

SYSTEM_USER_NAME = "System Automated Job"


@dataclass(frozen=True)
class ResolvedUser:
    """
    Authenticated identity with its role and permission keys loaded.

    Built fresh from the database for every request; never cached across requests.
    role_name is None when the user's role row could not be loaded.
    """
    id: int
    username: str
    role_id: int | None
    role_name: str | None
    permissions: frozenset[str] = field(default_factory=frozenset)
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    ministry: str | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.role_name == SUPER_ADMIN_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role_name in ADMIN_ROLES

    @property
    def display_name(self) -> str:
        full = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full or self.username

    def summary(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "ministry": self.ministry,
            "role": self.role_name,
            "permissions": sorted(self.permissions),
        }


def resolve_user(user: User) -> ResolvedUser:
    """Snapshot a User row and its role's permission keys."""
    role = user.role
    if role is None:
        return ResolvedUser(
            id=user.id,
            username=user.username,
            role_id=user.role_id,
            role_name=None,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            ministry=user.ministry,
        )
    return ResolvedUser(
        id=user.id,
        username=user.username,
        role_id=role.id,
        role_name=role.name,
        permissions=frozenset(role.permission_keys),
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        ministry=user.ministry,
    )


def ensure_role_loaded(user: ResolvedUser) -> ResolvedUser:
    """Raise AuthorizationDataIncompleteError when the user's role row is missing."""
    if user.role_name is None:
        raise AuthorizationDataIncompleteError(
            f"Role data for user {user.username} could not be loaded"
        )
    return user


def has_permission(user: ResolvedUser, permission_key: str) -> bool:
    """
    Decide whether user may exercise permission_key.

    Raises AuthorizationDataIncompleteError when the user's role is missing.
    """
    ensure_role_loaded(user)
    if user.is_super_admin:
        return True
    return permission_key in user.permissions


def actor_identity(actor: ResolvedUser | None) -> tuple[int | None, str]:
    """(performed_by_id, performed_by_name) for audit rows; None means the system."""
    if actor is None:
        return None, SYSTEM_USER_NAME
    return actor.id, actor.display_name
