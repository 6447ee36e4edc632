# Overview: Service-layer bootstrap; seeds the catalogue, groups, roles and the first super-admin.

"""
Bootstrap Seeder

Idempotent. Safe to run on every deploy:
- built-in permissions, groups and roles are created when missing
- built-in roles gain missing default grants (never revoked)
- a super-admin account is created only when no active one exists

SECURITY: the initial super-admin comes from INITIAL_ADMIN_USERNAME /
INITIAL_ADMIN_PASSWORD / INITIAL_ADMIN_EMAIL. When unset, a random temporary
password is generated and reported with a loud warning.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from flask import current_app

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import User
from ..permissions import SUPER_ADMIN_ROLE
from . import group_service, permission_service, role_service, system_event_service
from .auth_service import hash_password
from .user_service import count_active_super_admins

FALLBACK_ADMIN_USERNAME = "superadmin"


@dataclass
class BootstrapResult:
    permissions_created: int = 0
    groups_created: int = 0
    roles_created: int = 0
    grants_added: int = 0
    admin_username: str | None = None
    temporary_password: str | None = None

    @property
    def admin_created(self) -> bool:
        return self.admin_username is not None


def _temporary_password() -> str:
    # token_urlsafe may lack a class the strength check requires; append one of each
    return f"{secrets.token_urlsafe(12)}Aa1!"


def ensure_super_admin(
    username: str | None = None,
    password: str | None = None,
    email: str | None = None,
) -> tuple[User | None, str | None]:
    """
    Create a super-admin if none is active.

    Returns (user, temporary_password); user is None when one already existed.
    """
    if count_active_super_admins() > 0:
        return None, None

    config = current_app.config
    username = username or config.get("INITIAL_ADMIN_USERNAME")
    password = password or config.get("INITIAL_ADMIN_PASSWORD")
    email = email or config.get("INITIAL_ADMIN_EMAIL")

    temporary = None
    if not username or not password:
        username = username or FALLBACK_ADMIN_USERNAME
        temporary = _temporary_password()
        password = temporary
        current_app.logger.warning(
            "INITIAL_ADMIN_USERNAME/INITIAL_ADMIN_PASSWORD not set. Created super-admin '%s' with a "
            "TEMPORARY password. Change it immediately and NEVER run production like this.",
            username,
        )

    role = role_service.get_role_by_name(SUPER_ADMIN_ROLE)
    if role is None:
        raise NotFoundError(f"Role '{SUPER_ADMIN_ROLE}' is missing; seed roles first")

    if db.session.query(User).filter(User.username == username).first():
        raise ConflictError(f"User '{username}' exists but is not an active super-admin")

    user = User(
        username=username,
        email=email or f"{username}@portal.local",
        password_hash=hash_password(password),
        first_name="Super",
        last_name="Admin",
        role=role,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    system_event_service.record(None, f"Bootstrap super-admin created: {username}")
    return user, temporary


def bootstrap() -> BootstrapResult:
    result = BootstrapResult()
    result.permissions_created = permission_service.initialize_permissions()
    result.groups_created = group_service.initialize_groups()
    result.roles_created = role_service.create_default_roles()
    result.grants_added = permission_service.assign_default_role_permissions()

    user, temporary = ensure_super_admin()
    if user is not None:
        result.admin_username = user.username
        result.temporary_password = temporary
    return result
