# Overview: Service-layer operations for users; encapsulates business logic and database work.

"""
User Store

WHY: Accounts are created by administrators (or the one-time bootstrap seeder).
Passwords are bcrypt hashed and never returned.

INVARIANT: at least one active user holding the super-admin role exists at all
times. Deleting, deactivating or demoting the last one is rejected.
"""

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Role, Submission, User
from ..permissions import SUPER_ADMIN_ROLE
from ..validation import ModelValidationPolicy, parse_int, validate_email, validate_payload
from . import system_event_service
from .access_service import ResolvedUser
from .auth_service import hash_password
from .concurrency import commit_or_conflict

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50

USER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"username", "email", "first_name", "last_name", "ministry", "role_id", "is_active"}),
    required_on_create=frozenset({"username", "email", "first_name", "last_name", "role_id"}),
)

# Profile fields an update may touch; role and status changes go through the guard below
USER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"email", "first_name", "last_name", "ministry", "role_id", "is_active"}),
)


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.username.asc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _require_role(role_id) -> Role:
    role = db.session.get(Role, parse_int(role_id, "role_id"))
    if role is None:
        raise ValidationError("role_id does not reference an existing role")
    return role


def _is_active_super_admin(user: User) -> bool:
    return bool(user.is_active and user.role and user.role.name == SUPER_ADMIN_ROLE)


def count_active_super_admins() -> int:
    return (
        db.session.query(User)
        .join(Role, User.role_id == Role.id)
        .filter(Role.name == SUPER_ADMIN_ROLE, User.is_active.is_(True))
        .count()
    )


def _guard_last_super_admin(user: User, action: str) -> None:
    if _is_active_super_admin(user) and count_active_super_admins() <= 1:
        raise ConflictError(f"Cannot {action} the last active super-admin")


def _check_unique(username: str | None, email: str | None, exclude_id: int | None = None) -> None:
    if username is not None:
        q = db.session.query(User).filter(User.username == username)
        if exclude_id is not None:
            q = q.filter(User.id != exclude_id)
        if q.first():
            raise ConflictError(f"Username '{username}' is already taken")
    if email is not None:
        q = db.session.query(User).filter(User.email == email)
        if exclude_id is not None:
            q = q.filter(User.id != exclude_id)
        if q.first():
            raise ConflictError(f"Email '{email}' is already registered")


def create_user(actor: ResolvedUser | None, data: dict) -> User:
    """
    Create a user. data carries username, email, password, first_name,
    last_name, role_id and optionally ministry / is_active.
    """
    patch = validate_payload(model=User, payload=data, policy=USER_CREATE_POLICY, partial=False)

    username = patch["username"]
    if not (USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH):
        raise ValidationError(
            f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
        )
    validate_email(patch["email"])

    password = (data or {}).get("password")
    if not password:
        raise ValidationError("Missing required fields: password")
    password_hash = hash_password(password)

    role = _require_role(patch.pop("role_id"))
    _check_unique(username, patch["email"])

    user = User(password_hash=password_hash, role=role, **patch)
    db.session.add(user)
    commit_or_conflict("Username or email already exists")

    system_event_service.record(actor, f"Created user: {username}")
    return user


def update_user(actor: ResolvedUser | None, user_id: int, data: dict) -> User:
    user = get_user(user_id)
    patch = validate_payload(model=User, payload=data, policy=USER_UPDATE_POLICY, partial=True)

    if "email" in patch:
        validate_email(patch["email"])
        _check_unique(None, patch["email"], exclude_id=user.id)

    new_role = None
    if "role_id" in patch:
        new_role = _require_role(patch.pop("role_id"))
        if new_role.id == user.role_id:
            new_role = None
        elif new_role.name != SUPER_ADMIN_ROLE:
            _guard_last_super_admin(user, "change the role of")

    if patch.get("is_active") is False:
        _guard_last_super_admin(user, "deactivate")

    password = (data or {}).get("password")
    password_hash = hash_password(password) if password else None

    if new_role is not None:
        user.role = new_role

    for key, value in patch.items():
        setattr(user, key, value)

    if password_hash:
        user.password_hash = password_hash

    commit_or_conflict("Email already exists")
    system_event_service.record(actor, f"Updated user: {user.username}")
    return user


def delete_user(actor: ResolvedUser | None, user_id: int) -> None:
    user = get_user(user_id)
    _guard_last_super_admin(user, "delete")

    if db.session.query(Submission).filter(Submission.submitted_by_id == user.id).first():
        raise ConflictError("User has submissions on record; deactivate the account instead")

    username = user.username
    db.session.delete(user)
    db.session.commit()
    system_event_service.record(actor, f"Deleted user: {username}")
