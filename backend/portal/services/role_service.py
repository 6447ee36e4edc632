# Overview: Service-layer operations for roles; encapsulates business logic and database work.

"""
Role Store

A role is a name plus a set of permission references. Changing a role's
permissions takes effect on the holder's next request; sessions are not
invalidated.

Guards:
- the super-admin role cannot be renamed or deleted
- a role still assigned to users cannot be deleted
"""

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Permission, Role, RolePermission, User
from ..permissions import DEFAULT_ROLE_DESCRIPTIONS, DEFAULT_ROLE_PERMISSIONS, SUPER_ADMIN_ROLE
from ..validation import parse_int_list
from . import system_event_service
from .access_service import ResolvedUser
from .concurrency import commit_or_conflict


def list_roles() -> list[Role]:
    return db.session.query(Role).order_by(Role.name.asc()).all()


def get_role(role_id: int) -> Role:
    role = db.session.get(Role, role_id)
    if role is None:
        raise NotFoundError("Role not found")
    return role


def get_role_by_name(name: str) -> Role | None:
    return db.session.query(Role).filter_by(name=name).first()


def _load_permissions(permission_ids: list[int]) -> list[Permission]:
    wanted = set(permission_ids)
    if not wanted:
        return []
    found = db.session.query(Permission).filter(Permission.id.in_(wanted)).all()
    missing = wanted - {p.id for p in found}
    if missing:
        raise ValidationError(f"Unknown permission id(s): {', '.join(str(i) for i in sorted(missing))}")
    return found


def _replace_permissions(role: Role, permissions: list[Permission]) -> None:
    wanted = {p.id for p in permissions}
    for link in list(role.role_permissions):
        if link.permission_id not in wanted:
            role.role_permissions.remove(link)
    held = {link.permission_id for link in role.role_permissions}
    for permission in permissions:
        if permission.id not in held:
            role.role_permissions.append(RolePermission(permission=permission))


def create_role(
    actor: ResolvedUser | None,
    *,
    name: str | None,
    description: str | None = None,
    permission_ids=None,
) -> Role:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Role name is required")
    permissions = _load_permissions(parse_int_list(permission_ids, "permissions"))

    if get_role_by_name(name):
        raise ConflictError(f"Role '{name}' already exists")

    role = Role(name=name, description=description)
    _replace_permissions(role, permissions)
    db.session.add(role)
    commit_or_conflict(f"Role '{name}' already exists")

    system_event_service.record(actor, f"Created role: {name}")
    return role


def update_role(actor: ResolvedUser | None, role_id: int, data: dict) -> Role:
    role = get_role(role_id)

    permissions = None
    if "permissions" in data:
        permissions = _load_permissions(parse_int_list(data.get("permissions"), "permissions"))

    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Role name cannot be blank")
        if name != role.name:
            if role.name == SUPER_ADMIN_ROLE:
                raise ConflictError("The super-admin role cannot be renamed")
            clash = db.session.query(Role).filter(Role.name == name, Role.id != role.id).first()
            if clash:
                raise ConflictError(f"Role '{name}' already exists")
            role.name = name

    if "description" in data:
        role.description = data.get("description")

    if permissions is not None:
        _replace_permissions(role, permissions)

    commit_or_conflict(f"Role '{role.name}' already exists")
    system_event_service.record(actor, f"Updated role: {role.name}")
    return role


def delete_role(actor: ResolvedUser | None, role_id: int) -> None:
    role = get_role(role_id)
    if role.name == SUPER_ADMIN_ROLE:
        raise ConflictError("The super-admin role cannot be deleted")

    holders = db.session.query(User).filter(User.role_id == role.id).count()
    if holders:
        raise ConflictError(f"Role '{role.name}' is assigned to {holders} user(s)")

    name = role.name
    db.session.delete(role)
    db.session.commit()
    system_event_service.record(actor, f"Deleted role: {name}")


def create_default_roles() -> int:
    """Create the built-in roles if missing. Returns the number created."""
    created = 0
    for name in DEFAULT_ROLE_PERMISSIONS:
        if get_role_by_name(name) is None:
            db.session.add(Role(name=name, description=DEFAULT_ROLE_DESCRIPTIONS.get(name)))
            created += 1
    db.session.commit()
    return created
