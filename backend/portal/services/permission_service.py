# Overview: Service-layer operations for permissions; encapsulates business logic and database work.

"""
Permission Registry

WHY: Permission keys are the vocabulary of every access decision. Keys are
lower snake_case and immutable once created; only display metadata may change.

Deleting a permission removes it from every role that holds it in the same
transaction, so no role is ever left referencing a missing permission.
"""

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Permission, Role, RolePermission
from ..permissions import PERMISSION_DEFINITIONS, DEFAULT_ROLE_PERMISSIONS, is_valid_permission_key
from . import system_event_service
from .access_service import ResolvedUser
from .concurrency import commit_or_conflict


def list_permissions() -> list[Permission]:
    return (
        db.session.query(Permission)
        .order_by(Permission.category.asc(), Permission.key.asc())
        .all()
    )


def get_permission(permission_id: int) -> Permission:
    permission = db.session.get(Permission, permission_id)
    if permission is None:
        raise NotFoundError("Permission not found")
    return permission


def create_permission(
    actor: ResolvedUser | None,
    *,
    key: str | None,
    name: str | None,
    description: str | None = None,
    category: str | None = None,
) -> Permission:
    key = (key or "").strip()
    name = (name or "").strip()
    if not key or not name:
        raise ValidationError("Permission key and name are required")
    if not is_valid_permission_key(key):
        raise ValidationError("Permission key must be lowercase snake_case (e.g. view_folder)")

    if db.session.query(Permission).filter_by(key=key).first():
        raise ConflictError(f"Permission with key '{key}' already exists")

    permission = Permission(key=key, name=name, description=description, category=category)
    db.session.add(permission)
    commit_or_conflict(f"Permission with key '{key}' already exists")

    system_event_service.record(actor, f"Created permission: {key}")
    return permission


def update_permission(actor: ResolvedUser | None, permission_id: int, data: dict) -> Permission:
    permission = get_permission(permission_id)

    new_key = data.get("key")
    if new_key is not None and new_key != permission.key:
        raise ValidationError("Permission key cannot be changed")

    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Permission name cannot be blank")
        permission.name = name
    if "description" in data:
        permission.description = data.get("description")
    if "category" in data:
        permission.category = data.get("category")

    db.session.commit()
    system_event_service.record(actor, f"Updated permission: {permission.key}")
    return permission


def delete_permission(actor: ResolvedUser | None, permission_id: int) -> dict:
    """
    Delete a permission and pull it from every role.

    Returns {"key": ..., "roles_updated": n}.
    """
    permission = get_permission(permission_id)
    key = permission.key

    links = db.session.query(RolePermission).filter(RolePermission.permission_id == permission.id).all()
    roles_updated = len({link.role_id for link in links})
    for link in links:
        db.session.delete(link)
    db.session.delete(permission)
    db.session.commit()

    system_event_service.record(actor, f"Deleted permission: {key} (removed from {roles_updated} role(s))")
    return {"key": key, "roles_updated": roles_updated}


def initialize_permissions() -> int:
    """
    Seed the built-in permission catalogue. Idempotent.

    Returns the number of permissions created.
    """
    existing = {p.key for p in db.session.query(Permission.key).all()}
    created = 0
    for key, name, description, category in PERMISSION_DEFINITIONS:
        if key in existing:
            continue
        db.session.add(Permission(key=key, name=name, description=description, category=category))
        created += 1
    db.session.commit()
    return created


def assign_default_role_permissions() -> int:
    """
    Grant each built-in role its default permissions. Idempotent; never revokes.

    Returns the number of grants added.
    """
    permissions = {p.key: p for p in db.session.query(Permission).all()}
    added = 0
    for role_name, keys in DEFAULT_ROLE_PERMISSIONS.items():
        role = db.session.query(Role).filter_by(name=role_name).first()
        if role is None:
            continue
        held = {rp.permission_id for rp in role.role_permissions}
        for key in keys:
            permission = permissions.get(key)
            if permission is None or permission.id in held:
                continue
            db.session.add(RolePermission(role_id=role.id, permission_id=permission.id))
            added += 1
    db.session.commit()
    return added


def grant_permission_to_role(role_name: str, permission_key: str) -> bool:
    """Returns False when the grant already existed."""
    role = db.session.query(Role).filter_by(name=role_name).first()
    if role is None:
        raise NotFoundError(f"Role '{role_name}' not found")
    permission = db.session.query(Permission).filter_by(key=permission_key).first()
    if permission is None:
        raise NotFoundError(f"Permission '{permission_key}' not found")

    existing = db.session.query(RolePermission).filter_by(role_id=role.id, permission_id=permission.id).first()
    if existing:
        return False
    db.session.add(RolePermission(role_id=role.id, permission_id=permission.id))
    db.session.commit()
    return True


def revoke_permission_from_role(role_name: str, permission_key: str) -> bool:
    """Returns False when the role did not hold the permission."""
    role = db.session.query(Role).filter_by(name=role_name).first()
    if role is None:
        raise NotFoundError(f"Role '{role_name}' not found")
    permission = db.session.query(Permission).filter_by(key=permission_key).first()
    if permission is None:
        raise NotFoundError(f"Permission '{permission_key}' not found")

    existing = db.session.query(RolePermission).filter_by(role_id=role.id, permission_id=permission.id).first()
    if not existing:
        return False
    db.session.delete(existing)
    db.session.commit()
    return True
