# Overview: Service-layer operations for folder groups; encapsulates business logic and database work.

"""
Folder Groups

Groups are metadata layered over the folder `group` / `child_group` tags.
A group cannot be deleted while folders carry its code or while other
groups name it as their parent.
"""

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Group
from ..permissions import DEFAULT_GROUPS, FOLDER_THEMES, GROUP_FREQUENCIES
from ..validation import ModelValidationPolicy, parse_str_list, validate_payload
from . import folder_service, system_event_service
from .access_service import ResolvedUser
from .concurrency import commit_or_conflict

GROUP_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "name", "code", "description", "icon", "default_theme", "parent_group", "is_active", "sort_order",
    }),
    required_on_create=frozenset({"name", "code"}),
)

GROUP_UPDATE_POLICY = ModelValidationPolicy(writable_fields=GROUP_CREATE_POLICY.writable_fields)


def list_groups(*, active_only: bool = False) -> list[Group]:
    query = db.session.query(Group)
    if active_only:
        query = query.filter(Group.is_active.is_(True))
    return query.order_by(Group.sort_order.asc(), Group.name.asc()).all()


def get_group(group_id: int) -> Group:
    group = db.session.get(Group, group_id)
    if group is None:
        raise NotFoundError("Group not found")
    return group


def get_group_by_code(code: str) -> Group | None:
    return db.session.query(Group).filter(Group.code == code).first()


def get_group_by_path(path: str) -> Group:
    group = folder_service.resolve_group_from_path(path)
    if group is None:
        raise NotFoundError("No group matches this path")
    return group


def _parse_auto_generation(data: dict) -> dict:
    """Column values for the auto_generation sub-object; {} when absent."""
    auto = data.get("auto_generation")
    if auto is None:
        return {}
    if not isinstance(auto, dict):
        raise ValidationError("auto_generation must be an object")

    values = {}
    if "enabled" in auto:
        values["auto_generation_enabled"] = bool(auto["enabled"])
    if "frequency" in auto:
        if auto["frequency"] not in GROUP_FREQUENCIES:
            raise ValidationError(f"auto_generation.frequency must be one of: {', '.join(GROUP_FREQUENCIES)}")
        values["auto_generation_frequency"] = auto["frequency"]
    if "name_template" in auto:
        template = (auto["name_template"] or "").strip()
        if not template:
            raise ValidationError("auto_generation.name_template cannot be blank")
        values["auto_generation_name_template"] = template
    return values


def _validate_common(patch: dict, data: dict) -> None:
    patch.update(_parse_auto_generation(data))
    if "default_theme" in patch and patch["default_theme"] not in FOLDER_THEMES:
        raise ValidationError(f"default_theme must be one of: {', '.join(FOLDER_THEMES)}")
    if "default_permissions" in data:
        patch["default_permissions"] = parse_str_list(data.get("default_permissions"), "default_permissions")
    if patch.get("parent_group"):
        if get_group_by_code(patch["parent_group"]) is None:
            raise ValidationError("parent_group does not reference an existing group code")


def create_group(actor: ResolvedUser | None, data: dict) -> Group:
    patch = validate_payload(model=Group, payload=data, policy=GROUP_CREATE_POLICY, partial=False)
    _validate_common(patch, data or {})

    if db.session.query(Group).filter(Group.name == patch["name"]).first():
        raise ConflictError(f"Group '{patch['name']}' already exists")
    if get_group_by_code(patch["code"]):
        raise ConflictError(f"Group code '{patch['code']}' already exists")

    group = Group(**patch)
    group.created_by_user_id = actor.id if actor else None
    group.updated_by_user_id = group.created_by_user_id
    db.session.add(group)
    commit_or_conflict("Group name or code already exists")

    system_event_service.record(actor, f"Created group: {group.name} ({group.code})")
    return group


def update_group(actor: ResolvedUser | None, group_id: int, data: dict) -> Group:
    group = get_group(group_id)
    patch = validate_payload(model=Group, payload=data, policy=GROUP_UPDATE_POLICY, partial=True)
    _validate_common(patch, data or {})

    if "name" in patch and patch["name"] != group.name:
        clash = db.session.query(Group).filter(Group.name == patch["name"], Group.id != group.id).first()
        if clash:
            raise ConflictError(f"Group '{patch['name']}' already exists")

    if "code" in patch and patch["code"] != group.code:
        if folder_service.folders_using_group(group.code):
            raise ConflictError("Group code cannot change while folders use it")
        if get_group_by_code(patch["code"]):
            raise ConflictError(f"Group code '{patch['code']}' already exists")

    if patch.get("parent_group") == (patch.get("code") or group.code):
        raise ValidationError("A group cannot be its own parent")

    for key, value in patch.items():
        setattr(group, key, value)
    group.updated_by_user_id = actor.id if actor else None

    commit_or_conflict("Group name or code already exists")
    system_event_service.record(actor, f"Updated group: {group.name} ({group.code})")
    return group


def delete_group(actor: ResolvedUser | None, group_id: int) -> None:
    group = get_group(group_id)

    folder_count = folder_service.folders_using_group(group.code)
    if folder_count:
        raise ConflictError(f"Group is used by {folder_count} folder(s)")

    child_count = db.session.query(Group).filter(Group.parent_group == group.code).count()
    if child_count:
        raise ConflictError(f"Group has {child_count} child group(s)")

    label = f"{group.name} ({group.code})"
    db.session.delete(group)
    db.session.commit()
    system_event_service.record(actor, f"Deleted group: {label}")


def group_stats() -> list[dict]:
    counts = folder_service.group_folder_counts()
    return [
        {"id": g.id, "code": g.code, "name": g.name, "folder_count": counts.get(g.code, 0)}
        for g in list_groups()
    ]


def initialize_groups() -> int:
    """Seed the built-in groups if missing. Returns the number created."""
    created = 0
    for code, name, description, icon, theme, parent_group, sort_order in DEFAULT_GROUPS:
        if get_group_by_code(code):
            continue
        db.session.add(Group(
            code=code,
            name=name,
            description=description,
            icon=icon,
            default_theme=theme,
            parent_group=parent_group,
            sort_order=sort_order,
        ))
        created += 1
    db.session.commit()
    return created
