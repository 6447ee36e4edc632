# Overview: Service-layer operations for folders; encapsulates business logic and database work.

"""
Folder Hierarchy Store

WHY: Payroll documents are organized in a virtual, path-addressed folder tree.
Which folders a user sees is decided by permissions, not by ownership.

ADDRESSING:
- page: globally unique path of the folder
- parent_path: page of the logical parent ("/" at the top)
- parent_folder_id: structural parent; children are found by indexed lookup,
  never through an embedded child list
- group / child_group: scope tags; a parent with child_group restricts its
  listed children to that group

VISIBILITY:
- super-admin sees everything
- otherwise the user's permission keys must intersect the folder's required keys
- a user holding no permission keys sees nothing (no query is issued)
- a folder with no required keys follows FOLDER_EMPTY_PERMISSIONS_POLICY:
  "strict" (super-admin only) or "open" (every authenticated user)
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Folder, FolderPermission, Group, Submission
from ..permissions import DEFAULT_FOLDER_THEME, FOLDER_THEMES
from ..validation import ModelValidationPolicy, parse_int, parse_str_list, validate_payload
from . import system_event_service
from .access_service import ResolvedUser, ensure_role_loaded

DEFAULT_REQUIRED_PERMISSIONS = ["view_folder"]

EMPTY_PERMISSIONS_STRICT = "strict"
EMPTY_PERMISSIONS_OPEN = "open"

FOLDER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "name", "page", "group", "child_group", "parent_path", "parent_folder_id",
        "subtitle", "label", "ministry_filter", "theme", "sort_order", "is_active",
    }),
    required_on_create=frozenset({"name", "page", "group"}),
)

FOLDER_UPDATE_POLICY = ModelValidationPolicy(writable_fields=FOLDER_CREATE_POLICY.writable_fields)


@dataclass(frozen=True)
class FolderScope:
    """
    What part of the tree to list.

    kind is one of "group", "parent_path", "exact_path", "all".
    """
    kind: str
    value: str | None = None

    @classmethod
    def by_group(cls, group: str) -> "FolderScope":
        return cls("group", group)

    @classmethod
    def by_parent_path(cls, path: str) -> "FolderScope":
        return cls("parent_path", path)

    @classmethod
    def by_exact_path(cls, path: str) -> "FolderScope":
        return cls("exact_path", path)

    @classmethod
    def everything(cls) -> "FolderScope":
        return cls("all")


def group_root_path(group: str) -> str:
    """Canonical parent_path of a group's top-level folders."""
    root_path = current_app.config.get("FOLDER_ROOT_PATH", "/gosl-payroll")
    root_group = current_app.config.get("FOLDER_ROOT_GROUP", "gosl-payroll")
    if group == root_group:
        return root_path
    if group == current_app.config.get("ARCHIVE_GROUP", "PayrollArchive"):
        return current_app.config.get("ARCHIVE_ROOT_PATH", "/payroll-archive").rstrip("/")
    return f"{root_path.rstrip('/')}/{group}"


def _empty_permissions_policy() -> str:
    policy = current_app.config.get("FOLDER_EMPTY_PERMISSIONS_POLICY", EMPTY_PERMISSIONS_STRICT)
    if policy not in (EMPTY_PERMISSIONS_STRICT, EMPTY_PERMISSIONS_OPEN):
        raise ValidationError(f"Unknown FOLDER_EMPTY_PERMISSIONS_POLICY: {policy}")
    return policy


def _visibility_condition(user: ResolvedUser):
    """SQL condition selecting folders the user may see. None means unrestricted."""
    if user.is_super_admin:
        return None

    granted = select(FolderPermission.folder_id).where(
        FolderPermission.permission_key.in_(sorted(user.permissions))
    )
    condition = Folder.id.in_(granted)

    if _empty_permissions_policy() == EMPTY_PERMISSIONS_OPEN:
        any_required = select(FolderPermission.folder_id)
        condition = or_(condition, Folder.id.not_in(any_required))
    return condition


def list_visible_folders(scope: FolderScope, user: ResolvedUser, *, include_inactive: bool = False) -> list[Folder]:
    """
    List folders under scope that user may see, ordered by sort_order then name.

    Never raises on "no match"; returns []. A user whose role row is missing
    raises AuthorizationDataIncompleteError instead.
    """
    ensure_role_loaded(user)
    if not user.is_super_admin and not user.permissions:
        return []

    query = db.session.query(Folder)

    if scope.kind == "group":
        query = query.filter(Folder.group == scope.value, Folder.parent_path == group_root_path(scope.value))
    elif scope.kind == "parent_path":
        query = query.filter(Folder.parent_path == scope.value)
        parent = db.session.query(Folder).filter(Folder.page == scope.value).first()
        if parent is not None and parent.child_group:
            query = query.filter(Folder.group == parent.child_group)
    elif scope.kind == "exact_path":
        query = query.filter(Folder.page == scope.value)
    elif scope.kind != "all":
        raise ValidationError(f"Unknown folder scope: {scope.kind}")

    condition = _visibility_condition(user)
    if condition is not None:
        query = query.filter(condition)

    if not include_inactive:
        query = query.filter(Folder.is_active.is_(True))

    return query.order_by(Folder.sort_order.asc(), Folder.name.asc()).all()


def get_visible_folder_by_path(path: str, user: ResolvedUser) -> Folder:
    folders = list_visible_folders(FolderScope.by_exact_path(path), user)
    if not folders:
        raise NotFoundError("Folder not found or access denied")
    return folders[0]


def list_all_folders() -> list[Folder]:
    """Admin listing: every folder including inactive ones."""
    return db.session.query(Folder).order_by(Folder.sort_order.asc(), Folder.name.asc()).all()


def get_folder(folder_id: int) -> Folder:
    folder = db.session.get(Folder, folder_id)
    if folder is None:
        raise NotFoundError("Folder not found")
    return folder


def get_folder_by_page(page: str) -> Folder | None:
    return db.session.query(Folder).filter(Folder.page == page).first()


def _sibling_exists(name: str, parent_folder_id: int | None, exclude_id: int | None = None) -> bool:
    query = db.session.query(Folder.id).filter(Folder.name == name)
    if parent_folder_id is None:
        query = query.filter(Folder.parent_folder_id.is_(None))
    else:
        query = query.filter(Folder.parent_folder_id == parent_folder_id)
    if exclude_id is not None:
        query = query.filter(Folder.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def _next_sort_order() -> int:
    current = db.session.query(func.max(Folder.sort_order)).scalar()
    return (current or 0) + 1


def _validate_page(page: str, field: str = "page") -> None:
    if not page.startswith("/"):
        raise ValidationError(f"{field} must start with '/'")


def _set_required_permissions(folder: Folder, keys: list[str]) -> None:
    wanted = set(keys)
    for row in list(folder.permission_rows):
        if row.permission_key not in wanted:
            folder.permission_rows.remove(row)
    held = {row.permission_key for row in folder.permission_rows}
    for key in keys:
        if key not in held:
            folder.permission_rows.append(FolderPermission(permission_key=key))


def create_folder(actor: ResolvedUser | None, data: dict) -> Folder:
    """
    Create a folder.

    Rejects with ConflictError if page exists anywhere or the name is taken
    among siblings. required_permissions defaults to the baseline view key;
    an explicit empty list is kept as empty.
    """
    patch = validate_payload(model=Folder, payload=data, policy=FOLDER_CREATE_POLICY, partial=False)
    _validate_page(patch["page"])

    raw_required = (data or {}).get("required_permissions")
    required = DEFAULT_REQUIRED_PERMISSIONS if raw_required is None else parse_str_list(raw_required, "required_permissions")

    theme = patch.get("theme") or DEFAULT_FOLDER_THEME
    if theme not in FOLDER_THEMES:
        raise ValidationError(f"theme must be one of: {', '.join(FOLDER_THEMES)}")
    patch["theme"] = theme

    parent_folder_id = patch.get("parent_folder_id")
    if parent_folder_id is not None:
        # The structural parent decides parent_path so both addressing schemes agree
        patch["parent_path"] = get_folder(parent_folder_id).page
    if not patch.get("parent_path"):
        patch["parent_path"] = "/"
    _validate_page(patch["parent_path"], "parent_path")

    if get_folder_by_page(patch["page"]):
        raise ConflictError(f"A folder with page '{patch['page']}' already exists")
    if _sibling_exists(patch["name"], parent_folder_id):
        raise ConflictError(f"A folder named '{patch['name']}' already exists under this parent")

    if patch.get("sort_order") is None:
        patch["sort_order"] = _next_sort_order()

    folder = Folder(**patch)
    folder.created_by_user_id = actor.id if actor else None
    folder.updated_by_user_id = folder.created_by_user_id
    _set_required_permissions(folder, required)

    db.session.add(folder)
    _commit_folder(folder)

    system_event_service.record(actor, f"Created folder: {folder.name} ({folder.page})")
    return folder


def _commit_folder(folder: Folder) -> None:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        # Re-check which constraint lost the race to give a field-specific message
        if get_folder_by_page(folder.page):
            raise ConflictError(f"A folder with page '{folder.page}' already exists") from exc
        raise ConflictError(f"A folder named '{folder.name}' already exists under this parent") from exc


def _repoint_children(old_page: str, new_page: str, folder_id: int) -> None:
    """Keep children addressed by parent_path attached when their parent's page moves."""
    db.session.query(Folder).filter(Folder.parent_path == old_page, Folder.id != folder_id).update(
        {Folder.parent_path: new_page}, synchronize_session="fetch"
    )


def update_folder(actor: ResolvedUser | None, folder_id: int, data: dict) -> Folder:
    """
    Partial update. Name and parent changes re-check sibling uniqueness excluding self.

    A folder with a structural parent always takes that parent's page as parent_path.
    Renaming a page carries its parent_path children along.
    """
    folder = get_folder(folder_id)
    patch = validate_payload(model=Folder, payload=data, policy=FOLDER_UPDATE_POLICY, partial=True)

    if "page" in patch:
        _validate_page(patch["page"])
        if patch["page"] != folder.page:
            clash = db.session.query(Folder.id).filter(Folder.page == patch["page"], Folder.id != folder.id).first()
            if clash:
                raise ConflictError(f"A folder with page '{patch['page']}' already exists")

    if "parent_path" in patch:
        _validate_page(patch["parent_path"], "parent_path")

    if "theme" in patch and patch["theme"] not in FOLDER_THEMES:
        raise ValidationError(f"theme must be one of: {', '.join(FOLDER_THEMES)}")

    parent_folder_id = patch.get("parent_folder_id", folder.parent_folder_id)
    if parent_folder_id is not None:
        if parent_folder_id == folder.id:
            raise ValidationError("A folder cannot be its own parent")
        patch["parent_path"] = get_folder(parent_folder_id).page

    name = patch.get("name", folder.name)
    if (name != folder.name or parent_folder_id != folder.parent_folder_id) and _sibling_exists(
        name, parent_folder_id, exclude_id=folder.id
    ):
        raise ConflictError(f"A folder named '{name}' already exists under this parent")

    required = None
    if "required_permissions" in (data or {}):
        required = parse_str_list(data.get("required_permissions"), "required_permissions")

    old_page = folder.page
    for key, value in patch.items():
        setattr(folder, key, value)
    if required is not None:
        _set_required_permissions(folder, required)

    if folder.page != old_page:
        _repoint_children(old_page, folder.page, folder.id)

    folder.updated_by_user_id = actor.id if actor else None
    _commit_folder(folder)

    system_event_service.record(actor, f"Updated folder: {folder.name} ({folder.page})")
    return folder


def has_children(folder: Folder) -> bool:
    """Structural children (parent_folder_id) or logical children (parent_path == page)."""
    query = db.session.query(Folder.id).filter(
        Folder.id != folder.id,
        or_(Folder.parent_folder_id == folder.id, Folder.parent_path == folder.page),
    )
    return db.session.query(query.exists()).scalar()


def delete_folder(actor: ResolvedUser | None, folder_id: int) -> None:
    folder = get_folder(folder_id)

    if has_children(folder):
        raise ConflictError("Folder has child folders; move or delete them first")

    in_use = db.session.query(Submission.id).filter(
        or_(Submission.current_folder_id == folder.id, Submission.target_folder_id == folder.id)
    ).first()
    if in_use:
        raise ConflictError("Folder is referenced by submissions; deactivate it instead")

    label = f"{folder.name} ({folder.page})"
    db.session.delete(folder)
    db.session.commit()
    system_event_service.record(actor, f"Deleted folder: {label}")


def reorder_folders(actor: ResolvedUser | None, items) -> dict:
    """
    Apply (id, sort_order) pairs one by one.

    Each pair commits independently; a failed pair does not undo earlier ones.
    Returns {"updated": [ids], "failed": [{"id", "error"}]}.
    """
    if not isinstance(items, list):
        raise ValidationError("folders must be a list of {id, sort_order}")

    updated: list[int] = []
    failed: list[dict] = []
    for item in items:
        raw_id = item.get("id") if isinstance(item, dict) else None
        try:
            if not isinstance(item, dict):
                raise ValidationError("Each entry must be an object")
            folder_id = parse_int(item.get("id"), "id")
            sort_order = parse_int(item.get("sort_order"), "sort_order")
            folder = get_folder(folder_id)
            folder.sort_order = sort_order
            folder.updated_by_user_id = actor.id if actor else None
            db.session.commit()
            updated.append(folder_id)
        except (ValidationError, NotFoundError) as exc:
            db.session.rollback()
            failed.append({"id": raw_id, "error": exc.message})
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Failed to reorder folder %s", raw_id)
            failed.append({"id": raw_id, "error": "Database error"})

    system_event_service.record(
        actor, f"Reordered folders: {len(updated)} updated, {len(failed)} failed"
    )
    return {"updated": updated, "failed": failed}


def group_folder_counts() -> dict[str, int]:
    rows = db.session.query(Folder.group, func.count(Folder.id)).group_by(Folder.group).all()
    return {group: count for group, count in rows}


def folders_using_group(code: str) -> int:
    return db.session.query(Folder).filter(or_(Folder.group == code, Folder.child_group == code)).count()


def resolve_group_from_path(path: str) -> Group | None:
    """
    Map a folder-tree path onto its group: the root path maps to the root group,
    "/root/<code>/..." maps to the group with that code.
    """
    root_path = current_app.config.get("FOLDER_ROOT_PATH", "/gosl-payroll").rstrip("/")
    root_group = current_app.config.get("FOLDER_ROOT_GROUP", "gosl-payroll")
    path = (path or "").rstrip("/")

    if path == root_path:
        code = root_group
    elif path.startswith(root_path + "/"):
        code = path[len(root_path) + 1:].split("/", 1)[0]
    else:
        return None
    return db.session.query(Group).filter(Group.code == code).first()
