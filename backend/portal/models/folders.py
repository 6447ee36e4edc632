from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Folder(db.Model):
    """
    Node in the path-addressed folder hierarchy.

    Addressing:
    - page is the folder's unique path ("/payroll-archive/2026/November")
    - parent_path is the page of the logical parent, "/" at the top
    - parent_folder_id is the structural parent, null for roots

    Visibility is decided by required permissions (FolderPermission rows):
    a user sees the folder if they hold at least one of them.

    Sibling names are unique under one parent (name, parent_folder_id).
    """
    __tablename__ = "folders"
    __table_args__ = (
        db.UniqueConstraint("name", "parent_folder_id", name="uq_folders_name_parent"),
        db.Index("ix_folders_parent_path_group", "parent_path", "group_code"),
        db.Index("ix_folders_parent_active", "parent_folder_id", "is_active"),
        db.Index("ix_folders_group_active", "group_code", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(200), nullable=False)
    page = db.Column(db.String(512), nullable=False, unique=True, index=True)
    parent_path = db.Column(db.String(512), nullable=False, default="/")
    parent_folder_id = db.Column(db.Integer, db.ForeignKey("folders.id"), nullable=True)

    # "group" is reserved in SQL; the column is stored as group_code
    group = db.Column("group_code", db.String(128), nullable=False, index=True)
    child_group = db.Column(db.String(128), nullable=True)

    subtitle = db.Column(db.String(500), nullable=True)
    label = db.Column(db.String(100), nullable=True)
    ministry_filter = db.Column(db.String(200), nullable=True)
    theme = db.Column(db.String(16), nullable=False, default="gray")
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=db.func.now())

    parent = db.relationship("Folder", remote_side=[id], backref=db.backref("children", lazy=True))
    permission_rows = db.relationship(
        "FolderPermission",
        back_populates="folder",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    created_by = db.relationship("User", foreign_keys=[created_by_user_id])
    updated_by = db.relationship("User", foreign_keys=[updated_by_user_id])

    @property
    def required_permissions(self) -> list[str]:
        return sorted(row.permission_key for row in self.permission_rows)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "page": self.page,
            "group": self.group,
            "child_group": self.child_group,
            "parent_path": self.parent_path,
            "parent_folder_id": self.parent_folder_id,
            "subtitle": self.subtitle,
            "label": self.label,
            "ministry_filter": self.ministry_filter,
            "theme": self.theme,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
            "required_permissions": self.required_permissions,
            "created_by_user_id": self.created_by_user_id,
            "updated_by_user_id": self.updated_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class FolderPermission(db.Model):
    """Permission key required (any-of) to see a folder."""
    __tablename__ = "folder_permissions"
    __table_args__ = (
        db.UniqueConstraint("folder_id", "permission_key", name="uq_folder_permissions"),
        db.Index("ix_folder_permissions_key", "permission_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    folder_id = db.Column(db.Integer, db.ForeignKey("folders.id", ondelete="CASCADE"), nullable=False, index=True)
    # Stored by key: a folder may require a key that has no catalogue row yet
    permission_key = db.Column(db.String(64), nullable=False)

    folder = db.relationship("Folder", back_populates="permission_rows")


class Group(db.Model):
    """
    Folder group: a named partition of the folder tree with creation defaults.

    Folders reference groups by code. A group may nest under another group
    (parent_group holds the parent's code) and may carry an auto-generation
    template used by scheduled folder creation.
    """
    __tablename__ = "folder_groups"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    code = db.Column(db.String(128), nullable=False, unique=True, index=True)
    description = db.Column(db.Text, nullable=True)
    icon = db.Column(db.String(64), nullable=False, default="folder")
    default_theme = db.Column(db.String(16), nullable=False, default="blue")
    # Display metadata for admin screens; create_folder does not inherit default_theme or default_permissions
    default_permissions = db.Column(db.JSON, nullable=False, default=lambda: ["view_folder"])
    parent_group = db.Column(db.String(128), nullable=True, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    auto_generation_enabled = db.Column(db.Boolean, nullable=False, default=False)
    auto_generation_frequency = db.Column(db.String(16), nullable=False, default="monthly")
    auto_generation_name_template = db.Column(db.String(128), nullable=False, default="{month} {year}")

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "icon": self.icon,
            "default_theme": self.default_theme,
            "default_permissions": list(self.default_permissions or []),
            "parent_group": self.parent_group,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
            "auto_generation": {
                "enabled": self.auto_generation_enabled,
                "frequency": self.auto_generation_frequency,
                "name_template": self.auto_generation_name_template,
            },
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
