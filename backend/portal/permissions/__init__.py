# Overview: Permission system package.
# Re-exports the built-in catalogue, default roles and default groups.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    USER_PERMISSIONS,
    ROLE_PERMISSIONS,
    PERMISSION_ADMIN_PERMISSIONS,
    FOLDER_PERMISSIONS,
    PAYROLL_PERMISSIONS,
    SUBMISSION_PERMISSIONS,
    SYSTEM_PERMISSIONS,
)
from .roles import (
    SUPER_ADMIN_ROLE,
    ADMIN_ROLE,
    USER_ROLE,
    ADMIN_ROLES,
    DEFAULT_ROLE_PERMISSIONS,
    DEFAULT_ROLE_DESCRIPTIONS,
)
from .groups import DEFAULT_GROUPS, FOLDER_THEMES, DEFAULT_FOLDER_THEME, GROUP_FREQUENCIES
from .helpers import (
    get_all_permission_keys,
    is_valid_permission_key,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "USER_PERMISSIONS",
    "ROLE_PERMISSIONS",
    "PERMISSION_ADMIN_PERMISSIONS",
    "FOLDER_PERMISSIONS",
    "PAYROLL_PERMISSIONS",
    "SUBMISSION_PERMISSIONS",
    "SYSTEM_PERMISSIONS",
    "SUPER_ADMIN_ROLE",
    "ADMIN_ROLE",
    "USER_ROLE",
    "ADMIN_ROLES",
    "DEFAULT_ROLE_PERMISSIONS",
    "DEFAULT_ROLE_DESCRIPTIONS",
    "DEFAULT_GROUPS",
    "FOLDER_THEMES",
    "DEFAULT_FOLDER_THEME",
    "GROUP_FREQUENCIES",
    "get_all_permission_keys",
    "is_valid_permission_key",
]
