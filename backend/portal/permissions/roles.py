# Overview: Built-in role names and their default permission sets.

from .definitions import PERMISSION_DEFINITIONS

# Holder of this role passes every permission check unconditionally.
SUPER_ADMIN_ROLE = "s-admin"
ADMIN_ROLE = "admin"
USER_ROLE = "user"

# Roles that see every submission regardless of who created it.
ADMIN_ROLES = frozenset({SUPER_ADMIN_ROLE, ADMIN_ROLE})

DEFAULT_ROLE_PERMISSIONS = {
    SUPER_ADMIN_ROLE: [perm[0] for perm in PERMISSION_DEFINITIONS],
    ADMIN_ROLE: [
        "view_user_manager",
        "create_user",
        "update_user",
        "view_roles",
        "view_permissions",
        "view_folder",
        "view_all_folders",
        "create_folder",
        "update_folder",
        "delete_folder",
        "manage_groups",
        "generate_archive_folders",
        "payroll_view",
        "upload_payroll_pdfs",
        "download_payroll_pdfs",
        "delete_payroll_pdfs",
        "submit_forms",
        "review_submissions",
        "view_system_events",
    ],
    USER_ROLE: [
        "view_folder",
        "payroll_view",
        "download_payroll_pdfs",
        "submit_forms",
    ],
}

DEFAULT_ROLE_DESCRIPTIONS = {
    SUPER_ADMIN_ROLE: "Super administrator with unconditional access",
    ADMIN_ROLE: "Portal administrator",
    USER_ROLE: "Ministry payroll clerk",
}
