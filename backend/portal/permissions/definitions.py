# Overview: Built-in permission definitions organized by category.
# Each permission is defined as: (key, name, description, category)

from .categories import PermissionCategory


# -- USERS --

USER_PERMISSIONS = [
    ("view_user_manager", "View User Manager", "List and inspect user accounts", PermissionCategory.USERS),
    ("create_user", "Create User", "Create new user accounts", PermissionCategory.USERS),
    ("update_user", "Update User", "Edit user profile, role and status", PermissionCategory.USERS),
    ("delete_user", "Delete User", "Delete user accounts", PermissionCategory.USERS),
]


# -- ROLES --

ROLE_PERMISSIONS = [
    ("view_roles", "View Roles", "List roles and their permission sets", PermissionCategory.ROLES),
    ("create_role", "Create Role", "Create new roles", PermissionCategory.ROLES),
    ("update_role", "Update Role", "Rename roles and change their permission sets", PermissionCategory.ROLES),
    ("delete_role", "Delete Role", "Delete roles that no user holds", PermissionCategory.ROLES),
]


# -- PERMISSIONS --

PERMISSION_ADMIN_PERMISSIONS = [
    ("view_permissions", "View Permissions", "List the permission catalogue", PermissionCategory.PERMISSIONS),
    ("manage_permissions", "Manage Permissions", "Create, edit and delete permissions", PermissionCategory.PERMISSIONS),
]


# -- FOLDERS --

FOLDER_PERMISSIONS = [
    ("view_folder", "View Folder", "Default permission required to see a folder", PermissionCategory.FOLDERS),
    ("view_all_folders", "View All Folders", "Admin folder listing including inactive folders", PermissionCategory.FOLDERS),
    ("create_folder", "Create Folder", "Create folders in the hierarchy", PermissionCategory.FOLDERS),
    ("update_folder", "Update Folder", "Edit and reorder folders", PermissionCategory.FOLDERS),
    ("delete_folder", "Delete Folder", "Delete folders without children", PermissionCategory.FOLDERS),
    ("manage_groups", "Manage Groups", "Create, edit and delete folder groups", PermissionCategory.FOLDERS),
    (
        "generate_archive_folders",
        "Generate Archive Folders",
        "Trigger payroll archive folder generation on demand",
        PermissionCategory.FOLDERS,
    ),
]


# -- PAYROLL --

PAYROLL_PERMISSIONS = [
    ("payroll_view", "View Payroll Archive", "See payroll archive year and month folders", PermissionCategory.PAYROLL),
    ("upload_payroll_pdfs", "Upload Payroll PDFs", "Upload payroll PDF documents", PermissionCategory.PAYROLL),
    ("download_payroll_pdfs", "Download Payroll PDFs", "Download payroll PDF documents", PermissionCategory.PAYROLL),
    ("delete_payroll_pdfs", "Delete Payroll PDFs", "Delete payroll PDF documents", PermissionCategory.PAYROLL),
]


# -- SUBMISSIONS --

SUBMISSION_PERMISSIONS = [
    ("submit_forms", "Submit Forms", "Create payroll form submissions", PermissionCategory.SUBMISSIONS),
    (
        "review_submissions",
        "Review Submissions",
        "Move, approve, reject and process submissions",
        PermissionCategory.SUBMISSIONS,
    ),
    ("delete_submissions", "Delete Submissions", "Delete submissions and their history", PermissionCategory.SUBMISSIONS),
]


# -- SYSTEM --

SYSTEM_PERMISSIONS = [
    ("view_system_events", "View System Events", "Read the administrative audit log", PermissionCategory.SYSTEM),
]


PERMISSION_DEFINITIONS = (
    USER_PERMISSIONS
    + ROLE_PERMISSIONS
    + PERMISSION_ADMIN_PERMISSIONS
    + FOLDER_PERMISSIONS
    + PAYROLL_PERMISSIONS
    + SUBMISSION_PERMISSIONS
    + SYSTEM_PERMISSIONS
)
