# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    USERS = "USERS"
    ROLES = "ROLES"
    PERMISSIONS = "PERMISSIONS"
    FOLDERS = "FOLDERS"
    PAYROLL = "PAYROLL"
    SUBMISSIONS = "SUBMISSIONS"
    SYSTEM = "SYSTEM"
