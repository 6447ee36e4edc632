from .auth import User, Role, Permission, RolePermission
from .folders import Folder, FolderPermission, Group
from .submissions import Submission, SubmissionHistory, SubmissionAttachment
from .storage import Blob, PdfDocument
from .events import SystemEvent

__all__ = [
    'User', 'Role', 'Permission', 'RolePermission',
    'Folder', 'FolderPermission', 'Group',
    'Submission', 'SubmissionHistory', 'SubmissionAttachment',
    'Blob', 'PdfDocument',
    'SystemEvent',
]
