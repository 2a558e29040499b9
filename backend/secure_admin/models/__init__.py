from .base import Base
from .role import Role
from .user import User
from .file_upload import FileUpload
from .activity_log import ActivityLog

__all__ = [
    "Base",
    "Role",
    "User",
    "FileUpload",
    "ActivityLog",
]
