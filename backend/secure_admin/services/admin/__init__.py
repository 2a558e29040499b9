from .activity_service import ActivityService
from .dashboard_service import DashboardService
from .file_service import FileService
from .role_service import RoleService, seed_roles
from .user_service import UserService

__all__ = [
    "ActivityService",
    "DashboardService",
    "FileService",
    "RoleService",
    "UserService",
    "seed_roles",
]
