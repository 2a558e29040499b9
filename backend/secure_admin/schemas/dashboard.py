from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_users: int
    total_files: int
    active_roles: int
    recent_activity: int


class DashboardStatsResponse(BaseModel):
    stats: DashboardStats
