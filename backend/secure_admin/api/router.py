from fastapi import APIRouter

from . import activity, dashboard, files, roles, users

router = APIRouter(prefix="/api")

for _router in [
    users.router,
    roles.router,
    files.router,
    activity.router,
    dashboard.router,
]:
    router.include_router(_router)
