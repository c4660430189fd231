from fastapi import APIRouter

from app.adminhub.core.config import settings
from app.adminhub.routers.access_control import router as access_control_router
from app.adminhub.routers.health import router as health_router
from app.adminhub.routers.metrics import router as metrics_router
from app.adminhub.routers.roles import router as roles_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(access_control_router, prefix="/adminhub/access-control", tags=["access-control"])
api_router.include_router(roles_router, prefix="/adminhub", tags=["roles"])
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
