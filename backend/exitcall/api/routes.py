from fastapi import APIRouter
from .settings import router as settings_router
from .sessions import router as sessions_router
from .navigation import router as navigation_router

api_router = APIRouter()
api_router.include_router(settings_router, prefix="/settings", tags=["settings"])
api_router.include_router(sessions_router, prefix="/sessions", tags=["sessions"])
api_router.include_router(navigation_router, prefix="/navigation", tags=["navigation"])
