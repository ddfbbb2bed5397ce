"""
ApplyForm API - Routes Module
All API endpoints organized by resource
"""

from fastapi import APIRouter

from app.routes.settings import router as settings_router
from app.routes.teams import router as teams_router
from app.routes.members import router as members_router
from app.routes.admin import router as admin_router

# Main router
api_router = APIRouter()

api_router.include_router(settings_router)
api_router.include_router(teams_router)
api_router.include_router(members_router)
api_router.include_router(admin_router)

__all__ = ["api_router"]
