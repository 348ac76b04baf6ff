"""Lessons Service routers."""

from services.lessons_service.routers.lessons import router as lessons_router
from services.lessons_service.routers.public import router as public_router

__all__ = ["lessons_router", "public_router"]
