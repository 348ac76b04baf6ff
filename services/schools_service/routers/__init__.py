"""Schools Service routers."""

from services.schools_service.routers.coaches import router as coaches_router
from services.schools_service.routers.schools import router as schools_router

__all__ = ["coaches_router", "schools_router"]
