"""API routers."""

from app.routers.auth import router as auth_router
from app.routers.events import router as events_router

__all__ = ["auth_router", "events_router"]
