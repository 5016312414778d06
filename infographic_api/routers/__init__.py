"""API routers."""

from infographic_api.routers.auth import router as auth_router
from infographic_api.routers.infographics import router as infographics_router
from infographic_api.routers.users import router as users_router

__all__ = ["auth_router", "users_router", "infographics_router"]
