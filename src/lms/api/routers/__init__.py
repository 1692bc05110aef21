"""API routers."""

from .profiles import build_profile_router
from .resources import build_resource_router, resource_routers

__all__ = ["build_profile_router", "build_resource_router", "resource_routers"]
