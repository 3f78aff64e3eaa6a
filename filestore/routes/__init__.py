"""API routes package."""

from filestore.routes.files import router as files_router
from filestore.routes.health import router as health_router

__all__ = ["files_router", "health_router"]
