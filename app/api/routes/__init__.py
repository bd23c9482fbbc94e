from __future__ import annotations

from app.api.routes.files import router as files_router
from app.api.routes.health import router as health_router
from app.api.routes.uploads import router as uploads_router

__all__ = ["files_router", "health_router", "uploads_router"]
