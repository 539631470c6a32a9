from __future__ import annotations

from app.api.routes.forms import router as forms_router
from app.api.routes.health import router as health_router
from app.api.routes.limits import router as limits_router

__all__ = ["forms_router", "health_router", "limits_router"]
