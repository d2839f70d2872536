# API routes module
from field_identifier.api.routes.identify import router as identify_router
from field_identifier.api.routes.health import router as health_router

__all__ = ["identify_router", "health_router"]
