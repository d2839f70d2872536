"""
Field Species Identifier API

FastAPI application that identifies the species in a field capture
using the iNaturalist computer-vision service, gates the result and
stores captures as observations.

Usage:
    uvicorn field_identifier.main:app --reload
    uvicorn field_identifier.main:app --host 0.0.0.0 --port 8000

Production:
    gunicorn field_identifier.main:app -k uvicorn.workers.UvicornWorker -w 4
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from field_identifier.core.config import get_settings
from field_identifier.core.dependencies import get_species_identifier
from field_identifier.api.routes import identify_router, health_router
from field_identifier.api.routes.health import set_startup_time

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Builds the identifier chain up front so configuration problems show
    up in the startup log rather than on the first request.
    """
    logger.info("Starting Field Species Identifier API...")

    set_startup_time()

    identifier = get_species_identifier()
    logger.info(f"Species identifier ready: {identifier.get_identifier_info()}")
    if not (settings.inaturalist_api_token or "").strip():
        logger.warning(
            "iNaturalist API token is not configured; "
            "remote identification will fail"
            + (" and fall back" if settings.enable_fallback else "")
        )

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down Field Species Identifier API...")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
## Field Species Identifier API

Identifies the species in a photo taken in the field and keeps a log
of observations.

### Pipeline

1. The image is sent to the iNaturalist computer-vision service, with
   the capture location and date when known
2. Each returned taxon is normalized into an 8-rank taxonomy
   (domain to species) with a confidence between 0 and 1
3. A rejection gate accepts the top candidate only when its score and
   its margin over the runner-up are high enough; plants use a more
   lenient profile
4. If the remote service fails, a fallback identifier keeps the capture
   flowing as "undetermined"

### API Endpoints

- `POST /api/v1/identify` - Identify a base64-encoded image
- `POST /api/v1/observations` - Identify and save a capture
- `GET /api/v1/observations` - List saved observations
- `GET /api/v1/observations/{id}` - Get one observation
- `GET /api/v1/health` - Health check
- `GET /api/v1/health/ready` - Identifier configuration
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again.",
            "details": str(exc) if settings.debug else None
        }
    )


# Include routers
app.include_router(health_router, prefix=settings.api_prefix)
app.include_router(identify_router, prefix=settings.api_prefix)


@app.get("/api", tags=["Root"])
async def api_info():
    """API information endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "documentation": "/docs",
        "health_check": f"{settings.api_prefix}/health",
        "identification_endpoint": f"{settings.api_prefix}/identify",
        "observations_endpoint": f"{settings.api_prefix}/observations"
    }


# Entry point for running with Python
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "field_identifier.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.workers
    )
