"""
Health check and readiness endpoints.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Optional, Dict
import time

from field_identifier.core.config import Settings, get_settings
from field_identifier.core.dependencies import get_species_identifier
from field_identifier.ml.species_models import SpeciesIdentifierInterface

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: float
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check with identifier configuration."""
    status: str
    timestamp: float
    version: str
    components: Dict[str, Dict]
    uptime_seconds: Optional[float] = None


# Track startup time
_startup_time: Optional[float] = None


def set_startup_time() -> None:
    """Set the startup time (called on app startup)."""
    global _startup_time
    _startup_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        timestamp=time.time(),
        version=settings.app_version
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(
    settings: Settings = Depends(get_settings),
    identifier: SpeciesIdentifierInterface = Depends(get_species_identifier)
) -> ReadinessResponse:
    """
    Report how the identifier chain is configured.

    A missing API token does not make the service unready when the
    fallback is enabled: captures are still identified (as undetermined)
    and saved. Without the fallback every request would fail, so the
    status is reported as degraded.
    """
    token_configured = bool((settings.inaturalist_api_token or "").strip())

    components = {
        "species_identifier": identifier.get_identifier_info(),
        "inaturalist": {
            "status": "ready" if token_configured else "missing_token",
            "base_url": settings.inaturalist_api_base_url,
        },
        "fallback": {
            "enabled": settings.enable_fallback,
        },
    }

    uptime = None
    if _startup_time:
        uptime = time.time() - _startup_time

    return ReadinessResponse(
        status="ready" if (token_configured or settings.enable_fallback) else "degraded",
        timestamp=time.time(),
        version=settings.app_version,
        components=components,
        uptime_seconds=uptime
    )


@router.get("/live")
async def liveness_check() -> dict:
    """
    Simple liveness probe for Kubernetes.

    Returns 200 if the process is running.
    """
    return {"status": "alive"}
