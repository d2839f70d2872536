"""
FastAPI dependency injection.

Builds the identifier chain from settings and hands out cached
service instances, enabling easy testing and component swapping.
"""

from functools import lru_cache

from field_identifier.core.config import Settings, get_settings
from field_identifier.ml.image_decoder import ImageDecoder
from field_identifier.ml.species_models import (
    FallbackSpeciesIdentifier,
    INaturalistSpeciesIdentifier,
    PlaceholderSpeciesIdentifier,
    RejectionGate,
    SpeciesIdentifierInterface,
)
from field_identifier.services.identification_service import IdentificationService
from field_identifier.services.observation_store import InMemoryObservationStore, ObservationStore


def build_species_identifier(settings: Settings) -> SpeciesIdentifierInterface:
    """Remote identifier, wrapped with the placeholder fallback when enabled."""
    remote = INaturalistSpeciesIdentifier(
        base_url=settings.inaturalist_api_base_url,
        api_token=settings.inaturalist_api_token,
        request_timeout=settings.request_timeout_seconds,
    )
    if not settings.enable_fallback:
        return remote
    return FallbackSpeciesIdentifier(primary=remote, fallback=PlaceholderSpeciesIdentifier())


@lru_cache()
def get_species_identifier() -> SpeciesIdentifierInterface:
    """Get cached identifier chain."""
    return build_species_identifier(get_settings())


@lru_cache()
def get_observation_store() -> ObservationStore:
    """Get cached observation store."""
    return InMemoryObservationStore()


@lru_cache()
def get_identification_service() -> IdentificationService:
    """Get cached identification service."""
    return IdentificationService(
        identifier=get_species_identifier(),
        store=get_observation_store(),
        gate=RejectionGate(),
    )


@lru_cache()
def get_image_decoder() -> ImageDecoder:
    """Get cached image decoder."""
    return ImageDecoder(max_image_size_mb=get_settings().max_image_size_mb)


__all__ = [
    "get_image_decoder",
    "build_species_identifier",
    "get_species_identifier",
    "get_observation_store",
    "get_identification_service",
]
