# ML module initialization
from field_identifier.ml.species_models import (
    FallbackSpeciesIdentifier,
    INaturalistSpeciesIdentifier,
    PlaceholderSpeciesIdentifier,
    RejectionGate,
    SpeciesIdentifierInterface,
)

__all__ = [
    "FallbackSpeciesIdentifier",
    "INaturalistSpeciesIdentifier",
    "PlaceholderSpeciesIdentifier",
    "RejectionGate",
    "SpeciesIdentifierInterface",
]
