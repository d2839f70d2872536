"""
Species Models Package

Provides remote species identification with taxonomy normalization,
primary/secondary fallback and a confidence-based rejection gate.

Components:
- SpeciesIdentifierInterface: Base interface for all identifiers
- INaturalistSpeciesIdentifier: Remote computer vision identifier
- FallbackSpeciesIdentifier: Primary/secondary wrapper
- PlaceholderSpeciesIdentifier: Candidate-less secondary
- TaxonomyResolver: Normalizes ranked lineages to 8 rank slots
- CandidateBuilder: Turns raw results into scored candidates
- RejectionGate: Accept/reject decision over ranked candidates
"""

from field_identifier.ml.species_models.base import (
    PredictionSource,
    SpeciesCandidate,
    SpeciesIdentificationContext,
    SpeciesIdentifierInterface,
    SpeciesPrediction,
    Taxonomy,
)
from field_identifier.ml.species_models.candidate_builder import CandidateBuilder, normalize_confidence
from field_identifier.ml.species_models.errors import (
    DecodeFailedError,
    EmptyInputError,
    InvalidResponseError,
    MissingCredentialError,
    NoPredictionsError,
    RequestFailedError,
    SpeciesIdentifierError,
)
from field_identifier.ml.species_models.fallback_identifier import FallbackSpeciesIdentifier
from field_identifier.ml.species_models.inaturalist_identifier import INaturalistSpeciesIdentifier
from field_identifier.ml.species_models.placeholder_identifier import PlaceholderSpeciesIdentifier
from field_identifier.ml.species_models.rejection_gate import GateDecision, RejectionGate
from field_identifier.ml.species_models.taxonomy_resolver import TaxonomyResolver, get_taxonomy_resolver

__all__ = [
    "PredictionSource",
    "SpeciesCandidate",
    "SpeciesIdentificationContext",
    "SpeciesIdentifierInterface",
    "SpeciesPrediction",
    "Taxonomy",
    "CandidateBuilder",
    "normalize_confidence",
    "SpeciesIdentifierError",
    "EmptyInputError",
    "MissingCredentialError",
    "InvalidResponseError",
    "RequestFailedError",
    "DecodeFailedError",
    "NoPredictionsError",
    "FallbackSpeciesIdentifier",
    "INaturalistSpeciesIdentifier",
    "PlaceholderSpeciesIdentifier",
    "GateDecision",
    "RejectionGate",
    "TaxonomyResolver",
    "get_taxonomy_resolver",
]
