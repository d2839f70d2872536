"""
Pydantic schemas for API responses.

These schemas define the contract between the API and clients,
ensuring type safety and automatic documentation.
"""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field

from field_identifier.ml.species_models.base import (
    SpeciesCandidate,
    SpeciesIdentificationContext,
    Taxonomy,
)
from field_identifier.models.enums import IdentificationStatus
from field_identifier.services.display import common_name, scientific_name, top_three_summary
from field_identifier.services.identification_service import IdentificationOutcome
from field_identifier.services.observation_store import Observation, utcnow


# === Request Schemas ===

class IdentificationRequest(BaseModel):
    """
    Request schema for identifying a captured image.

    Attributes:
        image: Base64-encoded image data (JPEG-compatible)
        latitude: Optional capture latitude
        longitude: Optional capture longitude
        observed_at: Optional capture time (defaults to now)
    """
    image: str = Field(..., min_length=1, description="Base64-encoded image data")
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)
    observed_at: Optional[datetime] = Field(
        default=None,
        description="Capture time; the server time is used when omitted"
    )

    def to_context(self) -> SpeciesIdentificationContext:
        return SpeciesIdentificationContext(
            latitude=self.latitude,
            longitude=self.longitude,
            observed_at=self.observed_at or utcnow(),
        )


class ObservationRequest(IdentificationRequest):
    """Request schema for saving a capture as an observation."""
    notes: str = Field(default="", max_length=10_000, description="Free-text field notes")


# === Taxonomy Schemas ===

class TaxonomySchema(BaseModel):
    """Fixed 8-rank taxonomy. Absent ranks are null."""
    domain: Optional[str] = None
    kingdom: Optional[str] = None
    phylum: Optional[str] = None
    class_: Optional[str] = Field(default=None, alias="class")
    order: Optional[str] = None
    family: Optional[str] = None
    genus: Optional[str] = None
    species: Optional[str] = None

    model_config = {"populate_by_name": True}

    @classmethod
    def from_taxonomy(cls, taxonomy: Optional[Taxonomy]) -> Optional["TaxonomySchema"]:
        if taxonomy is None:
            return None
        return cls(**taxonomy.to_dict())


class RankSchema(BaseModel):
    """Most specific rank that has a value."""
    label: str = Field(..., description="Rank label, e.g. 'Species'")
    value: str = Field(..., description="Taxon name at that rank")


class CandidateSchema(BaseModel):
    """One classification hypothesis."""
    label: str
    common_name: str
    scientific_name: str
    confidence: float = Field(..., ge=0.0, le=1.0, description="Normalized confidence (0-1)")
    taxonomy: TaxonomySchema
    photo_urls: List[str] = Field(default_factory=list)

    @classmethod
    def from_candidate(cls, candidate: SpeciesCandidate) -> "CandidateSchema":
        return cls(
            label=candidate.label,
            common_name=common_name(candidate),
            scientific_name=scientific_name(candidate),
            confidence=candidate.confidence,
            taxonomy=TaxonomySchema.from_taxonomy(candidate.taxonomy),
            photo_urls=list(candidate.photo_urls),
        )


class ContextSchema(BaseModel):
    """Location and time the capture was identified with."""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    observed_at: Optional[datetime] = None

    @classmethod
    def from_context(
        cls,
        context: Optional[SpeciesIdentificationContext]
    ) -> Optional["ContextSchema"]:
        if context is None:
            return None
        return cls(
            latitude=context.latitude,
            longitude=context.longitude,
            observed_at=context.observed_at,
        )


def _lowest_rank(taxonomy: Optional[Taxonomy]) -> Optional[RankSchema]:
    rank = taxonomy.lowest_available_rank() if taxonomy else None
    if rank is None:
        return None
    return RankSchema(label=rank[0], value=rank[1])


# === Identification Schemas ===

class IdentificationResponse(BaseModel):
    """
    Result of identifying one image.

    A rejected identification is still a 200 response: status is
    "failed" and diagnostics carries the human-readable reason.
    """
    status: IdentificationStatus
    accepted: Optional[CandidateSchema] = None
    reason: Optional[str] = Field(default=None, description="Gate decision reason")
    source: Optional[str] = Field(default=None, description="cloud, onDevice or fallback")
    source_label: Optional[str] = None
    diagnostics: Optional[str] = None
    taxonomy: Optional[TaxonomySchema] = None
    lowest_rank: Optional[RankSchema] = None
    candidates: List[CandidateSchema] = Field(default_factory=list)
    top_three: Optional[str] = Field(default=None, description="Debug listing of the best three candidates")
    identified_at: Optional[datetime] = None
    context: Optional[ContextSchema] = None

    @classmethod
    def from_outcome(cls, outcome: IdentificationOutcome) -> "IdentificationResponse":
        accepted = outcome.accepted
        return cls(
            status=outcome.status,
            accepted=CandidateSchema.from_candidate(accepted) if accepted else None,
            reason=outcome.decision.reason if outcome.decision else None,
            source=outcome.source.value if outcome.source else None,
            source_label=outcome.source.label if outcome.source else None,
            diagnostics=outcome.diagnostics,
            taxonomy=TaxonomySchema.from_taxonomy(outcome.taxonomy),
            lowest_rank=_lowest_rank(outcome.taxonomy),
            candidates=[CandidateSchema.from_candidate(c) for c in outcome.candidates],
            top_three=top_three_summary(outcome.candidates) or None,
            identified_at=outcome.identified_at,
            context=ContextSchema.from_context(outcome.context),
        )


# === Observation Schemas ===

class ObservationResponse(BaseModel):
    """A stored observation."""
    id: str
    created_at: datetime
    notes: str
    identification_status: Optional[IdentificationStatus] = None
    identification_context: Optional[ContextSchema] = None
    taxonomy: Optional[TaxonomySchema] = None
    lowest_rank: Optional[RankSchema] = None
    prediction_source: Optional[str] = None
    prediction_diagnostics: Optional[str] = None
    candidates: Optional[List[CandidateSchema]] = None
    identified_at: Optional[datetime] = None
    summary: str

    @classmethod
    def from_observation(cls, observation: Observation) -> "ObservationResponse":
        return cls(
            id=str(observation.id),
            created_at=observation.created_at,
            notes=observation.notes,
            identification_status=observation.identification_status,
            identification_context=ContextSchema.from_context(observation.identification_context),
            taxonomy=TaxonomySchema.from_taxonomy(observation.taxonomy),
            lowest_rank=_lowest_rank(observation.taxonomy),
            prediction_source=(
                observation.prediction_source.value if observation.prediction_source else None
            ),
            prediction_diagnostics=observation.prediction_diagnostics,
            candidates=(
                [CandidateSchema.from_candidate(c) for c in observation.candidates]
                if observation.candidates else None
            ),
            identified_at=observation.identified_at,
            summary=observation.summary(),
        )


class ObservationListResponse(BaseModel):
    observations: List[ObservationResponse]
    count: int


# === Error Schemas ===

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict] = Field(default=None, description="Additional error details")
