"""
Base interfaces and data structures for species identification.

Provides:
- Taxonomy: Fixed 8-rank taxonomy record
- SpeciesCandidate: One scored classification hypothesis
- SpeciesPrediction: Identifier output (source + candidates + diagnostics)
- SpeciesIdentificationContext: Location/time attached to a request
- SpeciesIdentifierInterface: Abstract base for all identifiers
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple


class PredictionSource(str, Enum):
    """Where a prediction came from."""
    CLOUD = "cloud"
    ON_DEVICE = "onDevice"
    FALLBACK = "fallback"

    @property
    def label(self) -> str:
        """Human-readable source label for display."""
        return _SOURCE_LABELS[self]


_SOURCE_LABELS = {
    PredictionSource.CLOUD: "Cloud (iNaturalist)",
    PredictionSource.ON_DEVICE: "On-device model",
    PredictionSource.FALLBACK: "Fallback",
}


# Rank slots from most specific to broadest, paired with display labels.
RANK_LABELS: Tuple[Tuple[str, str], ...] = (
    ("species", "Species"),
    ("genus", "Genus"),
    ("family", "Family"),
    ("order", "Order"),
    ("class_name", "Class"),
    ("phylum", "Phylum"),
    ("kingdom", "Kingdom"),
    ("domain", "Domain"),
)


@dataclass(frozen=True)
class Taxonomy:
    """
    Immutable 8-level taxonomy record.

    Ranks are independent of each other; nothing checks that a genus
    actually belongs to the family next to it. Blank values are stored
    as None so that "absent" has a single representation.
    """
    domain: Optional[str] = None
    kingdom: Optional[str] = None
    phylum: Optional[str] = None
    class_name: Optional[str] = None
    order: Optional[str] = None
    family: Optional[str] = None
    genus: Optional[str] = None
    species: Optional[str] = None

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            cleaned = value.strip()
            object.__setattr__(self, f.name, cleaned or None)

    def lowest_available_rank(self) -> Optional[Tuple[str, str]]:
        """
        Most specific rank that has a value.

        Returns:
            (label, value), e.g. ("Species", "Rosa rugosa"), or None when
            the taxonomy is empty
        """
        for attr, label in RANK_LABELS:
            value = getattr(self, attr)
            if value:
                return label, value
        return None

    @property
    def is_empty(self) -> bool:
        return self.lowest_available_rank() is None

    def to_dict(self) -> Dict[str, Optional[str]]:
        """Convert to dictionary for JSON serialization."""
        return {
            "domain": self.domain,
            "kingdom": self.kingdom,
            "phylum": self.phylum,
            "class": self.class_name,
            "order": self.order,
            "family": self.family,
            "genus": self.genus,
            "species": self.species,
        }


@dataclass(frozen=True)
class SpeciesCandidate:
    """
    One classification hypothesis.

    Confidence is already normalized to 0.0 - 1.0 by the time a
    candidate is built.
    """
    label: str
    confidence: float
    taxonomy: Taxonomy
    photo_urls: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SpeciesIdentificationContext:
    """Optional location and observation time sent along with an image."""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    observed_at: Optional[datetime] = None


@dataclass
class SpeciesPrediction:
    """
    Output of a species identifier.

    Candidates keep the order the source returned them in; they are not
    guaranteed to be sorted.
    """
    source: PredictionSource
    candidates: List[SpeciesCandidate] = field(default_factory=list)
    diagnostics: Optional[str] = None

    @property
    def top_candidate(self) -> Optional[SpeciesCandidate]:
        """Highest-confidence candidate; ties go to the first encountered."""
        if not self.candidates:
            return None
        return max(self.candidates, key=lambda c: c.confidence)


class SpeciesIdentifierInterface(ABC):
    """
    Abstract base class for species identifiers.

    Remote APIs, on-device models and wrappers (fallback) all implement
    this interface so they can be composed freely.
    """

    @property
    @abstractmethod
    def identifier_name(self) -> str:
        """Human-readable identifier name."""
        pass

    @abstractmethod
    async def identify(
        self,
        image_bytes: bytes,
        context: SpeciesIdentificationContext
    ) -> SpeciesPrediction:
        """
        Identify the species in an image.

        Args:
            image_bytes: Encoded image (JPEG-compatible)
            context: Location/time metadata for the capture

        Returns:
            SpeciesPrediction with source, candidates and diagnostics

        Raises:
            SpeciesIdentifierError: when no prediction could be produced
        """
        pass

    def get_identifier_info(self) -> Dict[str, Any]:
        """Get identifier metadata for API responses."""
        return {
            "name": self.identifier_name,
        }
