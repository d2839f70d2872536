"""
Observation records and the store they are saved to.

The store is the persistence collaborator of the identification flow.
Only an in-memory implementation lives here; durable storage formats
belong to whatever host embeds this package.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict

from field_identifier.ml.species_models.base import (
    PredictionSource,
    SpeciesCandidate,
    SpeciesIdentificationContext,
    Taxonomy,
)
from field_identifier.models.enums import IdentificationStatus

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Observation:
    """A saved capture with whatever the identification produced."""
    notes: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=utcnow)
    identification_status: Optional[IdentificationStatus] = None
    identification_context: Optional[SpeciesIdentificationContext] = None
    taxonomy: Optional[Taxonomy] = None
    prediction_source: Optional[PredictionSource] = None
    prediction_diagnostics: Optional[str] = None
    candidates: Optional[List[SpeciesCandidate]] = None
    identified_at: Optional[datetime] = None

    def summary(self) -> str:
        """Short status message shown after saving."""
        if self.identification_status == IdentificationStatus.COMPLETED and self.taxonomy:
            rank = self.taxonomy.lowest_available_rank()
            if rank:
                return f"Saved. {rank[0]}: {rank[1]}."
        return "Saved as unidentified species."


class ObservationStore(ABC):
    """Persistence interface for observations."""

    @abstractmethod
    async def save(self, observation: Observation) -> None:
        """Insert, or replace the observation with the same id."""
        pass

    @abstractmethod
    async def fetch(self, observation_id: uuid.UUID) -> Optional[Observation]:
        pass

    @abstractmethod
    async def list(self, limit: int) -> List[Observation]:
        """Newest observations first."""
        pass


class InMemoryObservationStore(ObservationStore):

    def __init__(self):
        self._observations: Dict[uuid.UUID, Observation] = {}
        self._lock = asyncio.Lock()

    async def save(self, observation: Observation) -> None:
        async with self._lock:
            self._observations[observation.id] = observation
        logger.info(
            f"Saved observation {observation.id} "
            f"(identification={getattr(observation.identification_status, 'value', None)})"
        )

    async def fetch(self, observation_id: uuid.UUID) -> Optional[Observation]:
        async with self._lock:
            return self._observations.get(observation_id)

    async def list(self, limit: int) -> List[Observation]:
        if limit <= 0:
            return []
        async with self._lock:
            observations = sorted(
                self._observations.values(),
                key=lambda o: o.created_at,
                reverse=True
            )
        return observations[:limit]
