# Services module
from field_identifier.services.identification_service import (
    IdentificationOutcome,
    IdentificationService,
    IdentificationSession,
)
from field_identifier.services.observation_store import (
    InMemoryObservationStore,
    Observation,
    ObservationStore,
)

__all__ = [
    "IdentificationOutcome",
    "IdentificationService",
    "IdentificationSession",
    "InMemoryObservationStore",
    "Observation",
    "ObservationStore",
]
