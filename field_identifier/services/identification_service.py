"""
Identification Orchestration Service

Coordinates a capture through the identification pipeline:
1. Record the pending capture and start a new attempt
2. Run the species identifier (remote, with fallback)
3. Sort candidates and apply the rejection gate
4. Commit the outcome, unless a newer attempt has started meanwhile
5. Fold the outcome into an Observation and save it

Stale results are never cancelled in flight. Each attempt carries a
fresh id, and results are only applied when that id is still the
current one and the pending image has not changed. Everything that
touches session state runs on the event loop, so no locking is needed
around the comparison.

Identification failures never block saving a capture; they only leave
the species fields empty.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List

from field_identifier.ml.species_models.base import (
    PredictionSource,
    SpeciesCandidate,
    SpeciesIdentificationContext,
    SpeciesIdentifierInterface,
    SpeciesPrediction,
    Taxonomy,
)
from field_identifier.ml.species_models.rejection_gate import (
    GateDecision,
    RejectionGate,
    score_text,
    sort_candidates,
)
from field_identifier.models.enums import IdentificationStatus
from field_identifier.services.observation_store import (
    Observation,
    ObservationStore,
    utcnow,
)

logger = logging.getLogger(__name__)

STARTING_DIAGNOSTICS = "Starting species identification."


@dataclass
class IdentificationOutcome:
    """Committed result of one identification attempt."""
    status: IdentificationStatus
    context: SpeciesIdentificationContext
    taxonomy: Optional[Taxonomy] = None
    source: Optional[PredictionSource] = None
    diagnostics: Optional[str] = None
    candidates: List[SpeciesCandidate] = field(default_factory=list)
    identified_at: Optional[datetime] = None
    decision: Optional[GateDecision] = None

    @property
    def accepted(self) -> Optional[SpeciesCandidate]:
        return self.decision.accepted if self.decision else None

    @property
    def top_candidate(self) -> Optional[SpeciesCandidate]:
        if not self.candidates:
            return None
        return max(self.candidates, key=lambda c: c.confidence)


def _join_diagnostics(head: str, extra: Optional[str]) -> str:
    extra = (extra or "").strip()
    return f"{head} {extra}" if extra else head


def outcome_from_prediction(
    prediction: SpeciesPrediction,
    context: SpeciesIdentificationContext,
    gate: RejectionGate
) -> IdentificationOutcome:
    """Sort candidates, run the gate and build the resulting outcome."""
    candidates = sort_candidates(prediction.candidates)
    decision = gate.evaluate(candidates)

    if decision.accepted is not None:
        accepted = decision.accepted
        head = f"Top: {accepted.label} (score {score_text(accepted.confidence)})."
        return IdentificationOutcome(
            status=IdentificationStatus.COMPLETED,
            context=context,
            taxonomy=accepted.taxonomy,
            source=prediction.source,
            diagnostics=_join_diagnostics(head, prediction.diagnostics),
            candidates=candidates,
            identified_at=utcnow(),
            decision=decision,
        )

    return IdentificationOutcome(
        status=IdentificationStatus.FAILED,
        context=context,
        source=prediction.source,
        diagnostics=_join_diagnostics(decision.reason, prediction.diagnostics),
        candidates=candidates,
        identified_at=utcnow(),
        decision=decision,
    )


def outcome_from_error(
    error: BaseException,
    context: SpeciesIdentificationContext
) -> IdentificationOutcome:
    return IdentificationOutcome(
        status=IdentificationStatus.FAILED,
        context=context,
        diagnostics=str(error),
    )


class IdentificationSession:
    """
    State of the capture currently being identified.

    Usage:
        session = IdentificationSession(identifier)
        outcome = await session.run(image_bytes, context)
        if outcome is not None:   # None means a newer capture won
            observation = session.finalize(notes="...")
    """

    def __init__(
        self,
        identifier: SpeciesIdentifierInterface,
        gate: Optional[RejectionGate] = None
    ):
        self.identifier = identifier
        self.gate = gate or RejectionGate()
        self._reset()

    def _reset(self) -> None:
        self.pending_image: Optional[bytes] = None
        self.current_attempt: Optional[uuid.UUID] = None
        self.status: Optional[IdentificationStatus] = None
        self.context: Optional[SpeciesIdentificationContext] = None
        self.outcome: Optional[IdentificationOutcome] = None
        self.diagnostics: Optional[str] = None

    @property
    def candidates(self) -> List[SpeciesCandidate]:
        return self.outcome.candidates if self.outcome else []

    @property
    def top_candidate(self) -> Optional[SpeciesCandidate]:
        return self.outcome.top_candidate if self.outcome else None

    def begin(
        self,
        image_bytes: bytes,
        context: Optional[SpeciesIdentificationContext] = None
    ) -> uuid.UUID:
        """Start a new attempt for a capture and return its id."""
        attempt_id = uuid.uuid4()
        self.pending_image = image_bytes
        self.current_attempt = attempt_id
        self.status = IdentificationStatus.PENDING
        self.context = context or SpeciesIdentificationContext(observed_at=utcnow())
        self.outcome = None
        self.diagnostics = STARTING_DIAGNOSTICS
        return attempt_id

    def is_current(self, attempt_id: uuid.UUID, image_bytes: bytes) -> bool:
        """Whether results of an attempt may still be applied."""
        return (
            attempt_id == self.current_attempt
            and self.pending_image is not None
            and self.pending_image == image_bytes
        )

    def apply_prediction(
        self,
        attempt_id: uuid.UUID,
        image_bytes: bytes,
        prediction: SpeciesPrediction
    ) -> Optional[IdentificationOutcome]:
        """Commit a prediction; returns None when the attempt is stale."""
        if not self.is_current(attempt_id, image_bytes):
            logger.debug(f"Discarding stale identification result for attempt {attempt_id}")
            return None
        return self._commit(outcome_from_prediction(prediction, self.context, self.gate))

    def apply_failure(
        self,
        attempt_id: uuid.UUID,
        image_bytes: bytes,
        error: BaseException
    ) -> Optional[IdentificationOutcome]:
        """Commit an identifier failure; returns None when the attempt is stale."""
        if not self.is_current(attempt_id, image_bytes):
            logger.debug(f"Discarding stale identification failure for attempt {attempt_id}")
            return None
        return self._commit(outcome_from_error(error, self.context))

    def _commit(self, outcome: IdentificationOutcome) -> IdentificationOutcome:
        self.outcome = outcome
        self.status = outcome.status
        self.diagnostics = outcome.diagnostics
        return outcome

    async def run(
        self,
        image_bytes: bytes,
        context: Optional[SpeciesIdentificationContext] = None
    ) -> Optional[IdentificationOutcome]:
        """
        Identify a capture end to end.

        Returns:
            The committed outcome, or None if the result went stale
        """
        attempt_id = self.begin(image_bytes, context)
        context = self.context

        try:
            prediction = await self.identifier.identify(image_bytes, context)
        except Exception as e:
            logger.warning(f"Species identification failed: {e}")
            return self.apply_failure(attempt_id, image_bytes, e)

        return self.apply_prediction(attempt_id, image_bytes, prediction)

    def discard(self) -> None:
        """Drop the pending capture; in-flight results will be ignored."""
        self._reset()

    def finalize(self, notes: str = "") -> Observation:
        """
        Fold the current state into an Observation and reset the session.

        Anything short of a completed identification is stored as failed.
        """
        outcome = self.outcome
        completed = self.status == IdentificationStatus.COMPLETED

        observation = Observation(
            notes=notes.strip(),
            identification_status=(
                IdentificationStatus.COMPLETED if completed else IdentificationStatus.FAILED
            ),
            identification_context=self.context,
            taxonomy=outcome.taxonomy if (completed and outcome) else None,
            prediction_source=outcome.source if outcome else None,
            prediction_diagnostics=self.diagnostics,
            candidates=list(outcome.candidates) if (outcome and outcome.candidates) else None,
            identified_at=outcome.identified_at if outcome else None,
        )
        self._reset()
        return observation


class IdentificationService:
    """
    Stateless entry point used by the HTTP surface.

    Each call gets its own session, so there is never a competing
    attempt; the session still applies the same commit rules.
    """

    def __init__(
        self,
        identifier: SpeciesIdentifierInterface,
        store: ObservationStore,
        gate: Optional[RejectionGate] = None
    ):
        self.identifier = identifier
        self.store = store
        self.gate = gate or RejectionGate()

    def new_session(self) -> IdentificationSession:
        return IdentificationSession(self.identifier, gate=self.gate)

    async def identify(
        self,
        image_bytes: bytes,
        context: Optional[SpeciesIdentificationContext] = None
    ) -> IdentificationOutcome:
        session = self.new_session()
        outcome = await session.run(image_bytes, context)
        if outcome is None:
            raise RuntimeError("Identification session lost its own attempt")
        return outcome

    async def record_observation(
        self,
        image_bytes: bytes,
        notes: str = "",
        context: Optional[SpeciesIdentificationContext] = None
    ) -> Observation:
        """Identify a capture and save it whatever the identification outcome."""
        session = self.new_session()
        await session.run(image_bytes, context)
        observation = session.finalize(notes)
        await self.store.save(observation)
        return observation
