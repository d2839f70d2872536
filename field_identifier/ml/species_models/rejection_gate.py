"""
Rejection Gate

Decides whether the best candidate of an identification is good enough
to show and store, or whether the capture stays undetermined.

Algorithm:
1. Pick a threshold profile from the top candidate's kingdom
   (Plantae -> plant profile, anything else -> general profile)
2. Reject when there are no candidates
3. Reject when the top score is below the profile minimum
4. Reject when the top-vs-second margin is below the profile minimum,
   unless the top score clears the high-confidence bypass
5. Reject when the top candidate has no taxonomy
6. Otherwise accept the top candidate

Candidates must already be sorted by descending confidence.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from field_identifier.ml.species_models.base import SpeciesCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateThresholds:
    """Minimum top score and top-vs-second margin for one profile."""
    minimum_top_score: float
    minimum_margin: float
    profile_name: str


@dataclass(frozen=True)
class GateDecision:
    """Outcome of the gate. A rejection is a normal result, not an error."""
    accepted: Optional[SpeciesCandidate]
    reason: str
    profile_name: Optional[str] = None

    @property
    def is_accepted(self) -> bool:
        return self.accepted is not None


def score_text(confidence: float) -> str:
    return f"{confidence:.2f}"


class RejectionGate:
    """
    Confidence-based accept/reject policy.

    Stateless: the same candidates always produce the same decision.
    """

    HIGH_CONFIDENCE_BYPASS_TOP_SCORE = 0.75

    GENERAL = GateThresholds(minimum_top_score=0.65, minimum_margin=0.20, profile_name="general")
    PLANT = GateThresholds(minimum_top_score=0.45, minimum_margin=0.10, profile_name="plant")

    # Kingdom (lower-cased) -> profile
    KINGDOM_PROFILES = {
        "plantae": PLANT,
    }

    def thresholds_for(self, candidate: SpeciesCandidate) -> GateThresholds:
        """Threshold profile for a candidate, keyed on its kingdom."""
        kingdom = (candidate.taxonomy.kingdom or "").strip().lower()
        return self.KINGDOM_PROFILES.get(kingdom, self.GENERAL)

    def evaluate(self, sorted_candidates: Sequence[SpeciesCandidate]) -> GateDecision:
        """
        Apply the gate to candidates sorted by descending confidence.

        Returns:
            GateDecision with the accepted candidate, or None and a reason
        """
        if not sorted_candidates:
            return self._reject("Undetermined: no candidates returned.")

        top = sorted_candidates[0]
        thresholds = self.thresholds_for(top)

        if top.confidence < thresholds.minimum_top_score:
            return self._reject(
                f"Undetermined: top score {score_text(top.confidence)} is below "
                f"{thresholds.profile_name} threshold {score_text(thresholds.minimum_top_score)}.",
                thresholds
            )

        if len(sorted_candidates) > 1:
            second = sorted_candidates[1]
            margin = top.confidence - second.confidence
            if (
                top.confidence < self.HIGH_CONFIDENCE_BYPASS_TOP_SCORE
                and margin < thresholds.minimum_margin
            ):
                return self._reject(
                    f"Undetermined: top-vs-second margin {score_text(margin)} is below "
                    f"{thresholds.profile_name} threshold {score_text(thresholds.minimum_margin)}.",
                    thresholds
                )

        if top.taxonomy.lowest_available_rank() is None:
            return self._reject("Undetermined: top candidate has no taxonomy.", thresholds)

        logger.debug(f"Gate accepted {top.label} ({score_text(top.confidence)}, {thresholds.profile_name})")
        return GateDecision(
            accepted=top,
            reason="Accepted by gate.",
            profile_name=thresholds.profile_name,
        )

    def _reject(
        self,
        reason: str,
        thresholds: Optional[GateThresholds] = None
    ) -> GateDecision:
        logger.info(reason)
        return GateDecision(
            accepted=None,
            reason=reason,
            profile_name=thresholds.profile_name if thresholds else None,
        )


def sort_candidates(candidates: Sequence[SpeciesCandidate]) -> list:
    """Sort by descending confidence, keeping source order for ties."""
    return sorted(candidates, key=lambda c: c.confidence, reverse=True)
