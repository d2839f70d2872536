"""
Tests for RejectionGate - confidence based accept/reject decisions.
"""

import pytest

from field_identifier.ml.species_models.base import SpeciesCandidate, Taxonomy
from field_identifier.ml.species_models.rejection_gate import (
    RejectionGate,
    sort_candidates,
)

ANIMAL = Taxonomy(kingdom="Animalia", species="Vulpes vulpes")
PLANT = Taxonomy(kingdom="Plantae", species="Rosa rugosa")


def candidate(confidence: float, taxonomy: Taxonomy = ANIMAL, label: str = "Red Fox") -> SpeciesCandidate:
    return SpeciesCandidate(label=label, confidence=confidence, taxonomy=taxonomy)


class TestRejectionGate:

    @pytest.fixture
    def gate(self):
        return RejectionGate()

    def test_no_candidates(self, gate):
        decision = gate.evaluate([])

        assert not decision.is_accepted
        assert decision.reason == "Undetermined: no candidates returned."
        assert decision.profile_name is None

    def test_single_candidate_above_general_threshold(self, gate):
        top = candidate(0.80)
        decision = gate.evaluate([top])

        assert decision.accepted is top
        assert decision.reason == "Accepted by gate."
        assert decision.profile_name == "general"

    def test_top_score_below_general_threshold(self, gate):
        decision = gate.evaluate([candidate(0.60)])

        assert not decision.is_accepted
        assert decision.reason == "Undetermined: top score 0.60 is below general threshold 0.65."

    def test_small_margin_rejected(self, gate):
        decision = gate.evaluate([candidate(0.70), candidate(0.55)])

        assert not decision.is_accepted
        assert decision.reason == (
            "Undetermined: top-vs-second margin 0.15 is below general threshold 0.20."
        )

    def test_high_confidence_bypasses_margin(self, gate):
        top = candidate(0.80)
        decision = gate.evaluate([top, candidate(0.10)])
        assert decision.accepted is top

    def test_high_confidence_bypasses_even_tiny_margin(self, gate):
        top = candidate(0.76)
        decision = gate.evaluate([top, candidate(0.75)])
        assert decision.accepted is top

    def test_wide_margin_accepted(self, gate):
        top = candidate(0.70)
        decision = gate.evaluate([top, candidate(0.40)])
        assert decision.accepted is top

    def test_plant_profile_is_more_lenient(self, gate):
        top = candidate(0.50, taxonomy=PLANT, label="Beach Rose")
        decision = gate.evaluate([top])

        assert decision.accepted is top
        assert decision.profile_name == "plant"

        # Same score under the general profile is rejected
        assert not gate.evaluate([candidate(0.50)]).is_accepted

    def test_plant_kingdom_match_ignores_case(self, gate):
        top = candidate(0.50, taxonomy=Taxonomy(kingdom=" PLANTAE ", species="Rosa rugosa"))
        assert gate.thresholds_for(top) is RejectionGate.PLANT

    def test_plant_profile_margin(self, gate):
        decision = gate.evaluate([
            candidate(0.50, taxonomy=PLANT),
            candidate(0.45, taxonomy=PLANT),
        ])

        assert decision.reason == (
            "Undetermined: top-vs-second margin 0.05 is below plant threshold 0.10."
        )

    def test_profile_is_chosen_from_top_candidate(self, gate):
        top = candidate(0.50, taxonomy=PLANT)
        decision = gate.evaluate([top, candidate(0.30)])
        assert decision.accepted is top

    def test_top_candidate_without_taxonomy(self, gate):
        decision = gate.evaluate([candidate(0.95, taxonomy=Taxonomy())])

        assert not decision.is_accepted
        assert decision.reason == "Undetermined: top candidate has no taxonomy."

    def test_deterministic(self, gate):
        candidates = [candidate(0.70), candidate(0.55)]
        assert gate.evaluate(candidates) == gate.evaluate(candidates)


class TestSortCandidates:

    def test_descending_and_stable(self):
        first = candidate(0.5, label="first")
        second = candidate(0.9, label="second")
        third = candidate(0.5, label="third")

        ordered = sort_candidates([first, second, third])

        assert [c.label for c in ordered] == ["second", "first", "third"]
