"""
Text helpers for presenting candidates to people.
"""

from typing import Sequence

from field_identifier.ml.species_models.base import SpeciesCandidate

UNLABELED_TAXON = "Unlabeled taxon"


def scientific_name(candidate: SpeciesCandidate) -> str:
    """Most specific taxonomy value, or the label when there is none."""
    rank = candidate.taxonomy.lowest_available_rank()
    return rank[1] if rank else candidate.label


def common_name(candidate: SpeciesCandidate) -> str:
    """The label, unless it is just the scientific name again."""
    if candidate.label.lower() == scientific_name(candidate).lower():
        return UNLABELED_TAXON
    return candidate.label


def confidence_percent_text(confidence: float) -> str:
    return f"{max(0.0, min(confidence, 1.0)) * 100:.1f}%"


def top_three_summary(candidates: Sequence[SpeciesCandidate]) -> str:
    """
    Debug listing of the first three candidates, e.g.::

        Top 3 IDs:
        1. Beach Rose 82.0% [Rosa rugosa]
    """
    top_three = list(candidates)[:3]
    if not top_three:
        return ""

    rows = [
        f"{index}. {candidate.label} {confidence_percent_text(candidate.confidence)} "
        f"[{scientific_name(candidate)}]"
        for index, candidate in enumerate(top_three, start=1)
    ]
    return "Top 3 IDs:\n" + "\n".join(rows)
