"""
Taxonomy Resolver

Maps a ranked lineage from an identifier into the fixed 8-level Taxonomy.

Lineages arrive as (rank, name) pairs ordered from broadest to narrowest,
with the subject taxon itself as the last entry. Rank strings are free
text ("sub-family", "Super_Order", "infraorder"), so they are first
canonicalized and then mapped through a static synonym table.
"""

import logging
import re
from typing import Optional, Dict, Iterable, List, Tuple

from field_identifier.ml.species_models.base import Taxonomy

logger = logging.getLogger(__name__)

LineageEntry = Tuple[Optional[str], Optional[str]]

_RANK_SEPARATORS = re.compile(r"[\s_\-]+")


class TaxonomyResolver:
    """
    Resolves ranked lineages into Taxonomy records.

    Features:
    - Rank canonicalization (whitespace, underscores, hyphens, case)
    - Many-to-one rank synonym table
    - Last-write-wins when two entries land in the same slot
    - Species-only fallback when no rank could be mapped
    """

    # Canonical rank token -> Taxonomy field
    RANK_SLOTS: Dict[str, str] = {
        "domain": "domain",
        "superkingdom": "domain",

        "kingdom": "kingdom",
        "subkingdom": "kingdom",

        "phylum": "phylum",
        "subphylum": "phylum",
        "superphylum": "phylum",

        "class": "class_name",
        "subclass": "class_name",
        "superclass": "class_name",

        "order": "order",
        "suborder": "order",
        "infraorder": "order",
        "superorder": "order",

        "family": "family",
        "subfamily": "family",
        "superfamily": "family",
        "tribe": "family",
        "subtribe": "family",

        "genus": "genus",
        "subgenus": "genus",

        "species": "species",
        "hybrid": "species",
        "subspecies": "species",
        "variety": "species",
        "form": "species",
    }

    def __init__(self, extra_rank_slots: Optional[Dict[str, str]] = None):
        """
        Initialize taxonomy resolver.

        Args:
            extra_rank_slots: Additional rank synonyms (canonical token -> slot)
        """
        self.rank_slots = dict(self.RANK_SLOTS)
        if extra_rank_slots:
            for rank, slot in extra_rank_slots.items():
                self.rank_slots[self.canonical_rank(rank)] = slot

    @staticmethod
    def canonical_rank(rank: str) -> str:
        """Strip whitespace, underscores and hyphens, then lower-case."""
        return _RANK_SEPARATORS.sub("", rank).lower()

    def slot_for_rank(self, rank: Optional[str]) -> Optional[str]:
        """Taxonomy field a rank maps to, or None for unknown ranks."""
        if not rank:
            return None
        return self.rank_slots.get(self.canonical_rank(rank))

    def normalize_lineage(self, lineage: Iterable[LineageEntry]) -> Taxonomy:
        """
        Normalize a broad-to-narrow lineage.

        Entries with an empty rank or name, or an unknown rank, are skipped.

        Args:
            lineage: (rank, name) pairs, root first

        Returns:
            Taxonomy with every mapped slot filled
        """
        values: Dict[str, str] = {}

        for rank, name in lineage:
            name = (name or "").strip()
            if not name:
                continue

            slot = self.slot_for_rank(rank)
            if slot is None:
                if rank:
                    logger.debug(f"Skipping unmapped rank: {rank!r} ({name})")
                continue

            values[slot] = name

        return Taxonomy(**values)

    def resolve_taxon(
        self,
        name: Optional[str],
        rank: Optional[str],
        ancestors: Optional[List[LineageEntry]] = None
    ) -> Taxonomy:
        """
        Build the taxonomy for a subject taxon and its ancestors.

        The subject is appended to the ancestor list as the narrowest
        entry. If nothing maps but the subject has a name, the name is
        used as the species so the taxon is not lost entirely.
        """
        lineage = list(ancestors or []) + [(rank, name)]
        taxonomy = self.normalize_lineage(lineage)

        if taxonomy.is_empty and name and name.strip():
            return Taxonomy(species=name)

        return taxonomy


# Singleton instance
_taxonomy_resolver: Optional[TaxonomyResolver] = None


def get_taxonomy_resolver() -> TaxonomyResolver:
    """Get singleton taxonomy resolver instance."""
    global _taxonomy_resolver
    if _taxonomy_resolver is None:
        _taxonomy_resolver = TaxonomyResolver()
    return _taxonomy_resolver
