"""
Candidate Builder

Turns one raw classification result into a SpeciesCandidate:
taxonomy from the lineage, normalized confidence, display label and
reference photo URLs.
"""

import logging
from typing import Optional, List

from field_identifier.ml.species_models.base import SpeciesCandidate
from field_identifier.ml.species_models.payloads import (
    PhotoPayload,
    ResultPayload,
    TaxonPayload,
)
from field_identifier.ml.species_models.taxonomy_resolver import (
    TaxonomyResolver,
    get_taxonomy_resolver,
)

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "Unknown"


def normalize_confidence(score: float) -> float:
    """
    Normalize a raw score to 0.0 - 1.0.

    Scores above 1 are treated as percentages. The result is clamped.
    """
    zero_to_one = score / 100 if score > 1 else score
    return min(max(zero_to_one, 0.0), 1.0)


def normalize_photo_url(raw: Optional[str]) -> Optional[str]:
    """Trim a photo URL and rewrite protocol-relative URLs to https."""
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    if value.startswith("//"):
        value = "https:" + value
    return value


def _preferred_photo_url(photo: Optional[PhotoPayload]) -> Optional[str]:
    if photo is None:
        return None
    for raw in (photo.medium_url, photo.url, photo.square_url):
        url = normalize_photo_url(raw)
        if url:
            return url
    return None


def _first_text(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value and value.strip():
            return value.strip()
    return None


class CandidateBuilder:
    """Builds scored candidates from raw identifier results."""

    def __init__(self, taxonomy_resolver: Optional[TaxonomyResolver] = None):
        self.taxonomy_resolver = taxonomy_resolver or get_taxonomy_resolver()

    def build(self, result: ResultPayload) -> Optional[SpeciesCandidate]:
        """
        Build a candidate from one result.

        Returns:
            SpeciesCandidate, or None when the result has no taxon or no
            usable taxonomy
        """
        taxon = result.taxon
        if taxon is None:
            return None

        ancestors = [(node.rank, node.name) for node in taxon.ancestors or []]
        taxonomy = self.taxonomy_resolver.resolve_taxon(taxon.name, taxon.rank, ancestors)
        lowest = taxonomy.lowest_available_rank()
        if lowest is None:
            logger.debug(f"Dropping result without usable taxonomy: {taxon.name!r}")
            return None

        raw_score = result.combined_score
        if raw_score is None:
            raw_score = result.vision_score
        confidence = normalize_confidence(raw_score if raw_score is not None else 0.0)

        label = _first_text(taxon.preferred_common_name, taxon.name, lowest[1]) or UNKNOWN_LABEL

        return SpeciesCandidate(
            label=label,
            confidence=confidence,
            taxonomy=taxonomy,
            photo_urls=tuple(self.photo_urls(taxon)),
        )

    def build_all(self, results: List[ResultPayload]) -> List[SpeciesCandidate]:
        """Build candidates for every usable result, keeping source order."""
        candidates = []
        for result in results:
            candidate = self.build(result)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    @staticmethod
    def photo_urls(taxon: TaxonPayload) -> List[str]:
        """
        Reference photos for a taxon: default photo first, then taxon
        photos, de-duplicated in first-seen order.
        """
        urls = []

        default_url = _preferred_photo_url(taxon.default_photo)
        if default_url:
            urls.append(default_url)

        for taxon_photo in taxon.taxon_photos or []:
            url = _preferred_photo_url(taxon_photo.photo)
            if url:
                urls.append(url)

        return list(dict.fromkeys(urls))
