"""
Placeholder secondary identifier.

Stands in for an on-device model until one is configured: it never
proposes a candidate, so the rejection gate reports the capture as
undetermined.
"""

import asyncio

from field_identifier.ml.species_models.base import (
    PredictionSource,
    SpeciesIdentificationContext,
    SpeciesIdentifierInterface,
    SpeciesPrediction,
)

PLACEHOLDER_DIAGNOSTICS = "No on-device fallback classifier configured. Returning undetermined."


class PlaceholderSpeciesIdentifier(SpeciesIdentifierInterface):
    """Secondary identifier that never proposes a candidate."""

    def __init__(self, delay_seconds: float = 0.0):
        self.delay_seconds = delay_seconds

    @property
    def identifier_name(self) -> str:
        return "Placeholder"

    async def identify(
        self,
        image_bytes: bytes,
        context: SpeciesIdentificationContext
    ) -> SpeciesPrediction:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        return SpeciesPrediction(
            source=PredictionSource.FALLBACK,
            candidates=[],
            diagnostics=PLACEHOLDER_DIAGNOSTICS,
        )
