"""
Fallback identifier.

Wraps a primary identifier with a secondary one that only runs when the
primary raises. The secondary's prediction is returned with diagnostics
that explain why the primary was skipped.
"""

import logging
from typing import Dict, Any

from field_identifier.ml.species_models.base import (
    SpeciesIdentificationContext,
    SpeciesIdentifierInterface,
    SpeciesPrediction,
)

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 240


def describe_failure(error: BaseException) -> str:
    """
    Single-line description of an exception for diagnostics.

    Newlines are flattened, runs of whitespace collapsed, and text longer
    than 240 characters is cut with a trailing ellipsis.
    """
    message = str(error).strip()
    text = f"{type(error).__name__}: {message}" if message else type(error).__name__
    compact = " ".join(text.split())
    if len(compact) <= MAX_REASON_LENGTH:
        return compact
    return compact[:MAX_REASON_LENGTH] + "..."


class FallbackSpeciesIdentifier(SpeciesIdentifierInterface):
    """
    Primary/secondary identifier pair.

    If the secondary fails as well its exception propagates unchanged.
    """

    def __init__(
        self,
        primary: SpeciesIdentifierInterface,
        fallback: SpeciesIdentifierInterface
    ):
        self.primary = primary
        self.fallback = fallback

    @property
    def identifier_name(self) -> str:
        return f"{self.primary.identifier_name} (fallback: {self.fallback.identifier_name})"

    async def identify(
        self,
        image_bytes: bytes,
        context: SpeciesIdentificationContext
    ) -> SpeciesPrediction:
        try:
            return await self.primary.identify(image_bytes, context)
        except Exception as e:
            reason = describe_failure(e)
            logger.warning(f"Primary identifier failed, using fallback: {reason}")

        prediction = await self.fallback.identify(image_bytes, context)

        existing = (prediction.diagnostics or "").strip()
        if existing:
            diagnostics = f"Primary failed: {reason} Fallback: {existing}"
        else:
            diagnostics = f"Primary failed: {reason} Fallback source: {prediction.source.value}."

        return SpeciesPrediction(
            source=prediction.source,
            candidates=list(prediction.candidates),
            diagnostics=diagnostics,
        )

    def get_identifier_info(self) -> Dict[str, Any]:
        return {
            "name": self.identifier_name,
            "primary": self.primary.get_identifier_info(),
            "fallback": self.fallback.get_identifier_info(),
        }
