"""
Tests for FallbackSpeciesIdentifier and the placeholder secondary.
"""

import asyncio
from typing import List

import pytest

from field_identifier.ml.species_models.base import (
    PredictionSource,
    SpeciesCandidate,
    SpeciesIdentificationContext,
    SpeciesIdentifierInterface,
    SpeciesPrediction,
    Taxonomy,
)
from field_identifier.ml.species_models.errors import (
    MissingCredentialError,
    RequestFailedError,
)
from field_identifier.ml.species_models.fallback_identifier import (
    FallbackSpeciesIdentifier,
    describe_failure,
)
from field_identifier.ml.species_models.placeholder_identifier import (
    PLACEHOLDER_DIAGNOSTICS,
    PlaceholderSpeciesIdentifier,
)

IMAGE_BYTES = b"jpeg"


class StubIdentifier(SpeciesIdentifierInterface):
    """Returns a fixed prediction or raises a fixed error."""

    def __init__(self, prediction: SpeciesPrediction = None, error: Exception = None):
        self.prediction = prediction
        self.error = error
        self.calls: List[bytes] = []

    @property
    def identifier_name(self) -> str:
        return "Stub"

    async def identify(self, image_bytes, context):
        self.calls.append(image_bytes)
        if self.error is not None:
            raise self.error
        return self.prediction


def rose(confidence: float = 0.9) -> SpeciesCandidate:
    return SpeciesCandidate(
        label="Beach Rose",
        confidence=confidence,
        taxonomy=Taxonomy(kingdom="Plantae", species="Rosa rugosa"),
    )


class TestDescribeFailure:

    def test_includes_type_name_and_message(self):
        assert describe_failure(RequestFailedError(503, "down")) == (
            "RequestFailedError: iNaturalist request failed (503): down"
        )

    def test_whitespace_is_collapsed(self):
        assert describe_failure(ValueError("line one\n\n  line\ttwo ")) == (
            "ValueError: line one line two"
        )

    def test_long_messages_are_truncated(self):
        text = describe_failure(ValueError("x" * 500))
        assert len(text) == 243
        assert text.endswith("...")

    def test_empty_message(self):
        assert describe_failure(RuntimeError()) == "RuntimeError"


class TestFallbackSpeciesIdentifier:

    @pytest.mark.asyncio
    async def test_primary_success_is_returned_unchanged(self):
        prediction = SpeciesPrediction(
            source=PredictionSource.CLOUD,
            candidates=[rose()],
            diagnostics="Cloud classification succeeded with 1 candidate(s).",
        )
        primary = StubIdentifier(prediction=prediction)
        secondary = StubIdentifier(error=AssertionError("must not be called"))
        identifier = FallbackSpeciesIdentifier(primary, secondary)

        result = await identifier.identify(IMAGE_BYTES, SpeciesIdentificationContext())

        assert result is prediction
        assert secondary.calls == []

    @pytest.mark.asyncio
    async def test_primary_failure_without_secondary_diagnostics(self):
        primary = StubIdentifier(error=RequestFailedError(503, "down"))
        secondary = StubIdentifier(
            prediction=SpeciesPrediction(source=PredictionSource.FALLBACK, diagnostics="  ")
        )
        identifier = FallbackSpeciesIdentifier(primary, secondary)

        result = await identifier.identify(IMAGE_BYTES, SpeciesIdentificationContext())

        assert result.source == PredictionSource.FALLBACK
        assert result.candidates == []
        assert result.diagnostics.startswith("Primary failed: ")
        assert "RequestFailed" in result.diagnostics
        assert "(503): down" in result.diagnostics
        assert result.diagnostics.endswith("Fallback source: fallback.")
        assert secondary.calls == [IMAGE_BYTES]

    @pytest.mark.asyncio
    async def test_primary_failure_with_secondary_diagnostics(self):
        primary = StubIdentifier(error=MissingCredentialError())
        secondary = StubIdentifier(
            prediction=SpeciesPrediction(
                source=PredictionSource.ON_DEVICE,
                candidates=[rose(0.7)],
                diagnostics="Local model v2.",
            )
        )
        identifier = FallbackSpeciesIdentifier(primary, secondary)

        result = await identifier.identify(IMAGE_BYTES, SpeciesIdentificationContext())

        assert result.source == PredictionSource.ON_DEVICE
        assert result.candidates == [rose(0.7)]
        assert result.diagnostics == (
            "Primary failed: MissingCredentialError: iNaturalist API token is not configured. "
            "Fallback: Local model v2."
        )

    @pytest.mark.asyncio
    async def test_secondary_failure_propagates(self):
        primary = StubIdentifier(error=RequestFailedError(500))
        secondary = StubIdentifier(error=ValueError("secondary broke"))
        identifier = FallbackSpeciesIdentifier(primary, secondary)

        with pytest.raises(ValueError, match="secondary broke"):
            await identifier.identify(IMAGE_BYTES, SpeciesIdentificationContext())

    def test_identifier_info_is_nested(self):
        identifier = FallbackSpeciesIdentifier(StubIdentifier(), PlaceholderSpeciesIdentifier())
        info = identifier.get_identifier_info()

        assert info["primary"] == {"name": "Stub"}
        assert info["fallback"] == {"name": "Placeholder"}


class TestPlaceholderSpeciesIdentifier:

    @pytest.mark.asyncio
    async def test_returns_undetermined_prediction(self):
        prediction = await PlaceholderSpeciesIdentifier().identify(
            IMAGE_BYTES, SpeciesIdentificationContext()
        )

        assert prediction.source == PredictionSource.FALLBACK
        assert prediction.candidates == []
        assert prediction.diagnostics == PLACEHOLDER_DIAGNOSTICS
        assert prediction.top_candidate is None

    @pytest.mark.asyncio
    async def test_delay_is_awaited(self):
        identifier = PlaceholderSpeciesIdentifier(delay_seconds=0.01)
        loop = asyncio.get_running_loop()

        started = loop.time()
        prediction = await identifier.identify(IMAGE_BYTES, SpeciesIdentificationContext())

        assert loop.time() - started >= 0.005
        assert prediction.diagnostics == PLACEHOLDER_DIAGNOSTICS

    @pytest.mark.asyncio
    async def test_delay_applies_behind_fallback(self):
        identifier = FallbackSpeciesIdentifier(
            StubIdentifier(error=RequestFailedError(503)),
            PlaceholderSpeciesIdentifier(delay_seconds=0.01),
        )

        prediction = await identifier.identify(IMAGE_BYTES, SpeciesIdentificationContext())

        assert prediction.source == PredictionSource.FALLBACK
        assert prediction.diagnostics.endswith(f"Fallback: {PLACEHOLDER_DIAGNOSTICS}")
