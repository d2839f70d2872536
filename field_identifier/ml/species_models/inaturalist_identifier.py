"""
iNaturalist computer vision identifier.

API: https://api.inaturalist.org/v1/docs/
Endpoint: POST /v1/computervision/score_image (multipart/form-data)

Requires an API token (JWT) from https://www.inaturalist.org/users/api_token
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Optional, Dict, Any

import httpx
from pydantic import ValidationError

from field_identifier.ml.species_models.base import (
    PredictionSource,
    SpeciesIdentificationContext,
    SpeciesIdentifierInterface,
    SpeciesPrediction,
)
from field_identifier.ml.species_models.candidate_builder import CandidateBuilder
from field_identifier.ml.species_models.errors import (
    DecodeFailedError,
    EmptyInputError,
    InvalidResponseError,
    MissingCredentialError,
    NoPredictionsError,
    RequestFailedError,
)
from field_identifier.ml.species_models.payloads import ScoreImageResponse

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.inaturalist.org"
SCORE_IMAGE_PATH = "/v1/computervision/score_image"
DEFAULT_TIMEOUT = 8.0  # seconds


def authorization_header(token: str) -> str:
    """Bearer authorization value; tokens already prefixed are used as-is."""
    if token.lower().startswith("bearer "):
        return token
    return f"Bearer {token}"


def observed_on(observed_at: datetime) -> str:
    """UTC calendar date (yyyy-MM-dd) of an observation time."""
    if observed_at.tzinfo is None:
        observed_at = observed_at.replace(tzinfo=timezone.utc)
    return observed_at.astimezone(timezone.utc).strftime("%Y-%m-%d")


class INaturalistSpeciesIdentifier(SpeciesIdentifierInterface):
    """
    Species identifier backed by the iNaturalist vision API.

    Configuration is passed in explicitly; nothing is read from the
    environment here.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_token: Optional[str] = None,
        request_timeout: float = DEFAULT_TIMEOUT,
        candidate_builder: Optional[CandidateBuilder] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: API root, without the /v1 path
            api_token: Bearer token (surrounding whitespace is trimmed)
            request_timeout: Timeout for the whole request in seconds
            candidate_builder: Builder for result -> candidate
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        token = api_token.strip() if api_token else None
        self.api_token = token or None
        self.request_timeout = request_timeout
        self.candidate_builder = candidate_builder or CandidateBuilder()
        self._transport = transport

    @property
    def identifier_name(self) -> str:
        return "iNaturalist Computer Vision"

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{SCORE_IMAGE_PATH}"

    @property
    def is_configured(self) -> bool:
        return self.api_token is not None

    def build_form_fields(self, context: SpeciesIdentificationContext) -> Dict[str, str]:
        """Optional text fields of the multipart body."""
        fields = {}
        if context.latitude is not None:
            fields["lat"] = str(context.latitude)
        if context.longitude is not None:
            fields["lng"] = str(context.longitude)
        if context.observed_at is not None:
            fields["observed_on"] = observed_on(context.observed_at)
        return fields

    async def identify(
        self,
        image_bytes: bytes,
        context: SpeciesIdentificationContext
    ) -> SpeciesPrediction:
        """Score an image against the iNaturalist vision model."""
        if not image_bytes:
            raise EmptyInputError()
        if not self.api_token:
            raise MissingCredentialError()

        start_time = time.time()
        headers = {
            "Accept": "application/json",
            "Authorization": authorization_header(self.api_token),
        }
        files = {"image": ("capture.jpg", image_bytes, "image/jpeg")}
        data = self.build_form_fields(context)

        logger.debug(f"POST {self.endpoint} ({len(image_bytes)} bytes, fields={sorted(data)})")

        try:
            async with httpx.AsyncClient(
                timeout=self.request_timeout,
                transport=self._transport
            ) as client:
                response = await client.post(
                    self.endpoint,
                    headers=headers,
                    files=files,
                    data=data
                )
        except httpx.TimeoutException as e:
            raise InvalidResponseError(
                f"iNaturalist request timed out after {self.request_timeout:g}s."
            ) from e
        except httpx.HTTPError as e:
            raise InvalidResponseError(
                f"Received an invalid response from iNaturalist: {e}"
            ) from e

        processing_time = (time.time() - start_time) * 1000

        if not 200 <= response.status_code < 300:
            message = response.text.strip() or None
            logger.warning(f"iNaturalist returned HTTP {response.status_code} after {processing_time:.0f}ms")
            raise RequestFailedError(response.status_code, message)

        decoded = self._decode(response)
        candidates = self.candidate_builder.build_all(decoded.results)
        if not candidates:
            raise NoPredictionsError()

        logger.info(
            f"iNaturalist returned {len(candidates)} candidate(s) in {processing_time:.0f}ms"
        )

        return SpeciesPrediction(
            source=PredictionSource.CLOUD,
            candidates=candidates,
            diagnostics=f"Cloud classification succeeded with {len(candidates)} candidate(s).",
        )

    def _decode(self, response: httpx.Response) -> ScoreImageResponse:
        try:
            return ScoreImageResponse.model_validate(response.json())
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            logger.warning(f"Failed to decode iNaturalist response: {e}")
            raise DecodeFailedError() from e

    def get_identifier_info(self) -> Dict[str, Any]:
        return {
            "name": self.identifier_name,
            "endpoint": self.endpoint,
            "configured": self.is_configured,
            "timeout_seconds": self.request_timeout,
        }
