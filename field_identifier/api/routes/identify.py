"""
Identification and observation endpoints.

- POST /identify: identify a capture and return the gated result
- POST /observations: identify a capture and save it as an observation
- GET /observations: list saved observations, newest first
- GET /observations/{id}: fetch one observation
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query

from field_identifier.core.config import get_settings
from field_identifier.core.dependencies import (
    get_identification_service,
    get_image_decoder,
    get_observation_store,
)
from field_identifier.ml.image_decoder import ImageDecoder
from field_identifier.models.schemas import (
    ErrorResponse,
    IdentificationRequest,
    IdentificationResponse,
    ObservationListResponse,
    ObservationRequest,
    ObservationResponse,
)
from field_identifier.services.identification_service import IdentificationService
from field_identifier.services.observation_store import ObservationStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Identification"])


def _decode_image(decoder: ImageDecoder, image: str) -> bytes:
    try:
        return decoder.decode_base64(image)
    except ValueError as e:
        logger.warning(f"Rejected image upload: {e}")
        raise HTTPException(status_code=400, detail=str(e))


@router.post(
    "/identify",
    response_model=IdentificationResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid image"},
    },
    summary="Identify the species in an image",
    description="""
    Sends the capture to the configured identifier chain and applies the
    rejection gate to the returned candidates.

    A rejected or failed identification still returns 200, with status
    `failed` and the reason in `diagnostics`.

    **Image Requirements:**
    - Base64-encoded JPEG or PNG (data URLs are accepted)
    - Location and capture time are optional but improve results
    """
)
async def identify_species(
    request: IdentificationRequest,
    service: IdentificationService = Depends(get_identification_service),
    decoder: ImageDecoder = Depends(get_image_decoder)
) -> IdentificationResponse:
    image_bytes = _decode_image(decoder, request.image)

    logger.info(
        f"Received identification request "
        f"(lat={request.latitude}, lng={request.longitude})"
    )
    outcome = await service.identify(image_bytes, request.to_context())

    top = outcome.accepted
    if top is not None:
        logger.info(f"Identification accepted: {top.label} ({top.confidence:.2%})")
    else:
        logger.info(f"Identification undetermined: {outcome.diagnostics}")

    return IdentificationResponse.from_outcome(outcome)


@router.post(
    "/observations",
    response_model=ObservationResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid image"},
    },
    summary="Save a capture as an observation",
    description="Identifies the capture, then saves it whether or not a species was determined."
)
async def create_observation(
    request: ObservationRequest,
    service: IdentificationService = Depends(get_identification_service),
    decoder: ImageDecoder = Depends(get_image_decoder)
) -> ObservationResponse:
    image_bytes = _decode_image(decoder, request.image)
    observation = await service.record_observation(
        image_bytes,
        notes=request.notes,
        context=request.to_context(),
    )
    return ObservationResponse.from_observation(observation)


@router.get(
    "/observations",
    response_model=ObservationListResponse,
    summary="List saved observations"
)
async def list_observations(
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    store: ObservationStore = Depends(get_observation_store)
) -> ObservationListResponse:
    if limit is None:
        limit = get_settings().observation_list_limit
    observations = await store.list(limit)
    return ObservationListResponse(
        observations=[ObservationResponse.from_observation(o) for o in observations],
        count=len(observations),
    )


@router.get(
    "/observations/{observation_id}",
    response_model=ObservationResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Observation not found"},
    },
    summary="Get one observation"
)
async def get_observation(
    observation_id: str,
    store: ObservationStore = Depends(get_observation_store)
) -> ObservationResponse:
    try:
        key = uuid.UUID(observation_id)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Observation not found: {observation_id}")

    observation = await store.fetch(key)
    if observation is None:
        raise HTTPException(status_code=404, detail=f"Observation not found: {observation_id}")
    return ObservationResponse.from_observation(observation)
