"""
Pydantic models for the iNaturalist computer vision response.

Every field except ``results`` is optional; anything that does not fit
this shape is treated as a decode failure by the identifier.
"""

from typing import List, Optional

from pydantic import BaseModel


class PhotoPayload(BaseModel):
    url: Optional[str] = None
    medium_url: Optional[str] = None
    square_url: Optional[str] = None


class TaxonPhotoPayload(BaseModel):
    photo: Optional[PhotoPayload] = None


class LineageNode(BaseModel):
    rank: Optional[str] = None
    name: Optional[str] = None


class TaxonPayload(BaseModel):
    name: Optional[str] = None
    preferred_common_name: Optional[str] = None
    rank: Optional[str] = None
    ancestors: Optional[List[LineageNode]] = None
    default_photo: Optional[PhotoPayload] = None
    taxon_photos: Optional[List[TaxonPhotoPayload]] = None


class ResultPayload(BaseModel):
    model_config = {"allow_inf_nan": False}

    combined_score: Optional[float] = None
    vision_score: Optional[float] = None
    taxon: Optional[TaxonPayload] = None


class ScoreImageResponse(BaseModel):
    """Top-level body of POST /v1/computervision/score_image."""
    results: List[ResultPayload]
