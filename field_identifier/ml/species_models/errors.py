"""
Errors raised by species identifiers.

All of them are recoverable at the fallback boundary: the
FallbackSpeciesIdentifier turns any of these into a secondary attempt.
"""

from typing import Optional


class SpeciesIdentifierError(Exception):
    """Base class for identification failures."""

    default_message = "Species identification failed."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


class EmptyInputError(SpeciesIdentifierError):
    default_message = "No image data was provided."


class MissingCredentialError(SpeciesIdentifierError):
    default_message = "iNaturalist API token is not configured."


class InvalidResponseError(SpeciesIdentifierError):
    default_message = "Received an invalid response from iNaturalist."


class RequestFailedError(SpeciesIdentifierError):
    """Non-2xx HTTP status from the remote API."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        if message:
            text = f"iNaturalist request failed ({status_code}): {message}"
        else:
            text = f"iNaturalist request failed ({status_code})."
        super().__init__(text)


class DecodeFailedError(SpeciesIdentifierError):
    default_message = "Unable to decode iNaturalist computer vision response."


class NoPredictionsError(SpeciesIdentifierError):
    default_message = "iNaturalist did not return any predictions."
