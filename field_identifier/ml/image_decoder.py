"""
Image decoding for uploaded captures.

Decodes base64 payloads (optionally wrapped in a data URL) and checks
with Pillow that the bytes really are an image before they are sent to
a remote identifier. The original encoded bytes are returned untouched.
"""

import base64
import binascii
import io
import logging

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


class ImageDecoder:
    """
    Validates and decodes base64 images.

    Usage:
        decoder = ImageDecoder(max_image_size_mb=10)
        image_bytes = decoder.decode_base64(payload)
    """

    def __init__(self, max_image_size_mb: float = 10.0):
        self.max_image_size_bytes = int(max_image_size_mb * 1024 * 1024)

    def decode_base64(self, base64_string: str) -> bytes:
        """
        Decode a base64 image.

        Raises:
            ValueError: if the payload is not base64, is empty, is too
                large, or is not an image Pillow can read
        """
        # Remove data URL prefix if present
        if "," in base64_string:
            base64_string = base64_string.split(",", 1)[1]

        try:
            image_bytes = base64.b64decode(base64_string, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid base64 image data: {e}") from e

        self.validate(image_bytes)
        return image_bytes

    def validate(self, image_bytes: bytes) -> None:
        if not image_bytes:
            raise ValueError("Image data is empty")
        if len(image_bytes) > self.max_image_size_bytes:
            limit_mb = self.max_image_size_bytes / (1024 * 1024)
            raise ValueError(f"Image exceeds {limit_mb:g}MB limit")

        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                image.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ValueError(f"Unreadable image data: {e}") from e

        logger.debug(f"Validated image upload ({len(image_bytes)} bytes)")
