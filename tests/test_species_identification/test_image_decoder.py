"""
Tests for ImageDecoder.
"""

import base64
import io

import pytest
from PIL import Image

from field_identifier.ml.image_decoder import ImageDecoder


@pytest.fixture
def jpeg_bytes():
    img = Image.new("RGB", (64, 64), color=(34, 139, 34))
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG")
    return buffer.getvalue()


class TestImageDecoder:

    def test_decode_plain_base64(self, jpeg_bytes):
        payload = base64.b64encode(jpeg_bytes).decode("ascii")
        assert ImageDecoder().decode_base64(payload) == jpeg_bytes

    def test_decode_data_url(self, jpeg_bytes):
        payload = "data:image/jpeg;base64," + base64.b64encode(jpeg_bytes).decode("ascii")
        assert ImageDecoder().decode_base64(payload) == jpeg_bytes

    def test_invalid_base64(self):
        with pytest.raises(ValueError, match="Invalid base64"):
            ImageDecoder().decode_base64("not*base64!")

    def test_not_an_image(self):
        payload = base64.b64encode(b"hello world").decode("ascii")
        with pytest.raises(ValueError, match="Unreadable image"):
            ImageDecoder().decode_base64(payload)

    def test_empty_payload(self):
        with pytest.raises(ValueError, match="empty"):
            ImageDecoder().decode_base64("")

    def test_size_limit(self, jpeg_bytes):
        decoder = ImageDecoder(max_image_size_mb=0.0001)
        with pytest.raises(ValueError, match="exceeds"):
            decoder.validate(jpeg_bytes * 10)
