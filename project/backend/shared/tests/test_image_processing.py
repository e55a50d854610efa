"""
Tests for image decoding and dimension checks.
"""

import io

import pytest
from PIL import Image

from shared.errors import ValidationError
from shared.image_processing import inspect_image


def _image_bytes(fmt: str = "PNG", size=(128, 96)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color="red").save(buffer, format=fmt)
    return buffer.getvalue()


def test_inspect_png():
    info = inspect_image(_image_bytes())
    assert (info.format, info.width, info.height) == ("PNG", 128, 96)
    assert info.mime_type == "image/png"
    assert info.extension == "png"


def test_inspect_jpeg():
    info = inspect_image(_image_bytes("JPEG"))
    assert info.mime_type == "image/jpeg"
    assert info.extension == "jpg"


def test_inspect_rejects_garbage():
    with pytest.raises(ValidationError, match="not a valid image"):
        inspect_image(b"\x89PNG\r\n\x1a\nnot really")


def test_inspect_rejects_unsupported_format():
    with pytest.raises(ValidationError, match="not supported"):
        inspect_image(_image_bytes("GIF"))


def test_inspect_rejects_small_images():
    with pytest.raises(ValidationError, match="too small"):
        inspect_image(_image_bytes(size=(32, 32)))


def test_inspect_rejects_decompression_bombs(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    with pytest.raises(ValidationError, match="too many pixels"):
        inspect_image(_image_bytes(size=(128, 128)))
