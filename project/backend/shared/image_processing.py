"""
Image processing utilities.

Decodes uploaded photos with Pillow to confirm they are real images and to
recover their format and dimensions.
"""

import io
from dataclasses import dataclass
from PIL import Image, UnidentifiedImageError
from shared.errors import ValidationError
from shared.logging import get_logger

logger = get_logger("image_processing")

FORMAT_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}

FORMAT_EXTENSIONS = {
    "JPEG": "jpg",
    "PNG": "png",
    "WEBP": "webp",
}


@dataclass(frozen=True)
class ImageInfo:
    """Decoded image metadata."""

    format: str
    width: int
    height: int

    @property
    def mime_type(self) -> str:
        return FORMAT_MIME_TYPES[self.format]

    @property
    def extension(self) -> str:
        return FORMAT_EXTENSIONS[self.format]


def inspect_image(
    image_bytes: bytes,
    min_width: int = 64,
    min_height: int = 64,
    max_width: int = 8192,
    max_height: int = 8192
) -> ImageInfo:
    """
    Decode image bytes and validate format and dimensions.

    Args:
        image_bytes: Raw image bytes
        min_width: Minimum width in pixels (default: 64)
        min_height: Minimum height in pixels (default: 64)
        max_width: Maximum width in pixels (default: 8192)
        max_height: Maximum height in pixels (default: 8192)

    Returns:
        ImageInfo with format and dimensions

    Raises:
        ValidationError: If the bytes are not a supported image or dimensions are out of range
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            image.verify()
            image_format = image.format
            width, height = image.size
    except Image.DecompressionBombError as e:
        logger.warning("Uploaded image exceeds the pixel limit", extra={"error": str(e)})
        raise ValidationError("Image has too many pixels to process") from e
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.warning("Uploaded file could not be decoded as an image", extra={"error": str(e)})
        raise ValidationError("Uploaded file is not a valid image") from e

    if image_format not in FORMAT_MIME_TYPES:
        raise ValidationError(
            f"Image format not supported: {image_format}. Supported formats: JPEG, PNG, WebP"
        )

    if width < min_width or height < min_height:
        raise ValidationError(
            f"Image dimensions ({width}x{height}) are too small. "
            f"Minimum: {min_width}x{min_height}"
        )

    if width > max_width or height > max_height:
        raise ValidationError(
            f"Image dimensions ({width}x{height}) are too large. "
            f"Maximum: {max_width}x{max_height}"
        )

    return ImageInfo(format=image_format, width=width, height=height)
