"""
Validation utilities.

Shared validation utilities for common input validation tasks.
"""

import re
from typing import Optional
from urllib.parse import urlparse

from shared.errors import ValidationError

MAX_IMAGE_SIZE_MB = 10

# JPEG, PNG and WebP (RIFF....WEBP) signatures
_IMAGE_SIGNATURES = (
    b"\xff\xd8\xff",
    b"\x89PNG\r\n\x1a\n",
)


def validate_image_bytes(
    file_data: bytes,
    max_size_mb: int = MAX_IMAGE_SIZE_MB
) -> None:
    """
    Validate an uploaded image payload.

    Args:
        file_data: Raw file bytes
        max_size_mb: Maximum file size in MB (default: 10)

    Raises:
        ValidationError: If the payload is empty, too large, or not an image
    """
    if not file_data:
        raise ValidationError("Image file is empty")

    max_size_bytes = max_size_mb * 1024 * 1024
    if len(file_data) > max_size_bytes:
        raise ValidationError(
            f"Image file size ({len(file_data) / (1024 * 1024):.2f} MB) exceeds maximum "
            f"of {max_size_mb} MB"
        )

    header = file_data[:12]
    is_webp = header[:4] == b"RIFF" and header[8:12] == b"WEBP"
    if not (is_webp or any(header.startswith(sig) for sig in _IMAGE_SIGNATURES)):
        raise ValidationError(
            "Invalid image file format. Supported formats: JPEG, PNG, WebP"
        )


def validate_image_url(image_url: str) -> str:
    """
    Validate a remote image URL.

    Args:
        image_url: URL supplied by the client

    Returns:
        The stripped URL

    Raises:
        ValidationError: If the URL is not an absolute http(s) URL
    """
    url = (image_url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("Image URL must be an absolute http(s) URL")
    return url


def sanitize_filename(filename: Optional[str], default: str = "image") -> str:
    """
    Make a filename safe for use in a storage key.

    Keeps word characters and hyphens in the stem and lowercases the extension.
    """
    original = filename or default
    if "." in original:
        stem, ext = original.rsplit(".", 1)
        ext = re.sub(r"[^\w]", "", ext).lower()
    else:
        stem, ext = original, ""
    stem = re.sub(r"[^\w\-]", "_", stem)
    stem = re.sub(r"_+", "_", stem).strip("_") or default
    return f"{stem}.{ext}" if ext else stem
