"""
Image ingress service.

Accepts a photo as uploaded bytes or as a remote URL, stores it, and records
an ImageUpload row.
"""

import mimetypes
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

from api_gateway.dependencies import Identity
from shared.database import DatabaseClient, IMAGE_UPLOADS_TABLE
from shared.errors import ValidationError
from shared.image_processing import inspect_image
from shared.logging import get_logger
from shared.models.image import ImageUpload, UploadStatus
from shared.storage import StorageClient
from shared.validation import sanitize_filename, validate_image_bytes, validate_image_url

logger = get_logger("api_gateway.ingress")

DEFAULT_MIME_TYPE = "image/jpeg"


@dataclass
class UploadedImage:
    """Raw photo received from a multipart form."""

    filename: Optional[str]
    content: bytes


def _storage_prefix(identity: Identity) -> str:
    return identity.key.replace(":", "-")


def guess_mime_type(image_url: str) -> str:
    """Mime type from the URL path extension, defaulting to JPEG."""
    mime_type, _ = mimetypes.guess_type(urlparse(image_url).path)
    if mime_type and mime_type.startswith("image/"):
        return mime_type
    return DEFAULT_MIME_TYPE


async def ingest_image(
    identity: Identity,
    db: DatabaseClient,
    storage: StorageClient,
    file: Optional[UploadedImage] = None,
    image_url: Optional[str] = None,
) -> ImageUpload:
    """
    Store a photo and create its ImageUpload record with status=processing.

    A file takes precedence over a URL when both are given.

    Raises:
        ValidationError: If neither input is given or the input is invalid
        UploadFailedError: If object storage rejects the upload
        PersistenceError: If the record cannot be inserted
    """
    if file is None and not image_url:
        raise ValidationError("No image provided")

    if file is not None:
        validate_image_bytes(file.content)
        info = inspect_image(file.content)
        path = f"{_storage_prefix(identity)}/{int(time.time() * 1000)}.{info.extension}"
        file_url = await storage.upload_file(path, file.content, content_type=info.mime_type)
        file_name = sanitize_filename(file.filename, default=f"image.{info.extension}")
        file_size = len(file.content)
        mime_type = info.mime_type
    else:
        file_url = validate_image_url(image_url)
        file_name = sanitize_filename(urlparse(file_url).path.rsplit("/", 1)[-1])
        file_size = 0
        mime_type = guess_mime_type(file_url)

    record = {
        "id": str(uuid.uuid4()),
        "user_id": identity.key,
        "file_url": file_url,
        "file_name": file_name,
        "file_size": file_size,
        "mime_type": mime_type,
        "status": "processing",
        "uploaded_at": datetime.now(timezone.utc).isoformat(),
    }
    result = await db.table(IMAGE_UPLOADS_TABLE).insert(record).execute()
    row = result.data[0] if result.data else record

    logger.info(
        "Image ingested",
        extra={"image_id": row["id"], "file_size": file_size, "mime_type": mime_type, "source": "file" if file else "url"}
    )
    return ImageUpload.model_validate(row)


async def set_upload_status(db: DatabaseClient, image_id: str, status: UploadStatus) -> None:
    """Move an upload to its post-analysis status."""
    await db.table(IMAGE_UPLOADS_TABLE).update({"status": status}).eq("id", image_id).execute()
    logger.info("Image upload status updated", extra={"image_id": image_id, "status": status})
