"""
Storage utilities.

Supabase Storage operations for image upload. Uploads are single attempts;
failures surface as UploadFailedError.
"""

import asyncio
import mimetypes
from typing import Any, Callable, List, Optional
from supabase import create_client
from shared.config import Settings
from shared.errors import UploadFailedError, ConfigError, ValidationError
from shared.logging import get_logger

logger = get_logger("storage")

# Bucket file size limit (matches the upload form's 10MB cap)
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


class StorageClient:
    """Supabase Storage client bound to the application bucket."""

    def __init__(self, settings: Settings, max_file_size: int = DEFAULT_MAX_FILE_SIZE):
        """
        Initialize storage client.

        Args:
            settings: Application settings (credentials and bucket name)
            max_file_size: Maximum accepted upload size in bytes
        """
        try:
            self.client = create_client(
                settings.supabase_url,
                settings.supabase_service_key
            )
            self.storage = self.client.storage
        except Exception as e:
            raise ConfigError(f"Failed to initialize storage client: {str(e)}") from e
        self.bucket = settings.storage_bucket
        self.max_file_size = max_file_size

    async def _execute_sync(self, func: Callable[[], Any]) -> Any:
        """Execute a synchronous Supabase storage operation in an async context."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    def _detect_content_type(self, path: str, default: Optional[str] = None) -> str:
        """Detect content type from file path."""
        content_type, _ = mimetypes.guess_type(path)
        if content_type:
            return content_type
        return default or "application/octet-stream"

    async def upload_file(
        self,
        path: str,
        file_data: bytes,
        content_type: Optional[str] = None
    ) -> str:
        """
        Upload a file to the application bucket.

        Args:
            path: Destination key in the bucket
            file_data: File data as bytes
            content_type: Content type (auto-detected if not provided)

        Returns:
            Public URL of uploaded file

        Raises:
            ValidationError: If file size exceeds limit
            UploadFailedError: If the storage service rejects the upload
        """
        if len(file_data) > self.max_file_size:
            max_size_mb = self.max_file_size / (1024 * 1024)
            file_size_mb = len(file_data) / (1024 * 1024)
            raise ValidationError(
                f"File size ({file_size_mb:.2f} MB) exceeds maximum of {max_size_mb:.2f} MB"
            )

        if not content_type:
            content_type = self._detect_content_type(path, default="image/jpeg")

        try:
            def _upload():
                return self.storage.from_(self.bucket).upload(
                    path=path,
                    file=file_data,
                    file_options={"content-type": content_type}
                )

            await self._execute_sync(_upload)

            def _get_public_url():
                return self.storage.from_(self.bucket).get_public_url(path)

            public_url = await self._execute_sync(_get_public_url)
        except Exception as e:
            logger.error(
                f"Failed to upload file to {self.bucket}/{path}: {str(e)}",
                extra={"bucket": self.bucket, "path": path, "error": str(e)}
            )
            raise UploadFailedError(f"Failed to upload image: {str(e)}") from e

        # Some client versions append a bare "?" to public URLs
        public_url = str(public_url).rstrip("?")

        logger.info(
            f"Uploaded file to {self.bucket}/{path}",
            extra={"bucket": self.bucket, "path": path, "size": len(file_data)}
        )
        return public_url

    async def list_buckets(self) -> List[str]:
        """
        List bucket names visible to the service key.

        Returns:
            Bucket names
        """
        buckets = await self._execute_sync(self.storage.list_buckets)
        names = []
        for bucket in buckets or []:
            name = getattr(bucket, "name", None)
            if name is None and isinstance(bucket, dict):
                name = bucket.get("name")
            if name:
                names.append(name)
        return names

    async def health_check(self) -> bool:
        """Return True if the application bucket is reachable."""
        try:
            return self.bucket in await self.list_buckets()
        except Exception as e:
            logger.warning("Storage health check failed", extra={"error": str(e)})
            return False
