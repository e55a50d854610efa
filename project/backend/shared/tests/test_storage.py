"""
Tests for storage utilities.
"""

import pytest
from types import SimpleNamespace
from unittest.mock import Mock, patch

from shared.errors import ConfigError, UploadFailedError, ValidationError
from shared.storage import StorageClient


@pytest.fixture
def bucket():
    return Mock()


@pytest.fixture
def storage_client(settings, bucket):
    """Create a storage client with mocked Supabase."""
    mock_client = Mock()
    mock_client.storage.from_ = Mock(return_value=bucket)
    with patch("shared.storage.create_client", return_value=mock_client):
        return StorageClient(settings, max_file_size=1024)


def test_storage_client_initialization_failure(settings):
    """Test that ConfigError is raised on initialization failure."""
    with patch("shared.storage.create_client", side_effect=Exception("Connection failed")):
        with pytest.raises(ConfigError, match="Failed to initialize storage client"):
            StorageClient(settings)


@pytest.mark.asyncio
async def test_upload_file_returns_public_url(storage_client, bucket):
    bucket.upload = Mock(return_value={"path": "anon-1/1.png"})
    bucket.get_public_url = Mock(return_value="https://test.supabase.co/storage/v1/object/public/roast-me-ai/anon-1/1.png?")

    url = await storage_client.upload_file("anon-1/1.png", b"data", content_type="image/png")

    assert url == "https://test.supabase.co/storage/v1/object/public/roast-me-ai/anon-1/1.png"
    storage_client.storage.from_.assert_called_with("roast-me-ai")
    kwargs = bucket.upload.call_args.kwargs
    assert kwargs["path"] == "anon-1/1.png"
    assert kwargs["file_options"] == {"content-type": "image/png"}


@pytest.mark.asyncio
async def test_upload_file_detects_content_type(storage_client, bucket):
    bucket.get_public_url = Mock(return_value="https://x/a.png")
    await storage_client.upload_file("a.png", b"data")
    assert bucket.upload.call_args.kwargs["file_options"] == {"content-type": "image/png"}


@pytest.mark.asyncio
async def test_upload_file_too_large(storage_client, bucket):
    with pytest.raises(ValidationError, match="exceeds maximum"):
        await storage_client.upload_file("a.png", b"x" * 2048)
    bucket.upload.assert_not_called()


@pytest.mark.asyncio
async def test_upload_failure_is_not_retried(storage_client, bucket):
    bucket.upload = Mock(side_effect=Exception("503 Service Unavailable"))
    with pytest.raises(UploadFailedError):
        await storage_client.upload_file("a.png", b"data")
    assert bucket.upload.call_count == 1


@pytest.mark.asyncio
async def test_health_check(storage_client):
    storage_client.storage.list_buckets = Mock(return_value=[SimpleNamespace(name="other"), {"name": "roast-me-ai"}])
    assert await storage_client.health_check() is True

    storage_client.storage.list_buckets = Mock(side_effect=Exception("unreachable"))
    assert await storage_client.health_check() is False
