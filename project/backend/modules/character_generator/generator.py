"""
Character image generation via Replicate API.

Makes a single image-editing call per request with the original photo as the
input image. No retry happens here; a failed attempt is recorded by the caller.
"""

import asyncio
import time
import uuid
from typing import Any, Optional

import httpx
import replicate

from shared.config import Settings
from shared.errors import GenerationError, UploadFailedError, ValidationError
from shared.logging import get_logger
from shared.storage import StorageClient

logger = get_logger("character_generator.generator")

GENERATED_PREFIX = "generated"

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
}


def _replicate_client(settings: Settings) -> replicate.Client:
    return replicate.Client(api_token=settings.replicate_api_token)


def extract_output_url(output: Any) -> str:
    """
    Extract the image URL from a Replicate output.

    Output may be a list, a FileOutput (with a .url property) or a plain string.

    Raises:
        GenerationError: If no URL can be found
    """
    if isinstance(output, list):
        output = output[0] if output else None
    if not output:
        raise GenerationError("No output returned from image generation")

    url = output.url if hasattr(output, "url") else output
    url = str(url) if url else ""
    if not url.startswith(("http://", "https://")):
        raise GenerationError(f"Image generation returned an invalid URL: {url!r}")
    return url


async def _copy_to_storage(output_url: str, storage: StorageClient) -> str:
    """Download the provider asset and store it under generated/."""
    async with httpx.AsyncClient(timeout=60.0) as http_client:
        response = await http_client.get(output_url)
        response.raise_for_status()
        image_bytes = response.content
        content_type = response.headers.get("content-type", "image/png").split(";")[0].strip()

    extension = _EXTENSIONS.get(content_type, "png")
    path = f"{GENERATED_PREFIX}/{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.{extension}"
    return await storage.upload_file(path, image_bytes, content_type=content_type)


async def generate_character_image(
    prompt: str,
    original_image_url: str,
    settings: Settings,
    storage: Optional[StorageClient] = None,
) -> str:
    """
    Generate the character image for a prompt.

    Args:
        prompt: Generation prompt
        original_image_url: Photo the figurine is based on
        settings: Application settings
        storage: When given, the generated asset is copied into the bucket

    Returns:
        URL of the generated image

    Raises:
        GenerationError: If the provider call, URL extraction or copy fails
    """
    if settings.ai_mock_mode:
        logger.info("Returning mock generated image", extra={"original_image_url": original_image_url})
        return original_image_url

    model = settings.image_model
    timeout = settings.generation_timeout_seconds
    start_time = time.time()
    logger.info("Generating character image", extra={"model": model})

    try:
        client = _replicate_client(settings)
        output = await asyncio.wait_for(
            asyncio.to_thread(
                client.run,
                model,
                input={
                    "prompt": prompt,
                    "input_image": original_image_url,
                    "output_format": "png",
                },
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        logger.error("Image generation timed out", extra={"model": model, "timeout": timeout})
        raise GenerationError(f"Image generation timed out after {timeout:g}s") from e
    except Exception as e:
        logger.error("Image generation failed", extra={"model": model, "error": str(e)})
        raise GenerationError(f"Image generation failed: {str(e)}") from e

    output_url = extract_output_url(output)

    if storage is not None:
        try:
            output_url = await _copy_to_storage(output_url, storage)
        except (httpx.HTTPError, UploadFailedError, ValidationError) as e:
            logger.error(
                "Failed to copy generated image to storage",
                extra={"output_url": output_url, "error": str(e)},
            )
            raise GenerationError(f"Failed to store generated image: {str(e)}") from e

    logger.info(
        "Character image generated",
        extra={"model": model, "generation_time": time.time() - start_time, "image_url": output_url},
    )
    return output_url
