"""
Retry trigger.

Re-runs image generation for an existing character with the next attempt's
prompt variation, then records the outcome.
"""

from typing import Optional

from api_gateway.services.character_service import get_character
from api_gateway.services.finalizer import finalize_failure, finalize_success
from modules.character_generator import build_character_prompt, generate_character_image
from shared.config import Settings
from shared.database import DatabaseClient
from shared.errors import GenerationError, RetryFailedError
from shared.logging import get_logger, set_character_id
from shared.models.character import Character
from shared.storage import StorageClient

logger = get_logger("api_gateway.retry")


async def retry_generation(
    db: DatabaseClient,
    settings: Settings,
    character_id: str,
    storage: Optional[StorageClient] = None,
) -> Character:
    """
    Regenerate the image for a character.

    Any prior status is accepted. When the character had already completed,
    the old URL is kept in previous_generated_image_url whatever the outcome.

    Returns:
        The completed character

    Raises:
        NotFoundError: If the character does not exist
        RetryFailedError: If generation fails (the character is finalized as failed first)
    """
    set_character_id(character_id)
    character = await get_character(db, character_id)
    params = character.generation_params
    attempt = params.attempt + 1

    extra_params = {"attempt": attempt}
    if params.status == "completed" and character.generated_image_url:
        logger.warning(
            "Retrying a completed character; the current image will be replaced",
            extra={"character_id": character_id, "previous_image_url": character.generated_image_url}
        )
        extra_params["previous_generated_image_url"] = character.generated_image_url

    prompt = build_character_prompt(params.to_analysis(), params.roast_content, attempt)
    logger.info("Retrying character generation", extra={"character_id": character_id, "attempt": attempt})

    try:
        image_url = await generate_character_image(
            prompt,
            character.original_image_url,
            settings,
            storage=storage,
        )
    except GenerationError as e:
        message = f"Retry attempt {attempt} failed: {e.message}"
        await finalize_failure(db, character_id, message, extra_params=extra_params)
        raise RetryFailedError(message, character_id=character_id) from e

    return await finalize_success(db, character_id, image_url, extra_params=extra_params)
