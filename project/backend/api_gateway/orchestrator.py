"""
Pipeline orchestration logic.

Runs ingress, analysis, roast, character creation, credit debit, generation
and finalization as one sequential chain inside the request.
"""

from typing import Optional, Tuple

from api_gateway.dependencies import Identity
from api_gateway.services.character_service import create_character
from api_gateway.services.credits_service import debit_generation, ensure_can_generate
from api_gateway.services.finalizer import finalize_failure, finalize_success
from api_gateway.services.ingress_service import UploadedImage, ingest_image, set_upload_status
from modules.character_generator import build_character_prompt, generate_character_image
from modules.feature_analyzer import analyze_image_features
from modules.roast_writer import write_roast
from shared.config import Settings
from shared.database import DatabaseClient
from shared.errors import AnalysisError, GenerationError
from shared.logging import get_logger, set_character_id
from shared.models.character import Character, ImageAnalysisResult
from shared.models.image import ImageUpload
from shared.storage import StorageClient

logger = get_logger(__name__)


async def ingest_and_analyze(
    identity: Identity,
    db: DatabaseClient,
    storage: StorageClient,
    settings: Settings,
    file: Optional[UploadedImage] = None,
    image_url: Optional[str] = None,
) -> Tuple[ImageUpload, ImageAnalysisResult]:
    """
    Store the photo and analyze it.

    The upload ends completed when analysis succeeds and failed otherwise.

    Raises:
        ValidationError, UploadFailedError, PersistenceError: From ingress
        AnalysisError: If analysis fails (after the upload is marked failed)
    """
    upload = await ingest_image(identity, db, storage, file=file, image_url=image_url)

    try:
        analysis = await analyze_image_features(upload.file_url, settings)
    except AnalysisError:
        await set_upload_status(db, upload.id, "failed")
        raise

    await set_upload_status(db, upload.id, "completed")
    upload = upload.model_copy(update={"status": "completed"})
    return upload, analysis


async def run_generation_pipeline(
    identity: Identity,
    db: DatabaseClient,
    storage: StorageClient,
    settings: Settings,
    file: Optional[UploadedImage] = None,
    image_url: Optional[str] = None,
) -> Character:
    """
    Execute the full generation chain for one photo.

    Credit debit and character creation are separate writes; a debit failure
    is logged and does not undo the character.

    Returns:
        Finalized character (completed, or failed when generation failed)

    Raises:
        InsufficientCreditsError: If the identity is out of credits
        ValidationError, UploadFailedError, PersistenceError, AnalysisError:
            If a step before character creation fails
    """
    await ensure_can_generate(db, identity.key, settings)

    upload, analysis = await ingest_and_analyze(
        identity, db, storage, settings, file=file, image_url=image_url
    )
    roast_content = await write_roast(analysis, settings)

    character = await create_character(db, identity, upload, analysis, roast_content)
    set_character_id(character.id)

    await debit_generation(db, identity.key, settings)

    prompt = build_character_prompt(analysis, roast_content, attempt=1)
    try:
        generated_image_url = await generate_character_image(
            prompt,
            upload.file_url,
            settings,
            storage=storage,
        )
    except GenerationError as e:
        logger.error(
            "Character generation failed",
            extra={"character_id": character.id, "error": e.message}
        )
        return await finalize_failure(db, character.id, e.message)

    return await finalize_success(db, character.id, generated_image_url)
