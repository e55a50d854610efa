"""
Character status, public view and retry routes.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, status
from fastapi.responses import JSONResponse

from api_gateway.dependencies import get_db, get_storage
from api_gateway.services.character_service import (
    get_character,
    get_character_by_slug,
    get_recent_characters,
    increment_views,
)
from api_gateway.services.retry_service import retry_generation
from shared.config import Settings, get_settings
from shared.database import DatabaseClient
from shared.errors import NotFoundError, RetryFailedError
from shared.logging import get_logger
from shared.storage import StorageClient

logger = get_logger(__name__)

router = APIRouter()


@router.get("/character-status/{character_id}")
async def get_character_status(
    character_id: str,
    db: DatabaseClient = Depends(get_db),
):
    """
    Poll a character's generation status.
    """
    try:
        character = await get_character(db, character_id)
    except NotFoundError:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Character not found"})
    except Exception as e:
        logger.error("Failed to fetch character status", exc_info=e, extra={"character_id": character_id})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to fetch character status"}
        )
    return {"character": character.to_api()}


@router.get("/characters/recent")
async def list_recent_characters(db: DatabaseClient = Depends(get_db)):
    """
    Gallery of the newest public characters with a generated image.
    """
    characters = await get_recent_characters(db)
    return {"characters": [character.to_api() for character in characters]}


@router.get("/characters/slug/{slug}")
async def view_character_by_slug(
    slug: str,
    background_tasks: BackgroundTasks,
    db: DatabaseClient = Depends(get_db),
):
    """
    Public character page data by SEO slug; counts a view after the response is sent.
    """
    character = await get_character_by_slug(db, slug)
    background_tasks.add_task(increment_views, db, character.id)
    return {"character": character.to_api()}


@router.get("/characters/{character_id}")
async def view_character(
    character_id: str,
    background_tasks: BackgroundTasks,
    db: DatabaseClient = Depends(get_db),
):
    """
    Public character page data; counts a view after the response is sent.
    """
    character = await get_character(db, character_id)
    if not character.public:
        raise NotFoundError("Character not found", character_id=character_id)
    background_tasks.add_task(increment_views, db, character_id)
    return {"character": character.to_api()}


@router.post("/retry-generation")
async def retry_generation_route(
    characterId: Optional[str] = Body(default=None, embed=True),
    db: DatabaseClient = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """
    Regenerate a character's image.
    """
    if not characterId:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": "Character ID is required"}
        )

    try:
        character = await retry_generation(db, settings, characterId, storage=storage)
    except NotFoundError as e:
        return JSONResponse(status_code=e.status_code, content={"success": False, "error": e.message})
    except RetryFailedError as e:
        return JSONResponse(status_code=e.status_code, content={"success": False, "error": e.message})
    except Exception as e:
        logger.error("Retry generation failed", exc_info=e, extra={"character_id": characterId})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Failed to retry generation"}
        )

    return {
        "success": True,
        "imageUrl": character.generated_image_url,
        "message": f"Character regenerated successfully on attempt {character.generation_params.attempt}",
    }
