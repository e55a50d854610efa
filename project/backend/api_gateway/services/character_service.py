"""
Character record service.

Creates and loads Character rows and maintains the view counter.
"""

import re
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from api_gateway.dependencies import Identity
from shared.database import CHARACTERS_TABLE, DatabaseClient
from shared.errors import NotFoundError
from shared.logging import get_logger
from shared.models.character import Character, GenerationParams, ImageAnalysisResult, RoastContent
from shared.models.image import ImageUpload

logger = get_logger("api_gateway.characters")

SITE_NAME = "Roast Me Characters"
RECENT_CHARACTERS_LIMIT = 12
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "-", value.lower())


def _base36(value: int) -> str:
    digits = ""
    while True:
        value, remainder = divmod(value, 36)
        digits = _BASE36[remainder] + digits
        if value == 0:
            return digits


def create_seo_slug(analysis: ImageAnalysisResult, now_ms: Optional[int] = None) -> str:
    """Slug from the style and first two feature names plus a base36 timestamp."""
    feature_slug = "-".join(_slugify(f.name) for f in analysis.features[:2])
    stamp = _base36(now_ms if now_ms is not None else int(time.time() * 1000))
    slug = f"{_slugify(analysis.character_style)}-roast-{feature_slug}-{stamp}"
    return re.sub(r"-{2,}", "-", slug)


def build_og_metadata(analysis: ImageAnalysisResult) -> Tuple[str, str]:
    """Open Graph title and description for a freshly created character."""
    feature_names = ", ".join(f.name for f in analysis.features)
    personality = ", ".join(analysis.personality_traits[:3])
    title = f"Hilarious {analysis.character_style} Roast Figurine | {SITE_NAME}"
    description = (
        f"Get roasted! This comedic {analysis.character_style} caricature figurine hilariously "
        f"exaggerates {feature_names}. Personality: {personality}. Premium 1/7 scale roasting collectible!"
    )
    return title, description


async def get_character_row(db: DatabaseClient, character_id: str) -> Dict[str, Any]:
    """
    Load the raw character row.

    Raises:
        NotFoundError: If no character has this id
        PersistenceError: If the lookup fails
    """
    result = await db.table(CHARACTERS_TABLE).select("*").eq("id", character_id).execute()
    if not result.data:
        raise NotFoundError("Character not found", character_id=character_id)
    return result.data[0]


async def get_character(db: DatabaseClient, character_id: str) -> Character:
    return Character.model_validate(await get_character_row(db, character_id))


async def get_character_by_slug(db: DatabaseClient, slug: str) -> Character:
    """
    Load a public character by its SEO slug.

    Raises:
        NotFoundError: If no public character has this slug
        PersistenceError: If the lookup fails
    """
    result = await (
        db.table(CHARACTERS_TABLE)
        .select("*")
        .eq("seo_slug", slug)
        .eq("public", True)
        .limit(1)
        .execute()
    )
    if not result.data:
        raise NotFoundError("Character not found")
    return Character.model_validate(result.data[0])


async def get_recent_characters(db: DatabaseClient, limit: int = RECENT_CHARACTERS_LIMIT) -> List[Character]:
    """Newest public characters that finished with an image, for the gallery."""
    result = await (
        db.table(CHARACTERS_TABLE)
        .select("*")
        .eq("public", True)
        .is_not_null("generated_image_url")
        .order("created_at", desc=True)
        .limit(limit)
        .execute()
    )
    return [Character.model_validate(row) for row in result.data or []]


async def create_character(
    db: DatabaseClient,
    identity: Identity,
    upload: ImageUpload,
    analysis: ImageAnalysisResult,
    roast_content: RoastContent,
) -> Character:
    """
    Insert a character in status=processing for a freshly analyzed upload.

    Raises:
        PersistenceError: If the insert fails
    """
    now = datetime.now(timezone.utc).isoformat()
    params = GenerationParams(
        **analysis.model_dump(),
        roast_content=roast_content,
        status="processing",
        attempt=1,
    )
    og_title, og_description = build_og_metadata(analysis)
    record = {
        "id": str(uuid.uuid4()),
        "user_id": identity.user_id,
        "anon_id": None if identity.user_id else identity.anon_id,
        "image_id": upload.id,
        "original_image_url": upload.file_url,
        "generated_image_url": None,
        "generation_params": params.model_dump(mode="json", exclude_none=True),
        "og_title": og_title,
        "og_description": og_description,
        "seo_slug": create_seo_slug(analysis),
        "public": True,
        "views_count": 0,
        "created_at": now,
        "updated_at": now,
    }
    result = await db.table(CHARACTERS_TABLE).insert(record).execute()
    row = result.data[0] if result.data else record
    logger.info("Character created", extra={"character_id": row["id"], "image_id": upload.id})
    return Character.model_validate(row)


async def increment_views(db: DatabaseClient, character_id: str) -> bool:
    """
    Bump views_count through the atomic RPC.

    Runs after the response is sent; failures are logged and dropped.
    """
    try:
        await db.rpc("increment_view_count", {"character_id": character_id})
        return True
    except Exception as e:
        logger.warning(
            "Failed to increment character views",
            extra={"character_id": character_id, "error": str(e)}
        )
        return False
