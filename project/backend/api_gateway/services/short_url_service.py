"""
Share link service.

Allocates short codes for character pages and tracks their clicks.
"""

import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Optional

from api_gateway.services.character_service import get_character
from shared.config import Settings
from shared.database import CHARACTERS_TABLE, SHORT_URLS_TABLE, DatabaseClient
from shared.errors import PersistenceError
from shared.logging import get_logger
from shared.models.short_url import ShortUrl

logger = get_logger("api_gateway.short_urls")

CODE_ALPHABET = string.ascii_letters + string.digits
CODE_LENGTH = 7
MAX_CODE_ATTEMPTS = 5


def generate_short_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def _is_unique_violation(error: Exception) -> bool:
    message = str(error).lower()
    return "23505" in message or "duplicate" in message or "unique" in message


def character_page_url(settings: Settings, character_id: str) -> str:
    return f"{settings.share_base_url}/character/{character_id}"


def share_url(settings: Settings, short_code: str) -> str:
    return f"{settings.share_base_url}/s/{short_code}"


async def get_short_url(db: DatabaseClient, short_code: str) -> Optional[ShortUrl]:
    """
    Look up a short URL by code.

    Raises:
        PersistenceError: If the lookup fails
    """
    result = await db.table(SHORT_URLS_TABLE).select("*").eq("short_code", short_code).execute()
    if not result.data:
        return None
    return ShortUrl.model_validate(result.data[0])


async def create_short_url(
    db: DatabaseClient,
    settings: Settings,
    character_id: str,
    ttl_days: Optional[int] = None,
) -> ShortUrl:
    """
    Create (or reuse) the short URL for a character page.

    Args:
        db: Database client
        settings: Application settings
        character_id: Character to link to
        ttl_days: Lifetime in days; falls back to SHORT_URL_TTL_DAYS, None never expires

    Raises:
        NotFoundError: If the character does not exist
        PersistenceError: If no unique code could be stored
    """
    character = await get_character(db, character_id)
    if character.short_code:
        existing = await get_short_url(db, character.short_code)
        if existing and not existing.is_expired(datetime.now(timezone.utc)):
            return existing

    ttl_days = ttl_days if ttl_days is not None else settings.short_url_ttl_days
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(days=ttl_days) if ttl_days else None

    for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
        short_url = ShortUrl(
            short_code=generate_short_code(),
            original_url=character_page_url(settings, character_id),
            character_id=character_id,
            expires_at=expires_at,
            click_count=0,
            created_at=now,
        )
        try:
            await db.table(SHORT_URLS_TABLE).insert(short_url.model_dump(mode="json")).execute()
        except PersistenceError as e:
            if not _is_unique_violation(e):
                raise
            logger.warning(
                "Short code collision, drawing a new code",
                extra={"character_id": character_id, "attempt": attempt}
            )
            continue

        await db.table(CHARACTERS_TABLE).update(
            {"short_code": short_url.short_code}
        ).eq("id", character_id).execute()
        logger.info(
            "Short URL created",
            extra={"character_id": character_id, "short_code": short_url.short_code}
        )
        return short_url

    raise PersistenceError(
        f"Could not allocate a unique short code after {MAX_CODE_ATTEMPTS} attempts",
        character_id=character_id,
    )


async def increment_clicks(db: DatabaseClient, short_code: str) -> bool:
    """
    Bump click_count through the atomic RPC.

    Runs after the redirect is sent; failures are logged and dropped.
    """
    try:
        await db.rpc("increment_short_url_clicks", {"code": short_code})
        return True
    except Exception as e:
        logger.warning(
            "Failed to increment short URL clicks",
            extra={"short_code": short_code, "error": str(e)}
        )
        return False
