"""
Record finalizer.

Writes the terminal outcome of a generation attempt into the character row.
Both outcomes merge into the stored generation_params so the analysis and
roast copy survive, and both are no-ops when the row already holds the same
terminal state.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from api_gateway.services.character_service import SITE_NAME, get_character_row
from shared.database import CHARACTERS_TABLE, DatabaseClient
from shared.logging import get_logger
from shared.models.character import Character

logger = get_logger("api_gateway.finalizer")


def _already_applied(row: Dict[str, Any], expected: Dict[str, Any]) -> bool:
    params = row.get("generation_params") or {}
    for key, value in expected.items():
        if key == "generated_image_url":
            if row.get(key) != value:
                return False
        elif params.get(key) != value:
            return False
    return True


def og_from_roast(params: Dict[str, Any]) -> Optional[Dict[str, str]]:
    """Open Graph copy derived from the stored roast, if there is one."""
    roast = params.get("roast_content")
    if not roast:
        return None
    return {
        "og_title": f"{roast['title']}: {roast['figurine_name']} | {SITE_NAME}",
        "og_description": f"{roast['roast_text']} {roast['punchline']}",
    }


async def _write(db: DatabaseClient, row: Dict[str, Any], updates: Dict[str, Any]) -> Character:
    await db.table(CHARACTERS_TABLE).update(updates).eq("id", row["id"]).execute()
    return Character.model_validate({**row, **updates})


async def finalize_success(
    db: DatabaseClient,
    character_id: str,
    generated_image_url: str,
    extra_params: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Character:
    """
    Mark a character completed with its generated image.

    Args:
        db: Database client
        character_id: Character to finalize
        generated_image_url: URL of the generated image
        extra_params: Additional generation_params keys (attempt, previous URL)
        now: Clock override

    Raises:
        NotFoundError: If the character does not exist
        PersistenceError: If the read or write fails
    """
    row = await get_character_row(db, character_id)
    extra_params = extra_params or {}

    if _already_applied(row, {"status": "completed", "generated_image_url": generated_image_url, **extra_params}):
        logger.info("Character already completed with this image", extra={"character_id": character_id})
        return Character.model_validate(row)

    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    params = dict(row.get("generation_params") or {})
    params.pop("error", None)
    params.pop("failed_at", None)
    params.update(extra_params)
    params.update({"status": "completed", "generated_at": timestamp})

    updates: Dict[str, Any] = {
        "generated_image_url": generated_image_url,
        "generation_params": params,
        "updated_at": timestamp,
    }
    updates.update(og_from_roast(params) or {})

    character = await _write(db, row, updates)
    logger.info(
        "Character finalized as completed",
        extra={"character_id": character_id, "attempt": params.get("attempt")}
    )
    return character


async def finalize_failure(
    db: DatabaseClient,
    character_id: str,
    error: str,
    extra_params: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Character:
    """
    Mark a character failed and clear its generated image.

    Raises:
        NotFoundError: If the character does not exist
        PersistenceError: If the read or write fails
    """
    row = await get_character_row(db, character_id)
    extra_params = extra_params or {}
    error = error or "Image generation failed"

    if _already_applied(row, {"status": "failed", "error": error, "generated_image_url": None, **extra_params}):
        logger.info("Character already failed with this error", extra={"character_id": character_id})
        return Character.model_validate(row)

    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    params = dict(row.get("generation_params") or {})
    params.update(extra_params)
    params.update({"status": "failed", "error": error, "failed_at": timestamp})

    character = await _write(
        db,
        row,
        {
            "generated_image_url": None,
            "generation_params": params,
            "updated_at": timestamp,
        },
    )
    logger.warning(
        "Character finalized as failed",
        extra={"character_id": character_id, "error": error, "attempt": params.get("attempt")}
    )
    return character
