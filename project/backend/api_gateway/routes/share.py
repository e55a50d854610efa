"""
Share link creation route.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from api_gateway.dependencies import get_db
from api_gateway.services.short_url_service import create_short_url, share_url
from shared.config import Settings, get_settings
from shared.database import DatabaseClient

router = APIRouter()


@router.post("/share")
async def create_share_link(
    characterId: Optional[str] = Body(default=None, embed=True),
    db: DatabaseClient = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Create (or reuse) a short link for a character page.
    """
    if not characterId:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": "Character ID is required"}
        )

    short_url = await create_short_url(db, settings, characterId)
    return {
        "shortCode": short_url.short_code,
        "shortUrl": share_url(settings, short_url.short_code),
    }
