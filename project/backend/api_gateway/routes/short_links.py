"""
Short link redirect route.
"""

from datetime import datetime, timezone
from typing import NamedTuple, Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import RedirectResponse

from api_gateway.dependencies import get_db
from api_gateway.services.short_url_service import get_short_url, increment_clicks
from shared.config import Settings, get_settings
from shared.database import DatabaseClient
from shared.logging import get_logger
from shared.models.short_url import ShortUrl

logger = get_logger(__name__)

router = APIRouter()


class Resolution(NamedTuple):
    """Redirect decision for a short code. location None means the home page."""

    status_code: int
    location: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status_code == 302


def resolve_short_url(record: Optional[ShortUrl], now: datetime) -> Resolution:
    """
    Decide the redirect for a looked-up short URL.

    Missing records give 404, records whose expires_at is before now give 410,
    everything else redirects to original_url with 302.
    """
    if record is None:
        return Resolution(404)
    if record.is_expired(now):
        return Resolution(410)
    return Resolution(302, record.original_url)


@router.get("/{short_code}")
async def redirect_short_url(
    short_code: str,
    background_tasks: BackgroundTasks,
    db: DatabaseClient = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Redirect a short code to its character page.
    """
    home_url = f"{settings.frontend_url}/"
    try:
        record = await get_short_url(db, short_code)
    except Exception as e:
        logger.error("Error handling short URL redirect", exc_info=e, extra={"short_code": short_code})
        return RedirectResponse(url=home_url, status_code=500)

    resolution = resolve_short_url(record, datetime.now(timezone.utc))
    if resolution.is_active:
        background_tasks.add_task(increment_clicks, db, short_code)
    return RedirectResponse(url=resolution.location or home_url, status_code=resolution.status_code)
