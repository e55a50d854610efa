"""
Short URL data model.
"""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ShortUrl(BaseModel):
    """Compact share code pointing at a character page."""

    model_config = ConfigDict(extra="ignore")

    short_code: str
    original_url: str
    character_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    click_count: int = Field(default=0, ge=0)
    created_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        """True once expires_at lies strictly in the past."""
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at < now
