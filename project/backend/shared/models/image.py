"""
Image upload data model.
"""

from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field

UploadStatus = Literal["pending", "processing", "completed", "failed"]


class ImageUpload(BaseModel):
    """Original photo as stored by image ingress."""

    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str = Field(description="Identity key of the uploader")
    file_url: str
    file_name: str
    file_size: int = Field(default=0, ge=0, description="Bytes; 0 when ingested from a URL")
    mime_type: str
    status: UploadStatus
    uploaded_at: datetime
