"""
Data models for the character generation pipeline.

This module exports all Pydantic models used across pipeline modules.
"""

from .image import ImageUpload, UploadStatus
from .character import (
    AgeRange,
    Character,
    CharacterStyle,
    Gender,
    GenerationParams,
    GenerationStatus,
    ImageAnalysisResult,
    ImageFeature,
    RoastContent,
)
from .short_url import ShortUrl
from .credits import CreditPackage, CreditTransaction, Plan, UserProfile

__all__ = [
    # Image models
    "ImageUpload",
    "UploadStatus",
    # Character models
    "AgeRange",
    "Character",
    "CharacterStyle",
    "Gender",
    "GenerationParams",
    "GenerationStatus",
    "ImageAnalysisResult",
    "ImageFeature",
    "RoastContent",
    # Share models
    "ShortUrl",
    # Credit models
    "CreditPackage",
    "CreditTransaction",
    "Plan",
    "UserProfile",
]
