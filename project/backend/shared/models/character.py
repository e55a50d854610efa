"""
Character data models.

Defines the vision analysis value objects, roast copy, generation parameters
and the persisted Character record.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

CharacterStyle = Literal["cartoon", "realistic", "anime", "pixar"]
Gender = Literal["male", "female", "non-binary", "unknown"]
AgeRange = Literal["child", "teen", "young_adult", "adult", "middle_aged", "senior", "unknown"]
GenerationStatus = Literal["pending", "processing", "completed", "failed"]


class ImageFeature(BaseModel):
    """A single roastable feature detected in the photo."""

    name: str
    value: str
    # Both scores are on the vision prompt's 1-10 scale; accepted as-is
    confidence: float
    exaggeration_factor: float


class ImageAnalysisResult(BaseModel):
    """Normalized vision analysis of an uploaded photo."""

    features: List[ImageFeature] = Field(min_length=1)
    character_style: CharacterStyle
    dominant_color: str
    personality_traits: List[str] = Field(default_factory=list)
    gender: Gender = "unknown"
    age_range: AgeRange = "unknown"


class RoastContent(BaseModel):
    """Roast copy shown alongside the generated character."""

    title: str
    roast_text: str
    punchline: str
    figurine_name: str


class GenerationParams(ImageAnalysisResult):
    """
    Analysis plus generation state, stored as JSON on the character row.

    Unknown keys written by older rows are kept so partial updates never drop data.
    """

    model_config = ConfigDict(extra="allow")

    roast_content: Optional[RoastContent] = None
    status: GenerationStatus = "pending"
    error: Optional[str] = None
    attempt: int = 1
    generated_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    previous_generated_image_url: Optional[str] = None

    def to_analysis(self) -> ImageAnalysisResult:
        """Recover the analysis the character was created from."""
        return ImageAnalysisResult(
            features=self.features,
            character_style=self.character_style,
            dominant_color=self.dominant_color,
            personality_traits=self.personality_traits,
            gender=self.gender,
            age_range=self.age_range,
        )


class Character(BaseModel):
    """Generated character record."""

    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: Optional[str] = None
    anon_id: Optional[str] = None
    image_id: Optional[str] = None
    original_image_url: str
    generated_image_url: Optional[str] = None
    generation_params: GenerationParams
    og_title: str
    og_description: str
    seo_slug: Optional[str] = None
    public: bool = True
    views_count: int = 0
    short_code: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def check_single_owner(self) -> "Character":
        """Exactly one of user_id / anon_id identifies the creator."""
        if (self.user_id is None) == (self.anon_id is None):
            raise ValueError("Exactly one of user_id or anon_id must be set")
        return self

    @property
    def status(self) -> GenerationStatus:
        return self.generation_params.status

    def to_api(self) -> Dict[str, Any]:
        """JSON-ready representation for API responses."""
        return self.model_dump(mode="json")
