"""
Vision integration for feature analysis.

Calls an OpenAI-compatible vision model once in JSON mode and normalizes the
result into an ImageAnalysisResult. Mock mode returns a fixed analysis.
"""

import json
from typing import Any, Dict

from openai import AsyncOpenAI

from shared.config import Settings
from shared.errors import AnalysisError
from shared.logging import get_logger
from shared.models.character import ImageAnalysisResult
from .normalizer import (
    normalize_age_range,
    normalize_features,
    normalize_gender,
    normalize_style,
    normalize_traits,
)

logger = get_logger(__name__)


MOCK_ANALYSIS: Dict[str, Any] = {
    "features": [
        {
            "name": "Eyes",
            "value": "Distinctive eyes perfect for comedic exaggeration",
            "confidence": 8,
            "exaggeration_factor": 7,
        },
        {
            "name": "Nose",
            "value": "Prominent nose ready for hilarious oversizing",
            "confidence": 9,
            "exaggeration_factor": 8,
        },
        {
            "name": "Expression",
            "value": "Unique facial expression perfect for caricature",
            "confidence": 8,
            "exaggeration_factor": 7,
        },
    ],
    "character_style": "pixar",
    "dominant_color": "vibrant",
    "personality_traits": ["roastable", "comedic", "exaggerated"],
    "gender": "unknown",
    "age_range": "adult",
}

SYSTEM_PROMPT = (
    "You analyze a single photo of a person for a caricature figurine generator and return JSON.\n"
    "Return ONLY valid JSON. Do not include explanations.\n"
    "Identify 3-5 distinctive features that ACTUALLY EXIST in the image and would be funny to exaggerate "
    "(facial features, hair, accessories, expression, clothing). Do not invent features.\n"
    "Use these keys: features (array of objects with feature_name, feature_value, "
    "confidence 1-10, exaggeration_factor 1-9), character_style (cartoon, realistic, anime or pixar), "
    "dominant_color, personality_traits (array of strings), "
    "gender (male, female, non-binary or unknown), "
    "age_range (child, teen, young_adult, adult, middle_aged, senior or unknown)."
)

USER_INSTRUCTIONS = (
    "Analyze this image and identify the most distinctive features to exaggerate "
    "for a comedic caricature figurine. Output JSON with the keys specified."
)


def _gateway_client(settings: Settings) -> AsyncOpenAI:
    return AsyncOpenAI(api_key=settings.ai_gateway_api_key, base_url=settings.ai_gateway_url)


async def _call_vision_model(image_url: str, settings: Settings) -> Dict[str, Any]:
    """
    Call the vision model to extract roastable features.

    Returns:
        Parsed JSON object from the model

    Raises:
        AnalysisError: If the call fails or the payload is not a JSON object
    """
    client = _gateway_client(settings)
    messages = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": USER_INSTRUCTIONS},
                {"type": "image_url", "image_url": {"url": image_url}},
            ],
        },
    ]
    try:
        response = await client.chat.completions.create(
            model=settings.vision_model,
            messages=messages,
            temperature=0.2,
            max_tokens=800,
            response_format={"type": "json_object"},
        )
    except Exception as e:
        logger.error(
            "Vision model call failed",
            extra={"image_url": image_url, "model": settings.vision_model, "error": str(e)},
        )
        raise AnalysisError(f"Vision analysis failed: {str(e)}") from e

    content = (response.choices[0].message.content or "").strip() if response.choices else ""
    if not content:
        raise AnalysisError("Vision analysis returned an empty response")

    try:
        raw = json.loads(content.strip("`"))
    except json.JSONDecodeError as e:
        raise AnalysisError("Vision analysis returned invalid JSON") from e

    if not isinstance(raw, dict) or not raw:
        raise AnalysisError("Vision analysis returned an empty JSON object")
    return raw


def build_analysis(raw: Dict[str, Any]) -> ImageAnalysisResult:
    """
    Normalize a raw provider payload into an ImageAnalysisResult.

    Raises:
        AnalysisError: If no usable feature is present
    """
    features = normalize_features(raw.get("features"))
    if not features:
        raise AnalysisError("Vision analysis returned no features")

    return ImageAnalysisResult(
        features=features,
        character_style=normalize_style(str(raw.get("character_style") or "")),
        dominant_color=str(raw.get("dominant_color") or "vibrant"),
        personality_traits=normalize_traits(raw.get("personality_traits")),
        gender=normalize_gender(str(raw.get("gender") or "")),
        age_range=normalize_age_range(str(raw.get("age_range") or "")),
    )


async def analyze_image_features(image_url: str, settings: Settings) -> ImageAnalysisResult:
    """
    Analyze an uploaded photo and return its normalized features.

    Args:
        image_url: Publicly reachable URL of the photo
        settings: Application settings

    Returns:
        ImageAnalysisResult with at least one feature

    Raises:
        AnalysisError: If the provider fails or returns an unusable payload
    """
    if settings.ai_mock_mode:
        logger.info("Returning mock analysis", extra={"image_url": image_url})
        return build_analysis(MOCK_ANALYSIS)

    raw = await _call_vision_model(image_url, settings)
    analysis = build_analysis(raw)
    logger.info(
        "Image analyzed",
        extra={
            "image_url": image_url,
            "feature_count": len(analysis.features),
            "character_style": analysis.character_style,
        },
    )
    return analysis
