"""
Roast copy generation.

Turns an image analysis into roast copy via the text gateway. Any provider
failure falls back to a canned roast built from the first feature.
"""

import json
from typing import Any, Dict

from openai import AsyncOpenAI

from shared.config import Settings
from shared.logging import get_logger
from shared.models.character import ImageAnalysisResult, RoastContent

logger = get_logger(__name__)


SYSTEM_PROMPT = """You write savage but clean comedy roasts for a caricature figurine generator.

You MUST respond with a valid JSON object in this exact format:
{
  "title": "A savage title (max 4 words)",
  "roast_text": "2-3 sentences roasting their features",
  "punchline": "A one-liner to finish them off",
  "figurine_name": "A savage nickname"
}

Roast style:
- Brutally honest, clever comparisons, Comedy Central Roast energy
- Target their most prominent features
- No swearing

They opted in to be roasted."""


def fallback_roast(analysis: ImageAnalysisResult) -> RoastContent:
    """Canned roast used when the provider is unavailable."""
    feature = analysis.features[0].name if analysis.features else "face"
    return RoastContent(
        title="The Roastee",
        roast_text=(
            f"Meet someone who's got character written all over their {feature}! "
            "Their distinctive features are so memorable, we had to immortalize them in collectible form."
        ),
        punchline="Now that's what I call unforgettable!",
        figurine_name="Unique One",
    )


def _user_prompt(analysis: ImageAnalysisResult) -> str:
    feature_descriptions = ", ".join(f"{f.name}: {f.value}" for f in analysis.features)
    traits = ", ".join(analysis.personality_traits) or "none noted"
    return (
        f"Roast this {analysis.gender} {analysis.age_range} person with these features: "
        f"{feature_descriptions}. Personality traits: {traits}. "
        f"Character style: {analysis.character_style}. Remember to output valid JSON!"
    )


def _parse_roast(content: str, analysis: ImageAnalysisResult) -> RoastContent:
    data: Dict[str, Any] = json.loads(content)
    fallback = fallback_roast(analysis)
    return RoastContent(
        title=data.get("title") or fallback.title,
        roast_text=data.get("roast_text") or fallback.roast_text,
        punchline=data.get("punchline") or fallback.punchline,
        figurine_name=data.get("figurine_name") or fallback.figurine_name,
    )


async def write_roast(analysis: ImageAnalysisResult, settings: Settings) -> RoastContent:
    """
    Write roast copy for an analyzed photo.

    Never raises for provider errors; returns the fallback roast instead.
    """
    if settings.ai_mock_mode:
        return fallback_roast(analysis)

    client = AsyncOpenAI(api_key=settings.ai_gateway_api_key, base_url=settings.ai_gateway_url)
    try:
        response = await client.chat.completions.create(
            model=settings.roast_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": _user_prompt(analysis)},
            ],
            temperature=0.9,
            max_tokens=400,
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content or ""
        return _parse_roast(content, analysis)
    except Exception as e:
        logger.warning(
            "Roast generation failed, using fallback roast",
            extra={"model": settings.roast_model, "error": str(e)},
        )
        return fallback_roast(analysis)
