"""
Prompt synthesis for character image generation.

Combines the image analysis and roast copy into an image-editing prompt for a
collectible caricature figurine of the person in the input photo.
"""

from typing import Optional

from shared.errors import ValidationError
from shared.models.character import ImageAnalysisResult, RoastContent


def describe_features(analysis: ImageAnalysisResult) -> str:
    """Feature list with each feature's exaggeration factor."""
    return ", ".join(
        f"{f.name}: {f.value} (exaggeration: {f.exaggeration_factor:g}/10)"
        for f in analysis.features
    )


def _identity_block(analysis: ImageAnalysisResult) -> str:
    return (
        "PERSON IDENTITY:\n"
        f"- Gender: {analysis.gender} (ensure the figurine represents this gender)\n"
        f"- Age: {analysis.age_range} (use age-appropriate proportions and features)\n"
        f"- Style: {analysis.character_style} caricature\n"
        "\n"
        "REPRESENT THE ACTUAL PERSON:\n"
        "- The figurine must look like the SPECIFIC PERSON from the input image\n"
        "- Maintain their hair, skin tone, clothing style and overall appearance\n"
        "- Only exaggerate the features listed above\n"
        "- DO NOT add features they don't have"
    )


def _packaging_line(roast_content: Optional[RoastContent]) -> str:
    if roast_content is None:
        return "- Professional caricature branding on the packaging"
    return (
        f'- Packaging displays "{roast_content.title}" as the main title\n'
        f'- Box shows "{roast_content.figurine_name}" as the product name'
    )


def _traits(analysis: ImageAnalysisResult) -> str:
    return ", ".join(analysis.personality_traits) or "playful"


def _base_prompt(analysis: ImageAnalysisResult, roast_content: Optional[RoastContent]) -> str:
    return (
        "Create a 1/7 scale commercialized figurine of the SPECIFIC PERSON from the input image "
        f"with these exaggerated features: {describe_features(analysis)}, "
        "in a realistic style, in a real environment.\n\n"
        f"{_identity_block(analysis)}\n\n"
        "Scene Setup:\n"
        "- The figurine is placed on a modern desk\n"
        "- Round transparent acrylic base under the figurine\n"
        "- Next to the figurine is a high-quality collectible toy packaging box\n"
        f"{_packaging_line(roast_content)}\n\n"
        "Figurine Details:\n"
        f"- {analysis.dominant_color} color scheme\n"
        f"- Personality: {_traits(analysis)} reflected in the pose\n\n"
        "Overall Quality: Museum-quality collectible figure photography with professional lighting."
    )


def _caricature_variation(analysis: ImageAnalysisResult, roast_content: Optional[RoastContent]) -> str:
    return (
        "Create a HILARIOUS 1/7 scale figurine of the SPECIFIC PERSON from the input image "
        f"with these exaggerated features: {describe_features(analysis)}, placed on a modern desk.\n\n"
        f"{_identity_block(analysis)}\n\n"
        "CARICATURE STYLE:\n"
        "- MASSIVELY exaggerate only their existing distinctive features\n"
        "- Think political cartoon caricature in 3D form\n\n"
        "SCENE SETUP:\n"
        "- Premium collectible figurine on a transparent acrylic base\n"
        "- Desk environment with realistic lighting\n"
        f"{_packaging_line(roast_content)}\n\n"
        f"- {analysis.dominant_color} color scheme, personality: {_traits(analysis)}"
    )


def _packaging_variation(analysis: ImageAnalysisResult, roast_content: Optional[RoastContent]) -> str:
    return (
        "Generate a COMEDIC premium 1/7 scale figurine of the SPECIFIC PERSON from the input image "
        f"featuring: {describe_features(analysis)}.\n\n"
        f"{_identity_block(analysis)}\n\n"
        "PACKAGING FOCUS:\n"
        "- Collectible box in the foreground with flat illustrated artwork of this person\n"
        "- Figurine standing beside the box on a glossy display shelf\n"
        f"{_packaging_line(roast_content)}\n\n"
        f"- {analysis.character_style} caricature with a {analysis.dominant_color} palette"
    )


def _studio_variation(analysis: ImageAnalysisResult, roast_content: Optional[RoastContent]) -> str:
    return (
        "Studio product photo of a 1/7 scale caricature figurine of the SPECIFIC PERSON "
        f"from the input image, exaggerating: {describe_features(analysis)}.\n\n"
        f"{_identity_block(analysis)}\n\n"
        "STUDIO SETUP:\n"
        "- Seamless backdrop with soft three-point lighting\n"
        "- Close three-quarter camera angle on the figurine\n"
        f"{_packaging_line(roast_content)}\n\n"
        f"- Personality: {_traits(analysis)}"
    )


RETRY_VARIATIONS = [_caricature_variation, _packaging_variation, _studio_variation]


def build_character_prompt(
    analysis: ImageAnalysisResult,
    roast_content: Optional[RoastContent] = None,
    attempt: int = 1,
) -> str:
    """
    Build the generation prompt.

    Attempt 1 uses the base prompt; later attempts rotate through alternative
    compositions so a retry does not repeat the exact same request.

    Raises:
        ValidationError: If attempt is lower than 1
    """
    if attempt < 1:
        raise ValidationError(f"Invalid attempt number: {attempt}")
    if attempt == 1:
        return _base_prompt(analysis, roast_content)
    variation = RETRY_VARIATIONS[(attempt - 2) % len(RETRY_VARIATIONS)]
    return variation(analysis, roast_content)
