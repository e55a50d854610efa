"""
Attribute normalization for feature analysis.

Maps free-form vision outputs to the strict enumerations of ImageAnalysisResult.
"""

from typing import Any, Dict, List, Optional

from shared.models.character import AgeRange, CharacterStyle, Gender, ImageFeature


def normalize_style(raw: str) -> CharacterStyle:
    v = (raw or "").strip().lower()
    if "pixar" in v or "3d" in v:
        return "pixar"
    if "anime" in v or "manga" in v:
        return "anime"
    if "real" in v or "photo" in v:
        return "realistic"
    # cartoon, caricature, abstract and anything unrecognized
    return "cartoon"


def normalize_gender(raw: str) -> Gender:
    v = (raw or "").strip().lower()
    if v in {"male", "man", "masculine"}:
        return "male"
    if v in {"female", "woman", "feminine"}:
        return "female"
    if v in {"non-binary", "nonbinary", "non_binary", "androgynous"}:
        return "non-binary"
    return "unknown"


def normalize_age_range(raw: str) -> AgeRange:
    v = (raw or "").strip().lower().replace("-", "_").replace(" ", "_")
    mapping = {
        "child": "child",
        "kid": "child",
        "teen": "teen",
        "teenager": "teen",
        "young_adult": "young_adult",
        "adult": "adult",
        "middle_aged": "middle_aged",
        "middle_age": "middle_aged",
        "senior": "senior",
        "elderly": "senior",
    }
    return mapping.get(v, "unknown")


def _to_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def normalize_feature(raw: Dict[str, Any]) -> Optional[ImageFeature]:
    """
    Convert a provider feature entry into an ImageFeature.

    Accepts both ``feature_name``/``feature_value`` and ``name``/``value`` keys.
    Returns None for entries without a name.
    """
    if not isinstance(raw, dict):
        return None
    name = str(raw.get("feature_name") or raw.get("name") or "").strip()
    if not name:
        return None
    value = str(raw.get("feature_value") or raw.get("value") or "").strip()
    return ImageFeature(
        name=name,
        value=value,
        confidence=_to_float(raw.get("confidence"), 0.0),
        exaggeration_factor=_to_float(raw.get("exaggeration_factor"), 5.0),
    )


def normalize_features(raw_features: Any) -> List[ImageFeature]:
    if not isinstance(raw_features, list):
        return []
    features = [normalize_feature(item) for item in raw_features]
    return [f for f in features if f is not None]


def normalize_traits(raw_traits: Any) -> List[str]:
    if not isinstance(raw_traits, list):
        return []
    return [str(t).strip() for t in raw_traits if str(t).strip()]
