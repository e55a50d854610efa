"""
Character Generator module.
"""

from .generator import generate_character_image
from .prompts import build_character_prompt

__all__ = ["build_character_prompt", "generate_character_image"]
