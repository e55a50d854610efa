"""
Feature Analyzer module.

Provides vision-powered extraction of roastable features with optional mock
mode and normalization utilities.
"""

from .vision import analyze_image_features, build_analysis

__all__ = [
    "analyze_image_features",
    "build_analysis",
]
