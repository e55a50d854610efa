"""
Roast Writer module.
"""

from .writer import fallback_roast, write_roast

__all__ = ["fallback_roast", "write_roast"]
