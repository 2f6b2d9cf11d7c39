"""
Colour helpers shared by the rasterizer, flood fill and export encoder.
"""

from typing import Tuple

from .geometry import clamp


def hex_to_rgb(value) -> Tuple[int, int, int]:
    """
    Parse "#rgb" or "#rrggbb" into an (r, g, b) tuple.

    Anything unparseable becomes black.
    """
    text = str(value or "#000000").strip().lstrip("#")
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    try:
        number = int(text[:6], 16)
    except ValueError:
        number = 0
    return (number >> 16) & 255, (number >> 8) & 255, number & 255


def to_alpha(opacity: float) -> int:
    """Fold an opacity in [0, 1] into an 8-bit alpha."""
    return int(round(clamp(float(opacity), 0.0, 1.0) * 255))


def rgba(value, opacity: float) -> Tuple[int, int, int, int]:
    r, g, b = hex_to_rgb(value)
    return r, g, b, to_alpha(opacity)
