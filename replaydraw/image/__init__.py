"""
ReplayDraw Image Processing Module

Contains raster tools:
- Tolerance-based scanline flood fill
"""

from .floodfill import flood_fill, match_mask

__all__ = ['flood_fill', 'match_mask']
