"""
Flood Fill Module

Tolerance-based bucket fill over an RGBA raster buffer. Operates on
pixels only and knows nothing about the scene's actions.
"""

import logging
import math

import numpy as np

from ..core.colors import rgba
from ..core.geometry import clamp

logger = logging.getLogger(__name__)

# A seed this close to the fill colour would not visibly change anything
NOOP_COLOR_DISTANCE_SQ = 3
NOOP_ALPHA_DISTANCE = 2


def match_mask(buffer: np.ndarray, target: np.ndarray, tolerance: float) -> np.ndarray:
    """
    Pixels that count as the same region as the seed colour.

    A pixel matches when its squared RGB distance to the target is at most
    3 * tolerance^2 and its alpha differs by at most max(10, 1.35 * tolerance).
    """
    tol = max(0.0, float(tolerance or 0))
    pixels = buffer.astype(np.int32)
    diff = pixels[..., :3] - target[:3]
    color_dist = np.sum(diff * diff, axis=2)
    alpha_diff = np.abs(pixels[..., 3] - target[3])
    return (color_dist <= tol * tol * 3) & (alpha_diff <= max(10.0, tol * 1.35))


def flood_fill(buffer: np.ndarray, x: float, y: float, color: str,
               opacity: float, tolerance: float) -> bool:
    """
    Fill the 4-connected region around (x, y) in place.

    Scanline stack fill: each popped seed scans left to the region edge,
    then right while filling, pushing at most one seed per contiguous
    matching run in the rows above and below.

    Args:
        buffer: (height, width, 4) uint8 RGBA array, modified in place
        x, y: seed position; clamped into the buffer
        color: fill colour as "#rrggbb"
        opacity: fill opacity in [0, 1]
        tolerance: colour tolerance

    Returns:
        True if any pixel changed, False for a no-op fill
    """
    if buffer.ndim != 3 or buffer.shape[2] != 4:
        raise ValueError("Flood fill needs an (height, width, 4) RGBA buffer")

    height, width = buffer.shape[:2]
    start_x = int(clamp(math.floor(x), 0, width - 1))
    start_y = int(clamp(math.floor(y), 0, height - 1))

    target = buffer[start_y, start_x].astype(np.int32)
    fill = np.array(rgba(color, opacity), dtype=np.uint8)

    seed_diff = int(np.sum((target[:3] - fill[:3].astype(np.int32)) ** 2))
    if seed_diff <= NOOP_COLOR_DISTANCE_SQ and abs(int(target[3]) - int(fill[3])) <= NOOP_ALPHA_DISTANCE:
        logger.debug(f"Fill at ({start_x}, {start_y}) would not change anything")
        return False

    match = match_mask(buffer, target, tolerance)
    visited = np.zeros((height, width), dtype=bool)
    stack = [(start_x, start_y)]
    changed = False

    while stack:
        px, py = stack.pop()

        x_left = px
        while x_left >= 0 and not visited[py, x_left] and match[py, x_left]:
            x_left -= 1
        x_left += 1

        span_up = False
        span_down = False
        x_scan = x_left
        while x_scan < width and not visited[py, x_scan] and match[py, x_scan]:
            visited[py, x_scan] = True

            if py > 0:
                up_match = not visited[py - 1, x_scan] and match[py - 1, x_scan]
                if up_match and not span_up:
                    stack.append((x_scan, py - 1))
                    span_up = True
                elif not up_match:
                    span_up = False

            if py < height - 1:
                down_match = not visited[py + 1, x_scan] and match[py + 1, x_scan]
                if down_match and not span_down:
                    stack.append((x_scan, py + 1))
                    span_down = True
                elif not down_match:
                    span_down = False

            x_scan += 1

        if x_scan > x_left:
            buffer[py, x_left:x_scan] = fill
            changed = True

    return changed
