"""
Scene Rasterizer for ReplayDraw

Paints a scene onto a white RGBA numpy buffer with Pillow. Each primitive
is drawn as a coverage mask, then composited source-over with its colour
(or gradient) and opacity. Fill actions are replayed through the flood
fill engine, so the raster reflects them exactly like the image export.
"""

import logging
import math
from typing import List, Sequence, Tuple, Union

import numpy as np
from PIL import Image, ImageDraw, ImageFilter

from ..core.actions import (
    Action, Arc, Bezier, BrushType, Ellipse, Fill, GradientDirection, Line,
    PolygonShape, Rect, ShapeAction, Stroke, VertexPath, shape_rotation,
    shape_stroke_weight
)
from ..core.colors import hex_to_rgb
from ..core.geometry import (
    TAU, Point, clamp, rotate_point, sample_catmull_rom, sample_cubic_bezier
)
from ..core.scene import Scene, box_corners, fill_bounds
from ..image.floodfill import flood_fill
from .selection import sample_arc_point

logger = logging.getLogger(__name__)

BACKGROUND = (255, 255, 255, 255)
ERASER_COLOR = "#ffffff"
ELLIPSE_SEGMENTS = 96
ARC_SEGMENTS = 64
BEZIER_SEGMENTS = 48
SPRAY_ALPHA_SCALE = 0.67
GLOW_BLUR_SCALE = 1.8

ColorSource = Union[Tuple[int, int, int], np.ndarray]


class SceneRasterizer:
    """
    Renders actions into an (height, width, 4) uint8 buffer.

    Usage:
        raster = SceneRasterizer(400, 300)
        raster.render(scene)
        image = raster.to_image()
    """

    def __init__(self, width: int, height: int):
        self.width = int(width)
        self.height = int(height)
        self.buffer = np.empty((self.height, self.width, 4), dtype=np.uint8)
        self.reset()

    def reset(self) -> None:
        """Clear to an opaque white canvas."""
        self.buffer[...] = BACKGROUND

    def render(self, actions) -> np.ndarray:
        """Reset and paint every action in order; returns the buffer."""
        self.reset()
        for action in actions:
            self.draw_action(action)
        return self.buffer

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.buffer)

    # ==================== Dispatch ====================

    def draw_action(self, action: Action) -> bool:
        """
        Paint one action.

        Returns:
            False only for a fill that changed nothing
        """
        if isinstance(action, Fill):
            return flood_fill(self.buffer, action.x, action.y, action.color,
                              action.opacity, action.tolerance)
        if isinstance(action, Stroke):
            self._draw_stroke(action)
        elif isinstance(action, Line):
            self._stroke_path(action, [Point(action.x1, action.y1), Point(action.x2, action.y2)])
        elif isinstance(action, Rect):
            self._draw_closed(action, box_corners(action))
        elif isinstance(action, Ellipse):
            self._draw_closed(action, self._ellipse_outline(action))
        elif isinstance(action, Arc):
            self._draw_arc(action)
        elif isinstance(action, PolygonShape):
            if len(action.points) >= 3:
                self._draw_closed(action, action.points)
        elif isinstance(action, Bezier):
            p0, c1, c2, p3 = action.control_points
            samples = [sample_cubic_bezier(p0, c1, c2, p3, i / BEZIER_SEGMENTS)
                       for i in range(BEZIER_SEGMENTS + 1)]
            self._stroke_path(action, samples)
        elif isinstance(action, VertexPath):
            self._draw_vertex_path(action)
        return True

    # ==================== Strokes ====================

    def _draw_stroke(self, action: Stroke) -> None:
        color = ERASER_COLOR if action.brush == BrushType.ERASER else action.color

        if action.is_spray:
            radius = max(1.0, action.size * 0.25)
            mask, draw = self._new_mask()
            for dot in action.dots:
                self._disc(draw, dot, radius)
            self._composite(mask, hex_to_rgb(color), action.opacity * SPRAY_ALPHA_SCALE)
            return

        if not action.points:
            return

        line_width = action.size
        if action.brush == BrushType.PENCIL:
            line_width = max(1.0, action.size * 0.55)

        mask, draw = self._new_mask()
        if len(action.points) == 1:
            self._disc(draw, action.points[0], max(1.0, line_width * 0.48))
        else:
            self._polyline(draw, action.points, line_width, round_caps=True)

        if action.brush == BrushType.GLOW:
            blur = action.size * GLOW_BLUR_SCALE / 2
            halo = mask.filter(ImageFilter.GaussianBlur(radius=max(0.5, blur)))
            self._composite(halo, hex_to_rgb(action.color), clamp(action.opacity + 0.05, 0, 1))

        self._composite(mask, hex_to_rgb(color), action.opacity)

    # ==================== Shapes ====================

    def _ellipse_outline(self, action) -> List[Point]:
        center = action.center
        rx = max(1.0, abs(action.w) / 2)
        ry = max(1.0, abs(action.h) / 2)
        rotation = shape_rotation(action)
        points = []
        for i in range(ELLIPSE_SEGMENTS):
            theta = TAU * i / ELLIPSE_SEGMENTS
            p = Point(center.x + math.cos(theta) * rx, center.y + math.sin(theta) * ry)
            points.append(rotate_point(p, center, rotation) if rotation else p)
        return points

    def _draw_arc(self, action: Arc) -> None:
        center = action.center
        rotation = shape_rotation(action)
        samples = [sample_arc_point(action, i / ARC_SEGMENTS) for i in range(ARC_SEGMENTS + 1)]
        if rotation:
            samples = [rotate_point(p, center, rotation) for p in samples]

        if action.filled:
            # Pie sector: the centre closes the sweep
            mask, draw = self._new_mask()
            draw.polygon(self._xy([center] + samples), fill=255)
            self._composite(mask, self._fill_source(action), action.opacity)
        self._stroke_path(action, samples)

    def _draw_vertex_path(self, action: VertexPath) -> None:
        if len(action.points) < 2:
            return
        if action.curved:
            outline = sample_catmull_rom(action.points, action.closed)
        else:
            outline = list(action.points)

        if action.closed:
            self._draw_closed(action, outline)
        else:
            self._stroke_path(action, outline)

    def _draw_closed(self, action: ShapeAction, outline: Sequence[Point]) -> None:
        if len(outline) < 2:
            return
        if action.filled and len(outline) >= 3:
            mask, draw = self._new_mask()
            draw.polygon(self._xy(outline), fill=255)
            self._composite(mask, self._fill_source(action), action.opacity)
        self._stroke_path(action, list(outline) + [outline[0]])

    def _stroke_path(self, action: ShapeAction, points: Sequence[Point]) -> None:
        weight = shape_stroke_weight(action)
        if weight <= 0 or len(points) < 2:
            return
        mask, draw = self._new_mask()
        self._polyline(draw, points, weight, round_caps=True)
        self._composite(mask, hex_to_rgb(action.stroke_color), action.opacity)

    # ==================== Gradients ====================

    def _fill_source(self, action: ShapeAction) -> ColorSource:
        base = hex_to_rgb(action.fill_color)
        gradient = action.gradient
        if gradient is None or not gradient.end_color:
            return base

        bounds = fill_bounds(action)
        if bounds is None:
            return base
        x1, y1 = bounds.min_x, bounds.min_y
        width, height = bounds.width, bounds.height

        ys, xs = np.mgrid[0:self.height, 0:self.width].astype(np.float32)
        xs += 0.5
        ys += 0.5
        rotation = shape_rotation(action)
        if rotation:
            # Gradient axes rotate with the shape
            center = bounds.center
            cos_r = math.cos(-rotation)
            sin_r = math.sin(-rotation)
            dx = xs - center.x
            dy = ys - center.y
            xs = center.x + dx * cos_r - dy * sin_r
            ys = center.y + dx * sin_r + dy * cos_r

        start = np.array(base, dtype=np.float32)
        end = np.array(hex_to_rgb(gradient.end_color), dtype=np.float32)
        direction = gradient.direction

        if direction in (GradientDirection.CENTER_OUT, GradientDirection.CENTER_IN):
            radius = max(1.0, max(width, height) * 0.5)
            cx, cy = x1 + width / 2, y1 + height / 2
            t = np.hypot(xs - cx, ys - cy) / radius
            if direction == GradientDirection.CENTER_IN:
                start, end = end, start
        elif direction == GradientDirection.RIGHT_LEFT:
            t = 1 - (xs - x1) / max(width, 1e-6)
        elif direction == GradientDirection.TOP_BOTTOM:
            t = (ys - y1) / max(height, 1e-6)
        elif direction == GradientDirection.BOTTOM_TOP:
            t = 1 - (ys - y1) / max(height, 1e-6)
        else:
            t = (xs - x1) / max(width, 1e-6)

        t = np.clip(t, 0.0, 1.0)[..., None]
        return start * (1 - t) + end * t

    # ==================== Low level ====================

    def _new_mask(self) -> Tuple[Image.Image, ImageDraw.ImageDraw]:
        mask = Image.new("L", (self.width, self.height), 0)
        return mask, ImageDraw.Draw(mask)

    @staticmethod
    def _xy(points: Sequence[Point]) -> List[Tuple[float, float]]:
        return [(p.x, p.y) for p in points]

    @staticmethod
    def _disc(draw: ImageDraw.ImageDraw, center: Point, radius: float) -> None:
        draw.ellipse(
            [center.x - radius, center.y - radius, center.x + radius, center.y + radius],
            fill=255
        )

    def _polyline(self, draw: ImageDraw.ImageDraw, points: Sequence[Point],
                  width: float, round_caps: bool = False) -> None:
        pixel_width = max(1, int(round(width)))
        draw.line(self._xy(points), fill=255, width=pixel_width, joint="curve")
        if round_caps and pixel_width > 2:
            self._disc(draw, points[0], width / 2)
            self._disc(draw, points[-1], width / 2)

    def _composite(self, mask: Image.Image, color: ColorSource, opacity: float) -> None:
        """Blend color over the buffer where mask is set (source-over)."""
        coverage = np.asarray(mask, dtype=np.float32) / 255.0 * clamp(opacity, 0.0, 1.0)
        if not coverage.any():
            return
        alpha = coverage[..., None]
        dst = self.buffer.astype(np.float32)
        src = np.broadcast_to(np.asarray(color, dtype=np.float32), dst[..., :3].shape)

        out = np.empty_like(dst)
        out[..., :3] = src * alpha + dst[..., :3] * (1 - alpha)
        out[..., 3] = 255.0 * coverage + dst[..., 3] * (1 - coverage)
        self.buffer[...] = np.clip(np.rint(out), 0, 255).astype(np.uint8)


def render_scene(scene: Scene) -> np.ndarray:
    """Rasterize a scene at its canvas size."""
    rasterizer = SceneRasterizer(scene.width, scene.height)
    return rasterizer.render(scene.actions)


def render_png(scene: Scene, path: str) -> None:
    """Rasterize a scene and write it as a PNG file."""
    rasterizer = SceneRasterizer(scene.width, scene.height)
    rasterizer.render(scene.actions)
    rasterizer.to_image().save(path, format="PNG")
    logger.info(f"Rendered {len(scene)} actions to {path}")
