"""
Replay Program Export for ReplayDraw

Compiles a scene into a compact program for an external renderer, in one
of two modes:

- Vector mode: one tagged numeric array per action, coordinates divided
  by the canvas size so the replay is resolution independent. Fill
  actions cannot be replayed from vectors and are skipped.
- Image mode: the rasterized scene as an RGBA palette plus row-major
  runs, which does include fill output.

Output depends only on the scene, so identical scenes give identical text.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from ..config import EXPORT_DECIMALS
from ..core.actions import (
    Action, Arc, Bezier, BrushType, Ellipse, Fill, Line, PolygonShape, Rect,
    Stroke, VertexPath, shape_rotation, shape_stroke_weight
)
from ..core.colors import hex_to_rgb, to_alpha
from ..core.geometry import Point
from ..core.scene import Scene
from ..graphics.render import render_scene

logger = logging.getLogger(__name__)

PROGRAM_HEADER = "// Generated by ReplayDraw"
ERASER_COLOR = "#ffffff"


def short_number(value: float, decimals: int = EXPORT_DECIMALS):
    """Round to a fixed number of decimals; integral results become ints."""
    rounded = round(float(value), decimals)
    if rounded == int(rounded):
        return int(rounded)
    return rounded


class Normalizer:
    """Maps canvas coordinates and sizes into the unit range of the replay."""

    def __init__(self, canvas_width: float, canvas_height: float):
        self.width = float(canvas_width)
        self.height = float(canvas_height)
        self.size_base = (self.width + self.height) / 2

    def x(self, value: float):
        return short_number(value / self.width)

    def y(self, value: float):
        return short_number(value / self.height)

    def size(self, value: float):
        return short_number(value / self.size_base)

    def points(self, points: Sequence[Point]) -> list:
        flat = []
        for p in points:
            flat.extend((self.x(p.x), self.y(p.y)))
        return flat


def _flag(value) -> int:
    return 1 if value else 0


def _encode_stroke(action: Stroke, norm: Normalizer) -> list:
    color = ERASER_COLOR if action.brush == BrushType.ERASER else action.color
    alpha = to_alpha(action.opacity)

    if action.brush == BrushType.SPRAY:
        return ["P", *hex_to_rgb(color), alpha,
                norm.size(max(1.0, action.size * 0.5)), norm.points(action.dots)]
    if action.brush == BrushType.GLOW:
        return ["G", *hex_to_rgb(color), alpha, norm.size(action.size), norm.points(action.points)]

    size = max(1.0, action.size * 0.55) if action.brush == BrushType.PENCIL else action.size
    return ["S", *hex_to_rgb(color), alpha, norm.size(size), norm.points(action.points)]


def _encode_box(action, tag: str, norm: Normalizer, centered: bool) -> list:
    """Shared layout of R/RG and E/EG."""
    x = action.x + action.w / 2 if centered else action.x
    y = action.y + action.h / 2 if centered else action.y
    head = [tag, *hex_to_rgb(action.fill_color)]
    if action.gradient is not None:
        head = [tag + "G", *hex_to_rgb(action.fill_color),
                *hex_to_rgb(action.gradient.end_color), action.gradient.direction.code]
    return head + [
        *hex_to_rgb(action.stroke_color),
        to_alpha(action.opacity),
        norm.size(shape_stroke_weight(action)),
        _flag(action.filled),
        norm.x(x), norm.y(y), norm.x(action.w), norm.y(action.h),
        short_number(shape_rotation(action))
    ]


def _encode_polygon(action: PolygonShape, norm: Normalizer) -> list:
    points = action.points
    gradient = action.gradient
    tag = {"triangle": "TG", "quad": "QG"}.get(action.shape)
    needed = 3 if action.shape == "triangle" else 4

    if gradient is not None and tag and len(points) >= needed:
        return [
            tag, *hex_to_rgb(action.fill_color), *hex_to_rgb(gradient.end_color),
            gradient.direction.code,
            *hex_to_rgb(action.stroke_color),
            to_alpha(action.opacity),
            norm.size(shape_stroke_weight(action)),
            _flag(action.filled),
            *norm.points(points[:needed])
        ]

    # Without a gradient a polygon replays as a closed straight path
    return [
        "VP", *hex_to_rgb(action.fill_color), *hex_to_rgb(action.stroke_color),
        to_alpha(action.opacity),
        norm.size(shape_stroke_weight(action)),
        0, 1, _flag(action.filled),
        norm.points(points)
    ]


def encode_action(action: Action, canvas_width: float, canvas_height: float) -> Optional[list]:
    """
    Encode one action as a tagged list.

    Returns:
        The encoded list, or None for actions vector mode cannot replay
    """
    norm = Normalizer(canvas_width, canvas_height)

    if isinstance(action, Stroke):
        return _encode_stroke(action, norm)

    if isinstance(action, Line):
        return [
            "L", *hex_to_rgb(action.stroke_color), to_alpha(action.opacity),
            norm.size(shape_stroke_weight(action)),
            norm.x(action.x1), norm.y(action.y1), norm.x(action.x2), norm.y(action.y2)
        ]

    if isinstance(action, Arc):
        return [
            "A", *hex_to_rgb(action.stroke_color), to_alpha(action.opacity),
            norm.size(shape_stroke_weight(action)),
            norm.x(action.x + action.w / 2), norm.y(action.y + action.h / 2),
            norm.x(action.w), norm.y(action.h),
            short_number(action.start), short_number(action.stop),
            short_number(shape_rotation(action)),
            _flag(action.filled),
            *hex_to_rgb(action.fill_color)
        ]

    if isinstance(action, Rect):
        return _encode_box(action, "R", norm, centered=False)

    if isinstance(action, Ellipse):
        return _encode_box(action, "E", norm, centered=True)

    if isinstance(action, PolygonShape):
        return _encode_polygon(action, norm)

    if isinstance(action, VertexPath):
        return [
            "VP", *hex_to_rgb(action.fill_color), *hex_to_rgb(action.stroke_color),
            to_alpha(action.opacity),
            norm.size(shape_stroke_weight(action)),
            _flag(action.curved), _flag(action.closed),
            _flag(action.closed and action.filled),
            norm.points(action.points)
        ]

    if isinstance(action, Bezier):
        return [
            "B", *hex_to_rgb(action.stroke_color), to_alpha(action.opacity),
            norm.size(shape_stroke_weight(action)),
            *norm.points(action.control_points)
        ]

    return None


@dataclass
class VectorExport:
    """Encoded actions plus the number of fills that could not be included."""
    actions: List[list] = field(default_factory=list)
    skipped_fills: int = 0


@dataclass
class ImageExport:
    """
    Indexed raster.

    palette holds [r, g, b, a] entries in first-seen order; each run is
    [start_x, row, length, palette_index].
    """
    width: int
    height: int
    palette: List[List[int]] = field(default_factory=list)
    runs: List[List[int]] = field(default_factory=list)


def encode_vector(scene: Scene) -> VectorExport:
    result = VectorExport()
    for action in scene:
        if isinstance(action, Fill):
            result.skipped_fills += 1
            continue
        encoded = encode_action(action, scene.width, scene.height)
        if encoded is not None:
            result.actions.append(encoded)
    return result


def build_image_export(raster: np.ndarray) -> ImageExport:
    """
    Palette and run-length encode an (height, width, 4) RGBA raster.

    Runs never cross rows. Palette order follows the first occurrence of
    each colour in row-major order.
    """
    height, width = raster.shape[:2]
    if height == 0 or width == 0:
        return ImageExport(width, height)

    pixels = np.ascontiguousarray(raster[..., :4], dtype=np.uint8)
    packed = pixels.view(np.uint32).reshape(height, width)

    unique, first_index, inverse = np.unique(packed.ravel(), return_index=True, return_inverse=True)
    order = np.argsort(first_index, kind="stable")
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))
    indices = rank[inverse.ravel()].reshape(height, width)

    palette_packed = unique[order].view(np.uint8).reshape(-1, 4)
    palette = palette_packed.astype(int).tolist()

    starts = np.ones((height, width), dtype=bool)
    starts[:, 1:] = packed[:, 1:] != packed[:, :-1]
    rows, cols = np.nonzero(starts)

    next_cols = np.empty_like(cols)
    next_cols[:-1] = cols[1:]
    next_cols[-1] = width
    row_ends = np.empty_like(rows, dtype=bool)
    row_ends[:-1] = rows[1:] != rows[:-1]
    row_ends[-1] = True
    next_cols[row_ends] = width
    lengths = next_cols - cols

    runs = np.stack([cols, rows, lengths, indices[rows, cols]], axis=1).astype(int).tolist()
    return ImageExport(width, height, palette, runs)


def _compact_json(value) -> str:
    return json.dumps(value, separators=(",", ":"))


def generate_program(scene: Scene, image_mode: bool = False) -> str:
    """
    Build the replay program text for a scene.

    Vector mode declares ART_DATA; image mode declares ART_IMG_W/H/P/R.
    """
    lines = []
    if image_mode:
        image = build_image_export(render_scene(scene))
        lines.append(f"{PROGRAM_HEADER} (Image Mode)")
        lines.append(f"var ART_IMG_W={image.width};")
        lines.append(f"var ART_IMG_H={image.height};")
        lines.append(f"var ART_IMG_P={_compact_json(image.palette)};")
        lines.append(f"var ART_IMG_R={_compact_json(image.runs)};")
        lines.append("// Image mode includes bucket-fill output.")
        logger.info(f"Image export: {len(image.palette)} colours, {len(image.runs)} runs")
        return "\n".join(lines)

    vector = encode_vector(scene)
    lines.append(PROGRAM_HEADER)
    lines.append(f"var ART_DATA={_compact_json(vector.actions)};")
    if vector.skipped_fills > 0:
        lines.append(f"// Note: {vector.skipped_fills} fill-bucket action(s) were skipped in export.")
    logger.info(f"Vector export: {len(vector.actions)} actions, {vector.skipped_fills} fills skipped")
    return "\n".join(lines)
