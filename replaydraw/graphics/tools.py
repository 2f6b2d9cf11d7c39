"""
Drawing Tools for ReplayDraw

Turns pointer input into new actions:
- build_shape_action: drag-shape tools (line, rect, ellipse, arc, bezier, triangle, quad)
- StrokeBuilder: freehand brushes and the spray can
- PathDraft: click-by-click vertex/curve paths and polygons
"""

import math
import random
from enum import Enum
from typing import List, Optional

from ..config import EditorSettings
from ..core.actions import (
    Action, Arc, Bezier, Ellipse, Gradient, Line, PolygonShape, Rect, Stroke,
    VertexPath, polygon_points_from_bounds
)
from ..core.geometry import TAU, Point, clamp, distance


class ToolType(Enum):
    """Types of drawing tools."""
    SELECT = "select"
    FREEHAND = "freehand"
    PENCIL = "pencil"
    GLOW = "glow"
    SPRAY = "spray"
    ERASER = "eraser"
    FILL = "fill"
    LINE = "line"
    RECT = "rect"
    ELLIPSE = "ellipse"
    ARC = "arc"
    BEZIER = "bezier"
    VERTEX = "vertex"
    CURVE = "curve"
    TRIANGLE = "triangle"
    QUAD = "quad"


DRAG_SHAPE_TOOLS = ("line", "rect", "ellipse", "arc", "bezier")
PATH_TOOLS = ("vertex", "curve", "triangle", "quad")
BRUSH_TOOLS = ("freehand", "pencil", "glow", "spray", "eraser")

MIN_SHAPE_AREA = 0.5
MIN_STROKE_SPACING = 0.4
MIN_SPRAY_SPACING = 1.4
CLOSE_PATH_DISTANCE = 8.0


def _tool_value(tool) -> str:
    return tool.value if isinstance(tool, ToolType) else str(tool)


def is_drag_shape_tool(tool) -> bool:
    return _tool_value(tool) in DRAG_SHAPE_TOOLS


def is_path_tool(tool) -> bool:
    return _tool_value(tool) in PATH_TOOLS


def is_brush_tool(tool) -> bool:
    return _tool_value(tool) in BRUSH_TOOLS


def settings_gradient(settings: EditorSettings) -> Optional[Gradient]:
    if not settings.gradient_enabled:
        return None
    return Gradient(settings.gradient_color, settings.gradient_direction)


def degrees_to_radians(value: float) -> float:
    return clamp(value, 0, 360) * math.pi / 180


def build_shape_action(tool, start: Point, end: Point, settings: EditorSettings) -> Action:
    """
    Build the action a drag-shape tool produces between two points.

    Args:
        tool: one of the drag-shape tools, or triangle/quad
        start: drag start point
        end: current or final drag point
        settings: style source

    Returns:
        A new action with a fresh id
    """
    tool = _tool_value(tool)

    if tool == "line":
        return Line(
            x1=start.x, y1=start.y, x2=end.x, y2=end.y,
            stroke_color=settings.stroke_color,
            stroke_weight=settings.stroke_weight,
            opacity=settings.opacity
        )

    if tool == "bezier":
        dx = end.x - start.x
        dy = end.y - start.y
        lift = max(20.0, distance(start, end) * 0.32)
        perp_x = 0.0 if dy == 0 else -dy / max(1.0, abs(dy))
        perp_y = -1.0 if dx == 0 else dx / max(1.0, abs(dx))
        return Bezier(
            x1=start.x, y1=start.y, x2=end.x, y2=end.y,
            cx1=start.x + dx * 0.28 + perp_x * lift,
            cy1=start.y + dy * 0.28 + perp_y * lift,
            cx2=start.x + dx * 0.72 + perp_x * lift,
            cy2=start.y + dy * 0.72 + perp_y * lift,
            stroke_color=settings.stroke_color,
            stroke_weight=settings.stroke_weight,
            opacity=settings.opacity
        )

    x = min(start.x, end.x)
    y = min(start.y, end.y)
    w = abs(end.x - start.x)
    h = abs(end.y - start.y)
    style = dict(
        fill_color=settings.color,
        stroke_color=settings.stroke_color,
        stroke_weight=settings.stroke_weight,
        opacity=settings.opacity,
        filled=settings.fill_shapes
    )

    if tool == "arc":
        return Arc(
            x=x, y=y, w=w, h=h,
            start=degrees_to_radians(settings.arc_start_deg),
            stop=degrees_to_radians(settings.arc_stop_deg),
            **style
        )
    if tool == "rect":
        return Rect(x=x, y=y, w=w, h=h, gradient=settings_gradient(settings), **style)
    if tool == "ellipse":
        return Ellipse(x=x, y=y, w=w, h=h, gradient=settings_gradient(settings), **style)
    if tool in ("triangle", "quad"):
        return PolygonShape(
            shape=tool, x=x, y=y, w=w, h=h,
            points=polygon_points_from_bounds(tool, x, y, w, h),
            gradient=settings_gradient(settings),
            **style
        )

    raise ValueError(f"Not a shape tool: {tool}")


def is_action_large_enough(action: Action) -> bool:
    """Reject degenerate box shapes and zero-length lines; everything else passes."""
    if isinstance(action, (Rect, Ellipse, Arc, PolygonShape)):
        return abs(action.w * action.h) > MIN_SHAPE_AREA
    if isinstance(action, Line):
        return distance(Point(action.x1, action.y1), Point(action.x2, action.y2)) > MIN_SHAPE_AREA
    return True


class StrokeBuilder:
    """
    Accumulates a brush stroke while the pointer moves.

    Spray strokes scatter random dots around each accepted point; dots
    landing outside the canvas are discarded.
    """

    def __init__(self, brush, start: Point, settings: EditorSettings,
                 canvas_width: int, canvas_height: int,
                 rng: Optional[random.Random] = None):
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self._rng = rng or random.Random()
        self.action = Stroke(
            brush=_tool_value(brush),
            color=settings.color,
            size=settings.size,
            opacity=settings.opacity,
            points=[Point(start.x, start.y)],
            dots=[]
        )
        if self.action.is_spray:
            self._spray_at(start)

    def add_point(self, point: Point) -> bool:
        """Append point unless it is too close to the previous one."""
        min_spacing = MIN_SPRAY_SPACING if self.action.is_spray else MIN_STROKE_SPACING
        if distance(self.action.points[-1], point) < min_spacing:
            return False
        self.action.points.append(Point(point.x, point.y))
        if self.action.is_spray:
            self._spray_at(point)
        return True

    def _spray_at(self, point: Point) -> None:
        size = self.action.size
        radius = max(5.0, size * 2.1)
        density = max(10, int(round(size * 2.5)))
        for _ in range(density):
            angle = self._rng.random() * TAU
            offset = math.sqrt(self._rng.random()) * radius
            x = point.x + math.cos(angle) * offset
            y = point.y + math.sin(angle) * offset
            if 0 <= x < self.canvas_width and 0 <= y < self.canvas_height:
                self.action.dots.append(Point(x, y))

    def finish(self) -> Optional[Stroke]:
        """The finished stroke, or None when it painted nothing."""
        if self.action.is_spray:
            return self.action if self.action.dots else None
        return self.action if self.action.points else None


class PathDraft:
    """
    In-progress click-by-click path.

    vertex/curve build a VertexPath (at least 2 points) and close when the
    first point is clicked again; triangle/quad complete themselves after
    3/4 clicks. The draft is caller-owned and touches no history until it
    is committed.
    """

    def __init__(self, tool, settings: EditorSettings):
        tool = _tool_value(tool)
        if tool not in PATH_TOOLS:
            raise ValueError(f"Not a path tool: {tool}")
        self.tool = tool
        self.settings = settings
        self.points: List[Point] = []

    @property
    def curved(self) -> bool:
        return self.tool == "curve"

    @property
    def is_polygon(self) -> bool:
        return self.tool in ("triangle", "quad")

    @property
    def min_points(self) -> int:
        return {"triangle": 3, "quad": 4}.get(self.tool, 2)

    def add_point(self, point: Point) -> Optional[Action]:
        """
        Register a click.

        Returns:
            The completed action when this click finishes the path, else None
        """
        if (not self.is_polygon and len(self.points) >= 3 and
                distance(self.points[0], point) <= CLOSE_PATH_DISTANCE):
            return self.finish(close=True)

        self.points.append(Point(point.x, point.y))
        if self.is_polygon and len(self.points) >= self.min_points:
            return self.finish(close=True)
        return None

    def finish(self, close: bool = False) -> Optional[Action]:
        """Build the action, or None when there are not enough points yet."""
        if len(self.points) < self.min_points:
            return None

        settings = self.settings
        style = dict(
            fill_color=settings.color,
            stroke_color=settings.stroke_color,
            stroke_weight=settings.stroke_weight,
            opacity=settings.opacity,
            filled=settings.fill_shapes
        )
        points = [Point(p.x, p.y) for p in self.points]

        if self.is_polygon:
            return PolygonShape(
                shape=self.tool, points=points,
                gradient=settings_gradient(settings), **style
            )
        return VertexPath(points=points, curved=self.curved, closed=bool(close), **style)
