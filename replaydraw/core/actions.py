"""
ReplayDraw Action Model

Defines the drawable scene entities ("actions"). Each variant of the
tagged union is its own dataclass deriving from Action; engine code
dispatches on the concrete class.

- Stroke: freehand/pencil/glow/spray/eraser brush over points or dots
- Line, Rect, Ellipse, Arc, PolygonShape, Bezier, VertexPath: styled shapes
- Fill: bucket fill seed, replayed on pixels only
"""

import copy
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from .geometry import Point


DEFAULT_FILL_COLOR = "#00b7ff"
DEFAULT_STROKE_COLOR = "#0d2238"
DEFAULT_GRADIENT_COLOR = "#ff8a3d"
DEFAULT_STROKE_WEIGHT = 2.0


def create_action_id() -> str:
    """Return a new identity; identities are never reused within a process."""
    return f"a_{uuid4().hex}"


class BrushType(Enum):
    """Brushes available to freehand strokes."""
    FREEHAND = "freehand"
    PENCIL = "pencil"
    GLOW = "glow"
    SPRAY = "spray"
    ERASER = "eraser"

    @classmethod
    def from_value(cls, value) -> 'BrushType':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.FREEHAND


class GradientDirection(Enum):
    """Interpolation axis for two-colour fills."""
    LEFT_RIGHT = "left-right"
    RIGHT_LEFT = "right-left"
    TOP_BOTTOM = "top-bottom"
    BOTTOM_TOP = "bottom-top"
    CENTER_OUT = "center-out"
    CENTER_IN = "center-in"

    @classmethod
    def normalize(cls, value) -> 'GradientDirection':
        """Parse a direction, accepting legacy aliases; unknown values fall back to left-right."""
        if isinstance(value, cls):
            return value
        text = str(value or "").lower()
        if text == "horizontal":
            return cls.LEFT_RIGHT
        if text == "vertical":
            return cls.TOP_BOTTOM
        try:
            return cls(text)
        except ValueError:
            return cls.LEFT_RIGHT

    @property
    def code(self) -> int:
        """Numeric mode used by the replay program."""
        return list(GradientDirection).index(self)


@dataclass
class Gradient:
    """Second colour and direction of a gradient fill."""
    end_color: str = DEFAULT_GRADIENT_COLOR
    direction: GradientDirection = GradientDirection.LEFT_RIGHT

    def __post_init__(self):
        self.direction = GradientDirection.normalize(self.direction)


@dataclass
class Action:
    """
    Base class of every scene entity.

    The id is assigned once at creation and carried unchanged through
    clones, transforms and history snapshots.
    """
    id: str = field(default_factory=create_action_id)

    kind = "action"

    def clone(self) -> 'Action':
        """Deep structural copy with the same identity."""
        return copy.deepcopy(self)

    @property
    def label(self) -> str:
        return "Object"


@dataclass
class Stroke(Action):
    """A brush stroke. Spray strokes paint their dots; all others their points."""
    brush: BrushType = BrushType.FREEHAND
    color: str = DEFAULT_FILL_COLOR
    size: float = 8.0
    opacity: float = 1.0
    points: List[Point] = field(default_factory=list)
    dots: List[Point] = field(default_factory=list)

    kind = "stroke"

    def __post_init__(self):
        self.brush = BrushType.from_value(self.brush)

    @property
    def is_spray(self) -> bool:
        return self.brush == BrushType.SPRAY

    @property
    def label(self) -> str:
        if self.brush == BrushType.ERASER:
            return "Eraser stroke"
        return f"{self.brush.value.capitalize()} stroke"


@dataclass
class ShapeAction(Action):
    """Common style attributes of the editable shape family."""
    fill_color: str = DEFAULT_FILL_COLOR
    stroke_color: str = DEFAULT_STROKE_COLOR
    stroke_weight: float = DEFAULT_STROKE_WEIGHT
    opacity: float = 1.0
    filled: bool = False
    gradient: Optional[Gradient] = None

    supports_gradient = False

    def __post_init__(self):
        self.stroke_weight = max(0.0, float(self.stroke_weight))
        self.opacity = min(1.0, max(0.0, float(self.opacity)))
        if not self.supports_gradient:
            self.gradient = None


@dataclass
class Line(ShapeAction):
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0

    kind = "line"

    @property
    def label(self) -> str:
        return "Line"


@dataclass
class Rect(ShapeAction):
    """Axis-aligned rectangle in its local frame, rotated about its centre."""
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0
    rotation: float = 0.0

    kind = "rect"
    supports_gradient = True

    @property
    def center(self) -> Point:
        return Point(self.x + self.w / 2, self.y + self.h / 2)

    @property
    def label(self) -> str:
        return "Filled rectangle" if self.filled else "Rectangle"


@dataclass
class Ellipse(ShapeAction):
    """Ellipse inscribed in (x, y, w, h), rotated about its centre."""
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0
    rotation: float = 0.0

    kind = "ellipse"
    supports_gradient = True

    @property
    def center(self) -> Point:
        return Point(self.x + self.w / 2, self.y + self.h / 2)

    @property
    def label(self) -> str:
        return "Filled ellipse" if self.filled else "Ellipse"


@dataclass
class Arc(ShapeAction):
    """Elliptical arc from start to stop (radians); filled arcs paint a pie sector."""
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0
    start: float = 0.0
    stop: float = math.pi
    rotation: float = 0.0

    kind = "arc"

    @property
    def center(self) -> Point:
        return Point(self.x + self.w / 2, self.y + self.h / 2)

    @property
    def radii(self):
        return max(1.0, abs(self.w) / 2), max(1.0, abs(self.h) / 2)

    @property
    def label(self) -> str:
        return "Filled arc" if self.filled else "Arc"


def polygon_points_from_bounds(shape: str, x: float, y: float,
                               w: float, h: float) -> List[Point]:
    """
    Default outline for a triangle or quad drawn into a box.

    The quad uses fixed fractional offsets to look hand-drawn. It is only
    a fallback shape for payloads that lack explicit points, not a
    reconstruction of whatever was there before.
    """
    if shape == "triangle":
        return [
            Point(x + w / 2, y),
            Point(x, y + h),
            Point(x + w, y + h)
        ]
    return [
        Point(x + w * 0.18, y + h * 0.16),
        Point(x + w * 0.82, y + h * 0.12),
        Point(x + w, y + h * 0.86),
        Point(x, y + h * 0.9)
    ]


@dataclass
class PolygonShape(ShapeAction):
    """Triangle or quad with an explicit point list (always >= 3 points)."""
    shape: str = "triangle"
    points: List[Point] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0

    kind = "polygonShape"
    supports_gradient = True

    def __post_init__(self):
        super().__post_init__()
        if self.shape not in ("triangle", "quad"):
            self.shape = "quad" if len(self.points) == 4 else "triangle"
        if len(self.points) < 3:
            self.points = polygon_points_from_bounds(self.shape, self.x, self.y, self.w, self.h)

    @property
    def label(self) -> str:
        return "Triangle" if self.shape == "triangle" else "Quad"


@dataclass
class Bezier(ShapeAction):
    """Cubic Bézier curve, always stroked."""
    x1: float = 0.0
    y1: float = 0.0
    cx1: float = 0.0
    cy1: float = 0.0
    cx2: float = 0.0
    cy2: float = 0.0
    x2: float = 0.0
    y2: float = 0.0

    kind = "bezier"

    @property
    def control_points(self) -> List[Point]:
        return [
            Point(self.x1, self.y1),
            Point(self.cx1, self.cy1),
            Point(self.cx2, self.cy2),
            Point(self.x2, self.y2)
        ]

    @property
    def label(self) -> str:
        return "Bezier curve"


@dataclass
class VertexPath(ShapeAction):
    """Polyline or Catmull-Rom path through its points, optionally closed."""
    points: List[Point] = field(default_factory=list)
    curved: bool = False
    closed: bool = False

    kind = "vertexPath"

    @property
    def label(self) -> str:
        return "Curve path" if self.curved else "Vertex path"


@dataclass
class Fill(Action):
    """Bucket fill seed; only meaningful against a raster."""
    x: int = 0
    y: int = 0
    color: str = DEFAULT_FILL_COLOR
    opacity: float = 1.0
    tolerance: float = 24

    kind = "fill"

    @property
    def label(self) -> str:
        return "Bucket fill"


ACTION_TYPES = {
    cls.kind: cls
    for cls in (Stroke, Line, Rect, Ellipse, Arc, PolygonShape, Bezier, VertexPath, Fill)
}

ROTATED_TYPES = (Rect, Ellipse, Arc)


def shape_rotation(action: Action) -> float:
    """Stored rotation of rect/ellipse/arc; every other action has none."""
    if isinstance(action, ROTATED_TYPES):
        return action.rotation or 0.0
    return 0.0


def shape_stroke_weight(action: Action) -> float:
    """Outline width of an action, falling back to brush size, then 2."""
    if isinstance(action, ShapeAction):
        return action.stroke_weight
    if isinstance(action, Stroke):
        return action.size
    return DEFAULT_STROKE_WEIGHT


def is_rotatable(action: Action) -> bool:
    return action is not None and not isinstance(action, Fill)


def supports_gradient(action: Action) -> bool:
    return isinstance(action, ShapeAction) and action.supports_gradient


def clone_actions(actions) -> List[Action]:
    return [action.clone() for action in actions]
