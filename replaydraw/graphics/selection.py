"""
Hit-Testing and Selection for ReplayDraw

Per-action hit tests, control-point and edge-handle discovery, marquee
selection and the axis-aligned resize/rotate handles.
"""

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..config import (
    DEFAULT_HIT_TEST_SETTINGS, HitTestSettings, ROTATE_HANDLE_OFFSET_X,
    ROTATE_HANDLE_OFFSET_Y, ROTATE_HANDLE_SIZE, SELECT_HANDLE_SIZE
)
from ..core.actions import (
    Action, Arc, Bezier, Ellipse, Fill, Line, PolygonShape, Rect, Stroke,
    VertexPath, shape_rotation, shape_stroke_weight
)
from ..core.geometry import (
    TAU, BoundingBox, Point, distance, distance_to_segment, ellipse_edge_tolerance,
    ellipse_value, angle_within_sweep, point_in_polygon, polyline_distance,
    rotate_point, sample_cubic_bezier, to_local_rotated_point
)
from ..core.scene import Scene, bounds_of

MIN_MARQUEE_SIZE = 3


# ==================== Arc helpers ====================

def arc_point_at_angle(action: Arc, angle: float, include_rotation: bool = True) -> Point:
    """Point on the arc's ellipse at angle, optionally rotated with the shape."""
    center = action.center
    rx, ry = action.radii
    point = Point(center.x + math.cos(angle) * rx, center.y + math.sin(angle) * ry)
    rotation = shape_rotation(action)
    if not include_rotation or not rotation:
        return point
    return rotate_point(point, center, rotation)


def sample_arc_point(action: Arc, t: float) -> Point:
    """Point at parameter t in [0, 1] along the sweep, in the unrotated frame."""
    stop = action.stop
    while stop < action.start:
        stop += TAU
    theta = action.start + (stop - action.start) * t
    return arc_point_at_angle(action, theta, include_rotation=False)


# ==================== Hit tests ====================

def _hit_stroke(action: Stroke, point: Point) -> bool:
    if action.is_spray:
        radius = max(4.0, action.size * 0.6)
        return any(distance(dot, point) <= radius for dot in action.dots)
    if not action.points:
        return False
    return polyline_distance(action.points, point) <= max(5.0, action.size * 0.75)


def _hit_rect(action: Rect, point: Point) -> bool:
    local = to_local_rotated_point(point, action.center, shape_rotation(action))
    left, top = action.x, action.y
    right, bottom = action.x + action.w, action.y + action.h

    if action.filled:
        return left <= local.x <= right and top <= local.y <= bottom

    tol = max(4.0, shape_stroke_weight(action) * 0.6)
    on_vertical = (top - tol <= local.y <= bottom + tol and
                   (abs(local.x - left) <= tol or abs(local.x - right) <= tol))
    on_horizontal = (left - tol <= local.x <= right + tol and
                     (abs(local.y - top) <= tol or abs(local.y - bottom) <= tol))
    return on_vertical or on_horizontal


def _hit_ellipse(action: Ellipse, point: Point) -> bool:
    rx = max(1.0, action.w / 2)
    ry = max(1.0, action.h / 2)
    center = action.center
    value = ellipse_value(point, center, rx, ry, shape_rotation(action))
    if action.filled:
        return value <= 1
    tol = ellipse_edge_tolerance(shape_stroke_weight(action), action.w, action.h)
    return 1 - tol <= value <= 1 + tol


def _hit_arc(action: Arc, point: Point, settings: HitTestSettings) -> bool:
    center = action.center
    local = to_local_rotated_point(point, center, shape_rotation(action))
    rx, ry = action.radii

    if action.filled:
        nx = (local.x - center.x) / rx
        ny = (local.y - center.y) / ry
        if nx * nx + ny * ny > 1:
            return False
        return angle_within_sweep(math.atan2(ny, nx), action.start, action.stop)

    tol = max(5.0, shape_stroke_weight(action) * 0.9)
    prev = sample_arc_point(action, 0)
    for i in range(1, settings.arc_samples + 1):
        current = sample_arc_point(action, i / settings.arc_samples)
        if distance_to_segment(local, prev, current) <= tol:
            return True
        prev = current

    if rx <= settings.tiny_arc_radius and ry <= settings.tiny_arc_radius:
        return distance(local, center) <= settings.tiny_arc_hit_distance
    return False


def _hit_polygon(action: PolygonShape, point: Point, settings: HitTestSettings) -> bool:
    if action.filled and point_in_polygon(action.points, point, settings.polygon_edge_epsilon):
        return True
    return polyline_distance(action.points, point, closed=True) <= max(5.0, shape_stroke_weight(action) * 0.75)


def _hit_vertex_path(action: VertexPath, point: Point, settings: HitTestSettings) -> bool:
    if len(action.points) < 2:
        return False
    if (action.closed and action.filled and
            point_in_polygon(action.points, point, settings.polygon_edge_epsilon)):
        return True
    tol = max(5.0, shape_stroke_weight(action) * 0.75)
    return polyline_distance(action.points, point, closed=action.closed) <= tol


def _hit_bezier(action: Bezier, point: Point, settings: HitTestSettings) -> bool:
    p0, c1, c2, p3 = action.control_points
    tol = max(5.0, shape_stroke_weight(action) * 0.8)
    prev = p0
    for i in range(1, settings.bezier_samples + 1):
        current = sample_cubic_bezier(p0, c1, c2, p3, i / settings.bezier_samples)
        if distance_to_segment(point, prev, current) <= tol:
            return True
        prev = current
    return False


def hit_test(action: Action, point: Point,
             settings: HitTestSettings = DEFAULT_HIT_TEST_SETTINGS) -> bool:
    """
    Check whether a canvas point hits an action.

    Filled shapes test their interior, unfilled ones test proximity to
    their outline. Rotated shapes are tested in their local frame. Fill
    actions are never hit.
    """
    if isinstance(action, Stroke):
        return _hit_stroke(action, point)
    if isinstance(action, Line):
        tol = max(5.0, shape_stroke_weight(action) * 0.75)
        return distance_to_segment(point, Point(action.x1, action.y1), Point(action.x2, action.y2)) <= tol
    if isinstance(action, Rect):
        return _hit_rect(action, point)
    if isinstance(action, Ellipse):
        return _hit_ellipse(action, point)
    if isinstance(action, Arc):
        return _hit_arc(action, point, settings)
    if isinstance(action, PolygonShape):
        return _hit_polygon(action, point, settings)
    if isinstance(action, Bezier):
        return _hit_bezier(action, point, settings)
    if isinstance(action, VertexPath):
        return _hit_vertex_path(action, point, settings)
    return False


def find_topmost(scene: Scene, point: Point,
                 settings: HitTestSettings = DEFAULT_HIT_TEST_SETTINGS) -> Optional[Action]:
    """Return the topmost action under point, skipping fills."""
    for action in reversed(scene.actions):
        if isinstance(action, Fill):
            continue
        if hit_test(action, point, settings):
            return action
    return None


def marquee_select(scene: Scene, start: Point, end: Point) -> List[Action]:
    """
    Actions whose bounds overlap the marquee rectangle, topmost first.

    A marquee smaller than 3x3 selects nothing.
    """
    box = BoundingBox(min(start.x, end.x), min(start.y, end.y),
                      max(start.x, end.x), max(start.y, end.y))
    if box.width < MIN_MARQUEE_SIZE and box.height < MIN_MARQUEE_SIZE:
        return []

    selected = []
    for action in reversed(scene.actions):
        if isinstance(action, Fill):
            continue
        bounds = bounds_of(action)
        if bounds is not None and bounds.intersects(box):
            selected.append(action)
    return selected


# ==================== Control points and edges ====================

def editable_points(action: Optional[Action]) -> List[Point]:
    """Ordered, directly draggable control points of an action."""
    if isinstance(action, Line):
        return [Point(action.x1, action.y1), Point(action.x2, action.y2)]
    if isinstance(action, Bezier):
        return action.control_points
    if isinstance(action, Arc):
        return [arc_point_at_angle(action, action.start), arc_point_at_angle(action, action.stop)]
    if isinstance(action, (PolygonShape, VertexPath)):
        return [Point(p.x, p.y) for p in action.points]
    return []


@dataclass
class EdgeHandle:
    """
    Midpoint marker of one drawable edge.

    kind is "line" for a Line's single edge, otherwise "points" with a and
    b naming the two point indices the edge joins.
    """
    x: float
    y: float
    kind: str = "points"
    a: int = -1
    b: int = -1

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)


def editable_edge_handles(action: Optional[Action]) -> List[EdgeHandle]:
    if isinstance(action, Line):
        return [EdgeHandle((action.x1 + action.x2) / 2, (action.y1 + action.y2) / 2, kind="line")]

    if isinstance(action, (PolygonShape, VertexPath)):
        points = action.points
        if len(points) < 2:
            return []
        closed = isinstance(action, PolygonShape) or action.closed
        end = len(points) if closed else len(points) - 1
        handles = []
        for a in range(end):
            b = (a + 1) % len(points)
            handles.append(EdgeHandle(
                (points[a].x + points[b].x) / 2,
                (points[a].y + points[b].y) / 2,
                a=a, b=b
            ))
        return handles

    return []


def find_control_point_hit(point: Point, controls: Iterable[Point],
                           settings: HitTestSettings = DEFAULT_HIT_TEST_SETTINGS) -> int:
    """Index of the first control point within reach, or -1."""
    for index, control in enumerate(controls):
        if distance(point, control) <= settings.control_point_radius:
            return index
    return -1


def find_edge_handle_hit(point: Point, edges: Iterable[EdgeHandle],
                         settings: HitTestSettings = DEFAULT_HIT_TEST_SETTINGS) -> int:
    for index, edge in enumerate(edges):
        if distance(point, edge.position) <= settings.edge_handle_radius:
            return index
    return -1


# ==================== Resize / rotate handles ====================

@dataclass
class HandleRect:
    """Square handle; (x, y) is its top-left corner."""
    x: float
    y: float
    size: float

    def contains(self, point: Point) -> bool:
        return (self.x <= point.x <= self.x + self.size and
                self.y <= point.y <= self.y + self.size)


@dataclass
class RotateHandle:
    """Circular handle centred on (x, y)."""
    x: float
    y: float
    size: float

    def contains(self, point: Point) -> bool:
        return distance(point, Point(self.x, self.y)) <= self.size / 2 + 2


def resize_handle_rect(bounds: BoundingBox) -> HandleRect:
    return HandleRect(
        bounds.max_x - SELECT_HANDLE_SIZE / 2,
        bounds.max_y - SELECT_HANDLE_SIZE / 2,
        SELECT_HANDLE_SIZE
    )


def rotate_handle(bounds: BoundingBox) -> RotateHandle:
    return RotateHandle(
        bounds.max_x + ROTATE_HANDLE_OFFSET_X,
        bounds.min_y + ROTATE_HANDLE_OFFSET_Y,
        ROTATE_HANDLE_SIZE
    )


def is_point_on_resize_handle(point: Point, bounds: BoundingBox) -> bool:
    return resize_handle_rect(bounds).contains(point)


def is_point_on_rotate_handle(point: Point, bounds: BoundingBox) -> bool:
    return rotate_handle(bounds).contains(point)


# ==================== Selection state ====================

@dataclass
class Selection:
    """
    Ordered set of selected action ids with a primary entry.

    Not part of history snapshots; call sanitize() after the scene's
    action list has been replaced.
    """
    ids: List[str] = field(default_factory=list)
    primary: Optional[str] = None

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, action_id: str) -> bool:
        return action_id in self.ids

    @property
    def is_empty(self) -> bool:
        return not self.ids

    @property
    def is_multiple(self) -> bool:
        return len(self.ids) > 1

    def set(self, ids: Iterable[str]) -> None:
        """Replace the selection; the first id becomes primary."""
        unique = []
        for action_id in ids:
            if action_id not in unique:
                unique.append(action_id)
        self.ids = unique
        self.primary = unique[0] if unique else None

    def clear(self) -> None:
        self.ids = []
        self.primary = None

    def sanitize(self, existing_ids: Iterable[str]) -> None:
        """Drop ids that are no longer in the scene and re-establish the primary."""
        existing = set(existing_ids)
        self.ids = [action_id for action_id in self.ids if action_id in existing]
        if self.primary not in self.ids:
            self.primary = self.ids[0] if self.ids else None
