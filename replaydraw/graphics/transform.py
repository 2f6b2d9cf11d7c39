"""
Transform Operations for ReplayDraw

Handles transformation of actions including:
- Translation (move)
- Rotation about an arbitrary centre
- Scaling from an anchor (resize handle)
- Per-point and per-edge edits

Every operator returns a new action and leaves its input untouched; the
identity is carried over unchanged.
"""

import math
from typing import List, Sequence, Tuple

from ..core.actions import (
    Action, Arc, Bezier, Ellipse, Line, PolygonShape, Rect, ShapeAction,
    Stroke, VertexPath, is_rotatable, shape_rotation, shape_stroke_weight
)
from ..core.geometry import (
    BoundingBox, Point, normalize_angle, rotate_point, to_local_rotated_point
)
from .selection import EdgeHandle

MIN_BOX_SIZE = 2.0
MIN_RESIZE_EXTENT = 2.0


def _map_points(points: Sequence[Point], func) -> List[Point]:
    return [func(p) for p in points]


def move_action(action: Action, dx: float, dy: float) -> Action:
    """Translate every coordinate of an action by (dx, dy)."""
    updated = action.clone()

    if isinstance(updated, Line):
        updated.x1 += dx
        updated.y1 += dy
        updated.x2 += dx
        updated.y2 += dy
    elif isinstance(updated, (Rect, Ellipse, Arc)):
        updated.x += dx
        updated.y += dy
    elif isinstance(updated, Bezier):
        updated.x1 += dx
        updated.y1 += dy
        updated.cx1 += dx
        updated.cy1 += dy
        updated.cx2 += dx
        updated.cy2 += dy
        updated.x2 += dx
        updated.y2 += dy
    elif isinstance(updated, (PolygonShape, VertexPath)):
        updated.points = _map_points(updated.points, lambda p: p.translated(dx, dy))
    elif isinstance(updated, Stroke):
        updated.points = _map_points(updated.points, lambda p: p.translated(dx, dy))
        updated.dots = _map_points(updated.dots, lambda p: p.translated(dx, dy))

    return updated


def rotate_action(action: Action, center: Point, angle_delta: float) -> Action:
    """
    Rotate an action about center by angle_delta radians.

    Point-based actions rotate their points. Rect, Ellipse and Arc keep
    their local geometry: their centre is rotated and angle_delta is added
    to the stored rotation. Fills are returned unchanged.
    """
    updated = action.clone()
    if not is_rotatable(updated):
        return updated

    def rot(p: Point) -> Point:
        return rotate_point(p, center, angle_delta)

    if isinstance(updated, Line):
        p1 = rot(Point(updated.x1, updated.y1))
        p2 = rot(Point(updated.x2, updated.y2))
        updated.x1, updated.y1 = p1.x, p1.y
        updated.x2, updated.y2 = p2.x, p2.y
    elif isinstance(updated, Bezier):
        p1, c1, c2, p2 = [rot(p) for p in updated.control_points]
        updated.x1, updated.y1 = p1.x, p1.y
        updated.cx1, updated.cy1 = c1.x, c1.y
        updated.cx2, updated.cy2 = c2.x, c2.y
        updated.x2, updated.y2 = p2.x, p2.y
    elif isinstance(updated, (Rect, Ellipse, Arc)):
        new_center = rot(updated.center)
        updated.x = new_center.x - updated.w / 2
        updated.y = new_center.y - updated.h / 2
        updated.rotation = normalize_angle(shape_rotation(updated) + angle_delta)
    elif isinstance(updated, Stroke):
        updated.points = _map_points(updated.points, rot)
        updated.dots = _map_points(updated.dots, rot)
    elif isinstance(updated, (PolygonShape, VertexPath)):
        updated.points = _map_points(updated.points, rot)

    return updated


def scale_action_from(action: Action, anchor_x: float, anchor_y: float,
                      scale_x: float, scale_y: float) -> Action:
    """
    Scale an action relative to a fixed anchor.

    Rect/Ellipse/Arc sizes are floored at 2. Stroke weight (or brush
    size) scales by the mean of the two factors, floored at 1.
    """
    updated = action.clone()
    mean_scale = (scale_x + scale_y) / 2

    def sx(value: float) -> float:
        return anchor_x + (value - anchor_x) * scale_x

    def sy(value: float) -> float:
        return anchor_y + (value - anchor_y) * scale_y

    def sp(p: Point) -> Point:
        return Point(sx(p.x), sy(p.y))

    if isinstance(updated, Line):
        updated.x1, updated.y1 = sx(updated.x1), sy(updated.y1)
        updated.x2, updated.y2 = sx(updated.x2), sy(updated.y2)
    elif isinstance(updated, (Rect, Ellipse, Arc)):
        updated.x = sx(updated.x)
        updated.y = sy(updated.y)
        updated.w = max(MIN_BOX_SIZE, updated.w * scale_x)
        updated.h = max(MIN_BOX_SIZE, updated.h * scale_y)
    elif isinstance(updated, Bezier):
        updated.x1, updated.y1 = sx(updated.x1), sy(updated.y1)
        updated.cx1, updated.cy1 = sx(updated.cx1), sy(updated.cy1)
        updated.cx2, updated.cy2 = sx(updated.cx2), sy(updated.cy2)
        updated.x2, updated.y2 = sx(updated.x2), sy(updated.y2)
    elif isinstance(updated, (PolygonShape, VertexPath)):
        updated.points = _map_points(updated.points, sp)
    elif isinstance(updated, Stroke):
        updated.points = _map_points(updated.points, sp)
        updated.dots = _map_points(updated.dots, sp)
        updated.size = max(1.0, updated.size * mean_scale)
        return updated

    if isinstance(updated, ShapeAction):
        updated.stroke_weight = max(1.0, shape_stroke_weight(updated) * mean_scale)
    return updated


def move_control_point(action: Action, index: int, point: Point) -> Action:
    """
    Move one editable control point to point.

    For arcs, index 0 edits the start angle and index 1 the stop angle;
    the point is mapped into the unrotated frame and its angle measured
    on the ellipse's aspect-normalized circle. Out-of-range indices leave
    the action unchanged.
    """
    updated = action.clone()

    if isinstance(updated, Line):
        if index == 0:
            updated.x1, updated.y1 = point.x, point.y
        elif index == 1:
            updated.x2, updated.y2 = point.x, point.y
    elif isinstance(updated, Bezier):
        if index == 0:
            updated.x1, updated.y1 = point.x, point.y
        elif index == 1:
            updated.cx1, updated.cy1 = point.x, point.y
        elif index == 2:
            updated.cx2, updated.cy2 = point.x, point.y
        elif index == 3:
            updated.x2, updated.y2 = point.x, point.y
    elif isinstance(updated, (PolygonShape, VertexPath)):
        if 0 <= index < len(updated.points):
            updated.points[index] = Point(point.x, point.y)
    elif isinstance(updated, Arc) and index in (0, 1):
        center = updated.center
        local = to_local_rotated_point(point, center, shape_rotation(updated))
        rx, ry = updated.radii
        angle = normalize_angle(math.atan2((local.y - center.y) / ry, (local.x - center.x) / rx))
        if index == 0:
            updated.start = angle
        else:
            updated.stop = angle

    return updated


def move_edge(action: Action, edge: EdgeHandle, dx: float, dy: float) -> Action:
    """Translate exactly the two endpoints an edge handle stands for."""
    updated = action.clone()
    if edge is None:
        return updated

    if edge.kind == "line" and isinstance(updated, Line):
        return move_action(updated, dx, dy)

    if edge.kind == "points" and isinstance(updated, (PolygonShape, VertexPath)):
        for index in {edge.a, edge.b}:
            if 0 <= index < len(updated.points):
                updated.points[index] = updated.points[index].translated(dx, dy)

    return updated


# ==================== Group operators ====================

def move_group(actions: Sequence[Action], dx: float, dy: float) -> List[Action]:
    return [move_action(action, dx, dy) for action in actions]


def rotate_group(actions: Sequence[Action], center: Point, angle_delta: float) -> List[Action]:
    """Rotate every action about one shared centre."""
    return [rotate_action(action, center, angle_delta) for action in actions]


def scale_group(actions: Sequence[Action], anchor: Point,
                scale_x: float, scale_y: float) -> List[Action]:
    return [scale_action_from(action, anchor.x, anchor.y, scale_x, scale_y) for action in actions]


def resize_factors(bounds: BoundingBox, point: Point) -> Tuple[Point, float, float]:
    """
    Scale factors for dragging the resize handle of bounds to point.

    The anchor is the bounds' top-left corner. Start and target extents
    are floored at 2 so a collapsed drag never divides by zero or flips.

    Returns:
        (anchor, scale_x, scale_y)
    """
    anchor = Point(bounds.min_x, bounds.min_y)
    start_w = max(MIN_RESIZE_EXTENT, bounds.width)
    start_h = max(MIN_RESIZE_EXTENT, bounds.height)
    target_w = max(MIN_RESIZE_EXTENT, point.x - anchor.x)
    target_h = max(MIN_RESIZE_EXTENT, point.y - anchor.y)
    return anchor, target_w / start_w, target_h / start_h
