"""
ReplayDraw Geometry Kernel

Point and bounding box types plus the pure predicates used by hit-testing,
bounds derivation and rendering. Nothing in here knows about actions.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import math

TAU = math.pi * 2
FULL_SWEEP_EPSILON = 0.0001
CATMULL_ROM_TANGENT_SCALE = 1.0 / 6.0


@dataclass
class Point:
    """A 2D point."""
    x: float
    y: float

    def __add__(self, other: 'Point') -> 'Point':
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Point') -> 'Point':
        return Point(self.x - other.x, self.y - other.y)

    def distance_to(self, other: 'Point') -> float:
        """Calculate Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def rotate(self, angle: float, center: Optional['Point'] = None) -> 'Point':
        """Rotate point around center by angle (radians)."""
        if center is None:
            center = Point(0, 0)
        return rotate_point(self, center, angle)

    def translated(self, dx: float, dy: float) -> 'Point':
        return Point(self.x + dx, self.y + dy)


@dataclass
class BoundingBox:
    """Axis-aligned bounding box."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Point:
        return Point(
            (self.min_x + self.max_x) / 2,
            (self.min_y + self.max_y) / 2
        )

    def contains(self, point: Point) -> bool:
        """Check if point is inside bounding box (edges inclusive)."""
        return (self.min_x <= point.x <= self.max_x and
                self.min_y <= point.y <= self.max_y)

    def intersects(self, other: 'BoundingBox') -> bool:
        """Check if two bounding boxes overlap."""
        return not (self.max_x < other.min_x or
                    self.min_x > other.max_x or
                    self.max_y < other.min_y or
                    self.min_y > other.max_y)

    def union(self, other: 'BoundingBox') -> 'BoundingBox':
        return BoundingBox(
            min_x=min(self.min_x, other.min_x),
            min_y=min(self.min_y, other.min_y),
            max_x=max(self.max_x, other.max_x),
            max_y=max(self.max_y, other.max_y)
        )

    def expanded(self, margin: float) -> 'BoundingBox':
        return BoundingBox(
            self.min_x - margin, self.min_y - margin,
            self.max_x + margin, self.max_y + margin
        )


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def normalize_angle(angle: float) -> float:
    """Wrap an angle into [0, 2π)."""
    out = math.fmod(angle, TAU)
    if out < 0:
        out += TAU
    # fmod of a tiny negative value can round up to exactly TAU
    if out >= TAU:
        out = 0.0
    return out


def angle_between(center: Point, point: Point) -> float:
    """Angle of the vector center->point, as returned by atan2."""
    return math.atan2(point.y - center.y, point.x - center.x)


def rotate_point(point: Point, center: Point, angle: float) -> Point:
    """Rotate point about center by angle (radians, y axis pointing down)."""
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    dx = point.x - center.x
    dy = point.y - center.y
    return Point(
        center.x + dx * cos_a - dy * sin_a,
        center.y + dx * sin_a + dy * cos_a
    )


def to_local_rotated_point(point: Point, center: Point, rotation: float) -> Point:
    """
    Map a canvas point into a shape's unrotated local frame.

    Hit-testing and bounds both go through this so that they agree with
    how a rotated shape is painted.
    """
    if not rotation:
        return Point(point.x, point.y)
    return rotate_point(point, center, -rotation)


def distance_to_segment(point: Point, a: Point, b: Point) -> float:
    """
    Distance from point to the segment a-b.

    The projection parameter is clamped to [0, 1]; a degenerate segment
    falls back to the point distance.
    """
    dx = b.x - a.x
    dy = b.y - a.y
    if dx == 0 and dy == 0:
        return distance(point, a)
    t = clamp(((point.x - a.x) * dx + (point.y - a.y) * dy) / (dx * dx + dy * dy), 0.0, 1.0)
    return math.hypot(point.x - (a.x + t * dx), point.y - (a.y + t * dy))


def point_in_polygon(points: Sequence[Point], point: Point,
                     epsilon: float = 0.000001) -> bool:
    """
    Check if a point is inside a polygon using ray casting.

    A small epsilon is added to each edge's y-difference so horizontal
    edges never divide by zero. Points lying exactly on a horizontal edge
    can therefore be reported as outside.
    """
    inside = False
    n = len(points)
    j = n - 1
    for i in range(n):
        xi, yi = points[i].x, points[i].y
        xj, yj = points[j].x, points[j].y
        if ((yi > point.y) != (yj > point.y) and
                point.x < (xj - xi) * (point.y - yi) / (yj - yi + epsilon) + xi):
            inside = not inside
        j = i
    return inside


def ellipse_value(point: Point, center: Point, rx: float, ry: float,
                  rotation: float = 0.0) -> float:
    """
    Evaluate the normalized ellipse equation for a point.

    Returns < 1 inside, 1 on the boundary and > 1 outside.
    """
    local = to_local_rotated_point(point, center, rotation)
    nx = (local.x - center.x) / rx
    ny = (local.y - center.y) / ry
    return nx * nx + ny * ny


def ellipse_edge_tolerance(stroke_weight: float, width: float, height: float) -> float:
    """Band around the normalized radius that counts as the outline."""
    extent = max(width, height)
    if extent <= 0:
        return 0.08
    return max(0.08, stroke_weight / extent * 2.2)


def angle_within_sweep(theta: float, start: float, stop: float) -> bool:
    """
    Check whether theta lies on the sweep from start to stop.

    All three angles are normalized into [0, 2π); stop is pushed up by 2π
    until it is not below start. A sweep of 2π (minus epsilon) covers
    every angle.
    """
    norm_start = normalize_angle(start)
    norm_stop = normalize_angle(stop)
    while norm_stop < norm_start:
        norm_stop += TAU
    if norm_stop - norm_start >= TAU - FULL_SWEEP_EPSILON:
        return True
    norm_theta = normalize_angle(theta)
    while norm_theta < norm_start:
        norm_theta += TAU
    return norm_theta <= norm_stop


def sample_cubic_bezier(p0: Point, c1: Point, c2: Point, p3: Point, t: float) -> Point:
    u = 1 - t
    uu = u * u
    tt = t * t
    return Point(
        uu * u * p0.x + 3 * uu * t * c1.x + 3 * u * tt * c2.x + tt * t * p3.x,
        uu * u * p0.y + 3 * uu * t * c1.y + 3 * u * tt * c2.y + tt * t * p3.y
    )


BezierSegment = Tuple[Point, Point, Point, Point]


def catmull_rom_segments(points: Sequence[Point], closed: bool) -> List[BezierSegment]:
    """
    Convert a uniform Catmull-Rom spline into cubic Bézier segments.

    Open splines duplicate their end points, closed splines wrap around to
    their neighbours. Tangents use a fixed 1/6 scale; tension is not
    adjustable. With fewer than three points the result is one straight
    segment (or nothing).
    """
    if len(points) < 2:
        return []
    if len(points) < 3:
        a, b = points[0], points[1]
        return [(a, a, b, b)]

    if closed:
        local = [points[-1], *points, points[0], points[1]]
    else:
        local = [points[0], *points, points[-1]]

    segments = []
    for i in range(len(local) - 3):
        p0, p1, p2, p3 = local[i], local[i + 1], local[i + 2], local[i + 3]
        c1 = Point(p1.x + (p2.x - p0.x) * CATMULL_ROM_TANGENT_SCALE,
                   p1.y + (p2.y - p0.y) * CATMULL_ROM_TANGENT_SCALE)
        c2 = Point(p2.x - (p3.x - p1.x) * CATMULL_ROM_TANGENT_SCALE,
                   p2.y - (p3.y - p1.y) * CATMULL_ROM_TANGENT_SCALE)
        segments.append((p1, c1, c2, p2))
    return segments


def sample_catmull_rom(points: Sequence[Point], closed: bool,
                       steps_per_segment: int = 16) -> List[Point]:
    """Flatten a Catmull-Rom spline into a polyline."""
    segments = catmull_rom_segments(points, closed)
    if not segments:
        return [Point(p.x, p.y) for p in points]
    result = [Point(segments[0][0].x, segments[0][0].y)]
    for p0, c1, c2, p3 in segments:
        for i in range(1, steps_per_segment + 1):
            result.append(sample_cubic_bezier(p0, c1, c2, p3, i / steps_per_segment))
    return result


def bounds_from_points(points: Sequence[Point], margin: float = 0.0) -> Optional[BoundingBox]:
    """Bounding box of a point list grown by margin, or None when empty."""
    if not points:
        return None
    return BoundingBox(
        min_x=min(p.x for p in points) - margin,
        min_y=min(p.y for p in points) - margin,
        max_x=max(p.x for p in points) + margin,
        max_y=max(p.y for p in points) + margin
    )


def polyline_distance(points: Sequence[Point], point: Point, closed: bool = False) -> float:
    """Smallest distance from point to a polyline (optionally closed)."""
    if not points:
        return math.inf
    if len(points) == 1:
        return distance(points[0], point)
    best = math.inf
    for i in range(1, len(points)):
        best = min(best, distance_to_segment(point, points[i - 1], points[i]))
    if closed and len(points) > 2:
        best = min(best, distance_to_segment(point, points[-1], points[0]))
    return best
