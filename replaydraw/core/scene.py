"""
ReplayDraw Scene Model

The Scene is the root container for the drawing: an ordered list of
actions (index 0 paints first) plus the canvas dimensions.
"""

import logging
from typing import Iterable, Iterator, List, Optional, Sequence, Set

from ..config import (
    DEFAULT_CANVAS_HEIGHT, DEFAULT_CANVAS_WIDTH, MAX_CANVAS_SIZE, MIN_CANVAS_SIZE
)
from .actions import (
    Action, Arc, Bezier, Ellipse, Line, PolygonShape, Rect, Stroke,
    VertexPath, clone_actions, create_action_id, polygon_points_from_bounds,
    shape_rotation, shape_stroke_weight
)
from .geometry import (
    BoundingBox, Point, bounds_from_points, clamp, rotate_point, sample_cubic_bezier
)

logger = logging.getLogger(__name__)

BEZIER_BOUNDS_SAMPLES = 40


class DuplicateActionError(ValueError):
    """Raised when an action would share its identity with another scene entry."""


def clamp_canvas_size(value: float) -> int:
    return int(clamp(round(value), MIN_CANVAS_SIZE, MAX_CANVAS_SIZE))


class Scene:
    """
    Ordered collection of actions.

    All operations are linear scans; scenes hold hundreds of actions, not
    millions, so no secondary index is kept.
    """

    def __init__(self, width: float = DEFAULT_CANVAS_WIDTH,
                 height: float = DEFAULT_CANVAS_HEIGHT,
                 actions: Optional[Iterable[Action]] = None):
        self.width = clamp_canvas_size(width)
        self.height = clamp_canvas_size(height)
        self.actions: List[Action] = []
        if actions is not None:
            self.restore(actions)

    def __len__(self) -> int:
        return len(self.actions)

    def __iter__(self) -> Iterator[Action]:
        return iter(self.actions)

    def __getitem__(self, index: int) -> Action:
        return self.actions[index]

    def resize(self, width: float, height: float) -> None:
        """Set canvas size, clamped to the supported range."""
        self.width = clamp_canvas_size(width)
        self.height = clamp_canvas_size(height)

    def ids(self) -> List[str]:
        return [action.id for action in self.actions]

    def index_of(self, action_id: Optional[str]) -> int:
        """Index of the action with this id, or -1."""
        if not action_id:
            return -1
        for index, action in enumerate(self.actions):
            if action.id == action_id:
                return index
        return -1

    def get(self, action_id: Optional[str]) -> Optional[Action]:
        index = self.index_of(action_id)
        return self.actions[index] if index >= 0 else None

    def append(self, action: Action) -> None:
        """Add an action on top of the paint order."""
        if self.index_of(action.id) >= 0:
            raise DuplicateActionError(f"Action {action.id} is already in the scene")
        self.actions.append(action)

    def replace_at(self, index: int, action: Action) -> None:
        """Replace the value at index; the new value may not reuse another entry's id."""
        existing = self.index_of(action.id)
        if existing >= 0 and existing != index:
            raise DuplicateActionError(f"Action {action.id} is already at index {existing}")
        self.actions[index] = action

    def remove_where(self, ids: Iterable[str]) -> int:
        """Remove every action whose id is in ids; returns how many were removed."""
        id_set: Set[str] = set(ids)
        before = len(self.actions)
        self.actions = [a for a in self.actions if a.id not in id_set]
        return before - len(self.actions)

    def reorder(self, new_order: Sequence) -> None:
        """
        Replace the paint order.

        Args:
            new_order: the same actions (or their ids) in the new order
        """
        current = {action.id: action for action in self.actions}
        order_ids = [item if isinstance(item, str) else item.id for item in new_order]
        if len(order_ids) != len(current) or set(order_ids) != set(current):
            raise ValueError("New order must be a permutation of the scene's actions")
        self.actions = [current[action_id] for action_id in order_ids]

    def clear(self) -> None:
        self.actions = []

    def snapshot(self) -> List[Action]:
        """Deep copy of the current action list."""
        return clone_actions(self.actions)

    def restore(self, actions: Iterable[Action]) -> None:
        """Replace the whole list (used by history rollback and loading)."""
        restored = list(actions)
        ensure_action_ids(restored)
        self.actions = restored


def ensure_action_ids(actions: List[Action]) -> None:
    """
    Make a loaded action list satisfy the scene invariants.

    Missing or duplicated ids get fresh ones, and polygon shapes without
    enough points are given their default outline.
    """
    seen: Set[str] = set()
    for action in actions:
        if not action.id or action.id in seen:
            if action.id:
                logger.warning(f"Duplicate action id {action.id}; assigning a new one")
            action.id = create_action_id()
        seen.add(action.id)
        if isinstance(action, PolygonShape) and len(action.points) < 3:
            action.points = polygon_points_from_bounds(
                action.shape, action.x, action.y, action.w, action.h
            )


def stroke_margin(action: Action) -> float:
    return max(2.0, shape_stroke_weight(action) * 0.6)


def bezier_samples(action: Bezier, count: int = BEZIER_BOUNDS_SAMPLES) -> List[Point]:
    p0, c1, c2, p3 = action.control_points
    return [sample_cubic_bezier(p0, c1, c2, p3, i / count) for i in range(count + 1)]


def box_corners(action) -> List[Point]:
    """Corners of a rect/ellipse/arc box, rotated about the box centre."""
    corners = [
        Point(action.x, action.y),
        Point(action.x + action.w, action.y),
        Point(action.x + action.w, action.y + action.h),
        Point(action.x, action.y + action.h)
    ]
    rotation = shape_rotation(action)
    if not rotation:
        return corners
    center = action.center
    return [rotate_point(corner, center, rotation) for corner in corners]


def bounds_of(action: Action) -> Optional[BoundingBox]:
    """
    Axis-aligned bounds of an action including its stroke margin.

    Pure function of the current field values; nothing is cached. Fill
    actions have no bounds.
    """
    if isinstance(action, Line):
        return bounds_from_points(
            [Point(action.x1, action.y1), Point(action.x2, action.y2)],
            stroke_margin(action)
        )
    if isinstance(action, (Rect, Ellipse, Arc)):
        return bounds_from_points(box_corners(action), stroke_margin(action))
    if isinstance(action, Stroke):
        points = action.dots if action.is_spray else action.points
        return bounds_from_points(points, max(2.0, action.size * 0.9))
    if isinstance(action, (PolygonShape, VertexPath)):
        return bounds_from_points(action.points, stroke_margin(action))
    if isinstance(action, Bezier):
        return bounds_from_points(bezier_samples(action), stroke_margin(action))
    return None


def fill_bounds(action: Action) -> Optional[BoundingBox]:
    """Unexpanded geometry box used to lay out gradient fills."""
    if isinstance(action, (Rect, Ellipse)):
        return BoundingBox(action.x, action.y, action.x + action.w, action.y + action.h)
    if isinstance(action, (PolygonShape, VertexPath)):
        return bounds_from_points(action.points, 0)
    return bounds_of(action)


def group_bounds(actions: Iterable[Action]) -> Optional[BoundingBox]:
    """Union of the bounds of several actions; fills are ignored."""
    result = None
    for action in actions:
        bounds = bounds_of(action)
        if bounds is None:
            continue
        result = bounds if result is None else result.union(bounds)
    return result
