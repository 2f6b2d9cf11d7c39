"""
Drag Gestures for ReplayDraw

A DragGesture is the caller-owned state of one pointer drag over the
selection. It keeps the original actions and recomputes every update from
them, so a drag never accumulates rounding drift. History is only touched
on the first update that actually changes something.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from ..config import DragThresholds
from ..core.actions import Action
from ..core.geometry import BoundingBox, Point, angle_between
from ..core.history import PushRecord
from ..graphics.selection import EdgeHandle
from ..graphics.transform import (
    move_control_point, move_edge, move_group, resize_factors, rotate_group,
    scale_group
)

if TYPE_CHECKING:
    from .session import EditorSession

logger = logging.getLogger(__name__)


class DragMode(Enum):
    MOVE = "move"
    RESIZE = "resize"
    ROTATE = "rotate"
    POINT = "point"
    EDGE = "edge"


class DragGesture:
    """
    One in-progress drag.

    Usage:
        gesture = session.begin_move(start)
        gesture.update(point)      # on every pointer move
        result = gesture.finish()  # or gesture.cancel()
    """

    def __init__(self, session: 'EditorSession', mode: DragMode, start: Point,
                 originals: List[Action], bounds: Optional[BoundingBox] = None,
                 point_index: int = -1, edge: Optional[EdgeHandle] = None,
                 thresholds: Optional[DragThresholds] = None):
        self.session = session
        self.mode = mode
        self.start = Point(start.x, start.y)
        self.originals = [action.clone() for action in originals]
        self.bounds = bounds
        self.point_index = point_index
        self.edge = edge
        self.thresholds = thresholds or DragThresholds()
        self.did_change = False
        self.active = True
        self.push_record: Optional[PushRecord] = None

        self.rotate_center: Optional[Point] = None
        self.rotate_start_angle = 0.0
        if mode == DragMode.ROTATE and bounds is not None:
            self.rotate_center = bounds.center
            self.rotate_start_angle = angle_between(self.rotate_center, self.start)

    def _transformed(self, point: Point) -> Optional[List[Action]]:
        """New values for the originals, or None when below the threshold."""
        if self.mode in (DragMode.MOVE, DragMode.EDGE):
            dx = point.x - self.start.x
            dy = point.y - self.start.y
            if abs(dx) < self.thresholds.move and abs(dy) < self.thresholds.move:
                return None
            if self.mode == DragMode.MOVE:
                return move_group(self.originals, dx, dy)
            if self.edge is None:
                return None
            return [move_edge(self.originals[0], self.edge, dx, dy)]

        if self.mode == DragMode.POINT:
            if self.point_index < 0:
                return None
            return [move_control_point(self.originals[0], self.point_index, point)]

        if self.mode == DragMode.ROTATE:
            if self.rotate_center is None:
                return None
            delta = angle_between(self.rotate_center, point) - self.rotate_start_angle
            if abs(delta) < self.thresholds.rotate:
                return None
            return rotate_group(self.originals, self.rotate_center, delta)

        if self.mode == DragMode.RESIZE:
            if self.bounds is None:
                return None
            anchor, scale_x, scale_y = resize_factors(self.bounds, point)
            if abs(scale_x - 1) < self.thresholds.scale and abs(scale_y - 1) < self.thresholds.scale:
                return None
            return scale_group(self.originals, anchor, scale_x, scale_y)

        return None

    def update(self, point: Point) -> bool:
        """
        Apply the drag for the current pointer position.

        Returns:
            True if the scene was updated
        """
        if not self.active or not self.originals:
            return False
        updated = self._transformed(point)
        if updated is None:
            return False

        if not self.did_change:
            self.push_record = self.session.history.push(self.session.scene.actions)
            self.did_change = True

        scene = self.session.scene
        for action in updated:
            index = scene.index_of(action.id)
            if index >= 0:
                scene.replace_at(index, action)
        return True

    def finish(self):
        """End the drag and report whether anything was committed."""
        from .session import EditResult, Status

        self.active = False
        if self.did_change:
            return EditResult(Status.CHANGED, "Object updated")
        return EditResult(Status.UNCHANGED, "Nothing moved")

    def cancel(self) -> None:
        """Abandon the drag and put the original actions back."""
        if not self.active:
            return
        self.active = False
        if not self.did_change:
            return
        scene = self.session.scene
        for action in self.originals:
            index = scene.index_of(action.id)
            if index >= 0:
                scene.replace_at(index, action.clone())
        self.session.history.rollback(self.push_record)
        logger.debug(f"Cancelled {self.mode.value} drag")
