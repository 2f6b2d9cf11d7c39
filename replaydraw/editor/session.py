"""
Editor Session for ReplayDraw

EditorSession is the single owner of the mutable editing state: the
scene, its history, the current selection, the style settings and the
clipboard. Every user-level operation is a method that returns an
EditResult with a status and a short human-readable message.

Each mutating operation records exactly one history entry, taken before
the change. Operations that turn out to change nothing leave history
alone.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional

import numpy as np

from ..config import (
    COPY_PASTE_OFFSET, DEFAULT_HIT_TEST_SETTINGS, FILL_TOLERANCE,
    MAX_HISTORY_STEPS, MAX_BRUSH_SIZE, MAX_OPACITY, MAX_STROKE_WEIGHT,
    MIN_BRUSH_SIZE, MIN_OPACITY, MIN_STROKE_WEIGHT, EditorSettings,
    HitTestSettings
)
from ..core.actions import (
    Action, Arc, Bezier, BrushType, Ellipse, Fill, Gradient, Line,
    PolygonShape, Rect, ShapeAction, Stroke, VertexPath, create_action_id,
    is_rotatable
)
from ..core.geometry import Point, clamp
from ..core.history import HistoryManager
from ..core.scene import Scene, bounds_of, group_bounds
from ..graphics.render import render_scene
from ..graphics.selection import (
    Selection, editable_edge_handles, editable_points, find_control_point_hit,
    find_edge_handle_hit, find_topmost, is_point_on_resize_handle,
    is_point_on_rotate_handle, marquee_select
)
from ..graphics.tools import build_shape_action, degrees_to_radians, is_action_large_enough
from ..graphics.transform import move_action
from ..image.floodfill import flood_fill
from ..io.export import generate_program
from ..io.project_io import PayloadError, dumps_payload, parse_payload
from .gestures import DragGesture, DragMode

logger = logging.getLogger(__name__)

FILLABLE_TYPES = (Rect, Ellipse, Arc, PolygonShape, VertexPath)
GRADIENT_TYPES = (Rect, Ellipse, PolygonShape)


class Status(Enum):
    CHANGED = "changed"           # scene mutated, one history entry recorded
    OK = "ok"                     # succeeded without touching the scene
    UNCHANGED = "unchanged"       # nothing to do
    NO_SELECTION = "no_selection"
    ERROR = "error"


@dataclass
class EditResult:
    status: Status
    message: str
    data: Any = None

    @property
    def changed(self) -> bool:
        return self.status == Status.CHANGED


def _no_selection() -> EditResult:
    return EditResult(Status.NO_SELECTION, "No object selected")


class EditorSession:
    """
    Editing state plus the operations that change it.

    Usage:
        session = EditorSession()
        session.commit_shape("rect", Point(10, 10), Point(110, 60))
        session.undo()
    """

    def __init__(self, settings: Optional[EditorSettings] = None,
                 history_depth: int = MAX_HISTORY_STEPS,
                 hit_settings: HitTestSettings = DEFAULT_HIT_TEST_SETTINGS):
        self.settings = settings or EditorSettings()
        self.scene = Scene(self.settings.canvas_width, self.settings.canvas_height)
        self.history = HistoryManager(history_depth)
        self.selection = Selection()
        self.hit_settings = hit_settings
        self.clipboard: Optional[Action] = None

    # ==================== Selection helpers ====================

    def selected_actions(self) -> List[Action]:
        """Selected actions in selection order, skipping stale ids."""
        actions = []
        for action_id in self.selection.ids:
            action = self.scene.get(action_id)
            if action is not None:
                actions.append(action)
        return actions

    def primary_action(self) -> Optional[Action]:
        return self.scene.get(self.selection.primary)

    def _select(self, action: Action) -> None:
        self.selection.set([action.id])

    def _mutate(self) -> None:
        """Record the pre-mutation state."""
        self.history.push(self.scene.actions)

    # ==================== Adding actions ====================

    def commit_action(self, action: Action, message: str = "Object added") -> EditResult:
        """Append a finished action and select it."""
        added = action.clone()
        if not added.id or self.scene.index_of(added.id) >= 0:
            added.id = create_action_id()

        self._mutate()
        self.scene.append(added)
        self._select(added)
        logger.debug(f"Committed {added.kind} {added.id}")
        return EditResult(Status.CHANGED, message, added)

    def commit_shape(self, tool, start: Point, end: Point) -> EditResult:
        """Finish a drag-shape gesture with the current settings."""
        action = build_shape_action(tool, start, end, self.settings)
        if not isinstance(action, (Line, Bezier)) and not is_action_large_enough(action):
            return EditResult(Status.UNCHANGED, "Shape too small to add")
        return self.commit_action(action, f"{action.label} added")

    def apply_fill(self, point: Point, raster: Optional[np.ndarray] = None) -> EditResult:
        """
        Bucket fill at a point.

        Args:
            point: seed point in canvas coordinates
            raster: current rendering of the scene; rendered on demand if None
        """
        x = int(round(point.x))
        y = int(round(point.y))
        buffer = render_scene(self.scene) if raster is None else raster.copy()

        fill = Fill(x=x, y=y, color=self.settings.color,
                    opacity=self.settings.opacity, tolerance=FILL_TOLERANCE)
        if not flood_fill(buffer, fill.x, fill.y, fill.color, fill.opacity, fill.tolerance):
            return EditResult(Status.UNCHANGED, "Fill region unchanged")

        self._mutate()
        self.scene.append(fill)
        self.selection.clear()
        return EditResult(Status.CHANGED, "Fill applied", buffer)

    # ==================== Selecting ====================

    def select_at(self, point: Point) -> EditResult:
        hit = find_topmost(self.scene, point, self.hit_settings)
        if hit is None:
            self.selection.clear()
            return _no_selection()
        self._select(hit)
        self.load_style_from(hit)
        return EditResult(Status.OK, f"{hit.label} selected", hit)

    def select_marquee(self, start: Point, end: Point) -> EditResult:
        selected = marquee_select(self.scene, start, end)
        self.selection.set(action.id for action in selected)
        if not selected:
            return _no_selection()
        self.load_style_from(selected[0])
        return EditResult(Status.OK, f"{len(selected)} object(s) selected", selected)

    def load_style_from(self, action: Optional[Action]) -> None:
        """Copy an action's style into the current settings."""
        if action is None:
            return
        settings = self.settings

        if isinstance(action, ShapeAction):
            settings.color = action.fill_color
            settings.stroke_color = action.stroke_color
            settings.stroke_weight = clamp(action.stroke_weight, MIN_STROKE_WEIGHT, MAX_STROKE_WEIGHT)
        elif isinstance(action, (Stroke, Fill)):
            settings.color = action.color
        if isinstance(action, Stroke):
            settings.size = clamp(action.size, MIN_BRUSH_SIZE, MAX_BRUSH_SIZE)

        if isinstance(action, Arc):
            settings.arc_start_deg = clamp(round(action.start * 180 / math.pi), 0, 360)
            settings.arc_stop_deg = clamp(round(action.stop * 180 / math.pi), 0, 360)

        settings.opacity = clamp(action.opacity, MIN_OPACITY, MAX_OPACITY)

        if isinstance(action, FILLABLE_TYPES):
            settings.fill_shapes = action.filled
            settings.gradient_enabled = action.gradient is not None
            if action.gradient is not None:
                settings.gradient_color = action.gradient.end_color
                settings.gradient_direction = action.gradient.direction.value

    # ==================== Editing the selection ====================

    def _styled(self, action: Action) -> Optional[Action]:
        """Copy of action with the current settings applied; None for fills."""
        if isinstance(action, Fill):
            return None
        settings = self.settings
        styled = action.clone()

        if isinstance(styled, Stroke):
            styled.size = settings.size
            if styled.brush != BrushType.ERASER:
                styled.color = settings.color
            styled.opacity = settings.opacity
            return styled

        styled.fill_color = settings.color
        styled.stroke_color = settings.stroke_color
        styled.opacity = settings.opacity
        styled.stroke_weight = settings.stroke_weight

        if isinstance(styled, FILLABLE_TYPES):
            styled.filled = settings.fill_shapes
        if isinstance(styled, GRADIENT_TYPES):
            styled.gradient = None
            if settings.gradient_enabled:
                styled.gradient = Gradient(settings.gradient_color, settings.gradient_direction)
        if isinstance(styled, Arc):
            styled.start = degrees_to_radians(settings.arc_start_deg)
            styled.stop = degrees_to_radians(settings.arc_stop_deg)
        return styled

    def apply_style(self) -> EditResult:
        """Apply the current settings to every selected action."""
        selected = self.selected_actions()
        if not selected:
            return _no_selection()

        updates = [(action, self._styled(action)) for action in selected]
        updates = [(old, new) for old, new in updates if new is not None]
        if not updates:
            return EditResult(Status.UNCHANGED, "Nothing to style")

        self._mutate()
        for old, new in updates:
            self.scene.replace_at(self.scene.index_of(old.id), new)
        return EditResult(Status.CHANGED, "Style applied")

    def delete_selected(self) -> EditResult:
        if not self.selected_actions():
            return _no_selection()
        self._mutate()
        self.scene.remove_where(self.selection.ids)
        self.selection.clear()
        return EditResult(Status.CHANGED, "Object deleted")

    # ==================== Layer order ====================

    def _reorder_by_one(self, forward: bool) -> EditResult:
        selected = set(a.id for a in self.selected_actions())
        if not selected:
            return _no_selection()

        order = list(self.scene.actions)
        changed = False
        if forward:
            for i in range(len(order) - 2, -1, -1):
                if order[i].id in selected and order[i + 1].id not in selected:
                    order[i], order[i + 1] = order[i + 1], order[i]
                    changed = True
        else:
            for i in range(1, len(order)):
                if order[i].id in selected and order[i - 1].id not in selected:
                    order[i], order[i - 1] = order[i - 1], order[i]
                    changed = True

        if not changed:
            edge = "front" if forward else "back"
            return EditResult(Status.UNCHANGED, f"Already at {edge} layer edge")

        self._mutate()
        self.scene.reorder(order)
        return EditResult(Status.CHANGED,
                          "Moved forward one layer" if forward else "Moved back one layer")

    def _reorder_absolute(self, to_front: bool) -> EditResult:
        selected_ids = set(a.id for a in self.selected_actions())
        if not selected_ids:
            return _no_selection()

        selected = [a for a in self.scene.actions if a.id in selected_ids]
        unselected = [a for a in self.scene.actions if a.id not in selected_ids]
        order = unselected + selected if to_front else selected + unselected

        if [a.id for a in order] == self.scene.ids():
            return EditResult(Status.UNCHANGED, "Already at front" if to_front else "Already at back")

        self._mutate()
        self.scene.reorder(order)
        return EditResult(Status.CHANGED, "Moved to front" if to_front else "Moved to back")

    def bring_forward(self) -> EditResult:
        return self._reorder_by_one(True)

    def send_backward(self) -> EditResult:
        return self._reorder_by_one(False)

    def bring_to_front(self) -> EditResult:
        return self._reorder_absolute(True)

    def send_to_back(self) -> EditResult:
        return self._reorder_absolute(False)

    # ==================== Clipboard ====================

    def copy_selected(self) -> EditResult:
        """Copy the primary selected action."""
        action = self.primary_action()
        if action is None:
            return _no_selection()
        self.clipboard = action.clone()
        return EditResult(Status.OK, "Object copied")

    def paste(self) -> EditResult:
        """Paste the clipboard offset from its source, with a fresh id."""
        if self.clipboard is None:
            return EditResult(Status.UNCHANGED, "Clipboard empty")

        pasted = move_action(self.clipboard, COPY_PASTE_OFFSET, COPY_PASTE_OFFSET)
        pasted.id = create_action_id()

        self._mutate()
        self.scene.append(pasted)
        self._select(pasted)
        # Repeated pastes cascade
        self.clipboard = pasted.clone()
        return EditResult(Status.CHANGED, "Object pasted", pasted)

    # ==================== History ====================

    def undo(self) -> EditResult:
        restored = self.history.undo(self.scene.actions)
        if restored is None:
            return EditResult(Status.UNCHANGED, "Nothing to undo")
        self.scene.restore(restored)
        self.selection.sanitize(self.scene.ids())
        return EditResult(Status.CHANGED, "Undo applied")

    def redo(self) -> EditResult:
        restored = self.history.redo(self.scene.actions)
        if restored is None:
            return EditResult(Status.UNCHANGED, "Nothing to redo")
        self.scene.restore(restored)
        self.selection.sanitize(self.scene.ids())
        return EditResult(Status.CHANGED, "Redo applied")

    # ==================== Canvas ====================

    def clear(self) -> EditResult:
        """Remove every action; undoable."""
        if len(self.scene) == 0:
            return EditResult(Status.UNCHANGED, "Canvas already empty")
        self._mutate()
        self.scene.clear()
        self.selection.clear()
        return EditResult(Status.CHANGED, "Canvas cleared")

    def resize_canvas(self, width: float, height: float) -> EditResult:
        """Resize the canvas. Actions keep their coordinates; history is untouched."""
        before = (self.scene.width, self.scene.height)
        self.scene.resize(width, height)
        if (self.scene.width, self.scene.height) == before:
            return EditResult(Status.UNCHANGED, "Canvas size unchanged")

        self.settings.canvas_width = self.scene.width
        self.settings.canvas_height = self.scene.height
        self.selection.sanitize(self.scene.ids())
        return EditResult(Status.OK, f"Canvas resized to {self.scene.width}x{self.scene.height}")

    # ==================== Persistence and export ====================

    def dumps(self) -> str:
        return dumps_payload(self.settings, self.scene.actions)

    def save(self, writer: Callable[[str], Any]) -> EditResult:
        """
        Serialize the session and hand the text to writer.

        Args:
            writer: callable taking the payload text, e.g. a file write.
                Any exception it raises (storage full, I/O error) is
                reported as an ERROR result.
        """
        try:
            writer(self.dumps())
        except Exception as e:
            logger.error(f"Save failed: {e}", exc_info=True)
            return EditResult(Status.ERROR, f"Save failed: {e}")
        return EditResult(Status.OK, "Project saved")

    def restore(self, text: str) -> EditResult:
        """Replace the session state from payload text; the scene is untouched on error."""
        try:
            settings, actions = parse_payload(text, self.settings)
        except PayloadError as e:
            logger.warning(f"Restore failed: {e}")
            return EditResult(Status.ERROR, "Saved project is corrupted")

        self.settings = settings
        self.scene.resize(settings.canvas_width, settings.canvas_height)
        self.scene.restore(actions)
        self.history.clear()
        self.selection.clear()
        self.clipboard = None
        logger.info(f"Restored {len(actions)} actions")
        return EditResult(Status.CHANGED, "Project restored")

    def export_program(self, image_mode: Optional[bool] = None) -> EditResult:
        """Replay program text for the current scene, in EditResult.data."""
        if image_mode is None:
            image_mode = self.settings.export_image_mode
        text = generate_program(self.scene, image_mode=image_mode)
        return EditResult(Status.OK, "Program generated", text)

    # ==================== Drag gestures ====================

    def _group_gesture(self, mode: DragMode, start: Point) -> Optional[DragGesture]:
        selected = self.selected_actions()
        if not selected:
            return None
        bounds = group_bounds(selected) if len(selected) > 1 else bounds_of(selected[0])
        if bounds is None:
            return None
        return DragGesture(self, mode, start, selected, bounds)

    def begin_move(self, start: Point) -> Optional[DragGesture]:
        return self._group_gesture(DragMode.MOVE, start)

    def begin_resize(self, start: Point) -> Optional[DragGesture]:
        return self._group_gesture(DragMode.RESIZE, start)

    def begin_rotate(self, start: Point) -> Optional[DragGesture]:
        selected = self.selected_actions()
        if len(selected) == 1 and not is_rotatable(selected[0]):
            return None
        return self._group_gesture(DragMode.ROTATE, start)

    def begin_point_drag(self, start: Point, index: int) -> Optional[DragGesture]:
        action = self.primary_action()
        if action is None or not 0 <= index < len(editable_points(action)):
            return None
        return DragGesture(self, DragMode.POINT, start, [action], bounds_of(action),
                           point_index=index)

    def begin_edge_drag(self, start: Point, edge_index: int) -> Optional[DragGesture]:
        action = self.primary_action()
        edges = editable_edge_handles(action)
        if action is None or not 0 <= edge_index < len(edges):
            return None
        return DragGesture(self, DragMode.EDGE, start, [action], bounds_of(action),
                           edge=edges[edge_index])

    def begin_interaction(self, point: Point) -> Optional[DragGesture]:
        """
        Start whatever drag a select-tool press at point means.

        Handles of the current selection win over hits on other actions.
        Returns None (with the selection cleared) when the press hits
        nothing, which is where a caller starts a marquee.
        """
        selected = self.selected_actions()

        if len(selected) > 1:
            bounds = group_bounds(selected)
            if bounds is not None:
                if is_point_on_rotate_handle(point, bounds):
                    return self.begin_rotate(point)
                if is_point_on_resize_handle(point, bounds):
                    return self.begin_resize(point)
                if bounds.contains(point):
                    return self.begin_move(point)

        elif len(selected) == 1:
            action = selected[0]
            point_hit = find_control_point_hit(point, editable_points(action), self.hit_settings)
            if point_hit >= 0:
                return self.begin_point_drag(point, point_hit)
            edge_hit = find_edge_handle_hit(point, editable_edge_handles(action), self.hit_settings)
            if edge_hit >= 0:
                return self.begin_edge_drag(point, edge_hit)
            bounds = bounds_of(action)
            if bounds is not None:
                if is_point_on_rotate_handle(point, bounds) and is_rotatable(action):
                    return self.begin_rotate(point)
                if is_point_on_resize_handle(point, bounds):
                    return self.begin_resize(point)

        hit = find_topmost(self.scene, point, self.hit_settings)
        if hit is None:
            self.selection.clear()
            return None

        if not (hit.id in self.selection and self.selection.is_multiple):
            self._select(hit)
            self.load_style_from(hit)
        return self.begin_move(point)
