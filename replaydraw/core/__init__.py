"""
ReplayDraw Core Module

Contains the core data structures:
- Geometry: Point, BoundingBox and the hit-testing math
- Actions: Stroke, Line, Rect, Ellipse, Arc, PolygonShape, Bezier, VertexPath, Fill
- Scene: Ordered action list plus canvas size
- History: Bounded undo/redo snapshots
"""

# Import order matters - geometry first, then actions, then scene
from .geometry import Point, BoundingBox
from .actions import (
    Action, Stroke, ShapeAction, Line, Rect, Ellipse, Arc, PolygonShape,
    Bezier, VertexPath, Fill, Gradient, GradientDirection, BrushType
)
from .scene import Scene, DuplicateActionError, bounds_of, group_bounds
from .history import HistoryManager, PushRecord

__all__ = [
    'Point', 'BoundingBox',
    'Action', 'Stroke', 'ShapeAction', 'Line', 'Rect', 'Ellipse', 'Arc',
    'PolygonShape', 'Bezier', 'VertexPath', 'Fill',
    'Gradient', 'GradientDirection', 'BrushType',
    'Scene', 'DuplicateActionError', 'bounds_of', 'group_bounds',
    'HistoryManager', 'PushRecord'
]
