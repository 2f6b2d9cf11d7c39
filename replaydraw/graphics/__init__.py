"""
ReplayDraw Graphics Module

Contains the interactive and rendering components:
- Selection: Hit testing, marquee and handles
- Transform: Move, rotate, scale and point/edge editing
- Tools: Turning pointer input into actions
- Render: Rasterizing a scene with Pillow
"""

from .selection import Selection, hit_test, find_topmost, marquee_select
from .transform import move_action, rotate_action, scale_action_from
from .tools import ToolType, StrokeBuilder, PathDraft, build_shape_action
from .render import SceneRasterizer, render_scene, render_png

__all__ = [
    # Selection
    'Selection',
    'hit_test',
    'find_topmost',
    'marquee_select',
    # Transform
    'move_action',
    'rotate_action',
    'scale_action_from',
    # Tools
    'ToolType',
    'StrokeBuilder',
    'PathDraft',
    'build_shape_action',
    # Render
    'SceneRasterizer',
    'render_scene',
    'render_png',
]
