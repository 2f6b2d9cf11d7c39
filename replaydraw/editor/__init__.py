"""
ReplayDraw Editor Module

EditorSession and the drag gestures it hands out.
"""

from .session import EditorSession, EditResult, Status
from .gestures import DragGesture, DragMode

__all__ = ['EditorSession', 'EditResult', 'Status', 'DragGesture', 'DragMode']
