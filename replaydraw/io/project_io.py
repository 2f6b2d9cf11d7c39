"""
Project File I/O for ReplayDraw

Handles the persisted session payload:

    {version, savedAt, settings: {...}, actions: [...]}

Keys use the camelCase names of the payload schema. Any missing field
takes its default; a payload that cannot be parsed raises PayloadError
and nothing is changed.
"""

import json
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..config import PAYLOAD_VERSION, EditorSettings
from ..core.actions import (
    ACTION_TYPES, Action, Arc, Bezier, Ellipse, Fill, Gradient,
    GradientDirection, Line, PolygonShape, Rect, ShapeAction, Stroke,
    VertexPath, DEFAULT_FILL_COLOR, DEFAULT_STROKE_COLOR, DEFAULT_STROKE_WEIGHT
)
from ..core.geometry import Point
from ..core.scene import ensure_action_ids

logger = logging.getLogger(__name__)


class PayloadError(ValueError):
    """Raised when a persisted payload is not valid JSON or not a payload object."""


# ==================== Value coercion ====================

def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # Integers too large for a float
        return False


def _number(data: Dict[str, Any], key: str, default: float) -> float:
    value = data.get(key)
    return float(value) if _is_number(value) else default


def _string(data: Dict[str, Any], key: str, default: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else default


def _bool(data: Dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key)
    return value if isinstance(value, bool) else default


def point_to_dict(point: Point) -> Dict[str, float]:
    return {'x': point.x, 'y': point.y}


def dict_to_points(value) -> List[Point]:
    """Convert a list of {x, y} dicts, skipping malformed entries."""
    if not isinstance(value, list):
        return []
    points = []
    for item in value:
        if isinstance(item, dict) and _is_number(item.get('x')) and _is_number(item.get('y')):
            points.append(Point(float(item['x']), float(item['y'])))
    return points


# ==================== Settings ====================

def settings_to_dict(settings: EditorSettings) -> Dict[str, Any]:
    """Convert EditorSettings to the payload's settings block."""
    return {
        'tool': settings.tool,
        'color': settings.color,
        'size': settings.size,
        'strokeColor': settings.stroke_color,
        'strokeWeight': settings.stroke_weight,
        'arcStartDeg': settings.arc_start_deg,
        'arcStopDeg': settings.arc_stop_deg,
        'opacity': settings.opacity,
        'fillShapes': settings.fill_shapes,
        'gradientEnabled': settings.gradient_enabled,
        'gradientColor': settings.gradient_color,
        'gradientDirection': settings.gradient_direction,
        'exportImageMode': settings.export_image_mode,
        'canvasWidth': settings.canvas_width,
        'canvasHeight': settings.canvas_height
    }


def dict_to_settings(settings_dict: Dict[str, Any],
                     base: Optional[EditorSettings] = None) -> EditorSettings:
    """
    Convert a settings block to EditorSettings.

    Fields with a missing or wrongly typed value keep the value from base
    (or the defaults). The canvas size is only taken when both dimensions
    are numbers.
    """
    base = base or EditorSettings()
    width, height = base.canvas_width, base.canvas_height
    if _is_number(settings_dict.get('canvasWidth')) and _is_number(settings_dict.get('canvasHeight')):
        width = settings_dict['canvasWidth']
        height = settings_dict['canvasHeight']

    return EditorSettings(
        tool=_string(settings_dict, 'tool', base.tool),
        color=_string(settings_dict, 'color', base.color),
        size=_number(settings_dict, 'size', base.size),
        stroke_color=_string(settings_dict, 'strokeColor', base.stroke_color),
        stroke_weight=_number(settings_dict, 'strokeWeight', base.stroke_weight),
        arc_start_deg=_number(settings_dict, 'arcStartDeg', base.arc_start_deg),
        arc_stop_deg=_number(settings_dict, 'arcStopDeg', base.arc_stop_deg),
        opacity=_number(settings_dict, 'opacity', base.opacity),
        fill_shapes=_bool(settings_dict, 'fillShapes', base.fill_shapes),
        gradient_enabled=_bool(settings_dict, 'gradientEnabled', base.gradient_enabled),
        gradient_color=_string(settings_dict, 'gradientColor', base.gradient_color),
        gradient_direction=GradientDirection.normalize(
            settings_dict.get('gradientDirection', base.gradient_direction)).value,
        export_image_mode=_bool(settings_dict, 'exportImageMode', base.export_image_mode),
        canvas_width=width,
        canvas_height=height
    )


# ==================== Actions ====================

def _style_to_dict(action: ShapeAction) -> Dict[str, Any]:
    gradient = None
    if action.gradient is not None:
        gradient = {
            'endColor': action.gradient.end_color,
            'direction': action.gradient.direction.value
        }
    return {
        'fillColor': action.fill_color,
        'strokeColor': action.stroke_color,
        'strokeWeight': action.stroke_weight,
        'opacity': action.opacity,
        'filled': action.filled,
        'gradient': gradient
    }


def action_to_dict(action: Action) -> Dict[str, Any]:
    """Convert an action to its payload dictionary."""
    base_dict: Dict[str, Any] = {'id': action.id, 'type': action.kind}

    if isinstance(action, ShapeAction):
        base_dict.update(_style_to_dict(action))

    if isinstance(action, Stroke):
        base_dict.update({
            'brush': action.brush.value,
            'color': action.color,
            'size': action.size,
            'opacity': action.opacity,
            'points': [point_to_dict(p) for p in action.points],
            'dots': [point_to_dict(p) for p in action.dots]
        })
    elif isinstance(action, Line):
        base_dict.update({'x1': action.x1, 'y1': action.y1, 'x2': action.x2, 'y2': action.y2})
    elif isinstance(action, (Rect, Ellipse)):
        base_dict.update({
            'x': action.x, 'y': action.y, 'w': action.w, 'h': action.h,
            'rotation': action.rotation
        })
    elif isinstance(action, Arc):
        base_dict.update({
            'x': action.x, 'y': action.y, 'w': action.w, 'h': action.h,
            'start': action.start, 'stop': action.stop,
            'rotation': action.rotation
        })
    elif isinstance(action, PolygonShape):
        base_dict.update({
            'shape': action.shape,
            'points': [point_to_dict(p) for p in action.points],
            'x': action.x, 'y': action.y, 'w': action.w, 'h': action.h
        })
    elif isinstance(action, Bezier):
        base_dict.update({
            'x1': action.x1, 'y1': action.y1,
            'cx1': action.cx1, 'cy1': action.cy1,
            'cx2': action.cx2, 'cy2': action.cy2,
            'x2': action.x2, 'y2': action.y2
        })
    elif isinstance(action, VertexPath):
        base_dict.update({
            'points': [point_to_dict(p) for p in action.points],
            'curved': action.curved,
            'closed': action.closed
        })
    elif isinstance(action, Fill):
        base_dict.update({
            'x': action.x, 'y': action.y,
            'color': action.color,
            'opacity': action.opacity,
            'tolerance': action.tolerance
        })

    return base_dict


def _style_from_dict(action_dict: Dict[str, Any]) -> Dict[str, Any]:
    gradient = None
    gradient_dict = action_dict.get('gradient')
    if isinstance(gradient_dict, dict) and isinstance(gradient_dict.get('endColor'), str):
        gradient = Gradient(gradient_dict['endColor'], gradient_dict.get('direction'))
    return dict(
        fill_color=_string(action_dict, 'fillColor', _string(action_dict, 'color', DEFAULT_FILL_COLOR)),
        stroke_color=_string(action_dict, 'strokeColor', _string(action_dict, 'color', DEFAULT_STROKE_COLOR)),
        stroke_weight=_number(action_dict, 'strokeWeight', _number(action_dict, 'size', DEFAULT_STROKE_WEIGHT)),
        opacity=_number(action_dict, 'opacity', 1.0),
        filled=bool(action_dict.get('filled', False)),
        gradient=gradient
    )


def _box_from_dict(action_dict: Dict[str, Any]) -> Dict[str, float]:
    return dict(
        x=_number(action_dict, 'x', 0.0),
        y=_number(action_dict, 'y', 0.0),
        w=_number(action_dict, 'w', 0.0),
        h=_number(action_dict, 'h', 0.0)
    )


def dict_to_action(action_dict: Dict[str, Any]) -> Optional[Action]:
    """
    Convert a payload dictionary to an action.

    Returns None for entries of unknown type. Ids are kept as loaded;
    ensure_action_ids() fills in missing ones.
    """
    if not isinstance(action_dict, dict):
        return None
    action_type = action_dict.get('type')
    cls = ACTION_TYPES.get(action_type) if isinstance(action_type, str) else None
    if cls is None:
        logger.warning(f"Skipping action of unknown type: {action_type!r}")
        return None

    action_id = _string(action_dict, 'id', '')

    if cls is Stroke:
        action = Stroke(
            brush=action_dict.get('brush'),
            color=_string(action_dict, 'color', DEFAULT_FILL_COLOR),
            size=_number(action_dict, 'size', 8.0),
            opacity=_number(action_dict, 'opacity', 1.0),
            points=dict_to_points(action_dict.get('points')),
            dots=dict_to_points(action_dict.get('dots'))
        )
    elif cls is Fill:
        action = Fill(
            x=int(round(_number(action_dict, 'x', 0))),
            y=int(round(_number(action_dict, 'y', 0))),
            color=_string(action_dict, 'color', DEFAULT_FILL_COLOR),
            opacity=_number(action_dict, 'opacity', 1.0),
            tolerance=_number(action_dict, 'tolerance', 24)
        )
    elif cls is Line:
        action = Line(
            x1=_number(action_dict, 'x1', 0.0), y1=_number(action_dict, 'y1', 0.0),
            x2=_number(action_dict, 'x2', 0.0), y2=_number(action_dict, 'y2', 0.0),
            **_style_from_dict(action_dict)
        )
    elif cls in (Rect, Ellipse):
        action = cls(
            rotation=_number(action_dict, 'rotation', 0.0),
            **_box_from_dict(action_dict),
            **_style_from_dict(action_dict)
        )
    elif cls is Arc:
        action = Arc(
            start=_number(action_dict, 'start', 0.0),
            stop=_number(action_dict, 'stop', math.pi),
            rotation=_number(action_dict, 'rotation', 0.0),
            **_box_from_dict(action_dict),
            **_style_from_dict(action_dict)
        )
    elif cls is PolygonShape:
        action = PolygonShape(
            shape=_string(action_dict, 'shape', 'triangle'),
            points=dict_to_points(action_dict.get('points')),
            **_box_from_dict(action_dict),
            **_style_from_dict(action_dict)
        )
    elif cls is Bezier:
        coords = {key: _number(action_dict, key, 0.0)
                  for key in ('x1', 'y1', 'cx1', 'cy1', 'cx2', 'cy2', 'x2', 'y2')}
        action = Bezier(**coords, **_style_from_dict(action_dict))
    else:
        action = VertexPath(
            points=dict_to_points(action_dict.get('points')),
            curved=bool(action_dict.get('curved', False)),
            closed=bool(action_dict.get('closed', False)),
            **_style_from_dict(action_dict)
        )

    action.id = action_id
    return action


# ==================== Payload ====================

def payload_to_dict(settings: EditorSettings, actions: List[Action],
                    saved_at: Optional[str] = None) -> Dict[str, Any]:
    """Build the full payload dictionary."""
    if saved_at is None:
        saved_at = datetime.now(timezone.utc).isoformat()
    return {
        'version': PAYLOAD_VERSION,
        'savedAt': saved_at,
        'settings': settings_to_dict(settings),
        'actions': [action_to_dict(action) for action in actions]
    }


def dumps_payload(settings: EditorSettings, actions: List[Action],
                  saved_at: Optional[str] = None) -> str:
    return json.dumps(payload_to_dict(settings, actions, saved_at), ensure_ascii=False)


def parse_payload(text: str,
                  base_settings: Optional[EditorSettings] = None) -> Tuple[EditorSettings, List[Action]]:
    """
    Parse payload text.

    Args:
        text: JSON payload
        base_settings: values for settings missing from the payload

    Returns:
        (settings, actions) with action ids ensured

    Raises:
        PayloadError: if the text is not JSON, not a payload object, or
            holds values the project schema cannot decode
    """
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError) as e:
        raise PayloadError(f"Payload is not valid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise PayloadError("Payload must be a JSON object")

    settings_dict = parsed.get('settings')
    if not isinstance(settings_dict, dict):
        settings_dict = {}

    actions = []
    raw_actions = parsed.get('actions')
    try:
        settings = dict_to_settings(settings_dict, base_settings)
        if isinstance(raw_actions, list):
            for action_dict in raw_actions:
                action = dict_to_action(action_dict)
                if action is not None:
                    actions.append(action)
    except (TypeError, ValueError, OverflowError) as e:
        raise PayloadError(f"Payload does not match the project schema: {e}") from e
    ensure_action_ids(actions)

    logger.debug(f"Parsed payload version {parsed.get('version')} with {len(actions)} actions")
    return settings, actions


def save_project(filepath: str, settings: EditorSettings, actions: List[Action]) -> None:
    """
    Write a payload file.

    Raises:
        OSError: if the file cannot be written
    """
    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(dumps_payload(settings, actions))
    logger.info(f"Saved {len(actions)} actions to {filepath}")


def load_project(filepath: str) -> Tuple[EditorSettings, List[Action]]:
    """
    Read a payload file.

    Raises:
        OSError: if the file cannot be read
        PayloadError: if its content is not a valid payload
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        text = f.read()
    settings, actions = parse_payload(text)
    logger.info(f"Loaded {len(actions)} actions from {filepath}")
    return settings, actions
