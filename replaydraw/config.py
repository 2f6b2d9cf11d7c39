"""
ReplayDraw Configuration

Named limits and tolerances shared by the engine modules.
"""

from dataclasses import dataclass


MIN_CANVAS_SIZE = 100
MAX_CANVAS_SIZE = 2000
DEFAULT_CANVAS_WIDTH = 400
DEFAULT_CANVAS_HEIGHT = 400

MAX_HISTORY_STEPS = 120

FILL_TOLERANCE = 24
COPY_PASTE_OFFSET = 18.0

# Selection handle geometry (canvas pixels)
SELECT_HANDLE_SIZE = 12
ROTATE_HANDLE_SIZE = 14
ROTATE_HANDLE_OFFSET_X = 16
ROTATE_HANDLE_OFFSET_Y = -10
EDGE_HANDLE_SIZE = 10

# Export payloads
EXPORT_DECIMALS = 4
PAYLOAD_VERSION = 2


@dataclass
class HitTestSettings:
    """
    Pragmatic tolerances used by hit-testing.

    These values are tuned by feel rather than derived; they are kept
    configurable instead of being "corrected".
    """
    polygon_edge_epsilon: float = 0.000001   # Added to ray-cast denominators
    tiny_arc_radius: float = 14.0            # Arcs with rx, ry <= this get a centre assist
    tiny_arc_hit_distance: float = 3.5
    control_point_radius: float = 7.0
    edge_handle_radius: float = EDGE_HANDLE_SIZE * 0.9
    arc_samples: int = 48
    bezier_samples: int = 32


@dataclass
class DragThresholds:
    """Minimum movement before a drag counts as a change."""
    move: float = 0.05
    rotate: float = 0.001        # radians
    scale: float = 0.001         # |factor - 1|


DEFAULT_HIT_TEST_SETTINGS = HitTestSettings()


# Editor setting limits
MIN_BRUSH_SIZE, MAX_BRUSH_SIZE = 1, 60
MIN_STROKE_WEIGHT, MAX_STROKE_WEIGHT = 1, 40
MIN_OPACITY, MAX_OPACITY = 0.05, 1.0

DEFAULT_TOOL = "select"


def _clamp(value, low, high):
    return min(high, max(low, value))


@dataclass
class EditorSettings:
    """
    Current tool and style settings of an editor session.

    New actions take their style from here, and apply_style copies it
    onto the selection. Persisted as the "settings" block of a payload.
    """
    tool: str = DEFAULT_TOOL
    color: str = "#00b7ff"
    size: float = 8
    stroke_color: str = "#0d2238"
    stroke_weight: float = 2
    arc_start_deg: float = 0
    arc_stop_deg: float = 180
    opacity: float = 1.0
    fill_shapes: bool = False
    gradient_enabled: bool = False
    gradient_color: str = "#ff8a3d"
    gradient_direction: str = "left-right"
    export_image_mode: bool = False
    canvas_width: int = DEFAULT_CANVAS_WIDTH
    canvas_height: int = DEFAULT_CANVAS_HEIGHT

    def __post_init__(self):
        self.size = _clamp(self.size, MIN_BRUSH_SIZE, MAX_BRUSH_SIZE)
        self.stroke_weight = _clamp(self.stroke_weight, MIN_STROKE_WEIGHT, MAX_STROKE_WEIGHT)
        self.arc_start_deg = _clamp(round(self.arc_start_deg), 0, 360)
        self.arc_stop_deg = _clamp(round(self.arc_stop_deg), 0, 360)
        self.opacity = _clamp(float(self.opacity), MIN_OPACITY, MAX_OPACITY)
        self.canvas_width = int(_clamp(round(self.canvas_width), MIN_CANVAS_SIZE, MAX_CANVAS_SIZE))
        self.canvas_height = int(_clamp(round(self.canvas_height), MIN_CANVAS_SIZE, MAX_CANVAS_SIZE))
