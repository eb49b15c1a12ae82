"""ROI selector - draw, resize, tag and capture rectangular ROIs.

The NiceGUI widget lives in ``roitagger.roi_selector.widget`` and is not
imported here, so the engine can be used without a UI.
"""

from .capture import ImageSource, capture, to_data_url
from .config import RoiSelectorConfig
from .constraints import resize_rect, solve
from .controller import RoiSessionController
from .geometry import (
    Bounds,
    CanvasRect,
    PointerEvent,
    Rect,
    ResizeHandle,
    contains_point,
    hit_test_handle,
    normalize_rect,
    to_canvas_coordinates,
)
from .models import Category, Roi, RoiDict
from .session import InteractionSession, Mode, Transition

__all__ = [
    "Bounds",
    "CanvasRect",
    "Category",
    "ImageSource",
    "InteractionSession",
    "Mode",
    "PointerEvent",
    "Rect",
    "ResizeHandle",
    "Roi",
    "RoiDict",
    "RoiSelectorConfig",
    "RoiSessionController",
    "Transition",
    "capture",
    "contains_point",
    "hit_test_handle",
    "normalize_rect",
    "resize_rect",
    "solve",
    "to_canvas_coordinates",
    "to_data_url",
]
