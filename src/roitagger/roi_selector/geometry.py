# roitagger/src/roitagger/roi_selector/geometry.py
"""Pure geometry for ROIs: rectangles, coordinate mapping and handle hit-testing.

Every function here works in canvas (intrinsic image pixel) coordinates,
except ``to_canvas_coordinates`` / ``from_canvas_coordinates`` which convert
between those and the rendered (display) size of the canvas.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, replace
from enum import Enum
from typing import Any, Optional, Tuple

from .config import RoiSelectorConfig


class ResizeHandle(Enum):
    """Corner handles, in hit-test order."""
    TOP_LEFT = "topLeft"
    TOP_RIGHT = "topRight"
    BOTTOM_LEFT = "bottomLeft"
    BOTTOM_RIGHT = "bottomRight"

    @property
    def is_left(self) -> bool:
        return self in (ResizeHandle.TOP_LEFT, ResizeHandle.BOTTOM_LEFT)

    @property
    def is_top(self) -> bool:
        return self in (ResizeHandle.TOP_LEFT, ResizeHandle.TOP_RIGHT)


HANDLE_CURSORS: dict[ResizeHandle, str] = {
    ResizeHandle.TOP_LEFT: "nw-resize",
    ResizeHandle.TOP_RIGHT: "ne-resize",
    ResizeHandle.BOTTOM_LEFT: "sw-resize",
    ResizeHandle.BOTTOM_RIGHT: "se-resize",
}


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle. Width/height may be negative for a draft."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def with_changes(self, **changes: float) -> "Rect":
        return replace(self, **changes)

    def to_int_box(self) -> Tuple[int, int, int, int]:
        """Return (left, top, width, height) rounded to whole pixels."""
        return (
            int(round(self.x)),
            int(round(self.y)),
            int(round(self.width)),
            int(round(self.height)),
        )

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Rect":
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
        )


@dataclass(frozen=True)
class Bounds:
    """Image dimensions a ROI must stay inside."""

    width: float
    height: float


@dataclass(frozen=True)
class PointerEvent:
    """Pointer position in viewport (client) coordinates."""

    client_x: float
    client_y: float


@dataclass(frozen=True)
class CanvasRect:
    """Where a canvas sits on screen and how large its bitmap is.

    ``left``/``top``/``rendered_*`` describe the displayed box (CSS pixels);
    ``intrinsic_*`` are the bitmap dimensions (image pixels).
    """

    left: float
    top: float
    rendered_width: float
    rendered_height: float
    intrinsic_width: float
    intrinsic_height: float


def to_canvas_coordinates(pointer: PointerEvent, canvas: CanvasRect) -> tuple[float, float]:
    """Viewport coords -> canvas intrinsic pixel coords.

    Coordinates outside the canvas are mapped, not clamped; the constraint
    solver deals with out-of-range rectangles.
    """
    if canvas.rendered_width <= 0 or canvas.rendered_height <= 0:
        return 0.0, 0.0

    scale_x = canvas.intrinsic_width / canvas.rendered_width
    scale_y = canvas.intrinsic_height / canvas.rendered_height
    x = (pointer.client_x - canvas.left) * scale_x
    y = (pointer.client_y - canvas.top) * scale_y
    return x, y


def from_canvas_coordinates(x: float, y: float, canvas: CanvasRect) -> tuple[float, float]:
    """Canvas intrinsic pixel coords -> viewport coords."""
    if canvas.intrinsic_width <= 0 or canvas.intrinsic_height <= 0:
        return canvas.left, canvas.top

    vx = canvas.left + x * canvas.rendered_width / canvas.intrinsic_width
    vy = canvas.top + y * canvas.rendered_height / canvas.intrinsic_height
    return vx, vy


def contains_point(x: float, y: float, rect: Optional[Rect]) -> bool:
    """Closed-interval containment: points on the border are inside."""
    if rect is None:
        return False
    return rect.x <= x <= rect.right and rect.y <= y <= rect.bottom


def normalize_rect(rect: Rect) -> Rect:
    """Flip a signed drag rectangle so width and height are non-negative."""
    x = rect.x + rect.width if rect.width < 0 else rect.x
    y = rect.y + rect.height if rect.height < 0 else rect.y
    return Rect(x=x, y=y, width=abs(rect.width), height=abs(rect.height))


def handle_positions(rect: Rect) -> dict[ResizeHandle, tuple[float, float]]:
    """Corner point of each handle."""
    return {
        ResizeHandle.TOP_LEFT: (rect.x, rect.y),
        ResizeHandle.TOP_RIGHT: (rect.right, rect.y),
        ResizeHandle.BOTTOM_LEFT: (rect.x, rect.bottom),
        ResizeHandle.BOTTOM_RIGHT: (rect.right, rect.bottom),
    }


def _near(x: float, y: float, point: tuple[float, float], radius: float) -> bool:
    px, py = point
    return abs(x - px) <= radius and abs(y - py) <= radius


def hit_test_handle(
    x: float,
    y: float,
    rect: Rect,
    engaged: Optional[ResizeHandle] = None,
    config: Optional[RoiSelectorConfig] = None,
) -> Optional[ResizeHandle]:
    """Return the handle under (x, y), or None.

    ``engaged`` is the handle currently hovered or being dragged. It is
    tested first with its radius scaled by ``sticky_factor`` so pointer
    jitter near a neighbouring corner does not switch handles.
    """
    if config is None:
        config = RoiSelectorConfig()

    positions = handle_positions(rect)
    radius = config.handle_hit_radius

    if engaged is not None:
        if _near(x, y, positions[engaged], radius * config.sticky_factor):
            return engaged

    for handle in ResizeHandle:
        if _near(x, y, positions[handle], radius):
            return handle

    return None
