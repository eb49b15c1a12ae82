# roitagger/src/roitagger/roi_selector/constraints.py
"""Constraint solving for ROI rectangles.

``solve`` is the single place where ROI geometry is made valid. It is pure
and idempotent: ``solve(solve(r, b), b) == solve(r, b)``.
"""

from __future__ import annotations

from typing import Optional

from .config import RoiSelectorConfig
from .geometry import Bounds, Rect, ResizeHandle


def solve(
    rect: Rect,
    bounds: Bounds,
    config: Optional[RoiSelectorConfig] = None,
    handle: Optional[ResizeHandle] = None,
) -> Rect:
    """Return ``rect`` adjusted to the minimum size and the padded bounds.

    Steps, in order:
        1. Minimum size. When ``handle`` is given, the dragged side gives
           way and the opposite edge stays where it is.
        2. Position clamp to ``[pad, bound - size - pad]``.
        3. Size clamp against the clamped position.

    Edges are snapped to whole pixels first. If the image is too small for
    both, the minimum size wins.
    """
    if config is None:
        config = RoiSelectorConfig()
    min_size = config.min_roi_size
    pad = config.capture_padding

    x = float(round(rect.x))
    y = float(round(rect.y))
    width = float(round(rect.right)) - x
    height = float(round(rect.bottom)) - y

    if width < min_size:
        if handle is not None and handle.is_left:
            x = x + width - min_size
        width = min_size
    if height < min_size:
        if handle is not None and handle.is_top:
            y = y + height - min_size
        height = min_size

    x = max(pad, min(x, bounds.width - width - pad))
    y = max(pad, min(y, bounds.height - height - pad))

    width = max(min_size, min(width, bounds.width - x - pad))
    height = max(min_size, min(height, bounds.height - y - pad))

    return Rect(x=x, y=y, width=width, height=height)


def resize_rect(
    origin: Rect,
    handle: ResizeHandle,
    x: float,
    y: float,
    bounds: Bounds,
    config: Optional[RoiSelectorConfig] = None,
) -> Rect:
    """Drag ``handle`` of ``origin`` to (x, y) and return the solved rectangle.

    ``origin`` is the ROI as it was when the gesture started; the corner
    opposite ``handle`` stays fixed. The dragged corner cannot leave the
    padded bounds and cannot cross the fixed corner (the minimum size holds
    it back instead of flipping the rectangle).
    """
    if config is None:
        config = RoiSelectorConfig()
    pad = config.capture_padding

    px = max(pad, min(x, bounds.width - pad))
    py = max(pad, min(y, bounds.height - pad))

    if handle.is_left:
        new_x = px
        new_w = origin.right - px
    else:
        new_x = origin.x
        new_w = px - origin.x

    if handle.is_top:
        new_y = py
        new_h = origin.bottom - py
    else:
        new_y = origin.y
        new_h = py - origin.y

    candidate = Rect(x=new_x, y=new_y, width=new_w, height=new_h)
    return solve(candidate, bounds, config, handle=handle)
