# roitagger/src/roitagger/roi_selector/overlay.py
"""SVG overlay for ROIs, drawn in display coordinates."""

from __future__ import annotations

from typing import Iterable, Optional

from .config import RoiSelectorConfig
from .geometry import Rect, handle_positions
from .models import Roi


def _svg_rect(
    rect: Rect,
    scale_x: float,
    scale_y: float,
    *,
    stroke: str,
    stroke_width: float,
    fill: str,
    fill_opacity: float,
    dashed: bool = False,
) -> str:
    dash = ' stroke-dasharray="6 4"' if dashed else ""
    return (
        f'<rect x="{rect.x * scale_x}" y="{rect.y * scale_y}" '
        f'width="{rect.width * scale_x}" height="{rect.height * scale_y}" '
        f'stroke="{stroke}" stroke-width="{stroke_width}"{dash} '
        f'fill="{fill}" fill-opacity="{fill_opacity}" />'
    )


def render_overlay_svg(
    rois: Iterable[Roi],
    selected_id: Optional[str],
    draft: Optional[Rect],
    config: RoiSelectorConfig,
    scale_x: float = 1.0,
    scale_y: float = 1.0,
) -> str:
    """Build SVG for committed ROIs, the selected ROI's handles and the draft.

    ``scale_x``/``scale_y`` convert image pixels to display pixels.
    """
    parts: list[str] = []
    selected: Optional[Roi] = None

    for roi in rois:
        is_selected = roi.id == selected_id
        if is_selected:
            selected = roi
        category_color = (
            config.category_colors.get(roi.category.value, config.roi_color)
            if roi.category is not None
            else config.roi_color
        )
        parts.append(
            _svg_rect(
                roi.rect,
                scale_x,
                scale_y,
                stroke=config.roi_selected_color if is_selected else category_color,
                stroke_width=config.roi_line_width,
                fill=category_color,
                fill_opacity=config.roi_fill_opacity,
            )
        )

    if selected is not None:
        half = config.handle_size / 2.0
        for hx, hy in handle_positions(selected.rect).values():
            parts.append(
                f'<rect x="{hx * scale_x - half}" y="{hy * scale_y - half}" '
                f'width="{config.handle_size}" height="{config.handle_size}" '
                f'stroke="{config.roi_selected_color}" stroke-width="1" '
                f'fill="{config.handle_color}" />'
            )

    if draft is not None:
        parts.append(
            _svg_rect(
                draft,
                scale_x,
                scale_y,
                stroke=config.draft_color,
                stroke_width=config.roi_line_width,
                fill=config.draft_color,
                fill_opacity=config.roi_fill_opacity,
                dashed=True,
            )
        )

    return "".join(parts)
