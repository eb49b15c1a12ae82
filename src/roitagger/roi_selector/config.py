# roitagger/src/roitagger/roi_selector/config.py

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


def _default_category_colors() -> dict[str, str]:
    return {
        "teamA": "dodgerblue",
        "teamB": "orangered",
        "referee": "gold",
    }


@dataclass
class RoiSelectorConfig:
    """Tunable constants for the ROI interaction engine and its widget.

    Geometry values are in image pixels, except ``handle_size`` which is the
    drawn size in display pixels.
    """

    # ROI geometry constraints
    min_roi_size: int = 20
    capture_padding: int = 5                # inward margin kept free around every ROI

    # Handle hit-testing
    handle_size: float = 16.0               # drawn handle square
    handle_hit_radius: float = 20.0         # square hit region around each corner
    sticky_factor: float = 2.0              # radius multiplier for the engaged handle

    # ROI appearance
    roi_color: str = "red"
    roi_selected_color: str = "lime"
    roi_line_width: float = 2.0
    roi_fill_opacity: float = 0.15
    draft_color: str = "yellow"
    handle_color: str = "white"
    category_colors: dict[str, str] = field(default_factory=_default_category_colors)

    # Display resolution (logical pixel grid); defaults to image size
    display_width_px: int | None = None
    display_height_px: int | None = None

    def __post_init__(self) -> None:
        if self.min_roi_size <= 0:
            raise ValueError(f"min_roi_size must be positive, got {self.min_roi_size}")
        if self.capture_padding < 0:
            raise ValueError(f"capture_padding must be >= 0, got {self.capture_padding}")
        if self.handle_hit_radius <= 0:
            raise ValueError(f"handle_hit_radius must be positive, got {self.handle_hit_radius}")
        if self.sticky_factor < 1.0:
            raise ValueError(f"sticky_factor must be >= 1, got {self.sticky_factor}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoiSelectorConfig":
        """Build a config from a dict, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)
