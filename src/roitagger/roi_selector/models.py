# roitagger/src/roitagger/roi_selector/models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TypedDict, Union

from .geometry import Rect


class Category(Enum):
    """Closed set of tags a ROI can carry."""
    TEAM_A = "teamA"
    TEAM_B = "teamB"
    REFEREE = "referee"

    @classmethod
    def parse(cls, value: Union["Category", str, None]) -> Optional["Category"]:
        """Accept a Category, its string value, or None/empty string."""
        if value is None or isinstance(value, Category):
            return value
        if value == "":
            return None
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Unknown category {value!r}; expected one of {[c.value for c in cls]}"
            ) from None


class RoiDict(TypedDict):
    id: str
    x: int
    y: int
    width: int
    height: int
    category: Optional[str]


@dataclass
class Roi:
    """A committed ROI in image pixel coordinates.

    ``raster`` is PNG bytes of the pixels inside ``rect``. ``generation`` is
    bumped on every geometry change so late captures for an older geometry
    can be recognised and dropped. ``needs_capture`` marks a ROI whose
    raster is missing or out of date until the next ``refresh_captures()``.
    """

    id: str
    rect: Rect
    category: Optional[Category] = None
    raster: Optional[bytes] = None
    generation: int = 0
    remote_url: Optional[str] = None
    needs_capture: bool = False

    @property
    def x(self) -> float:
        return self.rect.x

    @property
    def y(self) -> float:
        return self.rect.y

    @property
    def width(self) -> float:
        return self.rect.width

    @property
    def height(self) -> float:
        return self.rect.height

    def set_rect(self, rect: Rect) -> None:
        """Replace the geometry and invalidate any capture in flight."""
        self.rect = rect
        self.generation += 1

    def to_dict(self) -> RoiDict:
        x, y, width, height = self.rect.to_int_box()
        return {
            "id": self.id,
            "x": x,
            "y": y,
            "width": width,
            "height": height,
            "category": self.category.value if self.category is not None else None,
        }
