# roitagger/src/roitagger/roi_selector/export.py
"""Export of tagged ROIs to an external upload/persistence collaborator.

The engine never talks to the network. ``export_rois`` hands each record to a
``RoiUploader`` supplied by the application and reports progress through an
optional status callback.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Protocol

import pandas as pd

from roitagger.utils.logging import get_logger
from .controller import RoiSessionController
from .models import Category, Roi

logger = get_logger(__name__)

OnStatus = Callable[[str], None]


class RoiUploader(Protocol):
    """What the application provides to store exported ROIs."""

    async def upload_image(self, image_name: str, category: str, png: bytes) -> str:
        """Store the PNG and return its URL."""
        ...

    async def save_record(self, record: dict) -> None:
        """Persist one ROI record (see ``ExportRecord.to_record``)."""
        ...


@dataclass(frozen=True)
class ExportRecord:
    """One ROI ready for upload.

    ``x``/``y`` are fractions of the image width/height so records stay
    meaningful for other renditions of the image; ``width``/``height`` stay in
    pixels.
    """

    roi_id: str
    image_name: str
    category: Category
    x: float
    y: float
    width: float
    height: float
    png: bytes

    def to_record(self, image_url: Optional[str] = None) -> dict:
        return {
            "roi_id": self.roi_id,
            "image_name": self.image_name,
            "category": self.category.value,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "image_url": image_url,
        }


def format_timestamp(when: datetime) -> str:
    """UTC timestamp safe for file names, e.g. ``2024-05-01_13-45-10-123``."""
    if when.tzinfo is not None:
        when = when.astimezone(timezone.utc)
    return when.strftime("%Y-%m-%d_%H-%M-%S-") + f"{when.microsecond // 1000:03d}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_image_name(category: str, index: int, timestamp: str) -> str:
    return f"{category}_{timestamp}_{index}"


def build_export_records(
    rois: Iterable[Roi],
    image_width: float,
    image_height: float,
    *,
    now: Callable[[], datetime] = _utcnow,
) -> List[ExportRecord]:
    """Records for every ROI that has both a category and a raster payload."""
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Invalid image size {image_width}x{image_height}")

    records: List[ExportRecord] = []
    ready = [r for r in rois if r.category is not None and r.raster is not None]
    for index, roi in enumerate(ready):
        name = generate_image_name(roi.category.value, index, format_timestamp(now()))
        records.append(
            ExportRecord(
                roi_id=roi.id,
                image_name=name,
                category=roi.category,
                x=roi.x / image_width,
                y=roi.y / image_height,
                width=roi.width,
                height=roi.height,
                png=roi.raster,
            )
        )
    return records


async def export_rois(
    controller: RoiSessionController,
    uploader: RoiUploader,
    on_status: Optional[OnStatus] = None,
) -> List[str]:
    """Upload every tagged ROI; return the URLs stored so far.

    Each uploaded URL is also kept on the ROI as ``remote_url``. An uploader
    failure stops the export and is reported as "Export failed".
    """

    def _status(msg: str) -> None:
        if on_status is None:
            return
        try:
            on_status(msg)
        except Exception:
            logger.exception("on_status callback failed")

    _status("Starting export...")
    records = build_export_records(
        controller.rois, controller.bounds.width, controller.bounds.height
    )
    urls: List[str] = []

    try:
        for i, record in enumerate(records, start=1):
            url = await uploader.upload_image(record.image_name, record.category.value, record.png)
            roi = controller.get_roi(record.roi_id)
            if roi is not None:
                roi.remote_url = url
            await uploader.save_record(record.to_record(image_url=url))
            urls.append(url)
            _status(f"Exported {i}/{len(records)}")
    except Exception:
        logger.exception("Export failed")
        _status("Export failed")
        return urls

    logger.info(f"Exported {len(urls)} ROIs")
    _status("Export complete!")
    return urls


def rois_to_dataframe(rois: Iterable[Roi]) -> pd.DataFrame:
    """One row per ROI: id, geometry, category and whether it has a raster."""
    columns = ["id", "x", "y", "width", "height", "category", "has_raster"]
    rows = []
    for roi in rois:
        d = roi.to_dict()
        rows.append({**d, "has_raster": roi.raster is not None})
    return pd.DataFrame(rows, columns=columns)


def category_counts(rois: Iterable[Roi]) -> pd.Series:
    """Number of ROIs per category, including zero counts."""
    df = rois_to_dataframe(rois)
    counts = df["category"].value_counts()
    return counts.reindex([c.value for c in Category], fill_value=0).astype(int)
