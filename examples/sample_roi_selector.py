from __future__ import annotations

import numpy as np
from nicegui import ui

from roitagger.roi_selector.widget import RoiSelectorWidget
from roitagger.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def create_demo_image(height: int = 360, width: int = 640) -> np.ndarray:
    """Simple demo image: a pitch-like gradient with a few bright blobs."""
    ys, xs = np.mgrid[0:height, 0:width]
    img = 0.3 + 0.2 * np.sin(xs / 40.0) * np.cos(ys / 30.0)
    for cx, cy in [(120, 100), (320, 200), (500, 90), (420, 300)]:
        img += 0.6 * np.exp(-((xs - cx) ** 2 + (ys - cy) ** 2) / (2 * 15.0 ** 2))
    img += 0.03 * np.random.randn(height, width)
    return np.clip(img, 0.0, 1.0)


class InMemoryUploader:
    """Keeps exported PNGs in memory instead of sending them anywhere."""

    def __init__(self) -> None:
        self.images: dict[str, bytes] = {}
        self.records: list[dict] = []

    async def upload_image(self, image_name: str, category: str, png: bytes) -> str:
        self.images[image_name] = png
        return f"memory://{category}/{image_name}.png"

    async def save_record(self, record: dict) -> None:
        self.records.append(record)
        logger.info(f"saved record {record['roi_id']} -> {record['image_url']}")


if __name__ in {"__main__", "__mp_main__"}:
    configure_logging(level="DEBUG")

    img = create_demo_image()
    uploader = InMemoryUploader()

    with ui.column().classes("w-full items-start gap-2"):
        ui.label("RoiSelectorWidget demo").classes("text-lg font-bold")
        ui.label("Drag on the image to draw a ROI, click it to select, drag a corner to resize.")

        widget = RoiSelectorWidget(img, uploader=uploader, cmap="viridis")
        widget.controller.set_rois(
            [
                {"id": "roi-1", "x": 100, "y": 80, "width": 40, "height": 40, "category": "teamA"},
            ]
        )

        def on_roi_created(roi: dict) -> None:
            ui.notify(f"ROI created: {roi['id']}", timeout=1.0)

        widget.controller.on_roi_created(on_roi_created)

    ui.timer(0.1, widget.controller.refresh_captures, once=True)
    ui.run()
