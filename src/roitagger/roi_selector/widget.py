# roitagger/src/roitagger/roi_selector/widget.py

from __future__ import annotations

from typing import Optional, Union

import numpy as np
from nicegui import events, ui
from PIL import Image

from roitagger.utils.logging import get_logger
from .capture import ImageSource
from .config import RoiSelectorConfig
from .controller import RoiSessionController
from .export import RoiUploader, export_rois, rois_to_dataframe
from .geometry import CanvasRect, PointerEvent, to_canvas_coordinates
from .models import Category
from .overlay import render_overlay_svg

logger = get_logger(__name__)

_NO_CATEGORY = ""

_TABLE_COLUMNS = [
    {"name": "id", "label": "ROI", "field": "id"},
    {"name": "category", "label": "Category", "field": "category"},
    {"name": "x", "label": "x", "field": "x"},
    {"name": "y", "label": "y", "field": "y"},
    {"name": "width", "label": "w", "field": "width"},
    {"name": "height", "label": "h", "field": "height"},
]


class RoiSelectorWidget:
    """NiceGUI widget to draw, resize, tag, discard and export ROIs on an image.

    - Input: a 2D numpy array (mapped through ``cmap``), an RGB(A) array,
      a PIL image or an ``ImageSource``.
    - All ROI state lives in ``self.controller`` (a ``RoiSessionController``);
      this class only maps mouse events and draws.
    - Export needs an ``uploader``; without one the export button just warns.
    """

    def __init__(
        self,
        image: Union[np.ndarray, Image.Image, ImageSource],
        *,
        uploader: Optional[RoiUploader] = None,
        vmin: float | None = None,
        vmax: float | None = None,
        cmap: str = "gray",
        parent=None,
        config: RoiSelectorConfig | None = None,
    ) -> None:
        if isinstance(image, ImageSource):
            source = image
        elif isinstance(image, Image.Image):
            source = ImageSource(image)
        else:
            source = ImageSource.from_array(image, vmin=vmin, vmax=vmax, cmap=cmap)

        self.config = config if config is not None else RoiSelectorConfig()
        self.controller = RoiSessionController(source, config=self.config)
        self._uploader = uploader

        self.img_width = source.width
        self.img_height = source.height

        # Logical display size: default to image size, but allow override via config
        self.DISPLAY_W = int(self.config.display_width_px or self.img_width)
        self.DISPLAY_H = int(self.config.display_height_px or self.img_height)

        self._cursor: Optional[str] = None
        self._updating_programmatically = False

        container = parent if parent is not None else ui.element("div").classes("w-full")

        with container:
            self.interactive = (
                ui.interactive_image(
                    self._render_display_pil(source),
                    cross=False,
                    events=["mousedown", "mousemove", "mouseup"],
                )
                .classes("w-full")
                .style(
                    f"aspect-ratio: {self.DISPLAY_W} / {self.DISPLAY_H}; "
                    "object-fit: contain; border: 1px solid #666;"
                )
            )
            self.interactive.on_mouse(self._on_mouse)

            with ui.row().classes("items-center gap-2"):
                options = {_NO_CATEGORY: "(none)"}
                options.update({c.value: c.value for c in Category})
                self._category_select = ui.select(
                    options,
                    value=_NO_CATEGORY,
                    label="Category",
                    on_change=self._on_category_change,
                ).classes("w-40")
                ui.button("Discard", on_click=self._on_discard).props("outline")
                ui.button("Export ROIs", on_click=self._on_export)

            self._status = ui.label("").classes("text-sm text-gray-600")
            self._table = ui.table(columns=_TABLE_COLUMNS, rows=[], row_key="id").classes("w-full")

            # Delete/Backspace discards the selected ROI
            ui.keyboard(on_key=self._on_key)

        self.controller.on_roi_created(lambda _roi: self._refresh())
        self.controller.on_roi_updated(lambda _roi: self._refresh())
        self.controller.on_roi_deleted(lambda _rid: self._refresh())
        self.controller.on_roi_selected(self._on_selected)

        self._redraw_overlays()

        logger.info(
            f"RoiSelectorWidget initialized: image={self.img_width}x{self.img_height}, "
            f"display={self.DISPLAY_W}x{self.DISPLAY_H}"
        )

    # ------------- internals: rendering -------------

    def _canvas_rect(self) -> CanvasRect:
        return CanvasRect(
            left=0.0,
            top=0.0,
            rendered_width=self.DISPLAY_W,
            rendered_height=self.DISPLAY_H,
            intrinsic_width=self.img_width,
            intrinsic_height=self.img_height,
        )

    def _render_display_pil(self, source: ImageSource) -> Image.Image:
        """Source image rescaled to DISPLAY_W x DISPLAY_H."""
        img = source.image.convert("RGB")
        if (self.DISPLAY_W, self.DISPLAY_H) != img.size:
            img = img.resize((self.DISPLAY_W, self.DISPLAY_H), Image.BILINEAR)
        return img

    def _redraw_overlays(self) -> None:
        self.interactive.content = render_overlay_svg(
            self.controller.rois,
            self.controller.selected_id,
            self.controller.draft_rect,
            self.config,
            scale_x=self.DISPLAY_W / self.img_width,
            scale_y=self.DISPLAY_H / self.img_height,
        )
        self.interactive.update()

    def _refresh(self) -> None:
        self._table.rows = rois_to_dataframe(self.controller.rois).to_dict("records")
        self._table.update()
        self._redraw_overlays()

    def _apply_cursor(self) -> None:
        cursor = self.controller.cursor
        if cursor != self._cursor:
            self._cursor = cursor
            self.interactive.style(f"cursor: {cursor}")

    # ------------- internals: events -------------

    def _on_mouse(self, e: events.MouseEventArguments) -> None:
        """Map display coords to image pixels and feed the controller."""
        x, y = to_canvas_coordinates(PointerEvent(e.image_x, e.image_y), self._canvas_rect())

        if e.type == "mousedown" and e.button == 0:
            self.controller.pointer_down(x, y)
        elif e.type == "mousemove":
            self.controller.pointer_move(x, y)
        elif e.type == "mouseup" and e.button == 0:
            self.controller.pointer_up()
        else:
            return

        self._apply_cursor()
        self._redraw_overlays()

    def _on_selected(self, roi_id: Optional[str]) -> None:
        roi = self.controller.get_roi(roi_id)
        value = roi.category.value if roi is not None and roi.category is not None else _NO_CATEGORY
        self._updating_programmatically = True
        try:
            self._category_select.value = value
        finally:
            self._updating_programmatically = False
        self._redraw_overlays()

    def _on_category_change(self, e: events.ValueChangeEventArguments) -> None:
        if self._updating_programmatically:
            return
        roi_id = self.controller.selected_id
        if roi_id is None:
            return
        self.controller.set_category(roi_id, e.value or None)

    def _on_discard(self) -> None:
        self.controller.delete_selected_roi()

    def _on_key(self, e: events.KeyEventArguments) -> None:
        key_name = getattr(getattr(e, "key", None), "name", None) if e else None
        action = getattr(e, "action", None)
        if action is not None and not getattr(action, "keydown", False):
            return
        if key_name in ("Backspace", "Delete"):
            self.controller.delete_selected_roi()

    def _set_status(self, msg: str) -> None:
        self._status.text = msg

    async def _on_export(self) -> None:
        if self._uploader is None:
            ui.notify("No uploader configured", type="warning")
            return
        await self.controller.wait_for_captures()
        await export_rois(self.controller, self._uploader, on_status=self._set_status)
        self._refresh()
