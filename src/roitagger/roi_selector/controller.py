# roitagger/src/roitagger/roi_selector/controller.py

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Set, Union

from roitagger.utils.logging import get_logger
from . import session as sm
from .capture import ImageSource, capture
from .config import RoiSelectorConfig
from .constraints import solve
from .geometry import Bounds, Rect, normalize_rect
from .models import Category, Roi, RoiDict

logger = get_logger(__name__)


class RoiSessionController:
    """Owns the ROIs of one image and drives them from pointer events.

    Pointer methods take canvas (image pixel) coordinates; mapping from
    screen coordinates is the caller's job (see ``to_canvas_coordinates``).

    Captures run as asyncio tasks. A capture only lands on its ROI if the
    ROI's geometry has not changed since the capture was scheduled.

    Events (via callback registration):
        on_roi_created(handler): Handler called as handler(roi_dict)
        on_roi_updated(handler): Handler called as handler(roi_dict)
        on_roi_deleted(handler): Handler called as handler(roi_id)
        on_roi_selected(handler): Handler called as handler(roi_id or None)
    """

    def __init__(
        self,
        source: ImageSource | None = None,
        *,
        image_width: int | None = None,
        image_height: int | None = None,
        config: RoiSelectorConfig | None = None,
    ) -> None:
        self.config = config if config is not None else RoiSelectorConfig()

        if source is not None:
            self._bounds = Bounds(width=source.width, height=source.height)
        elif image_width is not None and image_height is not None:
            self._bounds = Bounds(width=image_width, height=image_height)
        else:
            raise ValueError("RoiSessionController needs a source or image_width/image_height")
        self._source = source

        self._rois: Dict[str, Roi] = {}
        self._next_id: int = 1
        self._session = sm.InteractionSession()
        self._pending: Set[asyncio.Task] = set()

        self._roi_created_handlers: List[Callable[[dict], None]] = []
        self._roi_updated_handlers: List[Callable[[dict], None]] = []
        self._roi_deleted_handlers: List[Callable[[str], None]] = []
        self._roi_selected_handlers: List[Callable[[Optional[str]], None]] = []

    # ------------- properties -------------

    @property
    def bounds(self) -> Bounds:
        return self._bounds

    @property
    def source(self) -> ImageSource | None:
        return self._source

    @property
    def session(self) -> sm.InteractionSession:
        return self._session

    @property
    def rois(self) -> List[Roi]:
        """Committed ROIs in creation order."""
        return list(self._rois.values())

    @property
    def selected_id(self) -> Optional[str]:
        return self._session.selected_id

    @property
    def selected_roi(self) -> Optional[Roi]:
        return self.get_roi(self._session.selected_id)

    @property
    def draft_rect(self) -> Optional[Rect]:
        """The in-progress draw, normalized, for display."""
        if self._session.is_drawing and self._session.draft is not None:
            return normalize_rect(self._session.draft)
        return None

    @property
    def cursor(self) -> str:
        return self._session.cursor

    def get_roi(self, roi_id: Optional[str]) -> Optional[Roi]:
        if roi_id is None:
            return None
        return self._rois.get(roi_id)

    # ------------- public event registration API -------------

    def on_roi_created(self, handler: Callable[[dict], None]) -> None:
        self._roi_created_handlers.append(handler)

    def on_roi_updated(self, handler: Callable[[dict], None]) -> None:
        self._roi_updated_handlers.append(handler)

    def on_roi_deleted(self, handler: Callable[[str], None]) -> None:
        self._roi_deleted_handlers.append(handler)

    def on_roi_selected(self, handler: Callable[[Optional[str]], None]) -> None:
        self._roi_selected_handlers.append(handler)

    # ------------- pointer events -------------

    def pointer_down(self, x: float, y: float) -> Optional[asyncio.Task]:
        """Start a gesture; returns a capture task if an unfinished resize was closed."""
        t = sm.pointer_down(self._session, self.rois, x, y, self.config)
        return self._apply(t)

    def pointer_move(self, x: float, y: float) -> None:
        t = sm.pointer_move(self._session, self.rois, x, y, self._bounds, self.config)
        self._apply(t)

    def pointer_up(self) -> Optional[asyncio.Task]:
        """Finish the gesture; returns the capture task it scheduled, if any."""
        t = sm.pointer_up(self._session, self.rois, self._bounds, self.config)
        return self._apply(t)

    # ------------- public ROI API -------------

    def set_source(self, source: ImageSource) -> None:
        """Switch to a new image. Existing ROIs are dropped."""
        for roi_id in list(self._rois):
            self._remove(roi_id)
        self._source = source
        self._bounds = Bounds(width=source.width, height=source.height)
        previous = self._session.selected_id
        self._session = sm.InteractionSession()
        if previous is not None:
            self._notify(self._roi_selected_handlers, None, "roi_selected")
        logger.info(f"New source image: {source.width}x{source.height}")

    def set_rois(self, rois: List[RoiDict]) -> None:
        """Overwrite ROIs with the given list (ids preserved, geometry solved).

        Rasters are not captured here; await ``refresh_captures()`` for that.
        The current ROIs are kept if any entry is invalid.
        """
        loaded: Dict[str, Roi] = {}
        for r in rois:
            roi_id = str(r["id"])
            rect = solve(
                Rect(x=float(r["x"]), y=float(r["y"]), width=float(r["width"]), height=float(r["height"])),
                self._bounds,
                self.config,
            )
            loaded[roi_id] = Roi(
                id=roi_id,
                rect=rect,
                category=Category.parse(r.get("category")),
                needs_capture=self._source is not None,
            )
        self._rois = loaded

        # Don't reuse ids like "roi-3" that already exist.
        max_idx = self._next_id
        for roi_id in self._rois:
            if roi_id.startswith("roi-"):
                try:
                    n = int(roi_id.split("-", 1)[1])
                except ValueError:
                    continue
                if n >= max_idx:
                    max_idx = n + 1
        self._next_id = max_idx

        self._session = sm.InteractionSession()
        logger.debug(f"set_rois: loaded {len(self._rois)} ROIs")

    def set_category(self, roi_id: str, category: Union[Category, str, None]) -> None:
        """Tag a ROI. Unknown ids are ignored."""
        roi = self._rois.get(roi_id)
        if roi is None:
            logger.debug(f"set_category: unknown ROI {roi_id}")
            return
        roi.category = Category.parse(category)
        self._notify(self._roi_updated_handlers, roi.to_dict(), "roi_updated")
        logger.info(f"ROI {roi_id} category -> {roi.category.value if roi.category else None}")

    def discard(self, roi_id: str) -> None:
        """Remove a ROI, clearing the selection if it was selected. Unknown ids are ignored."""
        if roi_id not in self._rois:
            logger.debug(f"discard: unknown ROI {roi_id}")
            return
        self._remove(roi_id)
        if self._session.selected_id == roi_id:
            if self._session.is_resizing:
                self._session = sm.InteractionSession()
            else:
                self._session = replace(self._session, selected_id=None, hover_handle=None)
            self._notify(self._roi_selected_handlers, None, "roi_selected")

    def delete_selected_roi(self) -> None:
        if self._session.selected_id is not None:
            self.discard(self._session.selected_id)

    def select_roi(self, roi_id: Optional[str]) -> None:
        """Select an ROI by id (or None to clear selection)."""
        if roi_id is not None and roi_id not in self._rois:
            logger.debug(f"select_roi: unknown ROI {roi_id}")
            return
        if self._session.is_drawing or self._session.is_resizing:
            logger.debug(f"select_roi ignored while {self._session.mode.value}")
            return
        self._session = replace(self._session, selected_id=roi_id, hover_handle=None)
        self._notify(self._roi_selected_handlers, roi_id, "roi_selected")

    def categorized_rois(self) -> List[Roi]:
        """ROIs ready for export: tagged and with a raster payload."""
        return [r for r in self._rois.values() if r.category is not None and r.raster is not None]

    # ------------- captures -------------

    async def refresh_captures(self) -> None:
        """Recapture every ROI (including deferred ones) and wait for all pending captures."""
        for roi in self._rois.values():
            self._schedule_capture(roi)
        await self.wait_for_captures()

    async def wait_for_captures(self) -> None:
        """Wait until every capture scheduled so far has finished."""
        while True:
            pending = [t for t in self._pending if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    def _schedule_capture(self, roi: Roi) -> Optional[asyncio.Task]:
        if self._source is None:
            roi.raster = None
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # called from sync code; refresh_captures() picks it up later
            roi.raster = None
            roi.needs_capture = True
            logger.debug(f"no running event loop, capture for {roi.id} deferred")
            return None
        task = loop.create_task(self._run_capture(roi, roi.rect, roi.generation))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run_capture(self, roi: Roi, rect: Rect, generation: int) -> None:
        raster = await capture(rect, self._source, self.config.capture_padding)

        # set_rois/set_source may have replaced the ROI with a new object under the same id
        if self._rois.get(roi.id) is not roi:
            logger.debug(f"capture for {roi.id} dropped: ROI no longer exists")
            return
        if roi.generation != generation:
            logger.debug(
                f"capture for {roi.id} dropped: generation {generation} != {roi.generation}"
            )
            return

        roi.raster = raster
        roi.needs_capture = False
        self._notify(self._roi_updated_handlers, roi.to_dict(), "roi_updated")

    # ------------- internals -------------

    def _apply(self, t: sm.Transition) -> Optional[asyncio.Task]:
        previous_selected = self._session.selected_id
        if t.session.mode is not self._session.mode:
            logger.debug(f"session {self._session.mode.value} -> {t.session.mode.value}")
        self._session = t.session
        task: Optional[asyncio.Task] = None

        if t.update_id is not None and t.update_rect is not None:
            roi = self._rois.get(t.update_id)
            if roi is not None and roi.rect != t.update_rect:
                roi.set_rect(t.update_rect)
                self._notify(self._roi_updated_handlers, roi.to_dict(), "roi_updated")

        if t.commit is not None:
            roi = self._create_roi(t.commit)
            self._notify(self._roi_created_handlers, roi.to_dict(), "roi_created")
            logger.info(
                f"Created ROI {roi.id}: x={roi.x:.1f}, y={roi.y:.1f}, "
                f"w={roi.width:.1f}, h={roi.height:.1f}"
            )
            task = self._schedule_capture(roi)

        if t.recapture_id is not None:
            roi = self._rois.get(t.recapture_id)
            if roi is not None:
                task = self._schedule_capture(roi)

        if self._session.selected_id != previous_selected:
            self._notify(self._roi_selected_handlers, self._session.selected_id, "roi_selected")

        return task

    def _create_roi(self, rect: Rect) -> Roi:
        roi_id = f"roi-{self._next_id}"
        self._next_id += 1
        roi = Roi(id=roi_id, rect=rect)
        self._rois[roi_id] = roi
        return roi

    def _remove(self, roi_id: str) -> None:
        del self._rois[roi_id]
        self._notify(self._roi_deleted_handlers, roi_id, "roi_deleted")
        logger.info(f"Deleted ROI: {roi_id}")

    @staticmethod
    def _notify(handlers: list, payload: object, name: str) -> None:
        for handler in list(handlers):
            try:
                handler(payload)
            except Exception:
                logger.exception(f"Error in {name} handler")
