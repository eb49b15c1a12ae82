# roitagger/src/roitagger/roi_selector/session.py
"""Pointer interaction state machine.

The state lives in an immutable ``InteractionSession``. Each pointer event is
handled by a pure function that takes the current session plus the committed
ROIs and returns a ``Transition``: the next session and the effects the owner
should apply (commit a new ROI, update one, or recapture one). Nothing here
mutates a ROI or touches a canvas.

States:
    idle      -- nothing held down; tracks the hovered handle for the cursor
    drawing   -- a draft rectangle is being dragged out
    resizing  -- a corner handle of the selected ROI is being dragged
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional, Protocol, Sequence

from .config import RoiSelectorConfig
from .constraints import resize_rect, solve
from .geometry import (
    HANDLE_CURSORS,
    Bounds,
    Rect,
    ResizeHandle,
    contains_point,
    hit_test_handle,
    normalize_rect,
)

CURSOR_CROSSHAIR = "crosshair"
CURSOR_MOVE = "move"


class Mode(Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    RESIZING = "resizing"


class RoiLike(Protocol):
    id: str
    rect: Rect


@dataclass(frozen=True)
class InteractionSession:
    """Transient pointer state. Serializable via ``to_dict``/``from_dict``."""

    mode: Mode = Mode.IDLE
    draft: Optional[Rect] = None                  # signed while drawing
    selected_id: Optional[str] = None
    active_handle: Optional[ResizeHandle] = None
    hover_handle: Optional[ResizeHandle] = None
    drag_origin: Optional[Rect] = None            # target ROI at resize start
    cursor: str = CURSOR_CROSSHAIR

    @property
    def is_drawing(self) -> bool:
        return self.mode is Mode.DRAWING

    @property
    def is_resizing(self) -> bool:
        return self.mode is Mode.RESIZING

    @property
    def target_id(self) -> Optional[str]:
        """ROI being resized, if any."""
        return self.selected_id if self.is_resizing else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "draft": self.draft.to_dict() if self.draft is not None else None,
            "selected_id": self.selected_id,
            "active_handle": self.active_handle.value if self.active_handle else None,
            "hover_handle": self.hover_handle.value if self.hover_handle else None,
            "drag_origin": self.drag_origin.to_dict() if self.drag_origin is not None else None,
            "cursor": self.cursor,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InteractionSession":
        def _rect(value: Any) -> Optional[Rect]:
            return Rect.from_dict(value) if value is not None else None

        def _handle(value: Any) -> Optional[ResizeHandle]:
            return ResizeHandle(value) if value is not None else None

        return cls(
            mode=Mode(data.get("mode", Mode.IDLE.value)),
            draft=_rect(data.get("draft")),
            selected_id=data.get("selected_id"),
            active_handle=_handle(data.get("active_handle")),
            hover_handle=_handle(data.get("hover_handle")),
            drag_origin=_rect(data.get("drag_origin")),
            cursor=str(data.get("cursor", CURSOR_CROSSHAIR)),
        )


@dataclass(frozen=True)
class Transition:
    """Result of handling one pointer event."""

    session: InteractionSession
    commit: Optional[Rect] = None          # new ROI geometry, already solved
    update_id: Optional[str] = None
    update_rect: Optional[Rect] = None     # already solved
    recapture_id: Optional[str] = None


def _find(rois: Sequence[RoiLike], roi_id: Optional[str]) -> Optional[RoiLike]:
    if roi_id is None:
        return None
    for roi in rois:
        if roi.id == roi_id:
            return roi
    return None


def pointer_down(
    session: InteractionSession,
    rois: Sequence[RoiLike],
    x: float,
    y: float,
    config: Optional[RoiSelectorConfig] = None,
) -> Transition:
    """Start a resize, select a ROI, or start drawing.

    The first ROI (in creation order) containing the point wins. A press
    that arrives mid-resize (the release was lost) finishes that resize
    first, so its ROI is recaptured.
    """
    unfinished = _find(rois, session.selected_id) if session.is_resizing else None
    return Transition(
        session=_press(session, rois, x, y, config),
        recapture_id=unfinished.id if unfinished is not None else None,
    )


def _press(
    session: InteractionSession,
    rois: Sequence[RoiLike],
    x: float,
    y: float,
    config: Optional[RoiSelectorConfig],
) -> InteractionSession:
    for roi in rois:
        if not contains_point(x, y, roi.rect):
            continue

        engaged = session.hover_handle if roi.id == session.selected_id else None
        handle = hit_test_handle(x, y, roi.rect, engaged, config)
        if handle is not None:
            return InteractionSession(
                mode=Mode.RESIZING,
                selected_id=roi.id,
                active_handle=handle,
                hover_handle=handle,
                drag_origin=roi.rect,
                cursor=HANDLE_CURSORS[handle],
            )

        return InteractionSession(
            mode=Mode.IDLE,
            selected_id=roi.id,
            cursor=CURSOR_MOVE,
        )

    return InteractionSession(
        mode=Mode.DRAWING,
        draft=Rect(x=x, y=y, width=0.0, height=0.0),
        cursor=CURSOR_CROSSHAIR,
    )


def pointer_move(
    session: InteractionSession,
    rois: Sequence[RoiLike],
    x: float,
    y: float,
    bounds: Bounds,
    config: Optional[RoiSelectorConfig] = None,
) -> Transition:
    """Grow the draft, drag the active handle, or update hover feedback."""
    if session.is_drawing and session.draft is not None:
        draft = session.draft
        new_draft = Rect(x=draft.x, y=draft.y, width=x - draft.x, height=y - draft.y)
        return Transition(session=replace(session, draft=new_draft))

    if session.is_resizing:
        roi = _find(rois, session.selected_id)
        if roi is None or session.active_handle is None or session.drag_origin is None:
            # target vanished mid-gesture
            return Transition(session=InteractionSession(selected_id=None))
        rect = resize_rect(session.drag_origin, session.active_handle, x, y, bounds, config)
        return Transition(session=session, update_id=roi.id, update_rect=rect)

    roi = _find(rois, session.selected_id)
    if roi is None:
        return Transition(
            session=replace(session, hover_handle=None, cursor=CURSOR_CROSSHAIR)
        )

    handle = hit_test_handle(x, y, roi.rect, session.hover_handle, config)
    if handle is not None:
        cursor = HANDLE_CURSORS[handle]
    elif contains_point(x, y, roi.rect):
        cursor = CURSOR_MOVE
    else:
        cursor = CURSOR_CROSSHAIR
    return Transition(session=replace(session, hover_handle=handle, cursor=cursor))


def pointer_up(
    session: InteractionSession,
    rois: Sequence[RoiLike],
    bounds: Bounds,
    config: Optional[RoiSelectorConfig] = None,
) -> Transition:
    """Finish a draw (commit) or a resize (recapture). No-op when idle.

    A draw that never moved still commits; the solver grows it to the
    minimum size.
    """
    if session.is_resizing:
        roi = _find(rois, session.selected_id)
        return Transition(
            session=replace(session, mode=Mode.IDLE, active_handle=None, drag_origin=None),
            recapture_id=roi.id if roi is not None else None,
        )

    if session.is_drawing and session.draft is not None:
        rect = solve(normalize_rect(session.draft), bounds, config)
        return Transition(session=InteractionSession(), commit=rect)

    return Transition(session=session)
