# tests/roi_selector/test_widget.py

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Callable, List, Optional

import pytest

import roitagger.roi_selector.widget as w_mod
from roitagger.roi_selector.config import RoiSelectorConfig
from roitagger.roi_selector.geometry import Rect
from roitagger.roi_selector.models import Category
from roitagger.roi_selector.widget import RoiSelectorWidget

pytestmark = pytest.mark.requires_nicegui


class _FakeElement:
    def __init__(self, text: str = "") -> None:
        self.text = text
        self.styles: List[str] = []
        self.update_count = 0

    def classes(self, *_args: Any, **_kwargs: Any) -> "_FakeElement":
        return self

    def props(self, *_args: Any, **_kwargs: Any) -> "_FakeElement":
        return self

    def style(self, s: str) -> "_FakeElement":
        self.styles.append(s)
        return self

    def update(self) -> None:
        self.update_count += 1

    def __enter__(self) -> "_FakeElement":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None


class _FakeInteractiveImage(_FakeElement):
    def __init__(self, source: Any, cross: bool, events: List[str]) -> None:
        super().__init__()
        self.source = source
        self.events = events
        self.content = ""
        self.mouse_handler: Optional[Callable[..., Any]] = None

    def on_mouse(self, handler: Callable[..., Any]) -> "_FakeInteractiveImage":
        self.mouse_handler = handler
        return self


class _FakeSelect(_FakeElement):
    def __init__(self, options: dict, value: Any, label: str, on_change: Callable[..., Any]) -> None:
        super().__init__(text=label)
        self.options = options
        self.value = value
        self.on_change = on_change


class _FakeTable(_FakeElement):
    def __init__(self, columns: list, rows: list, row_key: str) -> None:
        super().__init__()
        self.columns = columns
        self.rows = rows
        self.row_key = row_key


class _FakeUI:
    def __init__(self) -> None:
        self.image: Optional[_FakeInteractiveImage] = None
        self.select_el: Optional[_FakeSelect] = None
        self.table_el: Optional[_FakeTable] = None
        self.status: Optional[_FakeElement] = None
        self.buttons: dict[str, Callable[..., Any]] = {}
        self.key_handler: Optional[Callable[..., Any]] = None
        self.notifications: List[str] = []

    def element(self, _tag: str) -> _FakeElement:
        return _FakeElement()

    def row(self) -> _FakeElement:
        return _FakeElement()

    def interactive_image(self, source: Any, *, cross: bool, events: List[str]) -> _FakeInteractiveImage:
        self.image = _FakeInteractiveImage(source, cross, events)
        return self.image

    def select(self, options: dict, *, value: Any, label: str, on_change: Callable[..., Any]) -> _FakeSelect:
        self.select_el = _FakeSelect(options, value, label, on_change)
        return self.select_el

    def button(self, text: str, on_click: Callable[..., Any]) -> _FakeElement:
        self.buttons[text] = on_click
        return _FakeElement(text=text)

    def label(self, text: str) -> _FakeElement:
        self.status = _FakeElement(text=text)
        return self.status

    def table(self, *, columns: list, rows: list, row_key: str) -> _FakeTable:
        self.table_el = _FakeTable(columns, rows, row_key)
        return self.table_el

    def keyboard(self, on_key: Callable[..., Any]) -> _FakeElement:
        self.key_handler = on_key
        return _FakeElement()

    def notify(self, message: str, **_kwargs: Any) -> None:
        self.notifications.append(message)


class _MemoryUploader:
    def __init__(self) -> None:
        self.records: List[dict] = []

    async def upload_image(self, image_name: str, category: str, png: bytes) -> str:
        return f"mem://{image_name}"

    async def save_record(self, record: dict) -> None:
        self.records.append(record)


@pytest.fixture()
def fake_ui(monkeypatch: pytest.MonkeyPatch) -> _FakeUI:
    ui = _FakeUI()
    monkeypatch.setattr(w_mod, "ui", ui, raising=True)
    return ui


def _mouse(kind: str, x: float, y: float, button: int = 0) -> SimpleNamespace:
    return SimpleNamespace(type=kind, image_x=x, image_y=y, button=button)


def _drag(widget: RoiSelectorWidget, x0, y0, x1, y1) -> None:
    widget._on_mouse(_mouse("mousedown", x0, y0))
    widget._on_mouse(_mouse("mousemove", x1, y1))
    widget._on_mouse(_mouse("mouseup", x1, y1))


def _key(name: str, keydown: bool = True) -> SimpleNamespace:
    return SimpleNamespace(key=SimpleNamespace(name=name), action=SimpleNamespace(keydown=keydown))


@pytest.mark.asyncio
async def test_widget_builds_ui(fake_ui: _FakeUI, gradient_array) -> None:
    widget = RoiSelectorWidget(gradient_array)

    assert fake_ui.image is not None
    assert fake_ui.image.mouse_handler == widget._on_mouse
    assert fake_ui.image.events == ["mousedown", "mousemove", "mouseup"]
    assert fake_ui.image.source.size == (800, 600)
    assert set(fake_ui.select_el.options) == {"", *(c.value for c in Category)}
    assert {"Discard", "Export ROIs"} <= set(fake_ui.buttons)
    assert fake_ui.key_handler == widget._on_key
    assert (widget.DISPLAY_W, widget.DISPLAY_H) == (800, 600)


@pytest.mark.asyncio
async def test_draw_updates_table_overlay_and_raster(fake_ui: _FakeUI, gradient_array) -> None:
    widget = RoiSelectorWidget(gradient_array)

    _drag(widget, 50, 50, 150, 120)
    await widget.controller.wait_for_captures()

    roi = widget.controller.rois[0]
    assert roi.rect == Rect(50, 50, 100, 70)
    assert roi.raster is not None
    assert fake_ui.table_el.rows[0]["id"] == "roi-1"
    assert "<rect" in fake_ui.image.content


@pytest.mark.asyncio
async def test_display_scaling_maps_to_image_pixels(fake_ui: _FakeUI, gradient_array) -> None:
    config = RoiSelectorConfig(display_width_px=400, display_height_px=300)
    widget = RoiSelectorWidget(gradient_array, config=config)
    assert fake_ui.image.source.size == (400, 300)

    _drag(widget, 50, 50, 100, 100)
    await widget.controller.wait_for_captures()

    assert widget.controller.rois[0].rect == Rect(100, 100, 100, 100)


@pytest.mark.asyncio
async def test_cursor_follows_hover(fake_ui: _FakeUI, gradient_array) -> None:
    widget = RoiSelectorWidget(gradient_array)
    _drag(widget, 50, 50, 150, 120)
    widget._on_mouse(_mouse("mousedown", 100, 80))
    widget._on_mouse(_mouse("mouseup", 100, 80))

    widget._on_mouse(_mouse("mousemove", 150, 120))
    assert fake_ui.image.styles[-1] == "cursor: se-resize"
    await widget.controller.wait_for_captures()


@pytest.mark.asyncio
async def test_right_button_is_ignored(fake_ui: _FakeUI, gradient_array) -> None:
    widget = RoiSelectorWidget(gradient_array)
    widget._on_mouse(_mouse("mousedown", 50, 50, button=2))
    assert widget.controller.session.mode.value == "idle"


@pytest.mark.asyncio
async def test_select_shows_category_and_change_tags_roi(fake_ui: _FakeUI, gradient_array) -> None:
    widget = RoiSelectorWidget(gradient_array)
    _drag(widget, 50, 50, 150, 120)
    widget.controller.set_category("roi-1", "teamB")

    widget._on_mouse(_mouse("mousedown", 100, 80))
    widget._on_mouse(_mouse("mouseup", 100, 80))
    assert fake_ui.select_el.value == "teamB"

    widget._on_category_change(SimpleNamespace(value="referee"))
    assert widget.controller.get_roi("roi-1").category is Category.REFEREE

    widget._on_category_change(SimpleNamespace(value=""))
    assert widget.controller.get_roi("roi-1").category is None
    await widget.controller.wait_for_captures()


@pytest.mark.asyncio
async def test_category_change_without_selection_is_ignored(fake_ui: _FakeUI, gradient_array) -> None:
    widget = RoiSelectorWidget(gradient_array)
    _drag(widget, 50, 50, 150, 120)
    widget._on_category_change(SimpleNamespace(value="teamA"))
    assert widget.controller.get_roi("roi-1").category is None
    await widget.controller.wait_for_captures()


@pytest.mark.asyncio
async def test_discard_button_and_delete_key(fake_ui: _FakeUI, gradient_array) -> None:
    widget = RoiSelectorWidget(gradient_array)
    _drag(widget, 50, 50, 150, 120)
    _drag(widget, 300, 300, 400, 400)

    widget.controller.select_roi("roi-1")
    fake_ui.buttons["Discard"]()
    assert [r.id for r in widget.controller.rois] == ["roi-2"]

    widget.controller.select_roi("roi-2")
    widget._on_key(_key("Delete", keydown=False))
    assert len(widget.controller.rois) == 1
    widget._on_key(_key("Delete"))
    assert widget.controller.rois == []
    assert fake_ui.table_el.rows == []
    await widget.controller.wait_for_captures()


@pytest.mark.asyncio
async def test_export_without_uploader_notifies(fake_ui: _FakeUI, gradient_array) -> None:
    widget = RoiSelectorWidget(gradient_array)
    await widget._on_export()
    assert fake_ui.notifications == ["No uploader configured"]


@pytest.mark.asyncio
async def test_export_with_uploader(fake_ui: _FakeUI, gradient_array) -> None:
    uploader = _MemoryUploader()
    widget = RoiSelectorWidget(gradient_array, uploader=uploader)
    _drag(widget, 50, 50, 150, 120)
    widget.controller.set_category("roi-1", Category.TEAM_A)

    await widget._on_export()

    assert [r["roi_id"] for r in uploader.records] == ["roi-1"]
    assert fake_ui.status.text == "Export complete!"
    assert widget.controller.get_roi("roi-1").remote_url.startswith("mem://teamA_")
