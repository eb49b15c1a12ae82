# tests/roi_selector/test_overlay.py

from __future__ import annotations

from roitagger.roi_selector.config import RoiSelectorConfig
from roitagger.roi_selector.geometry import Rect
from roitagger.roi_selector.models import Category, Roi
from roitagger.roi_selector.overlay import render_overlay_svg

CONFIG = RoiSelectorConfig()


def test_empty_overlay():
    assert render_overlay_svg([], None, None, CONFIG) == ""


def test_unselected_rois_have_no_handles():
    rois = [
        Roi(id="roi-1", rect=Rect(10, 10, 30, 30)),
        Roi(id="roi-2", rect=Rect(100, 100, 30, 30), category=Category.TEAM_A),
    ]
    svg = render_overlay_svg(rois, None, None, CONFIG)
    assert svg.count("<rect") == 2
    assert 'stroke="red"' in svg
    assert 'stroke="dodgerblue"' in svg
    assert f'fill="{CONFIG.handle_color}"' not in svg


def test_selected_roi_draws_four_handles():
    rois = [Roi(id="roi-1", rect=Rect(10, 10, 30, 30))]
    svg = render_overlay_svg(rois, "roi-1", None, CONFIG)
    assert svg.count("<rect") == 5
    assert f'stroke="{CONFIG.roi_selected_color}"' in svg
    assert svg.count(f'fill="{CONFIG.handle_color}"') == 4


def test_draft_is_dashed_and_scaled():
    svg = render_overlay_svg([], None, Rect(10, 20, 30, 40), CONFIG, scale_x=0.5, scale_y=2.0)
    assert 'stroke-dasharray="6 4"' in svg
    assert 'x="5.0"' in svg
    assert 'y="40.0"' in svg
    assert 'width="15.0"' in svg
    assert 'height="80.0"' in svg
