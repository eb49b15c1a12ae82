# tests/roi_selector/conftest.py
from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image


def pytest_configure() -> None:
    # Ensure `src` is importable when running tests from the repo root.
    repo_root = Path(__file__).resolve().parents[2]
    src_dir = repo_root / "src"
    if src_dir.exists():
        sys.path.insert(0, str(src_dir))


def make_gradient_array(width: int = 800, height: int = 600) -> np.ndarray:
    """RGB array where nearby pixels differ, so crops can be compared exactly."""
    ys, xs = np.mgrid[0:height, 0:width]
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    arr[..., 0] = xs % 256
    arr[..., 1] = ys % 256
    arr[..., 2] = (xs * 7 + ys * 13) % 256
    return arr


@pytest.fixture
def gradient_array() -> np.ndarray:
    return make_gradient_array()


@pytest.fixture
def gradient_image(gradient_array: np.ndarray) -> Image.Image:
    return Image.fromarray(gradient_array)
