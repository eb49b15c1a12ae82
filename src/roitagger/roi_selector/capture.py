# roitagger/src/roitagger/roi_selector/capture.py
"""Rasterize a ROI into a standalone PNG.

Cropping exactly at a rectangle's edge can leave a one-pixel fringe, so the
capture is done in two stages: first a region padded by ``padding`` on every
side goes to an intermediate surface of ``(w + 2p) x (h + 2p)``, then that
surface is cropped by ``padding`` and drawn onto a final ``w x h`` surface.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
from typing import Optional

import numpy as np
from matplotlib import colormaps
from PIL import Image

from roitagger.utils.logging import get_logger
from .geometry import Rect

logger = get_logger(__name__)

_PNG_MODES = {"1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"}

DATA_URL_PREFIX = "data:image/png;base64,"


def array_to_pil(
    arr: np.ndarray,
    vmin: float | None = None,
    vmax: float | None = None,
    cmap: str = "gray",
) -> Image.Image:
    """Map a 2D NumPy array to an 8-bit RGB PIL image with a colormap."""
    arr = np.asarray(arr, dtype=float)

    if vmin is None:
        vmin = float(np.nanmin(arr))
    if vmax is None:
        vmax = float(np.nanmax(arr))

    if vmax <= vmin:
        vmax = vmin + 1e-6

    norm = (arr - vmin) / (vmax - vmin)
    norm = np.clip(norm, 0.0, 1.0)

    rgba = colormaps[cmap](norm)
    rgb = (rgba[..., :3] * 255).astype(np.uint8)
    return Image.fromarray(rgb)


class ImageSource:
    """A decoded-on-demand source image.

    Dimensions are known as soon as the header is read; pixel data is loaded
    once, in a worker thread, the first time ``ready()`` is awaited.
    """

    def __init__(self, image: Image.Image) -> None:
        self._image = image
        self._loaded = False
        self._lock = asyncio.Lock()

    @classmethod
    def from_array(
        cls,
        arr: np.ndarray,
        *,
        vmin: float | None = None,
        vmax: float | None = None,
        cmap: str = "gray",
    ) -> "ImageSource":
        """2D arrays go through ``cmap``; (H, W, 3|4) uint8 arrays are used as-is."""
        arr = np.asarray(arr)
        if arr.ndim == 2:
            return cls(array_to_pil(arr, vmin=vmin, vmax=vmax, cmap=cmap))
        if arr.ndim == 3 and arr.shape[2] in (3, 4):
            return cls(Image.fromarray(arr.astype(np.uint8)))
        raise ValueError(f"ImageSource expects a 2D or (H, W, 3|4) array, got shape {arr.shape}")

    @classmethod
    def from_bytes(cls, data: bytes) -> "ImageSource":
        return cls(Image.open(io.BytesIO(data)))

    @classmethod
    def from_data_url(cls, url: str) -> "ImageSource":
        header, sep, payload = url.partition(",")
        if not sep or not header.startswith("data:") or ";base64" not in header:
            raise ValueError("Expected a base64 data URL")
        try:
            data = base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload in data URL: {e}") from e
        return cls.from_bytes(data)

    @property
    def width(self) -> int:
        return self._image.size[0]

    @property
    def height(self) -> int:
        return self._image.size[1]

    @property
    def image(self) -> Image.Image:
        return self._image

    async def ready(self) -> Image.Image:
        """Wait until pixel data is decoded and return the image."""
        async with self._lock:
            if not self._loaded:
                await asyncio.to_thread(self._image.load)
                self._loaded = True
        return self._image


def encode_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def to_data_url(png: bytes) -> str:
    """PNG bytes -> ``data:image/png;base64,...``."""
    return DATA_URL_PREFIX + base64.b64encode(png).decode("ascii")


def render_capture(image: Image.Image, rect: Rect, padding: int) -> bytes:
    """Synchronous two-stage crop of ``rect`` out of ``image``, as PNG bytes."""
    left, top, width, height = rect.to_int_box()
    if width <= 0 or height <= 0:
        raise ValueError(f"Cannot capture an empty rectangle: {rect}")

    if image.mode not in _PNG_MODES:
        image = image.convert("RGBA")

    # Stage 1: padded region onto an intermediate surface.
    padded = image.crop(
        (left - padding, top - padding, left + width + padding, top + height + padding)
    )

    # Stage 2: intermediate surface, minus the padding, onto the final surface.
    final = Image.new(padded.mode, (width, height))
    if padded.mode == "P":
        final.putpalette(padded.getpalette())
    final.paste(padded.crop((padding, padding, padding + width, padding + height)), (0, 0))

    return encode_png(final)


async def capture(
    rect: Rect,
    source: Optional[ImageSource],
    padding: int = 5,
) -> Optional[bytes]:
    """Capture ``rect`` from ``source`` as PNG bytes.

    Returns None when there is no source image.
    """
    if source is None:
        logger.debug("capture skipped: no source image")
        return None

    image = await source.ready()
    png = render_capture(image, rect, padding)
    logger.debug(f"captured {rect.to_int_box()} ({len(png)} bytes)")
    return png
