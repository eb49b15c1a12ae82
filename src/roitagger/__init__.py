"""
roitagger: draw, resize, tag and export rectangular regions of interest.

This package provides:
- roi_selector: the ROI interaction engine (geometry, constraint solving,
  pointer state machine, padded capture) plus a NiceGUI widget on top of it
- Logging utilities for library and application use

For logging configuration in standalone scripts/demos:
    ```python
    from roitagger.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```
"""

import logging

from roitagger.utils.logging import configure_logging, get_logger

from roitagger.roi_selector import (
    Category,
    ImageSource,
    Rect,
    ResizeHandle,
    Roi,
    RoiSelectorConfig,
    RoiSessionController,
)

# Keep roitagger quiet until an application configures logging.
_logger = logging.getLogger("roitagger")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "Category",
    "ImageSource",
    "Rect",
    "ResizeHandle",
    "Roi",
    "RoiSelectorConfig",
    "RoiSessionController",
    "configure_logging",
    "get_logger",
]

__version__ = "0.1.0"
