"""
nicemask: interactive mask painting for NiceGUI image-editing apps.

This package provides:
- MaskEditor: modal NiceGUI brush/eraser/pan mask editor (erase and replace variants)
- MaskEditorSession: the same editor without any GUI, for hosts and tests
- Logging utilities for library and application use

For logging configuration in standalone scripts/demos:
    ```python
    from nicemask.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library, logging is handled by the parent application's
configuration.
"""

import logging

from nicemask.utils.logging import configure_logging, get_logger

from nicemask.mask_editor import (
    ImageDecodeError,
    MaskEditor,
    MaskEditorConfig,
    MaskEditorSession,
    Tool,
)

# NullHandler so records don't reach the root logger's last-resort handler
# when no application has configured logging.
_logger = logging.getLogger("nicemask")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "ImageDecodeError",
    "MaskEditor",
    "MaskEditorConfig",
    "MaskEditorSession",
    "Tool",
    "configure_logging",
    "get_logger",
]

__version__ = "0.1.0"
