"""Mask Editor - pan/zoom/brush/eraser mask painting for image edits."""

from .config import MaskEditorConfig
from .finalize import encode_png, finalize, to_base64_png
from .gestures import (
    CloseRequest,
    Command,
    GestureDispatcher,
    InputState,
    KeyEvent,
    PointerEvent,
    PointerKind,
    PointerType,
    ToolSelect,
    TouchDown,
    WheelEvent,
)
from .history import MaskHistory
from .image_io import ImageDecodeError, decode_image, decode_image_async
from .mask_editor import MaskEditor
from .session import MaskEditorSession
from .surface import MaskSurface, RasterSurface, SurfaceReadError
from .tools import BrushSettings, Tool
from .viewport import Viewport

__all__ = [
    "BrushSettings",
    "CloseRequest",
    "Command",
    "GestureDispatcher",
    "ImageDecodeError",
    "InputState",
    "KeyEvent",
    "MaskEditor",
    "MaskEditorConfig",
    "MaskEditorSession",
    "MaskHistory",
    "MaskSurface",
    "PointerEvent",
    "PointerKind",
    "PointerType",
    "RasterSurface",
    "SurfaceReadError",
    "Tool",
    "ToolSelect",
    "TouchDown",
    "Viewport",
    "WheelEvent",
    "decode_image",
    "decode_image_async",
    "encode_png",
    "finalize",
    "to_base64_png",
]
