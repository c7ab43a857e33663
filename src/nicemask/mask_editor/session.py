# nicemask/src/nicemask/mask_editor/session.py

"""GUI-independent mask editing session.

`MaskEditorSession` owns the image, mask surface, history, viewport and input
state for one open editor, and talks to the outside world only through the
`on_apply` / `on_close` callbacks. The NiceGUI widget is a thin shell that
converts browser events into `InputEvent`s and redraws on change.

Typical usage:

    session = MaskEditorSession(image, on_apply=send_mask, on_close=hide)
    session.handle(PointerEvent(PointerKind.DOWN, 120, 80))
    session.handle(PointerEvent(PointerKind.MOVE, 140, 90))
    session.handle(PointerEvent(PointerKind.UP, 140, 90))
    session.apply()
"""

from __future__ import annotations

from typing import Callable, FrozenSet, List, Optional, Union

import numpy as np
from PIL import Image

from nicemask.mask_editor.config import MaskEditorConfig
from nicemask.mask_editor.finalize import encode_png, finalize
from nicemask.mask_editor.gestures import (
    CloseRequest,
    Command,
    Dispatch,
    GestureDispatcher,
    InputEvent,
    InputState,
    PointerEvent,
    PointerKind,
    PointerType,
    ToolSelect,
    ToolState,
    TouchDown,
)
from nicemask.mask_editor.history import MaskHistory
from nicemask.mask_editor.image_io import as_rgba
from nicemask.mask_editor.render import render_view
from nicemask.mask_editor.surface import MaskSurface, RasterSurface, SurfaceReadError
from nicemask.mask_editor.tools import BrushSettings, Tool
from nicemask.mask_editor.viewport import Point, Viewport
from nicemask.utils.logging import get_logger

logger = get_logger(__name__)

OnApplyMask = Callable[[bytes], None]
OnApplyMaskAndPrompt = Callable[[bytes, str], None]
OnApply = Union[OnApplyMask, OnApplyMaskAndPrompt]
OnClose = Callable[[], None]
OnChange = Callable[[FrozenSet[Command]], None]


class MaskEditorSession:
    """One open mask editor: image + mask + history + viewport + input state."""

    def __init__(
        self,
        image: Union[np.ndarray, Image.Image],
        *,
        config: MaskEditorConfig | None = None,
        on_apply: OnApply | None = None,
        on_close: OnClose | None = None,
        surface: RasterSurface | None = None,
    ) -> None:
        self.config = config if config is not None else MaskEditorConfig()
        self.image = as_rgba(image)
        self.image.setflags(write=False)
        self.img_height, self.img_width = self.image.shape[:2]

        if surface is None:
            surface = MaskSurface(
                self.img_width,
                self.img_height,
                paint_rgba=self.config.paint_rgba,
            )
        elif (surface.width, surface.height) != (self.img_width, self.img_height):
            raise ValueError(
                f"surface {surface.width}x{surface.height} does not match "
                f"image {self.img_width}x{self.img_height}"
            )
        self.surface = surface
        self.history = MaskHistory(self.surface)

        self.viewport = Viewport(min_zoom=self.config.min_zoom, max_zoom=self.config.max_zoom)
        self.viewport.fit_to_container(
            self.img_width,
            self.img_height,
            self.config.display_width_px,
            self.config.display_height_px,
        )

        self.brush = BrushSettings(
            size_px=self.config.brush_size_px,
            min_size_px=self.config.min_brush_size_px,
            max_size_px=self.config.max_brush_size_px,
        )
        self.dispatcher = GestureDispatcher(
            self.viewport,
            self.surface,
            self.history,
            self.brush,
            wheel_sensitivity=self.config.wheel_sensitivity,
            brush_step_px=self.config.brush_step_px,
        )
        self.state = InputState(tools=ToolState(selected=self.config.initial_tool))

        self.prompt: str = ""
        self.preview: Optional[Point] = None  # brush preview centre, screen space

        self._on_apply = on_apply
        self._on_close = on_close
        self._change_handlers: List[OnChange] = []
        self._mask_empty = True
        self._closed = False

        logger.info(
            f"mask editor opened: image={self.img_width}x{self.img_height}, "
            f"display={self.config.display_width_px}x{self.config.display_height_px}, "
            f"zoom={self.viewport.zoom:.3f}"
        )

    # ------------- properties -------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def tool(self) -> Tool:
        """Selected tool (ignores transient pan)."""
        return self.state.tools.selected

    @property
    def effective_tool(self) -> Tool:
        return self.state.tools.effective

    @property
    def mask_is_empty(self) -> bool:
        return self._mask_empty

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    @property
    def can_clear(self) -> bool:
        return not self._mask_empty

    @property
    def can_apply(self) -> bool:
        if self._closed or self._mask_empty:
            return False
        if self.config.requires_prompt and not self.prompt.strip():
            return False
        return True

    @property
    def cursor(self) -> str:
        """CSS cursor for the display area."""
        if self.effective_tool.paints:
            return "none"
        return "grabbing" if self.state.is_grabbing else "grab"

    @property
    def preview_visible(self) -> bool:
        return self.preview is not None and self.effective_tool.paints

    # ------------- events -------------

    def on_change(self, handler: OnChange) -> None:
        """Register a handler called after every handled event.

        The handler receives the frozenset of commands performed; an empty set
        means only the brush preview position may have changed.
        """
        self._change_handlers.append(handler)

    def handle(self, event: InputEvent) -> Dispatch:
        """Feed one input event through the dispatcher and perform its commands."""
        if self._closed:
            return Dispatch(self.state)

        self._track_preview(event)
        result = self.dispatcher.handle(self.state, event)
        self.state = result.state

        commands = set(result.commands)
        for cmd in result.commands:
            if cmd is Command.UNDO:
                if self.history.undo():
                    commands.add(Command.MASK_CHANGED)
            elif cmd is Command.REDO:
                if self.history.redo():
                    commands.add(Command.MASK_CHANGED)
            elif cmd is Command.STROKE_COMMITTED:
                commands.add(Command.MASK_CHANGED)

        if commands & {Command.UNDO, Command.REDO, Command.STROKE_COMMITTED}:
            self.refresh_mask_empty()

        if Command.CLOSE in commands:
            self.close()

        self._notify(commands)
        return result

    def _track_preview(self, event: InputEvent) -> None:
        if isinstance(event, TouchDown):
            self.preview = None
            return
        if not isinstance(event, PointerEvent):
            return
        if event.kind is PointerKind.LEAVE or event.pointer_type is PointerType.TOUCH:
            self.preview = None
        else:
            self.preview = event.pos

    def _notify(self, commands: set[Command]) -> None:
        frozen = frozenset(commands)
        for handler in list(self._change_handlers):
            try:
                handler(frozen)
            except Exception:
                logger.exception("Error in mask editor change handler")

    # ------------- actions -------------

    def select_tool(self, tool: Tool) -> None:
        self.handle(ToolSelect(Tool(tool)))

    def set_brush_size(self, size_px: float) -> None:
        before = self.brush.size_px
        if self.brush.set_size(size_px) != before:
            self._notify({Command.BRUSH_CHANGED})

    def set_prompt(self, text: str | None) -> None:
        self.prompt = text or ""
        self._notify(set())

    def undo(self) -> bool:
        if self._closed or not self.history.undo():
            return False
        self.refresh_mask_empty()
        self._notify({Command.UNDO, Command.MASK_CHANGED})
        return True

    def redo(self) -> bool:
        if self._closed or not self.history.redo():
            return False
        self.refresh_mask_empty()
        self._notify({Command.REDO, Command.MASK_CHANGED})
        return True

    def clear_mask(self) -> None:
        """Drop every stroke; history collapses to the initial empty snapshot."""
        if self._closed:
            return
        self.history.reset()
        self._mask_empty = True
        logger.info("mask cleared")
        self._notify({Command.MASK_CHANGED})

    def refresh_mask_empty(self) -> bool:
        """Recompute emptiness from the surface pixels.

        A surface whose pixels cannot be read is treated as empty so apply
        stays disabled; the session remains usable for cancel.
        """
        try:
            self._mask_empty = self.surface.is_empty()
        except SurfaceReadError:
            logger.exception("could not read mask pixels; treating mask as empty")
            self._mask_empty = True
        return self._mask_empty

    def finalize_mask(self) -> Optional[np.ndarray]:
        """Binary RGBA mask at source resolution, or None if the surface is unreadable."""
        try:
            return finalize(self.surface)
        except SurfaceReadError:
            logger.exception("could not read mask pixels for finalize")
            self._mask_empty = True
            return None

    def apply(self) -> Optional[bytes]:
        """Finalize, hand the PNG mask to on_apply and end the session.

        Returns the PNG bytes, or None when apply is not currently allowed.
        """
        if not self.can_apply:
            logger.debug("apply ignored: nothing to apply")
            return None

        mask = self.finalize_mask()
        if mask is None:
            self._notify({Command.MASK_CHANGED})
            return None
        png = encode_png(mask)

        self._closed = True
        self.state = InputState(tools=self.state.tools)
        logger.info(f"mask applied: {len(png)} bytes, {self.img_width}x{self.img_height}")

        if self._on_apply is not None:
            try:
                if self.config.requires_prompt:
                    self._on_apply(png, self.prompt.strip())
                else:
                    self._on_apply(png)
            except Exception:
                logger.exception("Error in on_apply handler")
        return png

    def request_close(self) -> None:
        """Cancel button / backdrop: route through the dispatcher like Escape."""
        self.handle(CloseRequest())

    def close(self) -> None:
        """Discard the session without emitting a mask."""
        if self._closed:
            return
        self._closed = True
        self.state = InputState(tools=self.state.tools)
        self.preview = None
        logger.info("mask editor closed without applying")
        if self._on_close is not None:
            try:
                self._on_close()
            except Exception:
                logger.exception("Error in on_close handler")

    # ------------- rendering -------------

    def render(self) -> Image.Image:
        """Current view (image + mask overlay) at the configured display size."""
        return render_view(
            self.image,
            self._overlay_pixels(),
            self.viewport,
            (self.config.display_width_px, self.config.display_height_px),
            background=self.config.background_color,
        )

    def _overlay_pixels(self) -> np.ndarray:
        if isinstance(self.surface, MaskSurface):
            return self.surface.pixels
        # Foreign surfaces only expose alpha; tint it with the paint color.
        r, g, b, _ = self.config.paint_rgba
        try:
            alpha = self.surface.alpha()
        except SurfaceReadError:
            logger.debug("mask pixels unreadable; rendering without overlay")
            alpha = np.zeros((self.img_height, self.img_width), dtype=np.uint8)
        overlay = np.zeros(alpha.shape + (4,), dtype=np.uint8)
        overlay[..., 0] = r
        overlay[..., 1] = g
        overlay[..., 2] = b
        overlay[..., 3] = alpha
        return overlay
