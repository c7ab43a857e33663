# nicemask/src/nicemask/mask_editor/mask_editor.py

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Optional, Union

import numpy as np
from nicegui import events, ui
from PIL import Image

from nicemask.mask_editor.config import MaskEditorConfig
from nicemask.mask_editor.gestures import (
    Command,
    KeyEvent,
    PointerEvent,
    PointerKind,
    PointerType,
    TouchDown,
    WheelEvent,
)
from nicemask.mask_editor.image_io import ImageSource, decode_image_async
from nicemask.mask_editor.render import brush_preview_svg
from nicemask.mask_editor.session import MaskEditorSession, OnApply, OnClose
from nicemask.mask_editor.tools import Tool
from nicemask.utils.logging import get_logger

logger = get_logger(__name__)

_MOUSE_KINDS: Dict[str, PointerKind] = {
    "mousedown": PointerKind.DOWN,
    "mousemove": PointerKind.MOVE,
    "mouseup": PointerKind.UP,
    "mouseleave": PointerKind.LEAVE,
}

_TOUCH_KINDS: Dict[str, PointerKind] = {
    "touchstart": PointerKind.DOWN,
    "touchmove": PointerKind.MOVE,
    "touchend": PointerKind.UP,
    "touchcancel": PointerKind.CANCEL,
}

# Emits only the changed touches, in coordinates relative to the image element.
_TOUCH_JS = """
(e) => {
    e.preventDefault();
    const r = e.currentTarget.getBoundingClientRect();
    emit({
        type: e.type,
        touches: Array.from(e.changedTouches).map(t => ({
            id: t.identifier, x: t.clientX - r.left, y: t.clientY - r.top,
        })),
    });
}
"""

_TOOL_BUTTONS = (
    (Tool.PAN, "pan_tool", "Pan Tool (V or Spacebar)"),
    (Tool.BRUSH, "brush", "Brush Tool (B)"),
    (Tool.ERASER, "auto_fix_normal", "Eraser Tool (E)"),
)


class MaskEditor:
    """Modal NiceGUI mask painter built on `MaskEditorSession`.

    - Input: decoded image (NumPy array or PIL image).
    - Output: `on_apply(png_bytes)`, or `on_apply(png_bytes, prompt)` when the
      config has a `prompt_label` (replace variant); `on_close()` on cancel.

    The dialog opens immediately. Use `MaskEditor.open_from_bytes` when the
    source still has to be decoded.
    """

    def __init__(
        self,
        image: Union[np.ndarray, Image.Image],
        *,
        on_apply: OnApply | None = None,
        on_close: OnClose | None = None,
        config: MaskEditorConfig | None = None,
    ) -> None:
        self.config = config if config is not None else MaskEditorConfig()
        self._user_on_close = on_close
        self.session = MaskEditorSession(
            image,
            config=self.config,
            on_apply=on_apply,
            on_close=self._on_session_closed,
        )
        self._text_focused = False
        self._torn_down = False
        self._tool_buttons: Dict[Tool, ui.button] = {}
        self._prompt_input: Optional[ui.input] = None

        self._build()
        self.session.on_change(self._on_session_change)
        self._refresh_controls()
        self._update_image()
        self.dialog.open()

    @classmethod
    async def open_from_bytes(
        cls,
        data: ImageSource,
        **kwargs: Any,
    ) -> "MaskEditor":
        """Decode `data`, then build and open the editor.

        Raises:
            ImageDecodeError: the editor is not created when decoding fails.
        """
        image = await decode_image_async(data)
        return cls(image, **kwargs)

    # ------------- UI construction -------------

    def _build(self) -> None:
        cfg = self.config
        with ui.dialog().props("persistent") as self.dialog, ui.card().classes(
            "w-full max-w-6xl"
        ):
            with ui.row().classes("w-full items-center justify-between gap-4"):
                ui.label(cfg.title).classes("text-xl font-bold")

                if cfg.requires_prompt:
                    self._prompt_input = (
                        ui.input(
                            label=cfg.prompt_label,
                            placeholder=cfg.prompt_placeholder,
                            on_change=self._on_prompt_change,
                        )
                        .classes("flex-1")
                        .on("focus", lambda _: self._set_text_focus(True))
                        .on("blur", lambda _: self._set_text_focus(False))
                    )

                with ui.row().classes("items-center gap-1"):
                    for tool, icon, tooltip in _TOOL_BUTTONS:
                        btn = ui.button(
                            icon=icon,
                            on_click=lambda _, t=tool: self.session.select_tool(t),
                        ).props("flat round")
                        btn.tooltip(tooltip)
                        self._tool_buttons[tool] = btn

                self._brush_slider = ui.slider(
                    min=cfg.min_brush_size_px,
                    max=cfg.max_brush_size_px,
                    step=1,
                    value=self.session.brush.size_px,
                    on_change=lambda e: self.session.set_brush_size(e.value),
                ).classes("w-32")
                self._brush_slider.tooltip("Brush Size ([ / ])")

                with ui.row().classes("items-center gap-1"):
                    self._undo_button = ui.button(icon="undo", on_click=self.session.undo).props("flat round")
                    self._undo_button.tooltip("Undo (Ctrl+Z)")
                    self._redo_button = ui.button(icon="redo", on_click=self.session.redo).props("flat round")
                    self._redo_button.tooltip("Redo (Ctrl+Y)")
                    self._clear_button = ui.button(icon="delete", on_click=self.session.clear_mask).props("flat round")
                    self._clear_button.tooltip("Clear Mask")

                with ui.row().classes("items-center gap-2"):
                    ui.button("Cancel", on_click=self.session.request_close).props("outline")
                    self._apply_button = ui.button(cfg.apply_label, on_click=self._on_apply_click)

            self.interactive = (
                ui.interactive_image(
                    self.session.render(),
                    events=list(_MOUSE_KINDS),
                    on_mouse=self._on_mouse,
                )
                .style(
                    f"width: {cfg.display_width_px}px; height: {cfg.display_height_px}px; "
                    "touch-action: none; user-select: none;"
                )
            )
            self.interactive.on("wheel.prevent", self._on_wheel)
            self.interactive.on("contextmenu.prevent", lambda _: None)
            for name in _TOUCH_KINDS:
                self.interactive.on(name, self._on_touch, js_handler=_TOUCH_JS)

        # Global shortcuts while the editor is open; focus guard is in the dispatcher.
        self._keyboard = ui.keyboard(on_key=self._on_key, ignore=[])

    # ------------- rendering -------------

    def _update_image(self) -> None:
        """Redraw image + mask overlay for the current viewport."""
        self.interactive.set_source(self.session.render())
        self._redraw_overlays()

    def _redraw_overlays(self) -> None:
        """Brush preview as an SVG circle in display coordinates."""
        session = self.session
        if session.preview_visible and session.preview is not None:
            stroke = (
                self.config.brush_preview_color
                if session.effective_tool is Tool.BRUSH
                else self.config.eraser_preview_color
            )
            x, y = session.preview
            self.interactive.content = brush_preview_svg(
                x, y, session.brush.size_px, stroke=stroke
            )
        else:
            self.interactive.content = ""
        self.interactive.style(f"cursor: {session.cursor};")
        self.interactive.update()

    def _refresh_controls(self) -> None:
        session = self.session
        for tool, btn in self._tool_buttons.items():
            btn.props(f"color={'teal' if session.tool is tool else 'grey'}")
        self._brush_slider.value = session.brush.size_px
        self._brush_slider.enabled = session.tool is not Tool.PAN
        self._undo_button.enabled = session.can_undo
        self._redo_button.enabled = session.can_redo
        self._clear_button.enabled = session.can_clear
        self._apply_button.enabled = session.can_apply

    def _on_session_change(self, commands: FrozenSet[Command]) -> None:
        if self.session.closed:
            return
        if commands & {Command.MASK_CHANGED, Command.VIEW_CHANGED}:
            self._update_image()
        else:
            self._redraw_overlays()
        if commands - {Command.MASK_CHANGED, Command.VIEW_CHANGED}:
            self._refresh_controls()

    # ------------- events -------------

    def _on_mouse(self, e: events.MouseEventArguments) -> None:
        kind = _MOUSE_KINDS.get(e.type)
        if kind is None:
            return
        self.session.handle(
            PointerEvent(
                kind=kind,
                x=float(e.image_x),
                y=float(e.image_y),
                pointer_type=PointerType.MOUSE,
                button=int(e.button),
            )
        )
        if kind in (PointerKind.UP, PointerKind.LEAVE, PointerKind.DOWN):
            self._refresh_controls()

    def _on_touch(self, e: events.GenericEventArguments) -> None:
        args = e.args or {}
        kind = _TOUCH_KINDS.get(args.get("type", ""))
        if kind is None:
            return
        touches = tuple(
            PointerEvent(
                kind=kind,
                x=float(t["x"]),
                y=float(t["y"]),
                pointer_id=int(t["id"]),
                pointer_type=PointerType.TOUCH,
            )
            for t in args.get("touches", [])
        )
        if not touches:
            return
        if kind is PointerKind.DOWN:
            # fingers landing together must reach the dispatcher as one event
            self.session.handle(TouchDown(touches))
        else:
            for touch in touches:
                self.session.handle(touch)
        if kind is not PointerKind.MOVE:
            self._refresh_controls()

    def _on_wheel(self, e: events.GenericEventArguments) -> None:
        args = e.args or {}
        dy = args.get("deltaY", 0)
        if not isinstance(dy, (int, float)) or dy == 0:
            return

        x = args.get("offsetX")
        y = args.get("offsetY")
        if not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
            # Fall back to the last pointer position, then the display centre.
            if self.session.preview is not None:
                x, y = self.session.preview
            else:
                x = self.config.display_width_px / 2.0
                y = self.config.display_height_px / 2.0

        self.session.handle(WheelEvent(x=float(x), y=float(y), delta_y=float(dy)))
        logger.debug(f"wheel zoom: zoom={self.session.viewport.zoom:.3f}")

    def _on_key(self, e: events.KeyEventArguments) -> None:
        self.session.handle(
            KeyEvent(
                key=e.key.name,
                down=bool(e.action.keydown),
                ctrl=bool(e.modifiers.ctrl),
                meta=bool(e.modifiers.meta),
                shift=bool(e.modifiers.shift),
                repeat=bool(e.action.repeat),
                text_input_focused=self._text_focused,
            )
        )

    def _set_text_focus(self, focused: bool) -> None:
        self._text_focused = focused

    def _on_prompt_change(self, e: events.ValueChangeEventArguments) -> None:
        self.session.set_prompt(e.value)
        self._refresh_controls()

    def _on_apply_click(self) -> None:
        if self.session.apply() is not None:
            self._teardown()
        else:
            self._refresh_controls()

    def _on_session_closed(self) -> None:
        self._teardown()
        if self._user_on_close is not None:
            # exceptions are isolated by the session
            self._user_on_close()

    def _teardown(self) -> None:
        """Remove every element of this editor so the session can be collected."""
        if self._torn_down:
            return
        self._torn_down = True
        self._keyboard.delete()
        self.dialog.close()
        self.dialog.delete()
