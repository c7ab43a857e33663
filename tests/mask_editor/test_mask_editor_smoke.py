# tests/mask_editor/test_mask_editor_smoke.py
from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Callable, Dict, List

import numpy as np
import pytest

import nicemask.mask_editor.mask_editor as me_mod
from nicemask.mask_editor.config import MaskEditorConfig
from nicemask.mask_editor.gestures import Idle, PanningPinch
from nicemask.mask_editor.mask_editor import MaskEditor
from nicemask.mask_editor.tools import Tool

pytestmark = pytest.mark.requires_nicegui

# 100x100 image in the default 960x640 display: zoom 1, pan (430, 270).
PAN_X, PAN_Y = 430.0, 270.0


class _FakeElement:
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.args = args
        self.kwargs = kwargs
        self.handlers: Dict[str, Callable[..., Any]] = {}
        self.js_handlers: Dict[str, str] = {}
        self.enabled = True
        self.value = kwargs.get("value")
        self.content = ""
        self.source = args[0] if args else None
        self.active = True
        self.opened = False
        self.deleted = False

    def __enter__(self) -> "_FakeElement":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None

    def classes(self, *_args: Any, **_kwargs: Any) -> "_FakeElement":
        return self

    def props(self, *_args: Any, **_kwargs: Any) -> "_FakeElement":
        return self

    def style(self, *_args: Any, **_kwargs: Any) -> "_FakeElement":
        return self

    def tooltip(self, *_args: Any) -> "_FakeElement":
        return self

    def on(self, name: str, handler: Callable[..., Any] = None, *, js_handler: str | None = None) -> "_FakeElement":
        self.handlers[name] = handler
        if js_handler is not None:
            self.js_handlers[name] = js_handler
        return self

    def set_source(self, source: Any) -> None:
        self.source = source

    def update(self) -> None:
        pass

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.opened = False

    def delete(self) -> None:
        self.deleted = True


class _FakeUI:
    def __init__(self) -> None:
        self.created: Dict[str, List[_FakeElement]] = {}

    def _make(self, kind: str, *args: Any, **kwargs: Any) -> _FakeElement:
        el = _FakeElement(*args, **kwargs)
        self.created.setdefault(kind, []).append(el)
        return el

    def dialog(self) -> _FakeElement:
        return self._make("dialog")

    def card(self) -> _FakeElement:
        return self._make("card")

    def row(self) -> _FakeElement:
        return self._make("row")

    def label(self, text: str = "") -> _FakeElement:
        return self._make("label", text)

    def input(self, **kwargs: Any) -> _FakeElement:
        return self._make("input", **kwargs)

    def button(self, text: str = "", **kwargs: Any) -> _FakeElement:
        return self._make("button", text, **kwargs)

    def slider(self, **kwargs: Any) -> _FakeElement:
        return self._make("slider", **kwargs)

    def interactive_image(self, source: Any = "", **kwargs: Any) -> _FakeElement:
        return self._make("interactive_image", source, **kwargs)

    def keyboard(self, **kwargs: Any) -> _FakeElement:
        return self._make("keyboard", **kwargs)

    # helpers for tests
    def one(self, kind: str) -> _FakeElement:
        (el,) = self.created[kind]
        return el

    def button_labelled(self, text: str) -> _FakeElement:
        return next(b for b in self.created["button"] if b.args and b.args[0] == text)


@pytest.fixture()
def fake_ui(monkeypatch: pytest.MonkeyPatch) -> _FakeUI:
    ui = _FakeUI()
    monkeypatch.setattr(me_mod, "ui", ui, raising=True)
    return ui


def _mouse(editor: MaskEditor, kind: str, x: float, y: float, button: int = 0) -> None:
    editor._on_mouse(SimpleNamespace(type=kind, image_x=x, image_y=y, button=button))


def _touch(editor: MaskEditor, kind: str, *touches: tuple) -> None:
    editor._on_touch(
        SimpleNamespace(
            args={"type": kind, "touches": [{"id": i, "x": x, "y": y} for i, x, y in touches]}
        )
    )


def _key(editor: MaskEditor, name: str, *, keydown: bool = True, repeat: bool = False, **mods: bool) -> None:
    editor._on_key(
        SimpleNamespace(
            key=SimpleNamespace(name=name),
            action=SimpleNamespace(keydown=keydown, keyup=not keydown, repeat=repeat),
            modifiers=SimpleNamespace(
                ctrl=mods.get("ctrl", False),
                meta=mods.get("meta", False),
                shift=mods.get("shift", False),
                alt=False,
            ),
        )
    )


def test_editor_builds_and_opens(fake_ui: _FakeUI, gray_image: np.ndarray) -> None:
    editor = MaskEditor(gray_image)

    assert fake_ui.one("dialog").opened
    image = fake_ui.one("interactive_image")
    assert image.kwargs["on_mouse"] == editor._on_mouse
    assert image.source.size == (960, 640)
    for name in ("touchstart", "touchmove", "touchend", "touchcancel"):
        assert image.handlers[name] == editor._on_touch
        assert "changedTouches" in image.js_handlers[name]
    assert "wheel.prevent" in image.handlers
    assert fake_ui.one("keyboard").kwargs["ignore"] == []
    assert "input" not in fake_ui.created
    assert not fake_ui.button_labelled(editor.config.apply_label).enabled


def test_mouse_stroke_paints_and_enables_apply(fake_ui: _FakeUI, gray_image: np.ndarray) -> None:
    editor = MaskEditor(gray_image)

    _mouse(editor, "mousedown", PAN_X + 50, PAN_Y + 50)
    _mouse(editor, "mousemove", PAN_X + 70, PAN_Y + 50)
    _mouse(editor, "mouseup", PAN_X + 70, PAN_Y + 50)

    session = editor.session
    assert len(session.history) == 2
    assert session.surface.alpha()[50, 60] > 0
    assert fake_ui.button_labelled(editor.config.apply_label).enabled


def test_two_fingers_in_one_touchstart_pinch_without_painting(
    fake_ui: _FakeUI, gray_image: np.ndarray
) -> None:
    editor = MaskEditor(gray_image)
    session = editor.session

    _touch(editor, "touchstart", (0, 460.0, 320.0), (1, 500.0, 320.0))

    assert isinstance(session.state.gesture, PanningPinch)
    assert session.surface.is_empty()
    assert len(session.history) == 1

    _touch(editor, "touchmove", (0, 460.0, 320.0), (1, 540.0, 320.0))
    assert session.viewport.zoom == pytest.approx(2.0)
    assert session.surface.is_empty()

    _touch(editor, "touchend", (0, 460.0, 320.0), (1, 540.0, 320.0))
    assert isinstance(session.state.gesture, Idle)
    assert len(session.history) == 1


def test_single_touch_draws(fake_ui: _FakeUI, gray_image: np.ndarray) -> None:
    editor = MaskEditor(gray_image)

    _touch(editor, "touchstart", (3, PAN_X + 20, PAN_Y + 20))
    _touch(editor, "touchmove", (3, PAN_X + 40, PAN_Y + 20))
    _touch(editor, "touchend", (3, PAN_X + 40, PAN_Y + 20))

    assert len(editor.session.history) == 2
    assert editor.session.surface.alpha()[20, 30] > 0


def test_wheel_zooms_at_offset_or_display_centre(fake_ui: _FakeUI, gray_image: np.ndarray) -> None:
    editor = MaskEditor(gray_image)
    vp = editor.session.viewport
    wheel = fake_ui.one("interactive_image").handlers["wheel.prevent"]

    anchored = vp.to_image_space(300.0, 200.0)
    wheel(SimpleNamespace(args={"deltaY": -100, "offsetX": 300, "offsetY": 200}))
    assert vp.zoom == pytest.approx(1.1)
    assert vp.to_image_space(300.0, 200.0) == pytest.approx(anchored)

    centre = vp.to_image_space(480.0, 320.0)
    wheel(SimpleNamespace(args={"deltaY": -100}))
    assert vp.zoom == pytest.approx(1.2)
    assert vp.to_image_space(480.0, 320.0) == pytest.approx(centre)

    wheel(SimpleNamespace(args={"deltaY": 0, "offsetX": 1, "offsetY": 1}))
    assert vp.zoom == pytest.approx(1.2)


def test_shortcuts_ignored_while_prompt_focused(fake_ui: _FakeUI, gray_image: np.ndarray) -> None:
    closed: List[bool] = []
    editor = MaskEditor(
        gray_image,
        config=MaskEditorConfig.replace_variant(),
        on_close=lambda: closed.append(True),
    )
    prompt = fake_ui.one("input")

    prompt.handlers["focus"](None)
    _key(editor, "e")
    _key(editor, "Escape")
    assert editor.session.tool is Tool.BRUSH
    assert closed == []

    prompt.handlers["blur"](None)
    _key(editor, "e")
    assert editor.session.tool is Tool.ERASER


def test_key_repeat_is_ignored(fake_ui: _FakeUI, gray_image: np.ndarray) -> None:
    editor = MaskEditor(gray_image)
    size = editor.session.brush.size_px

    _key(editor, "]", repeat=True)
    assert editor.session.brush.size_px == size

    _key(editor, "]")
    assert editor.session.brush.size_px == size + editor.config.brush_step_px


def test_cancel_tears_down_and_calls_on_close(fake_ui: _FakeUI, gray_image: np.ndarray) -> None:
    closed: List[bool] = []
    editor = MaskEditor(gray_image, on_close=lambda: closed.append(True))

    fake_ui.button_labelled("Cancel").kwargs["on_click"]()

    assert closed == [True]
    assert editor.session.closed
    assert fake_ui.one("keyboard").deleted
    assert fake_ui.one("dialog").deleted
    assert not fake_ui.one("dialog").opened


def test_escape_tears_down(fake_ui: _FakeUI, gray_image: np.ndarray) -> None:
    closed: List[bool] = []
    editor = MaskEditor(gray_image, on_close=lambda: closed.append(True))

    _key(editor, "Escape")

    assert closed == [True]
    assert fake_ui.one("keyboard").deleted


def test_apply_tears_down_without_on_close(fake_ui: _FakeUI, gray_image: np.ndarray) -> None:
    received: List[bytes] = []
    closed: List[bool] = []
    editor = MaskEditor(
        gray_image,
        on_apply=received.append,
        on_close=lambda: closed.append(True),
    )
    _mouse(editor, "mousedown", PAN_X + 50, PAN_Y + 50)
    _mouse(editor, "mouseup", PAN_X + 50, PAN_Y + 50)

    fake_ui.button_labelled(editor.config.apply_label).kwargs["on_click"]()

    assert len(received) == 1 and received[0].startswith(b"\x89PNG")
    assert closed == []
    assert fake_ui.one("keyboard").deleted
    assert fake_ui.one("dialog").deleted


def test_apply_on_empty_mask_keeps_editor_open(fake_ui: _FakeUI, gray_image: np.ndarray) -> None:
    editor = MaskEditor(gray_image)

    fake_ui.button_labelled(editor.config.apply_label).kwargs["on_click"]()

    assert not editor.session.closed
    assert not fake_ui.one("keyboard").deleted
