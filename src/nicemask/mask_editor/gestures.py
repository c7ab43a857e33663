# nicemask/src/nicemask/mask_editor/gestures.py

"""Input state machine for the mask editor.

Host events (mouse, touch, wheel, keyboard) are converted at the widget
boundary into the small event types below. `GestureDispatcher.handle` takes
the current `InputState` plus one event and returns the next state together
with the commands the caller must act on (redraw, undo, close, ...).

Gesture states:

    Idle ──down(brush/eraser)──▶ Drawing ──up/leave──▶ Idle (commit)
    Idle ──down(pan / transient pan)──▶ PanningSingle ──up──▶ Idle
    Idle ──two touches in one frame──▶ PanningPinch
    Drawing / PanningSingle ──second touch──▶ PanningPinch
    PanningPinch ──one finger up──▶ PanningSingle ──up──▶ Idle

Touch points beyond the first two are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import List, Tuple, Union

from nicemask.mask_editor.history import MaskHistory
from nicemask.mask_editor.surface import RasterSurface
from nicemask.mask_editor.tools import BrushSettings, Tool
from nicemask.mask_editor.viewport import PinchAnchor, Point, Viewport
from nicemask.utils.logging import get_logger

logger = get_logger(__name__)


# ------------- events -------------


class PointerKind(str, Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"
    LEAVE = "leave"
    CANCEL = "cancel"


class PointerType(str, Enum):
    MOUSE = "mouse"
    TOUCH = "touch"


class Button(IntEnum):
    PRIMARY = 0
    MIDDLE = 1
    SECONDARY = 2


@dataclass(frozen=True)
class PointerEvent:
    """One pointer sample in screen coordinates of the display area."""

    kind: PointerKind
    x: float
    y: float
    pointer_id: int = 0
    pointer_type: PointerType = PointerType.MOUSE
    button: int = Button.PRIMARY

    @property
    def key(self) -> "PointerKey":
        return (self.pointer_type, self.pointer_id)

    @property
    def pos(self) -> Point:
        return (self.x, self.y)


@dataclass(frozen=True)
class WheelEvent:
    x: float
    y: float
    delta_y: float


@dataclass(frozen=True)
class KeyEvent:
    key: str
    down: bool = True
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    repeat: bool = False
    text_input_focused: bool = False


@dataclass(frozen=True)
class TouchDown:
    """Touches that landed in the same frame, in screen coordinates.

    Two fingers arriving together start a pinch directly; no stroke is begun.
    """

    touches: Tuple[PointerEvent, ...]


@dataclass(frozen=True)
class ToolSelect:
    tool: Tool


@dataclass(frozen=True)
class CloseRequest:
    pass


InputEvent = Union[PointerEvent, TouchDown, WheelEvent, KeyEvent, ToolSelect, CloseRequest]

PointerKey = Tuple[PointerType, int]


class Command(str, Enum):
    """Side effects the owner of the dispatcher must perform."""

    MASK_CHANGED = "mask_changed"
    STROKE_COMMITTED = "stroke_committed"
    VIEW_CHANGED = "view_changed"
    TOOL_CHANGED = "tool_changed"
    BRUSH_CHANGED = "brush_changed"
    UNDO = "undo"
    REDO = "redo"
    CLOSE = "close"


# ------------- states -------------


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Drawing:
    """Active stroke; `last_point` is in image space."""

    tool: Tool
    pointer: PointerKey
    last_point: Point
    last_screen: Point


@dataclass(frozen=True)
class PanningSingle:
    """Drag pan; pan = screen position - anchor."""

    pointer: PointerKey
    anchor: Point
    last_screen: Point


@dataclass(frozen=True)
class PanningPinch:
    pointers: Tuple[PointerKey, PointerKey]
    positions: Tuple[Point, Point]
    anchor: PinchAnchor


GestureState = Union[Idle, Drawing, PanningSingle, PanningPinch]


@dataclass(frozen=True)
class ToolState:
    """Selected tool plus the spacebar transient-pan flag."""

    selected: Tool = Tool.BRUSH
    space_pan: bool = False

    @property
    def effective(self) -> Tool:
        return Tool.PAN if self.space_pan else self.selected


@dataclass(frozen=True)
class InputState:
    gesture: GestureState = field(default_factory=Idle)
    tools: ToolState = field(default_factory=ToolState)

    @property
    def is_idle(self) -> bool:
        return isinstance(self.gesture, Idle)

    @property
    def is_grabbing(self) -> bool:
        return isinstance(self.gesture, (PanningSingle, PanningPinch))


@dataclass(frozen=True)
class Dispatch:
    state: InputState
    commands: Tuple[Command, ...] = ()


# ------------- dispatcher -------------


class GestureDispatcher:
    """Drives the viewport, surface and history from unified input events."""

    def __init__(
        self,
        viewport: Viewport,
        surface: RasterSurface,
        history: MaskHistory,
        brush: BrushSettings,
        *,
        wheel_sensitivity: float = 0.001,
        brush_step_px: int = 5,
    ) -> None:
        self.viewport = viewport
        self.surface = surface
        self.history = history
        self.brush = brush
        self.wheel_sensitivity = wheel_sensitivity
        self.brush_step_px = brush_step_px

    def handle(self, state: InputState, event: InputEvent) -> Dispatch:
        if isinstance(event, PointerEvent):
            return self._on_pointer(state, event)
        if isinstance(event, TouchDown):
            return self._on_touch_down(state, event)
        if isinstance(event, WheelEvent):
            self.viewport.wheel_zoom(event.x, event.y, event.delta_y, self.wheel_sensitivity)
            return Dispatch(state, (Command.VIEW_CHANGED,))
        if isinstance(event, KeyEvent):
            return self._on_key(state, event)
        if isinstance(event, ToolSelect):
            return self._select_tool(state, event.tool)
        if isinstance(event, CloseRequest):
            return self._close(state)
        raise TypeError(f"unsupported input event {event!r}")

    # ------------- pointer -------------

    def _on_pointer(self, state: InputState, e: PointerEvent) -> Dispatch:
        if e.kind is PointerKind.DOWN:
            return self._on_down(state, e)
        if e.kind is PointerKind.MOVE:
            return self._on_move(state, e)
        # up, leave and cancel all end the gesture owned by this pointer
        return self._on_release(state, e)

    def _on_down(self, state: InputState, e: PointerEvent) -> Dispatch:
        g = state.gesture

        if isinstance(g, Idle):
            if e.pointer_type is PointerType.MOUSE and e.button in (Button.MIDDLE, Button.SECONDARY):
                return Dispatch(replace(state, gesture=self._start_pan(e)))
            if e.pointer_type is PointerType.MOUSE and e.button != Button.PRIMARY:
                return Dispatch(state)

            tool = state.tools.effective
            if tool is Tool.PAN:
                return Dispatch(replace(state, gesture=self._start_pan(e)))
            return self._start_drawing(state, e, tool)

        second_touch = (
            e.pointer_type is PointerType.TOUCH
            and isinstance(g, (Drawing, PanningSingle))
            and g.pointer[0] is PointerType.TOUCH
            and g.pointer != e.key
        )
        if not second_touch:
            # third touch, or a stray button press mid-gesture
            return Dispatch(state)

        commands: Tuple[Command, ...] = ()
        if isinstance(g, Drawing):
            # The interrupted stroke's paint stays on the buffer and is committed
            # now so the buffer never diverges from history.
            self.history.commit()
            commands = (Command.STROKE_COMMITTED,)
            logger.debug("stroke interrupted by second touch; partial stroke committed")

        pinch = self._start_pinch((g.pointer, e.key), (g.last_screen, e.pos))
        return Dispatch(replace(state, gesture=pinch), commands)

    def _on_touch_down(self, state: InputState, e: TouchDown) -> Dispatch:
        if isinstance(state.gesture, Idle) and len(e.touches) >= 2:
            first, second = e.touches[:2]
            logger.debug("two touches in one frame: pinch without stroke")
            pinch = self._start_pinch((first.key, second.key), (first.pos, second.pos))
            return Dispatch(replace(state, gesture=pinch))

        # A single new touch, or new touches joining a gesture in progress.
        commands: List[Command] = []
        for touch in e.touches:
            result = self._on_down(state, touch)
            state = result.state
            for cmd in result.commands:
                if cmd not in commands:
                    commands.append(cmd)
        return Dispatch(state, tuple(commands))

    def _start_pinch(
        self,
        pointers: Tuple[PointerKey, PointerKey],
        positions: Tuple[Point, Point],
    ) -> PanningPinch:
        return PanningPinch(
            pointers=pointers,
            positions=positions,
            anchor=self.viewport.pinch_anchor(*positions),
        )

    def _start_pan(self, e: PointerEvent) -> PanningSingle:
        return PanningSingle(
            pointer=e.key,
            anchor=(e.x - self.viewport.pan_x, e.y - self.viewport.pan_y),
            last_screen=e.pos,
        )

    def _start_drawing(self, state: InputState, e: PointerEvent, tool: Tool) -> Dispatch:
        point = self.viewport.to_image_space(e.x, e.y)
        self.surface.paint_point(point, tool, self.brush.image_radius(self.viewport.zoom))
        drawing = Drawing(tool=tool, pointer=e.key, last_point=point, last_screen=e.pos)
        logger.debug(f"stroke start: tool={tool.value} at ({point[0]:.1f}, {point[1]:.1f})")
        return Dispatch(replace(state, gesture=drawing), (Command.MASK_CHANGED,))

    def _on_move(self, state: InputState, e: PointerEvent) -> Dispatch:
        g = state.gesture

        if isinstance(g, Drawing) and g.pointer == e.key:
            point = self.viewport.to_image_space(e.x, e.y)
            self.surface.paint_segment(
                g.last_point,
                point,
                g.tool,
                self.brush.image_diameter(self.viewport.zoom),
            )
            moved = replace(g, last_point=point, last_screen=e.pos)
            return Dispatch(replace(state, gesture=moved), (Command.MASK_CHANGED,))

        if isinstance(g, PanningSingle) and g.pointer == e.key:
            self.viewport.set_pan(e.x - g.anchor[0], e.y - g.anchor[1])
            moved = replace(g, last_screen=e.pos)
            return Dispatch(replace(state, gesture=moved), (Command.VIEW_CHANGED,))

        if isinstance(g, PanningPinch) and e.key in g.pointers:
            if e.key == g.pointers[0]:
                positions = (e.pos, g.positions[1])
            else:
                positions = (g.positions[0], e.pos)
            self.viewport.apply_pinch(g.anchor, *positions)
            moved = replace(g, positions=positions)
            return Dispatch(replace(state, gesture=moved), (Command.VIEW_CHANGED,))

        return Dispatch(state)

    def _on_release(self, state: InputState, e: PointerEvent) -> Dispatch:
        g = state.gesture

        if isinstance(g, Drawing) and g.pointer == e.key:
            self.history.commit()
            logger.debug(f"stroke end ({e.kind.value}): history len={len(self.history)}")
            return Dispatch(replace(state, gesture=Idle()), (Command.STROKE_COMMITTED,))

        if isinstance(g, PanningSingle) and g.pointer == e.key:
            return Dispatch(replace(state, gesture=Idle()))

        if isinstance(g, PanningPinch) and e.key in g.pointers:
            # Keep panning with the finger that is still down.
            keep = 1 if e.key == g.pointers[0] else 0
            pos = g.positions[keep]
            single = PanningSingle(
                pointer=g.pointers[keep],
                anchor=(pos[0] - self.viewport.pan_x, pos[1] - self.viewport.pan_y),
                last_screen=pos,
            )
            return Dispatch(replace(state, gesture=single))

        return Dispatch(state)

    # ------------- keyboard / tools -------------

    def _on_key(self, state: InputState, e: KeyEvent) -> Dispatch:
        key = e.key.lower() if len(e.key) == 1 else e.key

        if key == " " and not e.down:
            # Releasing space always ends transient pan, even from a text field.
            if state.tools.space_pan:
                tools = replace(state.tools, space_pan=False)
                return Dispatch(replace(state, tools=tools), (Command.TOOL_CHANGED,))
            return Dispatch(state)

        # held keys auto-repeat; only the first keydown counts
        if e.text_input_focused or not e.down or e.repeat:
            return Dispatch(state)

        if key == "Escape":
            return self._close(state)

        command_mod = e.ctrl or e.meta
        if command_mod:
            if key == "z":
                return Dispatch(state, (Command.REDO if e.shift else Command.UNDO,))
            if key == "y":
                return Dispatch(state, (Command.REDO,))
            return Dispatch(state)

        if key == "b":
            return self._select_tool(state, Tool.BRUSH)
        if key == "e":
            return self._select_tool(state, Tool.ERASER)
        if key == "v":
            return self._select_tool(state, Tool.PAN)
        if key == " ":
            if state.tools.space_pan:
                return Dispatch(state)
            tools = replace(state.tools, space_pan=True)
            return Dispatch(replace(state, tools=tools), (Command.TOOL_CHANGED,))
        if key in ("[", "]"):
            step = self.brush_step_px if key == "]" else -self.brush_step_px
            before = self.brush.size_px
            if self.brush.set_size(before + step) == before:
                return Dispatch(state)
            return Dispatch(state, (Command.BRUSH_CHANGED,))

        return Dispatch(state)

    def _select_tool(self, state: InputState, tool: Tool) -> Dispatch:
        if state.tools.selected is tool:
            return Dispatch(state)
        tools = replace(state.tools, selected=tool)
        logger.debug(f"tool selected: {tool.value}")
        return Dispatch(replace(state, tools=tools), (Command.TOOL_CHANGED,))

    def _close(self, state: InputState) -> Dispatch:
        return Dispatch(InputState(gesture=Idle(), tools=state.tools), (Command.CLOSE,))
