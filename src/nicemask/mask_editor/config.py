# nicemask/src/nicemask/mask_editor/config.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from nicemask.mask_editor.surface import DEFAULT_PAINT_RGBA, validate_paint_rgba
from nicemask.mask_editor.tools import (
    DEFAULT_BRUSH_SIZE,
    MAX_BRUSH_SIZE,
    MIN_BRUSH_SIZE,
    Tool,
)
from nicemask.mask_editor.viewport import MAX_ZOOM, MIN_ZOOM


@dataclass
class MaskEditorConfig:
    # Display area (screen pixels); the image is fit inside it at open
    display_width_px: int = 960
    display_height_px: int = 640
    background_color: Tuple[int, int, int] = (15, 23, 42)

    # Brush
    brush_size_px: int = DEFAULT_BRUSH_SIZE
    min_brush_size_px: int = MIN_BRUSH_SIZE
    max_brush_size_px: int = MAX_BRUSH_SIZE
    brush_step_px: int = 5                  # "[" / "]" step
    paint_rgba: Tuple[int, int, int, float] = DEFAULT_PAINT_RGBA
    initial_tool: Tool = Tool.BRUSH

    # Zoom
    min_zoom: float = MIN_ZOOM
    max_zoom: float = MAX_ZOOM
    wheel_sensitivity: float = 0.001        # zoom units per wheel deltaY unit

    # Brush preview appearance (SVG overlay)
    brush_preview_color: str = "white"
    eraser_preview_color: str = "red"

    # Text
    title: str = "Magic Erase: Paint to remove"
    apply_label: str = "Apply Erase"

    # Replace variant: a prompt field is shown when prompt_label is set
    prompt_label: str | None = None
    prompt_placeholder: str = "Replace selection with... e.g., 'a cute kitten'"

    def __post_init__(self) -> None:
        if not MIN_BRUSH_SIZE <= self.min_brush_size_px <= self.max_brush_size_px <= MAX_BRUSH_SIZE:
            raise ValueError(
                f"brush limits [{self.min_brush_size_px}, {self.max_brush_size_px}] "
                f"must lie within [{MIN_BRUSH_SIZE}, {MAX_BRUSH_SIZE}]"
            )
        if self.display_width_px <= 0 or self.display_height_px <= 0:
            raise ValueError(
                f"display size must be positive, got "
                f"{self.display_width_px}x{self.display_height_px}"
            )
        if not self.min_brush_size_px <= self.brush_size_px <= self.max_brush_size_px:
            raise ValueError(
                f"brush_size_px {self.brush_size_px} outside "
                f"[{self.min_brush_size_px}, {self.max_brush_size_px}]"
            )
        if self.wheel_sensitivity <= 0:
            raise ValueError("wheel_sensitivity must be positive")
        if self.brush_step_px <= 0:
            raise ValueError("brush_step_px must be positive")
        if self.min_zoom <= 0 or self.max_zoom < self.min_zoom:
            raise ValueError(f"invalid zoom range [{self.min_zoom}, {self.max_zoom}]")
        self.paint_rgba = validate_paint_rgba(self.paint_rgba)
        # accepts "brush" etc.; raises ValueError for unknown names
        self.initial_tool = Tool(self.initial_tool)

    @property
    def requires_prompt(self) -> bool:
        return self.prompt_label is not None

    @classmethod
    def replace_variant(cls, **overrides) -> "MaskEditorConfig":
        """Config for the object-replacement editor (mask + prompt)."""
        values = dict(
            title="Magic Replace: Paint to replace",
            apply_label="Apply Replace",
            prompt_label="Replacement",
        )
        values.update(overrides)
        return cls(**values)
