# nicemask/src/nicemask/mask_editor/tools.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

MIN_BRUSH_SIZE = 5
MAX_BRUSH_SIZE = 200
DEFAULT_BRUSH_SIZE = 40


class Tool(str, Enum):
    """Editing tool. Values match the shortcut-free names used in the UI."""

    BRUSH = "brush"
    ERASER = "eraser"
    PAN = "pan"

    @property
    def paints(self) -> bool:
        return self is not Tool.PAN


@dataclass
class BrushSettings:
    """Screen-space brush diameter in display pixels."""

    size_px: int = DEFAULT_BRUSH_SIZE
    min_size_px: int = MIN_BRUSH_SIZE
    max_size_px: int = MAX_BRUSH_SIZE

    def __post_init__(self) -> None:
        if self.min_size_px <= 0 or self.max_size_px < self.min_size_px:
            raise ValueError(
                f"invalid brush range [{self.min_size_px}, {self.max_size_px}]"
            )
        if not self.min_size_px <= self.size_px <= self.max_size_px:
            raise ValueError(
                f"brush size {self.size_px} outside [{self.min_size_px}, {self.max_size_px}]"
            )

    def set_size(self, size_px: float) -> int:
        """Clamp and store a new brush size; returns the stored value."""
        self.size_px = int(max(self.min_size_px, min(self.max_size_px, round(size_px))))
        return self.size_px

    def image_radius(self, zoom: float) -> float:
        """Stroke radius in image pixels at the given zoom."""
        return self.size_px / 2.0 / zoom

    def image_diameter(self, zoom: float) -> float:
        return self.size_px / zoom
