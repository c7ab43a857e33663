# nicemask/src/nicemask/mask_editor/surface.py

"""Image-resolution paint buffer for mask strokes.

The buffer is an RGBA ``uint8`` array of shape ``(height, width, 4)``. Brush
strokes composite a translucent paint color over the existing content
(source-over); eraser strokes clear alpha inside the stroke (destination-out).
Only the alpha channel carries meaning for the final mask: alpha > 0 is
"selected". The color exists for on-screen feedback.

Coverage is evaluated at pixel centres, so a disk of radius ``r`` at
``(cx, cy)`` covers pixel ``(x, y)`` iff
``(x + 0.5 - cx)**2 + (y + 0.5 - cy)**2 <= r**2``.
"""

from __future__ import annotations

import math
from typing import Optional, Protocol, Tuple, runtime_checkable

import numpy as np

from nicemask.mask_editor.finalize import binary_mask_from_alpha
from nicemask.mask_editor.tools import Tool
from nicemask.mask_editor.viewport import Point


# rgba(255, 0, 150, 0.7)
DEFAULT_PAINT_RGBA: Tuple[int, int, int, float] = (255, 0, 150, 0.7)

MaskSnapshot = np.ndarray


class SurfaceReadError(RuntimeError):
    """Raised when a surface's pixels cannot be read back (e.g. host security restrictions)."""


@runtime_checkable
class RasterSurface(Protocol):
    """Operations the editor needs from a paintable mask surface."""

    width: int
    height: int

    def paint_point(self, point: Point, tool: Tool, radius: float) -> None: ...

    def paint_segment(self, start: Point, end: Point, tool: Tool, diameter: float) -> None: ...

    def snapshot(self) -> MaskSnapshot: ...

    def restore(self, snapshot: MaskSnapshot) -> None: ...

    def is_empty(self) -> bool: ...

    def alpha(self) -> np.ndarray: ...

    def to_binary_mask(self) -> np.ndarray: ...


def validate_paint_rgba(rgba: Tuple[int, int, int, float]) -> Tuple[int, int, int, float]:
    if len(rgba) != 4:
        raise ValueError(f"paint color must be (r, g, b, a), got {rgba!r}")
    r, g, b, a = rgba
    for c in (r, g, b):
        if not 0 <= int(c) <= 255:
            raise ValueError(f"paint channel {c} outside [0, 255]")
    if not 0.0 < float(a) <= 1.0:
        raise ValueError(f"paint alpha {a} outside (0, 1]")
    return (int(r), int(g), int(b), float(a))


class MaskSurface:
    """NumPy implementation of RasterSurface.

    The buffer is allocated once for the source image size and never resized.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        paint_rgba: Tuple[int, int, int, float] = DEFAULT_PAINT_RGBA,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"invalid mask size {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.paint_rgba = validate_paint_rgba(paint_rgba)
        self._pixels = np.zeros((self.height, self.width, 4), dtype=np.uint8)

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the live RGBA buffer (for rendering)."""
        view = self._pixels.view()
        view.setflags(write=False)
        return view

    def alpha(self) -> np.ndarray:
        return self._pixels[..., 3].copy()

    def is_empty(self) -> bool:
        return not bool(np.any(self._pixels[..., 3]))

    def to_binary_mask(self) -> np.ndarray:
        return binary_mask_from_alpha(self._pixels[..., 3])

    # ------------- snapshots -------------

    def snapshot(self) -> MaskSnapshot:
        """Return an independent, read-only copy of the buffer."""
        snap = self._pixels.copy()
        snap.setflags(write=False)
        return snap

    def restore(self, snapshot: MaskSnapshot) -> None:
        """Replace the live buffer contents with `snapshot` (which is left untouched)."""
        if snapshot.shape != self._pixels.shape:
            raise ValueError(
                f"snapshot shape {snapshot.shape} does not match buffer {self._pixels.shape}"
            )
        np.copyto(self._pixels, snapshot)

    def clear(self) -> None:
        self._pixels[...] = 0

    # ------------- painting -------------

    def paint_point(self, point: Point, tool: Tool, radius: float) -> None:
        """Stamp a filled disk of `radius` image pixels at `point`."""
        self._paint_capsule(point, point, tool, radius)

    def paint_segment(self, start: Point, end: Point, tool: Tool, diameter: float) -> None:
        """Round-capped line of width `diameter` from `start` to `end`.

        The whole segment is composited in one pass, so pixels covered by
        both caps are blended once, not twice.
        """
        self._paint_capsule(start, end, tool, diameter / 2.0)

    def _paint_capsule(self, start: Point, end: Point, tool: Tool, radius: float) -> None:
        if not tool.paints:
            raise ValueError(f"tool {tool.value!r} does not paint")
        if radius <= 0:
            return

        found = self._coverage(start, end, radius)
        if found is None:
            return
        rows, cols, cover = found
        region = self._pixels[rows, cols]

        if tool is Tool.ERASER:
            region[cover] = 0
            return

        r, g, b, src_a = self.paint_rgba
        dst = region[cover].astype(np.float64)
        dst_a = dst[:, 3] / 255.0
        out_a = src_a + dst_a * (1.0 - src_a)

        src_rgb = np.array([r, g, b], dtype=np.float64)
        out_rgb = (
            src_rgb * src_a + dst[:, :3] * (dst_a * (1.0 - src_a))[:, None]
        ) / out_a[:, None]

        blended = np.empty_like(dst)
        blended[:, :3] = out_rgb
        blended[:, 3] = out_a * 255.0
        region[cover] = np.clip(np.round(blended), 0, 255).astype(np.uint8)

    def _coverage(
        self,
        start: Point,
        end: Point,
        radius: float,
    ) -> Optional[tuple[slice, slice, np.ndarray]]:
        """Boolean coverage of the capsule around start->end, clipped to the buffer."""
        ax, ay = float(start[0]), float(start[1])
        bx, by = float(end[0]), float(end[1])

        x0 = max(0, int(math.floor(min(ax, bx) - radius)))
        x1 = min(self.width, int(math.ceil(max(ax, bx) + radius)) + 1)
        y0 = max(0, int(math.floor(min(ay, by) - radius)))
        y1 = min(self.height, int(math.ceil(max(ay, by) + radius)) + 1)
        if x0 >= x1 or y0 >= y1:
            return None

        yy, xx = np.ogrid[y0:y1, x0:x1]
        px = xx + 0.5 - ax
        py = yy + 0.5 - ay

        dx = bx - ax
        dy = by - ay
        length_sq = dx * dx + dy * dy
        if length_sq == 0.0:
            dist_sq = px * px + py * py
        else:
            # Project each pixel centre onto the segment, clamped to the endpoints.
            t = np.clip((px * dx + py * dy) / length_sq, 0.0, 1.0)
            dist_sq = (px - t * dx) ** 2 + (py - t * dy) ** 2

        cover = dist_sq <= radius * radius
        if not cover.any():
            return None
        return slice(y0, y1), slice(x0, x1), cover
