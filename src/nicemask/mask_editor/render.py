# nicemask/src/nicemask/mask_editor/render.py

"""Render the source image with the live mask overlay for the current viewport."""

from __future__ import annotations

from typing import Tuple

import numpy as np
from PIL import Image

from nicemask.mask_editor.viewport import Viewport


def composite_mask(image_rgba: np.ndarray, mask_rgba: np.ndarray) -> Image.Image:
    """Source image with the translucent mask paint composited on top."""
    if image_rgba.shape[:2] != mask_rgba.shape[:2]:
        raise ValueError(
            f"image {image_rgba.shape[:2]} and mask {mask_rgba.shape[:2]} sizes differ"
        )
    base = Image.fromarray(np.ascontiguousarray(image_rgba))
    overlay = Image.fromarray(np.ascontiguousarray(mask_rgba))
    return Image.alpha_composite(base, overlay)


def render_view(
    image_rgba: np.ndarray,
    mask_rgba: np.ndarray,
    viewport: Viewport,
    size: Tuple[int, int],
    background: Tuple[int, int, int] = (0, 0, 0),
) -> Image.Image:
    """Render a `size` (width, height) RGB view: screen = image * zoom + pan.

    Nearest-neighbour sampling keeps individual mask pixels visible when
    zoomed in.
    """
    composed = composite_mask(image_rgba, mask_rgba)
    view = composed.transform(
        size,
        Image.Transform.AFFINE,
        data=viewport.screen_to_image_affine(),
        resample=Image.Resampling.NEAREST,
        fillcolor=tuple(background) + (255,),
    )
    return view.convert("RGB")


def brush_preview_svg(
    x: float,
    y: float,
    diameter: float,
    *,
    stroke: str = "white",
    fill_opacity: float = 0.3,
) -> str:
    """SVG circle outlining the brush footprint at screen position (x, y)."""
    r = diameter / 2.0
    return (
        f'<circle cx="{x:.1f}" cy="{y:.1f}" r="{r:.1f}" '
        f'stroke="{stroke}" stroke-width="2" '
        f'fill="{stroke}" fill-opacity="{fill_opacity}" '
        f'pointer-events="none" />'
    )
