# nicemask/src/nicemask/mask_editor/finalize.py

"""Convert a painted mask surface into the binary mask handed to the edit pipeline."""

from __future__ import annotations

import base64
import io
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image

if TYPE_CHECKING:
    from nicemask.mask_editor.surface import RasterSurface

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)


def binary_mask_from_alpha(alpha: np.ndarray) -> np.ndarray:
    """Opaque white where alpha > 0, opaque black elsewhere.

    Returns an RGBA ``uint8`` array with the same height/width as `alpha`.
    """
    alpha = np.asarray(alpha)
    if alpha.ndim != 2:
        raise ValueError(f"alpha must be 2D, got shape {alpha.shape}")

    out = np.empty(alpha.shape + (4,), dtype=np.uint8)
    selected = alpha > 0
    out[...] = BLACK
    out[selected] = WHITE
    return out


def finalize(surface: "RasterSurface") -> np.ndarray:
    """Binary RGBA mask at the surface's (source image) resolution."""
    mask = binary_mask_from_alpha(surface.alpha())
    if mask.shape[:2] != (surface.height, surface.width):
        raise ValueError(
            f"surface alpha {mask.shape[:2]} does not match "
            f"{surface.height}x{surface.width}"
        )
    return mask


def encode_png(mask: np.ndarray) -> bytes:
    """Encode an RGBA mask array as PNG bytes."""
    buf = io.BytesIO()
    Image.fromarray(mask).save(buf, format="PNG")
    return buf.getvalue()


def to_base64_png(mask: np.ndarray) -> str:
    """Base64 PNG payload (no data-URL prefix)."""
    return base64.b64encode(encode_png(mask)).decode("ascii")
