# nicemask/src/nicemask/mask_editor/image_io.py

"""Decoding and conversion of source images into RGBA arrays."""

from __future__ import annotations

import asyncio
import io
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from nicemask.utils.logging import get_logger

logger = get_logger(__name__)

ImageSource = Union[bytes, bytearray, Image.Image, np.ndarray]


class ImageDecodeError(ValueError):
    """The source image could not be decoded into pixels."""


def _pil_to_rgba(img: Image.Image) -> np.ndarray:
    if img.width <= 0 or img.height <= 0:
        raise ImageDecodeError(f"image has no pixels ({img.width}x{img.height})")
    return np.asarray(img.convert("RGBA"), dtype=np.uint8).copy()


def as_rgba(image: Union[Image.Image, np.ndarray]) -> np.ndarray:
    """Return an (H, W, 4) uint8 copy of an already-decoded image.

    Accepts PIL images, 2D grayscale arrays, and (H, W, 3|4) arrays.
    Float arrays are assumed to be in [0, 1].
    """
    if isinstance(image, Image.Image):
        return _pil_to_rgba(image)

    arr = np.asarray(image)
    if arr.ndim not in (2, 3) or arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ImageDecodeError(f"unsupported image array shape {arr.shape}")
    if arr.ndim == 3 and arr.shape[2] not in (3, 4):
        raise ImageDecodeError(f"unsupported channel count {arr.shape[2]}")

    if np.issubdtype(arr.dtype, np.floating):
        arr = np.clip(np.nan_to_num(arr) * 255.0, 0, 255).round()
    arr = arr.astype(np.uint8)

    if arr.ndim == 2:
        arr = np.stack([arr, arr, arr], axis=-1)
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=-1)
    return np.ascontiguousarray(arr)


def decode_image(source: ImageSource) -> np.ndarray:
    """Decode encoded bytes (PNG, JPEG, ...) or convert a decoded image to RGBA.

    Raises:
        ImageDecodeError: if the data is empty or not a readable image.
    """
    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise ImageDecodeError("empty image data")
        try:
            with Image.open(io.BytesIO(source)) as img:
                img.load()
                rgba = _pil_to_rgba(img)
        except (UnidentifiedImageError, OSError) as e:
            raise ImageDecodeError(f"could not decode image: {e}") from e
        logger.debug(f"decoded image {rgba.shape[1]}x{rgba.shape[0]} from {len(source)} bytes")
        return rgba
    return as_rgba(source)


async def decode_image_async(source: ImageSource) -> np.ndarray:
    """Decode off the event loop; the editor is built only after this returns."""
    return await asyncio.to_thread(decode_image, source)
