# tests/mask_editor/conftest.py
from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


def pytest_configure() -> None:
    # Ensure `src` is importable when running tests from the repo root.
    repo_root = Path(__file__).resolve().parents[2]
    src_dir = repo_root / "src"
    if src_dir.exists():
        sys.path.insert(0, str(src_dir))


@pytest.fixture
def gray_image() -> np.ndarray:
    """100x100 mid-gray RGBA image."""
    img = np.full((100, 100, 4), 128, dtype=np.uint8)
    img[..., 3] = 255
    return img


@pytest.fixture
def surface():
    from nicemask.mask_editor.surface import MaskSurface

    return MaskSurface(100, 100)
