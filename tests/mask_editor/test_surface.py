# tests/mask_editor/test_surface.py

from __future__ import annotations

import numpy as np
import pytest

from nicemask.mask_editor.surface import MaskSurface, RasterSurface
from nicemask.mask_editor.tools import Tool


def disk(width: int, height: int, cx: float, cy: float, radius: float) -> np.ndarray:
    """Boolean disk using the surface's pixel-centre convention."""
    yy, xx = np.mgrid[0:height, 0:width]
    return (xx + 0.5 - cx) ** 2 + (yy + 0.5 - cy) ** 2 <= radius**2


def test_new_surface_is_empty(surface):
    assert isinstance(surface, RasterSurface)
    assert surface.is_empty()
    assert surface.alpha().shape == (100, 100)


def test_brush_point_paints_disk(surface):
    """Radius-10 stamp at (50,50) selects exactly the pixel-centre disk."""
    surface.paint_point((50.0, 50.0), Tool.BRUSH, 10.0)

    assert not surface.is_empty()
    selected = surface.alpha() > 0
    np.testing.assert_array_equal(selected, disk(100, 100, 50.0, 50.0, 10.0))
    assert abs(int(selected.sum()) - int(round(np.pi * 100))) < 20


def test_brush_uses_translucent_paint(surface):
    surface.paint_point((50.0, 50.0), Tool.BRUSH, 5.0)
    r, g, b, a = surface.pixels[50, 50]
    assert (r, g, b) == (255, 0, 150)
    assert a == pytest.approx(0.7 * 255, abs=1)


def test_brush_blends_over_existing_paint(surface):
    surface.paint_point((50.0, 50.0), Tool.BRUSH, 5.0)
    first = int(surface.alpha()[50, 50])
    surface.paint_point((50.0, 50.0), Tool.BRUSH, 5.0)
    second = int(surface.alpha()[50, 50])

    # source-over: 0.7 + 0.7 * 0.3 = 0.91
    assert first < second < 255
    assert second == pytest.approx(0.91 * 255, abs=1)


def test_segment_is_blended_once(surface):
    """Overlapping caps of one segment do not double the paint."""
    surface.paint_segment((40.0, 50.0), (42.0, 50.0), Tool.BRUSH, 20.0)
    alpha = surface.alpha()
    painted = alpha[alpha > 0]
    assert painted.size > 0
    assert np.unique(painted).tolist() == [int(np.round(0.7 * 255))]


def test_segment_has_no_gaps(surface):
    """A fast move between two distant samples still paints a continuous band."""
    surface.paint_segment((10.0, 50.0), (90.0, 50.0), Tool.BRUSH, 6.0)
    row = surface.alpha()[50]
    assert np.all(row[10:90] > 0)
    # round caps extend past both endpoints by the radius
    assert row[7] > 0 and row[92] > 0
    assert row[3] == 0 and row[96] == 0


def test_eraser_makes_ring(surface):
    surface.paint_point((50.0, 50.0), Tool.BRUSH, 10.0)
    surface.paint_point((50.0, 50.0), Tool.ERASER, 5.0)

    selected = surface.alpha() > 0
    expected = disk(100, 100, 50.0, 50.0, 10.0) & ~disk(100, 100, 50.0, 50.0, 5.0)
    np.testing.assert_array_equal(selected, expected)
    assert not selected[50, 50]
    assert selected[43, 50]


def test_eraser_never_increases_alpha(surface):
    rng = np.random.default_rng(0)
    for _ in range(20):
        a = tuple(rng.uniform(0, 100, 2))
        b = tuple(rng.uniform(0, 100, 2))
        surface.paint_segment(a, b, Tool.BRUSH, float(rng.uniform(2, 20)))

    for _ in range(20):
        before = surface.alpha()
        a = tuple(rng.uniform(-10, 110, 2))
        b = tuple(rng.uniform(-10, 110, 2))
        surface.paint_segment(a, b, Tool.ERASER, float(rng.uniform(2, 30)))
        assert np.all(surface.alpha() <= before)


def test_erasing_empty_area_is_noop(surface):
    surface.paint_point((30.0, 30.0), Tool.ERASER, 15.0)
    assert surface.is_empty()


def test_painting_outside_buffer_is_clipped(surface):
    surface.paint_point((-50.0, -50.0), Tool.BRUSH, 10.0)
    assert surface.is_empty()

    surface.paint_point((0.0, 0.0), Tool.BRUSH, 3.0)
    assert surface.alpha()[0, 0] > 0
    assert surface.alpha().shape == (100, 100)


def test_pan_tool_cannot_paint(surface):
    with pytest.raises(ValueError):
        surface.paint_point((10.0, 10.0), Tool.PAN, 5.0)


def test_zero_radius_is_noop(surface):
    surface.paint_point((10.0, 10.0), Tool.BRUSH, 0.0)
    surface.paint_segment((10.0, 10.0), (20.0, 20.0), Tool.BRUSH, 0.0)
    assert surface.is_empty()


def test_snapshot_is_independent_copy(surface):
    surface.paint_point((20.0, 20.0), Tool.BRUSH, 5.0)
    snap = surface.snapshot()
    frozen = snap.copy()

    surface.paint_point((70.0, 70.0), Tool.BRUSH, 5.0)
    surface.paint_point((20.0, 20.0), Tool.ERASER, 10.0)
    np.testing.assert_array_equal(snap, frozen)

    with pytest.raises(ValueError):
        snap[0, 0, 3] = 1


def test_restore_copies_snapshot(surface):
    surface.paint_point((20.0, 20.0), Tool.BRUSH, 5.0)
    snap = surface.snapshot()
    surface.clear()
    assert surface.is_empty()

    surface.restore(snap)
    np.testing.assert_array_equal(surface.pixels, snap)

    # painting after restore leaves the snapshot alone
    surface.paint_point((80.0, 80.0), Tool.BRUSH, 5.0)
    assert snap[80, 80, 3] == 0


def test_restore_rejects_wrong_shape(surface):
    with pytest.raises(ValueError):
        surface.restore(np.zeros((10, 10, 4), dtype=np.uint8))


@pytest.mark.parametrize(
    "rgba",
    [(255, 0, 0), (300, 0, 0, 0.5), (255, 0, 0, 0.0), (255, 0, 0, 1.5)],
)
def test_invalid_paint_color(rgba):
    with pytest.raises(ValueError):
        MaskSurface(10, 10, paint_rgba=rgba)


def test_invalid_size():
    with pytest.raises(ValueError):
        MaskSurface(0, 10)
