# nicemask/src/nicemask/mask_editor/viewport.py

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

MIN_ZOOM = 0.1
MAX_ZOOM = 10.0

Point = Tuple[float, float]


def clamp_zoom(zoom: float, min_zoom: float = MIN_ZOOM, max_zoom: float = MAX_ZOOM) -> float:
    return max(min_zoom, min(max_zoom, float(zoom)))


def distance(p0: Point, p1: Point) -> float:
    """Euclidean distance between two screen points."""
    return math.hypot(p0[0] - p1[0], p0[1] - p1[1])


def midpoint(p0: Point, p1: Point) -> Point:
    return ((p0[0] + p1[0]) / 2.0, (p0[1] + p1[1]) / 2.0)


@dataclass(frozen=True)
class PinchAnchor:
    """Viewport and finger geometry captured when a pinch gesture starts.

    Every pinch frame is computed from these values, never from the previous
    frame, so rounding does not accumulate over a long gesture.
    """

    pan_x: float
    pan_y: float
    zoom: float
    distance: float
    mid_x: float
    mid_y: float


@dataclass
class Viewport:
    """Zoom + pan mapping between screen space and image space.

    screen = image * zoom + pan

    Screen coordinates are pixels relative to the top-left corner of the
    display area; image coordinates are pixels of the source image at its
    native resolution.
    """

    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    min_zoom: float = MIN_ZOOM
    max_zoom: float = MAX_ZOOM

    def __post_init__(self) -> None:
        if self.min_zoom <= 0 or self.max_zoom < self.min_zoom:
            raise ValueError(
                f"invalid zoom range [{self.min_zoom}, {self.max_zoom}]"
            )
        self.zoom = self.clamp(self.zoom)

    @property
    def pan(self) -> Point:
        return (self.pan_x, self.pan_y)

    def clamp(self, zoom: float) -> float:
        return clamp_zoom(zoom, self.min_zoom, self.max_zoom)

    # ------------------ coordinate mapping ------------------

    def to_image_space(self, screen_x: float, screen_y: float) -> Point:
        """Screen coords -> image coords."""
        return (
            (screen_x - self.pan_x) / self.zoom,
            (screen_y - self.pan_y) / self.zoom,
        )

    def to_screen_space(self, image_x: float, image_y: float) -> Point:
        """Image coords -> screen coords."""
        return (
            image_x * self.zoom + self.pan_x,
            image_y * self.zoom + self.pan_y,
        )

    # ------------------ core operations ------------------

    def zoom_at(self, screen_x: float, screen_y: float, new_zoom: float) -> None:
        """Zoom to `new_zoom` keeping the image point under (screen_x, screen_y) fixed."""
        new_zoom = self.clamp(new_zoom)
        ratio = new_zoom / self.zoom
        self.pan_x = screen_x - (screen_x - self.pan_x) * ratio
        self.pan_y = screen_y - (screen_y - self.pan_y) * ratio
        self.zoom = new_zoom

    def wheel_zoom(
        self,
        screen_x: float,
        screen_y: float,
        delta_y: float,
        sensitivity: float = 0.001,
    ) -> None:
        """Additive zoom step from a wheel delta; negative delta zooms in."""
        self.zoom_at(screen_x, screen_y, self.zoom - delta_y * sensitivity)

    def pan_by(self, dx: float, dy: float) -> None:
        self.pan_x += dx
        self.pan_y += dy

    def set_pan(self, pan_x: float, pan_y: float) -> None:
        self.pan_x = float(pan_x)
        self.pan_y = float(pan_y)

    def fit_to_container(
        self,
        img_width: int,
        img_height: int,
        container_width: float,
        container_height: float,
    ) -> None:
        """Fit the image inside the container, centred, never magnified above 100%."""
        if img_width <= 0 or img_height <= 0:
            raise ValueError(f"invalid image size {img_width}x{img_height}")
        if container_width <= 0 or container_height <= 0:
            raise ValueError(
                f"invalid container size {container_width}x{container_height}"
            )

        scale_x = container_width / img_width
        scale_y = container_height / img_height
        self.zoom = self.clamp(min(scale_x, scale_y, 1.0))
        self.pan_x = (container_width - img_width * self.zoom) / 2.0
        self.pan_y = (container_height - img_height * self.zoom) / 2.0

    # ------------------ pinch ------------------

    def pinch_anchor(self, p0: Point, p1: Point) -> PinchAnchor:
        mid_x, mid_y = midpoint(p0, p1)
        return PinchAnchor(
            pan_x=self.pan_x,
            pan_y=self.pan_y,
            zoom=self.zoom,
            distance=distance(p0, p1),
            mid_x=mid_x,
            mid_y=mid_y,
        )

    def apply_pinch(self, anchor: PinchAnchor, p0: Point, p1: Point) -> None:
        """Set zoom and pan from the gesture start and the current two fingers."""
        scale = distance(p0, p1) / anchor.distance if anchor.distance > 0 else 1.0
        new_zoom = self.clamp(anchor.zoom * scale)
        mid_x, mid_y = midpoint(p0, p1)

        # Image point that sat under the starting midpoint follows the moving midpoint.
        self.pan_x = mid_x - (anchor.mid_x - anchor.pan_x) / anchor.zoom * new_zoom
        self.pan_y = mid_y - (anchor.mid_y - anchor.pan_y) / anchor.zoom * new_zoom
        self.zoom = new_zoom

    def screen_to_image_affine(self) -> Tuple[float, float, float, float, float, float]:
        """Return PIL AFFINE data mapping output (screen) pixels to image pixels."""
        inv = 1.0 / self.zoom
        return (inv, 0.0, -self.pan_x * inv, 0.0, inv, -self.pan_y * inv)
