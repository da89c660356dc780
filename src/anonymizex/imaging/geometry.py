"""Rectangle math: polygon bounding boxes and padded, canvas-clamped regions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from anonymizex.imaging.regions import DetectionRegion, Point

MIN_POLYGON_VERTICES: int = 4


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle in pixel units."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def as_box(self) -> tuple[int, int, int, int]:
        """Return (left, upper, right, lower) as Pillow expects for crops."""
        return (self.x, self.y, self.right, self.bottom)


def _select_polygon(region: DetectionRegion) -> Sequence[Point] | None:
    if region.tight is not None and len(region.tight) >= MIN_POLYGON_VERTICES:
        return region.tight
    if region.loose is not None and len(region.loose) >= MIN_POLYGON_VERTICES:
        return region.loose
    return None


def rectangle_from_region(region: DetectionRegion) -> Rectangle | None:
    """Compute the bounding rectangle of a detection's polygon.

    The tight face polygon wins when it has at least four vertices; the loose
    polygon is the fallback. Returns None when neither is usable, in which
    case the caller must leave the image alone for this region.
    """
    polygon = _select_polygon(region)
    if polygon is None:
        return None

    xs = [point.x or 0 for point in polygon]
    ys = [point.y or 0 for point in polygon]

    x = math.floor(min(xs))
    y = math.floor(min(ys))
    return Rectangle(
        x=x,
        y=y,
        width=math.ceil(max(xs)) - x,
        height=math.ceil(max(ys)) - y,
    )


def expand_rectangle(rect: Rectangle, padding: float, image_width: int, image_height: int) -> Rectangle:
    """Grow a rectangle by ``padding`` on every side and clamp it to the canvas.

    Growth is bounded relative to the unpadded origin
    (``image_width - rect.x + padding``), not the clamped one. The result is
    then intersected with the canvas so it never extends past its edges.
    """
    pad = math.floor(padding)
    x = max(0, rect.x - pad)
    y = max(0, rect.y - pad)
    width = min(image_width - rect.x + pad, rect.width + 2 * pad)
    height = min(image_height - rect.y + pad, rect.height + 2 * pad)

    x = min(x, image_width)
    y = min(y, image_height)
    width = max(0, min(width, image_width - x))
    height = max(0, min(height, image_height - y))
    return Rectangle(x=x, y=y, width=width, height=height)
