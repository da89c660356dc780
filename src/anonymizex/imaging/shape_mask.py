"""Clip boundaries that constrain where anonymized pixels are pasted.

Coverage masks are computed analytically with numpy: each pixel is sampled on
a ``samples x samples`` grid and the fraction of sample points inside the
path becomes the mask value. Pixels wholly outside the path are 0 and are
never touched when the mask is used for pasting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from anonymizex.imaging.geometry import Rectangle

logger = logging.getLogger(__name__)

CORNER_RADIUS_RATIO: float = 0.15


class ShapeKind(StrEnum):
    ELLIPSE = "ellipse"
    ROUNDED_RECT = "rectangle"

    @classmethod
    def parse(cls, value: str | ShapeKind) -> ShapeKind:
        """Resolve a shape name, treating anything unrecognized as a rounded rectangle."""
        try:
            return cls(value)
        except ValueError:
            logger.warning("Unknown shape %r, falling back to %s", value, cls.ROUNDED_RECT.value)
            return cls.ROUNDED_RECT


@dataclass(frozen=True)
class ClipPath:
    """An ellipse or rounded rectangle inscribed in a rectangle.

    Coordinates are continuous canvas coordinates: pixel (i, j) covers the
    square [i, i+1) x [j, j+1).
    """

    rect: Rectangle
    shape: ShapeKind

    @classmethod
    def for_rectangle(cls, rect: Rectangle, shape: str | ShapeKind) -> ClipPath:
        return cls(rect=rect, shape=ShapeKind.parse(shape))

    @property
    def corner_radius(self) -> float:
        return CORNER_RADIUS_RATIO * min(self.rect.width, self.rect.height)

    def contains(self, x: NDArray[np.float64] | float, y: NDArray[np.float64] | float) -> NDArray[np.bool_]:
        """Test whether canvas points lie inside the path (boundary included)."""
        px = np.asarray(x, dtype=np.float64)
        py = np.asarray(y, dtype=np.float64)
        if self.rect.is_empty:
            return np.zeros(np.broadcast(px, py).shape, dtype=bool)
        if self.shape is ShapeKind.ELLIPSE:
            return self._contains_ellipse(px, py)
        return self._contains_rounded_rect(px, py)

    def _contains_ellipse(self, px: NDArray[np.float64], py: NDArray[np.float64]) -> NDArray[np.bool_]:
        rx = self.rect.width / 2
        ry = self.rect.height / 2
        cx = self.rect.x + rx
        cy = self.rect.y + ry
        result: NDArray[np.bool_] = ((px - cx) / rx) ** 2 + ((py - cy) / ry) ** 2 <= 1.0
        return result

    def _contains_rounded_rect(self, px: NDArray[np.float64], py: NDArray[np.float64]) -> NDArray[np.bool_]:
        left, top = self.rect.x, self.rect.y
        right, bottom = self.rect.right, self.rect.bottom
        radius = self.corner_radius

        inside = (px >= left) & (px <= right) & (py >= top) & (py <= bottom)
        if radius <= 0:
            return inside

        # Distance to the nearest corner-arc centre, only meaningful in the corner squares.
        ccx = np.clip(px, left + radius, right - radius)
        ccy = np.clip(py, top + radius, bottom - radius)
        in_arc = (px - ccx) ** 2 + (py - ccy) ** 2 <= radius**2
        result: NDArray[np.bool_] = inside & in_arc
        return result

    def coverage(self, samples: int = 4) -> NDArray[np.float64]:
        """Return per-pixel coverage in [0, 1], shape (height, width)."""
        width, height = self.rect.width, self.rect.height
        if width <= 0 or height <= 0:
            return np.zeros((max(height, 0), max(width, 0)), dtype=np.float64)

        offsets = (np.arange(samples, dtype=np.float64) + 0.5) / samples
        cols = (self.rect.x + np.arange(width, dtype=np.float64))[None, :]
        rows = (self.rect.y + np.arange(height, dtype=np.float64))[:, None]

        hits = np.zeros((height, width), dtype=np.float64)
        for dy in offsets:
            for dx in offsets:
                hits += self.contains(cols + dx, rows + dy)
        coverage: NDArray[np.float64] = hits / (samples * samples)
        return coverage

    def mask(self, samples: int = 4) -> Image.Image:
        """Render the path as an ``L`` mode mask the size of the rectangle."""
        values = np.rint(self.coverage(samples) * 255).astype(np.uint8)
        return Image.fromarray(values)
