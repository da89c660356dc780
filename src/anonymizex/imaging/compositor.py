"""Compositor: applies the anonymizer to every detection region of an image.

Regions are processed strictly in input order against one working canvas.
Where expanded regions overlap, the later region reads pixels the earlier one
already anonymized.

The canvas is a private copy of the source; if anything fails the copy is
dropped and the caller gets an exception, never a half-processed image.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from anonymizex.errors import ProcessingError
from anonymizex.imaging.anonymizer import anonymize
from anonymizex.imaging.codec import CANVAS_MODE, decode_image, encode_png
from anonymizex.imaging.geometry import Rectangle, expand_rectangle, rectangle_from_region
from anonymizex.imaging.shape_mask import ClipPath, ShapeKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from PIL import Image

    from anonymizex.imaging.regions import DetectionRegion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlurConfig:
    """Per-run anonymization options."""

    blur_radius: float = 40
    padding: float = 20
    shape: ShapeKind = ShapeKind.ELLIPSE
    blur_passes: int = 3

    def __post_init__(self) -> None:
        if not (self.blur_radius > 0 and math.isfinite(self.blur_radius)):
            raise ValueError(f"blur_radius must be a positive number, got {self.blur_radius}")
        if not (self.padding >= 0 and math.isfinite(self.padding)):
            raise ValueError(f"padding must be >= 0, got {self.padding}")
        if self.blur_passes < 1:
            raise ValueError(f"blur_passes must be >= 1, got {self.blur_passes}")
        # Normalize plain strings; unknown names become a rounded rectangle.
        object.__setattr__(self, "shape", ShapeKind.parse(self.shape))


@dataclass
class ProcessingReport:
    """Outcome of compositing one image."""

    image: Image.Image
    applied: list[Rectangle] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class AnonymizationResult:
    """Encoded output of a full decode-process-encode run."""

    data: bytes
    width: int
    height: int
    regions_processed: int
    regions_skipped: int
    media_type: str = "image/png"


class Compositor:
    """Runs the per-region pipeline against a working canvas."""

    def __init__(self, config: BlurConfig | None = None, *, max_image_pixels: int | None = None) -> None:
        self._config = config or BlurConfig()
        self._max_image_pixels = max_image_pixels

    @property
    def config(self) -> BlurConfig:
        return self._config

    def process(self, image: Image.Image, regions: Iterable[DetectionRegion]) -> ProcessingReport:
        """Anonymize every usable region of ``image``.

        ``image`` itself is never modified; the returned report holds the new
        canvas.

        Raises:
            ProcessingError: On any failure while handling a region.
        """
        canvas = image.convert(CANVAS_MODE) if image.mode != CANVAS_MODE else image.copy()
        report = ProcessingReport(image=canvas)

        for region in regions:
            try:
                rect = self._apply_region(canvas, region)
            except Exception as exc:
                logger.exception("Region %s failed, aborting run", region.id)
                raise ProcessingError(f"Failed to process image: {exc}") from exc

            if rect is None:
                report.skipped.append(region.id)
            else:
                report.applied.append(rect)

        logger.info(
            "Composited %dx%d image: %d region(s) anonymized, %d skipped",
            canvas.width,
            canvas.height,
            len(report.applied),
            len(report.skipped),
        )
        return report

    def _apply_region(self, canvas: Image.Image, region: DetectionRegion) -> Rectangle | None:
        bounds = rectangle_from_region(region)
        if bounds is None:
            logger.debug("Region %s has no polygon with 4+ vertices, skipping", region.id)
            return None

        rect = expand_rectangle(bounds, self._config.padding, canvas.width, canvas.height)
        if rect.is_empty:
            logger.debug("Region %s lies outside the %dx%d canvas, skipping", region.id, canvas.width, canvas.height)
            return None

        source = canvas.crop(rect.as_box())
        blurred = anonymize(source, self._config.blur_radius, self._config.blur_passes)
        mask = ClipPath.for_rectangle(rect, self._config.shape).mask()
        canvas.paste(blurred, (rect.x, rect.y), mask)

        logger.debug("Region %s anonymized at %s", region.id, rect)
        return rect

    def run(self, data: bytes, regions: Iterable[DetectionRegion]) -> AnonymizationResult:
        """Decode ``data``, anonymize all regions and encode the result as PNG.

        Raises:
            ImageDecodeError: If the source cannot be decoded.
            ProcessingError: If compositing fails.
            EncodeError: If the result cannot be encoded.
        """
        decoded = decode_image(data, self._max_image_pixels)
        report = self.process(decoded.image, regions)
        encoded = encode_png(report.image, keep_alpha=decoded.has_alpha)
        return AnonymizationResult(
            data=encoded,
            width=report.image.width,
            height=report.image.height,
            regions_processed=len(report.applied),
            regions_skipped=len(report.skipped),
        )
