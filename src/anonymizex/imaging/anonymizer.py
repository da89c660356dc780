"""Region anonymizer: pixelation followed by repeated margin-extended blur.

Pixelation:
    nearest-neighbour downsample to a coarse grid (every output block is one
    source sample, so fine detail is destroyed, not averaged), then a bicubic
    upsample back to full size to soften the block edges.

Blur passes:
    each pass stretches the buffer onto a canvas ``2 * blur_amount`` pixels
    larger on every side, Gaussian-blurs it and crops the centre back out, so
    the kernel never samples empty space at the tile border.
"""

from __future__ import annotations

import logging
import math

from PIL import Image, ImageFilter

logger = logging.getLogger(__name__)

MIN_PIXEL_SIZE: int = 8
MIN_GRID_CELLS: int = 4
MIN_BLUR_AMOUNT: int = 10


def pixel_size_for(radius: float) -> int:
    return max(MIN_PIXEL_SIZE, math.floor(radius / 4))


def grid_size_for(width: int, height: int, radius: float) -> tuple[int, int]:
    """Dimensions of the low-resolution pixelation grid."""
    pixel_size = pixel_size_for(radius)
    return (
        max(MIN_GRID_CELLS, math.floor(width / pixel_size)),
        max(MIN_GRID_CELLS, math.floor(height / pixel_size)),
    )


def blur_amount_for(radius: float) -> int:
    return max(MIN_BLUR_AMOUNT, math.floor(radius / 2))


def pixelate(region: Image.Image, radius: float) -> Image.Image:
    """Downsample without smoothing, then upsample with smoothing."""
    small = region.resize(grid_size_for(*region.size, radius), Image.Resampling.NEAREST)
    return small.resize(region.size, Image.Resampling.BICUBIC)


def blur_pass(buffer: Image.Image, blur_amount: int) -> Image.Image:
    """Blur once, sampling from a virtually extended canvas."""
    width, height = buffer.size
    margin = blur_amount * 2
    extended = buffer.resize((width + margin * 2, height + margin * 2), Image.Resampling.BICUBIC)
    blurred = extended.filter(ImageFilter.GaussianBlur(radius=blur_amount))
    return blurred.crop((margin, margin, margin + width, margin + height))


def anonymize(region: Image.Image, radius: float, passes: int) -> Image.Image:
    """Irreversibly obscure ``region``.

    Args:
        region: The extracted sub-image. Not modified.
        radius: Nominal blur radius; drives both the pixel grid and blur strength.
        passes: Number of blur passes, at least 1.

    Returns:
        A new image of the same size and mode.
    """
    blur_amount = blur_amount_for(radius)
    logger.debug(
        "Anonymizing %dx%d region (grid=%s, blur=%d, passes=%d)",
        region.width,
        region.height,
        grid_size_for(*region.size, radius),
        blur_amount,
        passes,
    )

    buffer = pixelate(region, radius)
    for _ in range(passes):
        buffer = blur_pass(buffer, blur_amount)
    return buffer
