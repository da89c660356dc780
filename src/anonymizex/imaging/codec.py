"""Decoding source bytes to an RGBA canvas and encoding the result as PNG."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass

from PIL import ExifTags, Image, ImageOps, UnidentifiedImageError

from anonymizex.errors import EncodeError, ImageDecodeError

logger = logging.getLogger(__name__)

CANVAS_MODE = "RGBA"
OUTPUT_FORMAT = "PNG"

_DECODE_FAILURES = (
    UnidentifiedImageError,
    OSError,
    SyntaxError,
    EOFError,
    ValueError,
    Image.DecompressionBombError,
)

# EXIF orientations that rotate by 90 or 270 degrees.
_TRANSPOSED_ORIENTATIONS = frozenset({5, 6, 7, 8})


@dataclass(frozen=True)
class ImageInfo:
    """Basic facts about an encoded image, read from its header."""

    width: int
    height: int
    format: str | None
    mode: str


@dataclass(frozen=True)
class DecodedImage:
    """A decoded canvas plus whether the source carried transparency."""

    image: Image.Image
    has_alpha: bool


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (image.mode == "P" and "transparency" in image.info)


def probe_image(data: bytes) -> ImageInfo:
    """Read dimensions without decoding pixel data.

    Raises:
        ImageDecodeError: If the bytes are not a recognizable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
            if image.getexif().get(ExifTags.Base.Orientation, 1) in _TRANSPOSED_ORIENTATIONS:
                width, height = height, width
            return ImageInfo(width=width, height=height, format=image.format, mode=image.mode)
    except _DECODE_FAILURES as exc:
        raise ImageDecodeError("Failed to load image for processing") from exc


def decode_image(data: bytes, max_pixels: int | None = None) -> DecodedImage:
    """Decode bytes into an RGBA image with EXIF orientation applied.

    Raises:
        ImageDecodeError: If decoding fails or the image exceeds ``max_pixels``.
    """
    try:
        with Image.open(io.BytesIO(data)) as source:
            pixel_count = source.width * source.height
            if max_pixels is not None and pixel_count > max_pixels:
                raise ImageDecodeError(f"Image has {pixel_count} pixels, limit is {max_pixels}")
            source.load()
            has_alpha = _has_alpha(source)
            oriented = ImageOps.exif_transpose(source) or source
            canvas = oriented.convert(CANVAS_MODE)
    except _DECODE_FAILURES as exc:
        raise ImageDecodeError("Failed to load image for processing") from exc

    logger.debug("Decoded %dx%d image (alpha=%s)", canvas.width, canvas.height, has_alpha)
    return DecodedImage(image=canvas, has_alpha=has_alpha)


def encode_png(image: Image.Image, *, keep_alpha: bool = True) -> bytes:
    """Serialize a canvas losslessly.

    Raises:
        EncodeError: If Pillow cannot write the image.
    """
    output = image if keep_alpha else image.convert("RGB")
    buffer = io.BytesIO()
    try:
        output.save(buffer, format=OUTPUT_FORMAT)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"Failed to encode image: {exc}") from exc
    return buffer.getvalue()
